"""
Progress Tracker

Pure state transitions for a single challenge. Every operation takes a
Challenge value and returns the next one; the input is never mutated.

Streak rules:
- Period is the UTC day for daily challenges, the Monday-based week for
  weekly ones and the calendar month for monthly ones.
- A contribution in the period right after the last counted one extends the
  streak; a gap of more than one period restarts it at 1.
- Several contributions inside one period count once.
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import replace
from datetime import date, datetime
from typing import List, Optional

from stackr.core.errors import InvalidContributionError, InvalidTransitionError
from stackr.core.rounding import clamp, round_half_up
from stackr.core.timeutils import normalize_utc, utc_day
from stackr.models.challenge import Challenge, Contribution, Milestone

logger = logging.getLogger("stackr")


def period_index(challenge_type: str, day: date) -> int:
    """Monotonic index of the qualifying period containing `day`."""
    if challenge_type == "daily":
        return day.toordinal()
    if challenge_type == "weekly":
        # date(1, 1, 1) is a Monday, so ordinal 1..7 is week 0
        return (day.toordinal() - 1) // 7
    if challenge_type == "monthly":
        return day.year * 12 + (day.month - 1)
    raise InvalidContributionError(f"Unknown challenge type: {challenge_type!r}")


def compute_progress(current_amount: float, target_amount: float, completed: bool) -> int:
    """Percent complete, reserving 100 for completed challenges."""
    percent = int(clamp(round_half_up(current_amount / target_amount * 100), 0, 100))
    if not completed and percent >= 100:
        return 99
    return percent


class ProgressTracker:
    """Lifecycle and contribution handling for challenges."""

    @staticmethod
    def apply_contribution(challenge: Challenge, contribution: Contribution) -> Challenge:
        if not math.isfinite(contribution.amount) or contribution.amount <= 0:
            raise InvalidContributionError(
                f"Contribution amount must be a positive number, got {contribution.amount}"
            )
        if challenge.status == "abandoned":
            raise InvalidContributionError(f"Challenge {challenge.id} has been abandoned")
        challenge.validate()

        occurred_at = normalize_utc(contribution.date)
        if utc_day(occurred_at) < utc_day(challenge.start_date):
            raise InvalidContributionError(
                f"Contribution dated {occurred_at.isoformat()} precedes challenge start"
            )
        if occurred_at > challenge.end_date:
            logger.info(
                "challenge.contribution.late",
                extra={"challenge_id": challenge.id, "user_id": challenge.user_id},
            )

        recorded = replace(contribution, date=occurred_at)
        current_amount = challenge.current_amount + recorded.amount

        status = challenge.status
        completed_at = challenge.completed_at
        if status == "not_started":
            status = "active"
        if status == "active" and current_amount >= challenge.target_amount:
            status = "completed"
            completed_at = occurred_at

        streak_count, last_period = ProgressTracker._next_streak(challenge, occurred_at)

        updated = replace(
            challenge,
            current_amount=current_amount,
            progress=compute_progress(current_amount, challenge.target_amount, status == "completed"),
            milestones=ProgressTracker._mark_milestones(challenge.milestones, current_amount),
            streak_count=streak_count,
            last_period=last_period,
            status=status,
            completed_at=completed_at,
            contributions=[*challenge.contributions, recorded],
        )
        updated.validate()
        return updated

    @staticmethod
    def join(challenge: Challenge) -> Challenge:
        """not_started -> active. Joining an active challenge is a no-op."""
        if challenge.is_terminal:
            raise InvalidTransitionError(f"Cannot join a {challenge.status} challenge")
        if challenge.status == "active":
            return challenge
        return replace(copy.deepcopy(challenge), status="active")

    @staticmethod
    def abandon(challenge: Challenge, *, now: Optional[datetime] = None) -> Challenge:
        """not_started | active -> abandoned (terminal)."""
        if challenge.is_terminal:
            raise InvalidTransitionError(f"Cannot abandon a {challenge.status} challenge")
        return replace(copy.deepcopy(challenge), status="abandoned", abandoned_at=normalize_utc(now))

    @staticmethod
    def newly_achieved(before: Challenge, after: Challenge) -> List[Milestone]:
        """Milestones that flipped to achieved between two values of a challenge."""
        return [
            new
            for old, new in zip(before.milestones, after.milestones)
            if new.achieved and not old.achieved
        ]

    # Internal helpers -------------------------------------------------
    @staticmethod
    def _mark_milestones(milestones: List[Milestone], current_amount: float) -> List[Milestone]:
        marked: List[Milestone] = []
        for milestone in milestones:
            achieved = milestone.achieved or current_amount >= milestone.amount
            marked.append(Milestone(name=milestone.name, amount=milestone.amount, achieved=achieved))
        return marked

    @staticmethod
    def _next_streak(challenge: Challenge, occurred_at: datetime) -> tuple[int, Optional[int]]:
        period = period_index(challenge.type, utc_day(occurred_at))
        last = challenge.last_period

        if last is None:
            return 1, period
        if period <= last:
            # Same period, or a back-dated contribution: no change
            return challenge.streak_count, last
        if period == last + 1:
            return challenge.streak_count + 1, period
        return 1, period


progress_tracker = ProgressTracker()
