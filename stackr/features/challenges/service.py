from __future__ import annotations

import random
import threading
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from stackr.core.config import settings
from stackr.core.errors import NotFoundError, PermissionError, ValidationError
from stackr.core.logging import log_event
from stackr.core.timeutils import normalize_utc
from stackr.features.achievements.scoring_engine import AchievementScorer, achievement_scorer
from stackr.features.achievements.statistics import compute_statistics
from stackr.features.challenges.generator import ChallengeGenerator, GenerationOptions
from stackr.features.challenges.persistence import (
    ChallengeRepository,
    InMemoryChallengeRepository,
    SqlChallengeRepository,
)
from stackr.features.challenges.progress import ProgressTracker
from stackr.models.achievement import AchievementLevel, UserChallengeStatistics
from stackr.models.challenge import Challenge, ChallengeTemplate, Contribution


class ChallengeService:
    """Challenge lifecycle for the host application.

    Wraps the pure generator/tracker/scorer with storage, ownership checks,
    per-challenge write serialization and emitted events.
    """

    def __init__(
        self,
        repository: Optional[ChallengeRepository] = None,
        *,
        generator: Optional[ChallengeGenerator] = None,
        scorer: Optional[AchievementScorer] = None,
        rng: Optional[random.Random] = None,
    ):
        self._repository = repository or InMemoryChallengeRepository()
        self._rng = rng or random.Random()
        self._generator = generator or ChallengeGenerator(rng=self._rng)
        self._scorer = scorer or achievement_scorer
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    @property
    def repository(self) -> ChallengeRepository:
        return self._repository

    def register_user(self, *, user_id: str, name: str) -> None:
        if not user_id or not name:
            raise ValidationError("user_id and name are required")
        self._repository.save_user(user_id, name)

    def create_challenge(
        self,
        *,
        user_id: str,
        options: GenerationOptions,
        now: Optional[datetime] = None,
    ) -> Tuple[Challenge, List[dict]]:
        """Generate a challenge for a user and store it."""
        if self._repository.get_user_name(user_id) is None:
            self._repository.save_user(user_id, user_id)

        challenge = self._generator.generate(replace(options, user_id=user_id), now=now)
        self._repository.save(challenge)
        log_event(
            "info",
            "challenge.created",
            user_id=user_id,
            challenge_id=challenge.id,
            event_type="challenge.created",
            extra={"type": challenge.type, "target_amount": challenge.target_amount},
        )
        emitted = [
            {
                "type": "challenge.created",
                "payload": {
                    "userId": user_id,
                    "challengeId": challenge.id,
                    "targetAmount": challenge.target_amount,
                    "status": challenge.status,
                },
            }
        ]
        return challenge, emitted

    def join_challenge(self, *, user_id: str, challenge_id: str) -> Tuple[Challenge, List[dict]]:
        """Move a not-started challenge to active (idempotent)."""
        with self._lock_for(user_id, challenge_id):
            before = self._get_owned(user_id, challenge_id)
            after = ProgressTracker.join(before)
            if after.status == before.status:
                return after, []
            self._repository.save(after)

        log_event("info", "challenge.joined", user_id=user_id, challenge_id=challenge_id, event_type="challenge.joined")
        return after, [
            {"type": "challenge.joined", "payload": {"userId": user_id, "challengeId": challenge_id}}
        ]

    def contribute(
        self,
        *,
        user_id: str,
        challenge_id: str,
        amount: float,
        contributed_at: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> Tuple[Challenge, List[dict]]:
        """Record a contribution. One writer at a time per challenge."""
        contribution = Contribution(amount=amount, date=normalize_utc(contributed_at), note=note)

        with self._lock_for(user_id, challenge_id):
            before = self._get_owned(user_id, challenge_id)
            after = ProgressTracker.apply_contribution(before, contribution)
            self._repository.save(after)

        emitted: List[dict] = [
            {
                "type": "challenge.contribution_recorded",
                "payload": {
                    "userId": user_id,
                    "challengeId": challenge_id,
                    "amount": contribution.amount,
                    "currentAmount": after.current_amount,
                    "progress": after.progress,
                    "streakCount": after.streak_count,
                },
            }
        ]
        for milestone in ProgressTracker.newly_achieved(before, after):
            emitted.append(
                {
                    "type": "challenge.milestone_reached",
                    "payload": {
                        "userId": user_id,
                        "challengeId": challenge_id,
                        "milestone": milestone.name,
                        "amount": milestone.amount,
                    },
                }
            )
        if before.status != "completed" and after.status == "completed":
            emitted.append(
                {
                    "type": "challenge.completed",
                    "payload": {
                        "userId": user_id,
                        "challengeId": challenge_id,
                        "completedAt": after.completed_at.isoformat() if after.completed_at else None,
                    },
                }
            )

        for event in emitted:
            log_event("info", event["type"], user_id=user_id, challenge_id=challenge_id, event_type=event["type"])
        return after, emitted

    def abandon_challenge(
        self, *, user_id: str, challenge_id: str, abandoned_at: Optional[datetime] = None
    ) -> Tuple[Challenge, List[dict]]:
        with self._lock_for(user_id, challenge_id):
            before = self._get_owned(user_id, challenge_id)
            after = ProgressTracker.abandon(before, now=abandoned_at)
            self._repository.save(after)
        # Abandoned challenges take no further writes
        self._release_lock(challenge_id)

        log_event("info", "challenge.abandoned", user_id=user_id, challenge_id=challenge_id, event_type="challenge.abandoned")
        return after, [
            {
                "type": "challenge.abandoned",
                "payload": {
                    "userId": user_id,
                    "challengeId": challenge_id,
                    "abandonedAt": after.abandoned_at.isoformat() if after.abandoned_at else None,
                },
            }
        ]

    def get_challenge(self, *, user_id: str, challenge_id: str) -> Challenge:
        return self._get_owned(user_id, challenge_id)

    def list_challenges(self, *, user_id: str, status: Optional[str] = None) -> List[Challenge]:
        challenges = self._repository.list_for_user(user_id)
        if status:
            challenges = [c for c in challenges if c.status == status]
        return challenges

    def get_statistics(self, user_id: str) -> UserChallengeStatistics:
        return compute_statistics(user_id, self._repository.list_for_user(user_id), self._scorer)

    def get_achievement_level(self, user_id: str) -> AchievementLevel:
        challenges = self._repository.list_for_user(user_id)
        stats = compute_statistics(user_id, challenges, self._scorer)
        completed = [c for c in challenges if c.status == "completed"]
        return self._scorer.score(completed, stats)

    def list_templates(self, challenge_type: Optional[str] = None) -> List[ChallengeTemplate]:
        catalog = self._generator.catalog
        if challenge_type:
            return list(catalog.templates_for(challenge_type))
        return list(catalog.templates)

    def suggest_templates(self, count: Optional[int] = None) -> List[ChallengeTemplate]:
        return self._generator.catalog.suggest(count or settings.SUGGESTION_COUNT, self._rng)

    def reset(self) -> None:
        """Drop all stored state. Used by tests."""
        self._repository.clear()
        with self._locks_guard:
            self._locks.clear()

    # Internal helpers -------------------------------------------------
    def _lock_for(self, user_id: str, challenge_id: str) -> threading.Lock:
        """Per-challenge write lock. Unknown or foreign ids never get one."""
        self._get_owned(user_id, challenge_id)
        with self._locks_guard:
            return self._locks[challenge_id]

    def _release_lock(self, challenge_id: str) -> None:
        with self._locks_guard:
            self._locks.pop(challenge_id, None)

    def _get_owned(self, user_id: str, challenge_id: str) -> Challenge:
        challenge = self._repository.get(challenge_id)
        if not challenge:
            raise NotFoundError(f"Challenge {challenge_id} not found")
        if challenge.user_id != user_id:
            raise PermissionError("Challenge does not belong to this user")
        return challenge


def build_repository() -> ChallengeRepository:
    """SQL store when DATABASE_URL is configured, in-memory otherwise."""
    if settings.DATABASE_URL:
        return SqlChallengeRepository()
    return InMemoryChallengeRepository()


# Singleton service used by routes
challenge_service = ChallengeService(build_repository())
