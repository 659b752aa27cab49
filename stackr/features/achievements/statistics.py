from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from stackr.core.timeutils import utc_day
from stackr.features.achievements.scoring_engine import AchievementScorer, achievement_scorer
from stackr.models.achievement import UserChallengeStatistics
from stackr.models.challenge import Challenge


def running_day_streak(moments: Iterable[datetime]) -> int:
    """Consecutive UTC days with activity, counted back from the latest one."""
    days = sorted({utc_day(m) for m in moments}, reverse=True)
    if not days:
        return 0

    streak = 1
    previous: date = days[0]
    for day in days[1:]:
        if (previous - day).days != 1:
            break
        streak += 1
        previous = day
    return streak


def contribution_dates(
    challenges: Sequence[Challenge],
    *,
    since: Optional[datetime] = None,
) -> list[datetime]:
    return [
        c.date
        for challenge in challenges
        if challenge.status != "abandoned"
        for c in challenge.contributions
        if since is None or c.date >= since
    ]


def compute_statistics(
    user_id: str,
    challenges: Sequence[Challenge],
    scorer: Optional[AchievementScorer] = None,
) -> UserChallengeStatistics:
    """Aggregate a user's challenges. Abandoned challenges add nothing."""
    engine = scorer or achievement_scorer
    counted = [c for c in challenges if c.status != "abandoned"]

    total_active = sum(1 for c in counted if c.status == "active")
    total_completed = sum(1 for c in counted if c.status == "completed")
    total_saved = sum(c.current_amount for c in counted)
    streak = running_day_streak(contribution_dates(counted))

    return UserChallengeStatistics(
        user_id=user_id,
        total_active=total_active,
        total_completed=total_completed,
        total_saved=total_saved,
        current_streak=streak,
        total_points=engine.total_points(total_completed, total_saved, streak),
    )
