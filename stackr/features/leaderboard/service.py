from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from stackr.core.config import settings
from stackr.core.timeutils import normalize_utc
from stackr.features.achievements.scoring_engine import AchievementScorer, achievement_scorer
from stackr.features.achievements.statistics import compute_statistics, contribution_dates, running_day_streak
from stackr.features.challenges.persistence import ChallengeRepository
from stackr.features.challenges.service import challenge_service
from stackr.features.leaderboard.ranker import LeaderboardRanker
from stackr.models.challenge import Challenge
from stackr.models.leaderboard import LeaderboardEntry, LeaderboardPosition

PERIOD_WINDOWS = {
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
    "all_time": None,
}


class LeaderboardService:
    """Builds period-windowed entries from stored challenges and ranks them."""

    def __init__(self, repository: ChallengeRepository, scorer: Optional[AchievementScorer] = None):
        self._repository = repository
        self._scorer = scorer or achievement_scorer

    def entries(self, period: str = "all_time", *, now: Optional[datetime] = None) -> List[LeaderboardEntry]:
        LeaderboardRanker.validate_period(period)
        window = PERIOD_WINDOWS[period]
        since = normalize_utc(now) - window if window else None

        result: List[LeaderboardEntry] = []
        for user_id in self._repository.list_user_ids():
            challenges = self._repository.list_for_user(user_id)
            result.append(self._entry_for(user_id, challenges, since))
        return result

    def leaderboard(
        self,
        period: str = "all_time",
        *,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        """Top-N slice plus the requesting user's absolute position."""
        entries = self.entries(period, now=now)
        top = LeaderboardRanker.top(entries, period, limit or settings.LEADERBOARD_TOP_N)
        you: Optional[LeaderboardPosition] = None
        if user_id:
            you = LeaderboardRanker.position(entries, user_id)
        return {
            "period": period,
            "entries": [p.to_dict() for p in top],
            "you": you.to_dict() if you else None,
            "youInTop": bool(you and any(p.entry.user_id == user_id for p in top)),
            "totalUsers": len(entries),
        }

    # Internal helpers -------------------------------------------------
    def _entry_for(
        self, user_id: str, challenges: List[Challenge], since: Optional[datetime]
    ) -> LeaderboardEntry:
        counted = [c for c in challenges if c.status != "abandoned"]
        if since is None:
            completed = sum(1 for c in counted if c.status == "completed")
            saved = sum(c.current_amount for c in counted)
        else:
            completed = sum(
                1 for c in counted
                if c.status == "completed" and c.completed_at is not None and c.completed_at >= since
            )
            saved = sum(x.amount for c in counted for x in c.contributions if x.date >= since)
        # Windowed boards only see the run of days inside the window
        streak = running_day_streak(contribution_dates(counted, since=since))

        stats = compute_statistics(user_id, challenges, self._scorer)
        level = self._scorer.tier_for(stats.total_points)

        return LeaderboardEntry(
            user_id=user_id,
            name=self._repository.get_user_name(user_id) or user_id,
            points=self._scorer.total_points(completed, saved, streak),
            total_saved=saved,
            achievement_level=level.name,
        )


# Singleton service used by routes, sharing the challenge store
leaderboard_service = LeaderboardService(challenge_service.repository)
