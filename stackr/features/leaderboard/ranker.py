"""
Leaderboard Ranker

Orders a cohort of pre-aggregated entries. The ranker does not window data
itself: callers hand it figures already computed for the requested period.

Total order:
1. points, descending
2. total_saved, descending
3. name, ascending
4. user_id, ascending (only separates users with identical names)
"""

from typing import List, Optional, Sequence, Tuple

from stackr.core.errors import ValidationError
from stackr.models.leaderboard import (
    LEADERBOARD_PERIODS,
    LeaderboardEntry,
    LeaderboardPosition,
)


def sort_key(entry: LeaderboardEntry) -> Tuple[float, float, str, str]:
    return (-entry.points, -entry.total_saved, entry.name, entry.user_id)


class LeaderboardRanker:
    """Deterministic, non-destructive leaderboard ordering."""

    @staticmethod
    def rank(entries: Sequence[LeaderboardEntry], period: str = "all_time") -> List[LeaderboardEntry]:
        LeaderboardRanker.validate_period(period)
        return sorted(entries, key=sort_key)

    @staticmethod
    def top(
        entries: Sequence[LeaderboardEntry], period: str = "all_time", limit: int = 10
    ) -> List[LeaderboardPosition]:
        if limit <= 0:
            raise ValidationError("limit must be positive")
        ranked = LeaderboardRanker.rank(entries, period)
        return [LeaderboardPosition(rank=i + 1, entry=e) for i, e in enumerate(ranked[:limit])]

    @staticmethod
    def position(entries: Sequence[LeaderboardEntry], user_id: str) -> Optional[LeaderboardPosition]:
        """Absolute rank of a user across the full population, not just the top slice."""
        target = next((e for e in entries if e.user_id == user_id), None)
        if target is None:
            return None
        target_key = sort_key(target)
        ahead = sum(1 for e in entries if sort_key(e) < target_key)
        return LeaderboardPosition(rank=ahead + 1, entry=target)

    @staticmethod
    def validate_period(period: str) -> None:
        if period not in LEADERBOARD_PERIODS:
            raise ValidationError(
                f"Unknown leaderboard period {period!r}; expected one of {', '.join(LEADERBOARD_PERIODS)}"
            )


leaderboard_ranker = LeaderboardRanker()
