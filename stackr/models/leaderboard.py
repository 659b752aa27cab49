from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

LeaderboardPeriod = Literal["weekly", "monthly", "all_time"]

LEADERBOARD_PERIODS: tuple[str, ...] = ("weekly", "monthly", "all_time")


@dataclass(frozen=True)
class LeaderboardEntry:
    """Read-only projection of a user's windowed figures, used for ranking."""

    user_id: str
    name: str
    points: float
    total_saved: float
    achievement_level: str

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "name": self.name,
            "points": round(self.points, 1),
            "totalSaved": self.total_saved,
            "achievementLevel": self.achievement_level,
        }


@dataclass(frozen=True)
class LeaderboardPosition:
    rank: int
    entry: LeaderboardEntry

    def to_dict(self) -> dict:
        return {"rank": self.rank, **self.entry.to_dict()}
