"""
Achievement domain model.

Levels are derived, never stored: a user's challenge history and savings are
folded into a point total, which maps onto one of five tiers.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LevelTier:
    """One row of the achievement level table."""

    level: int
    name: str
    icon: str
    min_points: float  # inclusive lower bound
    bonus_multiplier: float


@dataclass
class UserChallengeStatistics:
    """Aggregate view over a user's challenge set."""

    user_id: str
    total_active: int = 0
    total_completed: int = 0
    total_saved: float = 0.0
    current_streak: int = 0  # consecutive days with a contribution
    total_points: float = 0.0

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "totalActive": self.total_active,
            "totalCompleted": self.total_completed,
            "totalSaved": self.total_saved,
            "currentStreak": self.current_streak,
            "totalPoints": round(self.total_points, 1),
        }


@dataclass
class AchievementLevel:
    level: int
    name: str
    icon: str
    bonus_multiplier: float
    total_points: float
    challenges_completed: int
    progress_to_next_level: int  # 0..100
    required_for_next_level: int
    next_level: Optional[str] = None
    is_max_level: bool = False

    def to_dict(self) -> dict:
        """Serialize to dict for JSON response."""
        return {
            "level": self.level,
            "name": self.name,
            "icon": self.icon,
            "bonusMultiplier": self.bonus_multiplier,
            "totalPoints": round(self.total_points, 1),
            "challengesCompleted": self.challenges_completed,
            "progressToNextLevel": self.progress_to_next_level,
            "requiredForNextLevel": self.required_for_next_level,
            "nextLevel": self.next_level,
            "isMaxLevel": self.is_max_level,
        }
