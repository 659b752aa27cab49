"""
Achievement Scoring Engine

Pure, deterministic computation of a user's achievement level.
No external calls, no randomness, no clock.

Point formula (game-balance constants, do not tune without product sign-off):
- 10 points per completed challenge
- 1 point per 100 currency units saved
- 5 points per streak day

Levels are half-open on the lower bound: exactly 50 points is level 2.
"""

import math
from typing import Optional, Sequence

from stackr.core.errors import ValidationError
from stackr.core.rounding import clamp, round_half_up
from stackr.models.achievement import AchievementLevel, LevelTier, UserChallengeStatistics
from stackr.models.challenge import Challenge


ACHIEVEMENT_LEVELS: tuple[LevelTier, ...] = (
    LevelTier(level=1, name="Starter", icon="🌱", min_points=0, bonus_multiplier=1.0),
    LevelTier(level=2, name="Bronze", icon="🥉", min_points=50, bonus_multiplier=1.05),
    LevelTier(level=3, name="Silver", icon="🥈", min_points=100, bonus_multiplier=1.1),
    LevelTier(level=4, name="Gold", icon="🥇", min_points=200, bonus_multiplier=1.15),
    LevelTier(level=5, name="Platinum", icon="💎", min_points=400, bonus_multiplier=1.25),
)


class AchievementScorer:
    """Map challenge history, savings and streak onto an achievement level."""

    POINTS_PER_CHALLENGE = 10
    SAVINGS_DIVISOR = 100
    POINTS_PER_STREAK_DAY = 5

    def __init__(self, levels: Optional[Sequence[LevelTier]] = None):
        tiers = tuple(levels or ACHIEVEMENT_LEVELS)
        if not tiers:
            raise ValidationError("At least one achievement level is required")
        bounds = [tier.min_points for tier in tiers]
        if any(later <= earlier for earlier, later in zip(bounds, bounds[1:])):
            raise ValidationError(f"Level thresholds must strictly increase: {bounds}")
        self._levels = tiers

    @property
    def levels(self) -> tuple[LevelTier, ...]:
        return self._levels

    @classmethod
    def total_points(cls, challenges_completed: int, total_saved: float, streak_days: int) -> float:
        """Raw point total; evaluation order matters for float parity with the web client."""
        return (
            challenges_completed * cls.POINTS_PER_CHALLENGE
            + total_saved / cls.SAVINGS_DIVISOR
            + streak_days * cls.POINTS_PER_STREAK_DAY
        )

    def tier_for(self, points: float) -> LevelTier:
        current = self._levels[0]
        for tier in self._levels:
            if points >= tier.min_points:
                current = tier
            else:
                break
        return current

    def score(
        self,
        completed_challenges: Sequence[Challenge],
        stats: UserChallengeStatistics,
    ) -> AchievementLevel:
        completed_count = len(completed_challenges)
        points = self.total_points(completed_count, stats.total_saved, stats.current_streak)
        tier = self.tier_for(points)
        next_tier = self._next_tier(tier)

        if next_tier is None:
            return AchievementLevel(
                level=tier.level,
                name=tier.name,
                icon=tier.icon,
                bonus_multiplier=tier.bonus_multiplier,
                total_points=points,
                challenges_completed=completed_count,
                progress_to_next_level=100,
                required_for_next_level=0,
                next_level=None,
                is_max_level=True,
            )

        span = next_tier.min_points - tier.min_points
        progress = int(clamp(round_half_up((points - tier.min_points) / span * 100), 0, 100))
        # Only the completed-challenges term is inverted; savings and streak held fixed
        required = max(1, math.ceil((next_tier.min_points - points) / self.POINTS_PER_CHALLENGE))

        return AchievementLevel(
            level=tier.level,
            name=tier.name,
            icon=tier.icon,
            bonus_multiplier=tier.bonus_multiplier,
            total_points=points,
            challenges_completed=completed_count,
            progress_to_next_level=progress,
            required_for_next_level=required,
            next_level=next_tier.name,
        )

    def _next_tier(self, tier: LevelTier) -> Optional[LevelTier]:
        index = self._levels.index(tier)
        if index + 1 >= len(self._levels):
            return None
        return self._levels[index + 1]


achievement_scorer = AchievementScorer()
