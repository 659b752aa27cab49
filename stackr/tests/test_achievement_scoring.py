"""
Guardrail tests for the achievement scoring engine.

Point formula and level thresholds are user-facing constants; these tests
pin them.
"""

import pytest

from stackr.core.errors import ValidationError
from stackr.features.achievements.scoring_engine import (
    ACHIEVEMENT_LEVELS,
    AchievementScorer,
)
from stackr.models.achievement import LevelTier, UserChallengeStatistics


def _score(completed: int, saved: float, streak: int):
    scorer = AchievementScorer()
    stats = UserChallengeStatistics(user_id="u1", total_saved=saved, current_streak=streak)
    # The scorer only counts completed challenges, their content is irrelevant
    return scorer.score([object()] * completed, stats)


def test_empty_history_is_level_one():
    level = _score(0, 0, 0)
    assert level.level == 1
    assert level.name == "Starter"
    assert level.total_points == 0
    assert level.progress_to_next_level == 0
    assert level.required_for_next_level == 5
    assert level.next_level == "Bronze"
    assert level.is_max_level is False


def test_mixed_history_maps_to_level_three():
    level = _score(8, 520, 14)

    assert level.total_points == pytest.approx(155.2)
    assert level.level == 3
    assert level.name == "Silver"
    assert level.progress_to_next_level == 55
    assert level.required_for_next_level == 5
    assert level.challenges_completed == 8


def test_threshold_is_inclusive():
    assert _score(5, 0, 0).level == 2
    assert _score(4, 0, 1).level == 1


def test_max_level_has_no_next():
    level = _score(40, 0, 0)

    assert level.level == 5
    assert level.is_max_level is True
    assert level.next_level is None
    assert level.progress_to_next_level == 100
    assert level.required_for_next_level == 0


def test_required_is_at_least_one():
    # 49.5 points: half a point short still needs one more challenge
    level = _score(4, 950, 0)
    assert level.level == 1
    assert level.required_for_next_level == 1


def test_score_is_deterministic():
    assert _score(3, 1234.5, 6) == _score(3, 1234.5, 6)


def test_total_points_formula():
    assert AchievementScorer.total_points(2, 300, 1) == 2 * 10 + 3 + 5


def test_level_table_is_strictly_increasing():
    bounds = [tier.min_points for tier in ACHIEVEMENT_LEVELS]
    assert bounds == [0, 50, 100, 200, 400]
    assert [tier.bonus_multiplier for tier in ACHIEVEMENT_LEVELS] == sorted(
        tier.bonus_multiplier for tier in ACHIEVEMENT_LEVELS
    )


def test_unordered_level_table_rejected():
    with pytest.raises(ValidationError):
        AchievementScorer(
            [
                LevelTier(level=1, name="A", icon="a", min_points=0, bonus_multiplier=1.0),
                LevelTier(level=2, name="B", icon="b", min_points=0, bonus_multiplier=1.1),
            ]
        )


def test_to_dict_shape():
    body = _score(8, 520, 14).to_dict()
    assert body["totalPoints"] == 155.2
    assert body["icon"] == "🥈"
    assert body["nextLevel"] == "Gold"
