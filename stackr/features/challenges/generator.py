from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

from stackr.core.errors import InvalidDurationError, InvalidTemplateError
from stackr.core.rounding import round_half_up
from stackr.core.timeutils import normalize_utc
from stackr.features.challenges.catalog import ChallengeCatalog, default_catalog
from stackr.models.challenge import Challenge, ChallengeTemplate, Milestone

DIFFICULTY_MULTIPLIERS = {
    "easy": 0.7,
    "medium": 1.0,
    "hard": 1.5,
}

# (percent of target, milestone name)
MILESTONE_CHECKPOINTS: tuple[tuple[int, str], ...] = (
    (25, "Quarter Way"),
    (50, "Halfway"),
    (75, "Almost There"),
    (100, "Challenge Complete"),
)


@dataclass(frozen=True)
class GenerationOptions:
    type: str = "daily"
    difficulty: str = "medium"
    duration: int = 30
    category: str = "general"
    target_amount: Optional[float] = None  # hint; picks the nearest template
    template_name: Optional[str] = None  # start this template; its type wins over `type`
    user_id: Optional[str] = None
    join: bool = True


class ChallengeGenerator:
    """Build concrete challenges from catalog templates.

    Randomness, clock and id allocation are injected so that tests can pin
    every generated field.
    """

    def __init__(
        self,
        catalog: Optional[ChallengeCatalog] = None,
        *,
        rng: Optional[random.Random] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._catalog = catalog or default_catalog
        self._rng = rng or random.Random()
        self._id_factory = id_factory or (lambda: f"challenge-{uuid4().hex[:16]}")

    @property
    def catalog(self) -> ChallengeCatalog:
        return self._catalog

    def generate(
        self,
        options: GenerationOptions,
        *,
        template: Optional[ChallengeTemplate] = None,
        now: Optional[datetime] = None,
    ) -> Challenge:
        """Instantiate `template`, or the one `options` names or selects."""
        if options.duration <= 0:
            raise InvalidDurationError(f"Duration must be positive, got {options.duration}")
        multiplier = DIFFICULTY_MULTIPLIERS.get(options.difficulty)
        if multiplier is None:
            raise InvalidTemplateError(f"Unknown difficulty: {options.difficulty!r}")

        if template is None:
            template = self.resolve_template(options)
        target_amount = round_half_up(template.base_amount * multiplier)
        if target_amount <= 0:
            raise InvalidTemplateError(f"Template {template.name!r} yields a non-positive target")

        started = normalize_utc(now)
        return Challenge(
            id=self._id_factory(),
            user_id=options.user_id,
            type=template.type,
            name=template.name,
            description=template.description,
            category=options.category,
            difficulty=options.difficulty,  # type: ignore[arg-type]
            duration=options.duration,
            target_amount=target_amount,
            start_date=started,
            end_date=started + timedelta(days=options.duration),
            milestones=build_milestones(target_amount),
            status="active" if options.join else "not_started",
        )

    def resolve_template(self, options: GenerationOptions) -> ChallengeTemplate:
        if options.template_name:
            return self._catalog.find(options.template_name)
        return self.select_template(self._catalog.templates_for(options.type), options.target_amount)

    def select_template(
        self, candidates: Sequence[ChallengeTemplate], target_hint: Optional[float] = None
    ) -> ChallengeTemplate:
        """Nearest base amount to the hint, else a uniform random pick."""
        if not candidates:
            raise InvalidTemplateError("No challenge templates to choose from")
        if target_hint is not None and target_hint > 0:
            # min() keeps the first of equal keys, so ties go to declaration order
            return min(candidates, key=lambda t: abs(t.base_amount - target_hint))
        return candidates[self._rng.randrange(len(candidates))]


def build_milestones(target_amount: float) -> List[Milestone]:
    return [
        Milestone(name=name, amount=round(target_amount * percent / 100, 2))
        for percent, name in MILESTONE_CHECKPOINTS
    ]
