from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence

from stackr.core.errors import InvalidTemplateError, ValidationError
from stackr.models.challenge import CHALLENGE_TYPES, ChallengeTemplate


# Static catalog: 5 templates per challenge type, base amounts in currency units
CHALLENGE_CATALOG: tuple[ChallengeTemplate, ...] = (
    # Daily (5)
    ChallengeTemplate("daily", "Coffee Skip", "Skip your daily coffee purchase", 5),
    ChallengeTemplate("daily", "Lunch Saver", "Bring lunch from home instead of eating out", 12),
    ChallengeTemplate("daily", "No-Spend Day", "Challenge yourself to spend nothing for a day", 25),
    ChallengeTemplate("daily", "Commute Hack", "Find a cheaper way to commute today", 10),
    ChallengeTemplate("daily", "Digital Detox", "Avoid online shopping for the day", 15),
    # Weekly (5)
    ChallengeTemplate("weekly", "Grocery Budget", "Reduce your grocery bill by 20% this week", 30),
    ChallengeTemplate("weekly", "Entertainment Cut", "Skip one paid entertainment expense this week", 25),
    ChallengeTemplate("weekly", "Meal Prep Master", "Prep all meals for the week to avoid takeout", 60),
    ChallengeTemplate("weekly", "Service Audit", "Review and cut one subscription service", 15),
    ChallengeTemplate("weekly", "Side Hustle", "Earn extra money through a side project", 100),
    # Monthly (5)
    ChallengeTemplate("monthly", "Bill Negotiator", "Call and negotiate a lower rate on one monthly bill", 50),
    ChallengeTemplate("monthly", "Automatic Saver", "Set up an automatic transfer to savings", 100),
    ChallengeTemplate("monthly", "Declutter Sale", "Sell unused items around your home", 150),
    ChallengeTemplate("monthly", "Dining Out Fast", "Cook all meals at home for a month", 300),
    ChallengeTemplate("monthly", "Impulse Purchase Block", "Implement a 48-hour rule before purchases", 200),
)


class ChallengeCatalog:
    """Read-only lookup over challenge templates, grouped by type."""

    def __init__(self, templates: Optional[Iterable[ChallengeTemplate]] = None):
        self._templates: tuple[ChallengeTemplate, ...] = tuple(
            CHALLENGE_CATALOG if templates is None else templates
        )
        self._by_type: Dict[str, List[ChallengeTemplate]] = {t: [] for t in CHALLENGE_TYPES}
        for template in self._templates:
            if template.type not in self._by_type:
                raise InvalidTemplateError(f"Unknown challenge type in catalog: {template.type!r}")
            self._by_type[template.type].append(template)

    @property
    def templates(self) -> tuple[ChallengeTemplate, ...]:
        return self._templates

    def templates_for(self, challenge_type: str) -> Sequence[ChallengeTemplate]:
        """Declaration-ordered templates for a type."""
        if challenge_type not in self._by_type:
            raise InvalidTemplateError(f"Unknown challenge type: {challenge_type!r}")
        entries = self._by_type[challenge_type]
        if not entries:
            raise InvalidTemplateError(f"No challenge templates for type {challenge_type!r}")
        return tuple(entries)

    def find(self, name: str) -> ChallengeTemplate:
        for template in self._templates:
            if template.name == name:
                return template
        raise InvalidTemplateError(f"Unknown challenge template: {name!r}")

    def suggest(self, count: int, rng: Optional[random.Random] = None) -> List[ChallengeTemplate]:
        """Pick `count` distinct templates across all types."""
        if count <= 0:
            raise ValidationError("Suggestion count must be positive")
        if not self._templates:
            raise InvalidTemplateError("Challenge catalog is empty")
        picker = rng or random.Random()
        return picker.sample(list(self._templates), min(count, len(self._templates)))


default_catalog = ChallengeCatalog()
