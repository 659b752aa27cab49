from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional

from stackr.core.errors import InconsistentStateError

ChallengeType = Literal["daily", "weekly", "monthly"]
Difficulty = Literal["easy", "medium", "hard"]
ChallengeStatus = Literal["not_started", "active", "completed", "abandoned"]

CHALLENGE_TYPES: tuple[str, ...] = ("daily", "weekly", "monthly")
DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")
TERMINAL_STATUSES: tuple[str, ...] = ("completed", "abandoned")


@dataclass(frozen=True)
class ChallengeTemplate:
    """Immutable catalog entry."""

    type: ChallengeType
    name: str
    description: str
    base_amount: float

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "baseAmount": self.base_amount,
        }


@dataclass
class Milestone:
    name: str
    amount: float
    achieved: bool = False

    def to_dict(self) -> dict:
        return {"name": self.name, "amount": self.amount, "achieved": self.achieved}

    @classmethod
    def from_dict(cls, data: dict) -> "Milestone":
        return cls(name=data["name"], amount=data["amount"], achieved=bool(data.get("achieved", False)))


@dataclass(frozen=True)
class Contribution:
    """A single recorded amount applied toward one challenge."""

    amount: float
    date: datetime
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {"amount": self.amount, "date": self.date.isoformat(), "note": self.note}

    @classmethod
    def from_dict(cls, data: dict) -> "Contribution":
        return cls(
            amount=data["amount"],
            date=datetime.fromisoformat(data["date"]),
            note=data.get("note"),
        )


@dataclass
class Challenge:
    """A user's instance of a challenge template.

    Values are replaced rather than mutated by the progress tracker; the
    service layer persists whichever value it was handed back.
    """

    id: str
    user_id: Optional[str]
    type: ChallengeType
    name: str
    description: str
    category: str
    difficulty: Difficulty
    duration: int
    target_amount: int
    start_date: datetime
    end_date: datetime
    current_amount: float = 0.0
    progress: int = 0
    milestones: List[Milestone] = field(default_factory=list)
    streak_count: int = 0
    status: ChallengeStatus = "active"
    last_period: Optional[int] = None  # period index of the latest streak-bearing contribution
    contributions: List[Contribution] = field(default_factory=list)
    completed_at: Optional[datetime] = None
    abandoned_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def validate(self) -> None:
        """Fail loudly when a structural invariant is broken."""
        if self.current_amount < 0:
            raise InconsistentStateError(f"current_amount is negative: {self.current_amount}")
        if self.target_amount <= 0:
            raise InconsistentStateError(f"target_amount must be positive: {self.target_amount}")
        if not 0 <= self.progress <= 100:
            raise InconsistentStateError(f"progress out of range: {self.progress}")
        amounts = [m.amount for m in self.milestones]
        if any(later <= earlier for earlier, later in zip(amounts, amounts[1:])):
            raise InconsistentStateError(f"milestone amounts are not strictly increasing: {amounts}")
        reached = self.current_amount >= self.target_amount
        if reached != (self.status == "completed"):
            raise InconsistentStateError(
                f"status {self.status!r} disagrees with amount {self.current_amount}/{self.target_amount}"
            )
        if (self.progress == 100) != (self.status == "completed"):
            raise InconsistentStateError(f"progress {self.progress} disagrees with status {self.status!r}")

    def to_dict(self) -> dict:
        """Serialize to dict for JSON response and storage."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "difficulty": self.difficulty,
            "duration": self.duration,
            "targetAmount": self.target_amount,
            "currentAmount": self.current_amount,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "progress": self.progress,
            "milestones": [m.to_dict() for m in self.milestones],
            "streakCount": self.streak_count,
            "status": self.status,
            "lastPeriod": self.last_period,
            "contributions": [c.to_dict() for c in self.contributions],
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "abandonedAt": self.abandoned_at.isoformat() if self.abandoned_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Challenge":
        completed_at = data.get("completedAt")
        abandoned_at = data.get("abandonedAt")
        return cls(
            id=data["id"],
            user_id=data.get("userId"),
            type=data["type"],
            name=data["name"],
            description=data["description"],
            category=data["category"],
            difficulty=data["difficulty"],
            duration=data["duration"],
            target_amount=data["targetAmount"],
            start_date=datetime.fromisoformat(data["startDate"]),
            end_date=datetime.fromisoformat(data["endDate"]),
            current_amount=data.get("currentAmount", 0.0),
            progress=data.get("progress", 0),
            milestones=[Milestone.from_dict(m) for m in data.get("milestones", [])],
            streak_count=data.get("streakCount", 0),
            status=data.get("status", "active"),
            last_period=data.get("lastPeriod"),
            contributions=[Contribution.from_dict(c) for c in data.get("contributions", [])],
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            abandoned_at=datetime.fromisoformat(abandoned_at) if abandoned_at else None,
        )
