from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from stackr.core.config import settings
from stackr.core.timeutils import normalize_utc
from stackr.features.challenges.generator import GenerationOptions
from stackr.features.challenges.service import challenge_service

router = APIRouter()


class CreateChallengeRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: Optional[str] = None  # display name for the leaderboard
    type: Literal["daily", "weekly", "monthly"] = "daily"
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    duration: int = Field(default_factory=lambda: settings.DEFAULT_CHALLENGE_DURATION_DAYS)
    category: str = "general"
    target_amount: Optional[float] = None
    template_name: Optional[str] = Field(default=None, min_length=1)
    join: bool = True


class UserRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class ContributionRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    amount: float = Field(..., allow_inf_nan=False)
    date: Optional[datetime] = None
    note: Optional[str] = Field(default=None, max_length=500)


@router.get("/v1/challenges/catalog")
def get_catalog(type: Optional[str] = Query(None)):
    """Challenge templates, optionally for one type."""
    templates = challenge_service.list_templates(type)
    return {"templates": [t.to_dict() for t in templates]}


@router.get("/v1/challenges/suggestions")
def get_suggestions(count: Optional[int] = Query(None, ge=1, le=15)):
    return {"templates": [t.to_dict() for t in challenge_service.suggest_templates(count)]}


@router.post("/v1/challenges")
def create_challenge(req: CreateChallengeRequest):
    """Generate a challenge for the user and store it."""
    if req.name:
        challenge_service.register_user(user_id=req.user_id, name=req.name)
    challenge, emitted = challenge_service.create_challenge(
        user_id=req.user_id,
        options=GenerationOptions(
            type=req.type,
            difficulty=req.difficulty,
            duration=req.duration,
            category=req.category,
            target_amount=req.target_amount,
            template_name=req.template_name,
            join=req.join,
        ),
    )
    return {"challenge": challenge.to_dict(), "emitted": emitted}


@router.get("/v1/challenges")
def list_challenges(user_id: str = Query(..., min_length=1), status: Optional[str] = Query(None)):
    challenges = challenge_service.list_challenges(user_id=user_id, status=status)
    return {"challenges": [c.to_dict() for c in challenges]}


@router.get("/v1/challenges/{challenge_id}")
def get_challenge(challenge_id: str, user_id: str = Query(..., min_length=1)):
    challenge = challenge_service.get_challenge(user_id=user_id, challenge_id=challenge_id)
    return {"challenge": challenge.to_dict()}


@router.post("/v1/challenges/{challenge_id}/join")
def join_challenge(challenge_id: str, req: UserRequest):
    challenge, emitted = challenge_service.join_challenge(user_id=req.user_id, challenge_id=challenge_id)
    return {"challenge": challenge.to_dict(), "emitted": emitted}


@router.post("/v1/challenges/{challenge_id}/contributions")
def add_contribution(challenge_id: str, req: ContributionRequest):
    """Record a savings contribution toward a challenge."""
    challenge, emitted = challenge_service.contribute(
        user_id=req.user_id,
        challenge_id=challenge_id,
        amount=req.amount,
        contributed_at=normalize_utc(req.date),
        note=req.note,
    )
    return {"challenge": challenge.to_dict(), "emitted": emitted}


@router.post("/v1/challenges/{challenge_id}/abandon")
def abandon_challenge(challenge_id: str, req: UserRequest):
    challenge, emitted = challenge_service.abandon_challenge(user_id=req.user_id, challenge_id=challenge_id)
    return {"challenge": challenge.to_dict(), "emitted": emitted}
