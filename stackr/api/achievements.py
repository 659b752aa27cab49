from fastapi import APIRouter, Query

from stackr.features.challenges.service import challenge_service

router = APIRouter()


@router.get("/v1/achievements/stats")
def get_statistics(user_id: str = Query(..., min_length=1)):
    """Aggregate savings, completion and streak figures for a user."""
    return challenge_service.get_statistics(user_id).to_dict()


@router.get("/v1/achievements/level")
def get_level(user_id: str = Query(..., min_length=1)):
    """Current achievement level and progress toward the next one."""
    return challenge_service.get_achievement_level(user_id).to_dict()
