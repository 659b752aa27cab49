from typing import Optional

from fastapi import APIRouter, Query

from stackr.features.leaderboard.service import leaderboard_service

router = APIRouter()


@router.get("/v1/leaderboard")
def get_leaderboard(
    period: str = Query("all_time"),
    user_id: Optional[str] = Query(None, min_length=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
):
    """
    Ranked savers for a period (weekly, monthly, all_time).

    When user_id is given the response also carries that user's absolute
    position, even if they fall outside the returned slice.
    """
    return leaderboard_service.leaderboard(period, user_id=user_id, limit=limit)
