"""Study streak endpoints."""
from fastapi import APIRouter, Depends

from ..deps import get_session
from ..models.streak import RecordActivityRequest, ResetStreakRequest, StreakResponse
from ..services.session import StudySession

router = APIRouter(prefix="/api/streak", tags=["Streak"])


def _response(session: StudySession) -> StreakResponse:
    return StreakResponse(
        streak=session.streak.streak,
        status=session.streak.get_status(),
        calendar=session.streak.activity_calendar(),
    )


@router.get("", response_model=StreakResponse)
async def get_streak(session: StudySession = Depends(get_session)):
    return _response(session)


@router.post("/activity", response_model=StreakResponse)
async def record_activity(request: RecordActivityRequest, session: StudySession = Depends(get_session)):
    """Record one free-standing study session (completions are recorded automatically)."""
    session.streak.record_activity(request.type)
    return _response(session)


@router.post("/reset", response_model=StreakResponse)
async def reset_streak(request: ResetStreakRequest, session: StudySession = Depends(get_session)):
    """Reset the current streak. Requires {"confirm": true}; the longest streak is kept."""
    session.streak.reset_streak(confirm=request.confirm)
    return _response(session)
