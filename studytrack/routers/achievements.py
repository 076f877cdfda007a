"""Achievement endpoints."""
from fastapi import APIRouter, Depends
from typing import List

from ..deps import get_session
from ..models.goals import Achievement, AchievementProgressDto
from ..services.session import StudySession

router = APIRouter(prefix="/api/achievements", tags=["Achievements"])


@router.get("", response_model=List[Achievement])
async def list_achievements(session: StudySession = Depends(get_session)):
    return session.achievements.achievements


@router.post("/check", response_model=List[Achievement])
async def check_achievements(session: StudySession = Depends(get_session)):
    """Evaluate the badge rules now and return whatever was newly unlocked."""
    return session.achievements.check_achievements()


@router.get("/progress", response_model=List[AchievementProgressDto])
async def achievement_progress(session: StudySession = Depends(get_session)):
    return session.achievements.achievement_progress()
