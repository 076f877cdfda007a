"""Standalone goal endpoints plus the merged goal view."""
from fastapi import APIRouter, BackgroundTasks, Depends
from typing import List

from ..deps import get_session, queue_achievement_checks
from ..models.goals import Goal, GoalCreate, GoalProgressRequest, GoalUpdate, GoalView
from ..services.session import StudySession

router = APIRouter(prefix="/api/goals", tags=["Goals"])


@router.get("", response_model=List[Goal])
async def list_goals(session: StudySession = Depends(get_session)):
    return session.goals.list_goals()


@router.get("/all", response_model=List[GoalView])
async def list_all_goals(session: StudySession = Depends(get_session)):
    """Standalone and course goals together; course goals are read-only here."""
    return session.goals.merged_view()


@router.post("", response_model=Goal)
async def add_goal(request: GoalCreate, session: StudySession = Depends(get_session)):
    return session.goals.add_goal(request)


@router.patch("/{goal_id}", response_model=Goal)
async def update_goal(
    goal_id: str,
    request: GoalUpdate,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    goal = session.goals.update_goal(goal_id, request)
    queue_achievement_checks(session, background_tasks)
    return goal


@router.post("/{goal_id}/progress", response_model=Goal)
async def update_goal_progress(
    goal_id: str,
    request: GoalProgressRequest,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    # Existence check first so unknown ids give 404 here
    session.goals.get_goal(goal_id)
    goal = session.goals.update_goal_progress(goal_id, request.increment)
    queue_achievement_checks(session, background_tasks)
    return goal


@router.post("/{goal_id}/complete", response_model=Goal)
async def complete_goal(
    goal_id: str,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    goal = session.goals.complete_goal(goal_id)
    queue_achievement_checks(session, background_tasks)
    return goal


@router.delete("/{goal_id}")
async def delete_goal(goal_id: str, session: StudySession = Depends(get_session)):
    session.goals.delete_goal(goal_id)
    return {"success": True}
