"""Shared FastAPI dependencies."""
from datetime import datetime
from typing import Callable

from fastapi import Depends

from .auth import get_current_user
from .services.session import StudySession
from .store import KeyValueStore, get_store


def get_clock() -> Callable[[], datetime]:
    return datetime.now


def get_session(
    user_id: str = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> StudySession:
    """Build the trackers for the authenticated user from the current stored state."""
    return StudySession(store, user_id, clock=clock)


def queue_achievement_checks(session: StudySession, background_tasks) -> None:
    """Run queued achievement checks after the response, once this request's writes are saved."""
    if session.achievements.has_pending:
        background_tasks.add_task(session.achievements.run_pending)
