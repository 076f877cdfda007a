"""Dashboard summary endpoint."""
from fastapi import APIRouter, Depends

from ..deps import get_session
from ..models.dashboard import DashboardSummary
from ..services.session import StudySession

router = APIRouter(prefix="/api", tags=["Dashboard"])


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(session: StudySession = Depends(get_session)):
    return session.dashboard_summary()
