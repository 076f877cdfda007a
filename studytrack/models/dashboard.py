"""Dashboard summary model."""
from pydantic import BaseModel

from .streak import StreakStatus


class DashboardSummary(BaseModel):
    total_courses: int
    total_lessons: int
    completed_lessons: int
    average_progress: float
    active_goals: int
    completed_goals: int
    current_streak: int
    longest_streak: int
    streak_status: StreakStatus
    achievements_unlocked: int
