"""Goal and achievement models."""
from datetime import date, datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, validator

GoalType = Literal["daily", "weekly", "monthly", "course"]
AchievementCategory = Literal["study", "completion", "streak", "goal"]


class Goal(BaseModel):
    """User-defined numeric target. `completed` always mirrors `current >= target`."""
    id: str
    title: str
    description: str = ""
    type: GoalType = "weekly"
    target: int = Field(default=1, ge=1)
    current: int = Field(default=0, ge=0)
    deadline: Optional[date] = None
    completed: bool = False
    course_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    @validator("title")
    def title_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "id": "5d1c9f0a-6a35-4f55-b0e6-8b1f9d2d1a77",
                "title": "Finish 5 labs",
                "description": "",
                "type": "weekly",
                "target": 5,
                "current": 2,
                "deadline": "2026-10-25",
                "completed": False,
                "course_id": None
            }
        }


class GoalCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    type: GoalType = "weekly"
    target: int = Field(default=1, ge=1)
    deadline: date
    course_id: Optional[str] = None


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    type: Optional[GoalType] = None
    target: Optional[int] = Field(default=None, ge=1)
    current: Optional[int] = Field(default=None, ge=0)
    deadline: Optional[date] = None
    course_id: Optional[str] = None


class GoalProgressRequest(BaseModel):
    increment: int = 1


# ============================================
# Merged goal view
# ============================================

class StandaloneGoal(BaseModel):
    kind: Literal["standalone"] = "standalone"
    goal: Goal


class CourseScopedGoal(BaseModel):
    """A goal owned by a course; edits go through the course endpoints."""
    kind: Literal["course"] = "course"
    goal: Goal
    course_id: str
    course_title: str


GoalView = Union[StandaloneGoal, CourseScopedGoal]


# ============================================
# Achievements
# ============================================

class Achievement(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    unlocked_at: datetime = Field(default_factory=datetime.now)


class AchievementStats(BaseModel):
    """Snapshot the achievement rules are evaluated against."""
    completed_lessons: int = 0
    weekly_lessons: int = 0
    current_streak: int = 0
    completed_goals: int = 0


class AchievementProgressDto(BaseModel):
    title: str
    description: str
    icon: str
    category: AchievementCategory
    stat: str
    current: int
    threshold: int
    unlocked: bool
    unlocked_at: Optional[datetime] = None
