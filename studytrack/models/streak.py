"""Study streak models."""
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ActivityType = Literal["lesson", "homework", "exam", "study"]
StreakStatus = Literal["active", "broken", "new"]


class StreakActivity(BaseModel):
    """One calendar day's bucket of study activity."""
    date: datetime
    type: ActivityType
    count: int = Field(default=1, ge=1)


class Streak(BaseModel):
    current: int = Field(default=0, ge=0)
    longest: int = Field(default=0, ge=0)
    last_activity_date: Optional[datetime] = None
    activities: List[StreakActivity] = Field(default_factory=list)


class RecordActivityRequest(BaseModel):
    type: ActivityType = "study"


class ResetStreakRequest(BaseModel):
    confirm: bool = False


class ActivityDay(BaseModel):
    day: date
    count: int


class StreakResponse(BaseModel):
    streak: Streak
    status: StreakStatus
    calendar: List[ActivityDay]
