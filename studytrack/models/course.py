"""Course, lesson, exam, homework and note models."""
import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, validator

from .goals import Goal

LessonType = Literal["lab", "exercise"]


def _not_blank(value: str) -> str:
    if value is None or not value.strip():
        raise ValueError("must not be empty")
    return value.strip()


class Note(BaseModel):
    id: str
    content: str = ""
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)
    updated_at: dt.datetime = Field(default_factory=dt.datetime.now)


class Homework(BaseModel):
    id: str
    title: str
    due_date: Optional[dt.date] = None
    completed: bool = False
    submitted: bool = False


class Lesson(BaseModel):
    id: str
    title: str
    type: LessonType = "exercise"
    date: Optional[dt.date] = None
    completed: bool = False
    completed_at: Optional[dt.datetime] = None
    homework: List[Homework] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)

    @validator("title")
    def title_not_blank(cls, v):
        return _not_blank(v)


class Exam(BaseModel):
    id: str
    title: str
    date: Optional[dt.date] = None
    completed: bool = False
    score: Optional[float] = None

    @validator("title")
    def title_not_blank(cls, v):
        return _not_blank(v)


class Course(BaseModel):
    """A course owned by one user; lessons, exams and course goals live inside it."""
    id: str
    title: str
    description: str = ""
    start_date: dt.date
    end_date: dt.date
    color: str = "#6366f1"
    lessons: List[Lesson] = Field(default_factory=list)
    exams: List[Exam] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)
    progress: int = Field(default=0, ge=0, le=100)

    @validator("title")
    def title_not_blank(cls, v):
        return _not_blank(v)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "0b6c2f7e-3c1d-4c0e-9a55-4f1f6f7f2a10",
                "title": "Linear Algebra",
                "description": "Spring semester",
                "start_date": "2026-02-01",
                "end_date": "2026-06-30",
                "color": "#6366f1",
                "lessons": [
                    {"id": "l1", "title": "Vectors", "type": "exercise", "date": "2026-02-03", "completed": True}
                ],
                "exams": [],
                "goals": [],
                "progress": 100
            }
        }


# ============================================
# Request Models
# ============================================

class LessonInput(BaseModel):
    title: str
    type: LessonType = "exercise"
    date: Optional[dt.date] = None
    completed: bool = False

    @validator("title")
    def title_not_blank(cls, v):
        return _not_blank(v)


class ExamInput(BaseModel):
    title: str
    date: Optional[dt.date] = None
    completed: bool = False
    score: Optional[float] = None

    @validator("title")
    def title_not_blank(cls, v):
        return _not_blank(v)


class HomeworkInput(BaseModel):
    title: str = "New Homework"
    due_date: Optional[dt.date] = None
    completed: bool = False
    submitted: bool = False


class NoteInput(BaseModel):
    content: str


class CourseCreate(BaseModel):
    title: str
    description: str = ""
    start_date: dt.date
    end_date: dt.date
    color: str = "#6366f1"
    lessons: List[Lesson] = Field(default_factory=list)
    exams: List[Exam] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)

    @validator("title")
    def title_not_blank(cls, v):
        return _not_blank(v)


class CourseUpdate(BaseModel):
    """Partial course update; only fields that were sent are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    color: Optional[str] = None
    lessons: Optional[List[Lesson]] = None
    exams: Optional[List[Exam]] = None
    goals: Optional[List[Goal]] = None


class LessonUpdate(BaseModel):
    title: Optional[str] = None
    type: Optional[LessonType] = None
    date: Optional[dt.date] = None
    completed: Optional[bool] = None


class ExamUpdate(BaseModel):
    title: Optional[str] = None
    date: Optional[dt.date] = None
    completed: Optional[bool] = None
    score: Optional[float] = None


class HomeworkUpdate(BaseModel):
    title: Optional[str] = None
    due_date: Optional[dt.date] = None
    completed: Optional[bool] = None
    submitted: Optional[bool] = None


BulkOperation = Literal["complete", "incomplete", "delete", "reschedule"]


class BulkItem(BaseModel):
    type: Literal["lesson", "exam"]
    id: str


class BulkUpdateRequest(BaseModel):
    items: List[BulkItem]
    operation: BulkOperation
    new_date: Optional[dt.date] = None


# ============================================
# Timeline
# ============================================

class TimelineEvent(BaseModel):
    id: str
    type: Literal["lesson", "exam", "homework"]
    title: str
    date: dt.date
    completed: bool
    when: Literal["past", "today", "upcoming"]
    lesson_type: Optional[LessonType] = None
    submitted: Optional[bool] = None
