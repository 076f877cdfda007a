"""Loading and saving domain blobs with tolerant normalisation.

Stored blobs may come from older app versions or be hand-edited; anything
that does not have the expected shape is coerced to an empty value instead
of failing the request.
"""
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..models.course import Course
from ..models.goals import Achievement, Goal
from ..models.streak import Streak
from ..store import ACHIEVEMENTS, COURSES, GOALS, STREAK, KeyValueStore

T = TypeVar("T", bound=BaseModel)

_COURSE_LIST_FIELDS = ("lessons", "exams", "goals")
_LESSON_LIST_FIELDS = ("homework", "notes")


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _parse_items(raw: Any, model: Type[T], domain: str, user_id: str) -> List[T]:
    items: List[T] = []
    for row in _as_list(raw):
        try:
            items.append(model.model_validate(row))
        except ValidationError as e:
            print(f"[Store] Skipping malformed {domain} entry for user={user_id}: {e.error_count()} error(s)")
    return items


def normalize_course(row: Any) -> Any:
    """Coerce non-list collections inside a stored course to empty lists."""
    if not isinstance(row, dict):
        return row
    row = dict(row)
    for field in _COURSE_LIST_FIELDS:
        row[field] = _as_list(row.get(field))
    lessons = []
    for lesson in row["lessons"]:
        if isinstance(lesson, dict):
            lesson = dict(lesson)
            for field in _LESSON_LIST_FIELDS:
                lesson[field] = _as_list(lesson.get(field))
        lessons.append(lesson)
    row["lessons"] = lessons
    return row


def load_courses(store: KeyValueStore, user_id: str) -> List[Course]:
    raw = store.load(user_id, COURSES)
    rows = [normalize_course(row) for row in _as_list(raw)]
    return _parse_items(rows, Course, COURSES, user_id)


def load_goals(store: KeyValueStore, user_id: str) -> List[Goal]:
    return _parse_items(store.load(user_id, GOALS), Goal, GOALS, user_id)


def load_achievements(store: KeyValueStore, user_id: str) -> List[Achievement]:
    return _parse_items(store.load(user_id, ACHIEVEMENTS), Achievement, ACHIEVEMENTS, user_id)


def load_streak(store: KeyValueStore, user_id: str) -> Streak:
    raw = store.load(user_id, STREAK)
    if not isinstance(raw, dict):
        return Streak()
    raw = dict(raw)
    raw["activities"] = _as_list(raw.get("activities"))
    # Older blobs store "" for "never active"
    if not raw.get("last_activity_date"):
        raw["last_activity_date"] = None
    try:
        return Streak.model_validate(raw)
    except ValidationError:
        print(f"[Store] Malformed streak for user={user_id}, starting fresh")
        return Streak()


def dump_items(items: List[BaseModel]) -> List[Dict[str, Any]]:
    return [item.model_dump(mode="json") for item in items]


def save_courses(store: KeyValueStore, user_id: str, courses: List[Course]) -> None:
    store.save(user_id, COURSES, dump_items(courses))


def save_goals(store: KeyValueStore, user_id: str, goals: List[Goal]) -> None:
    store.save(user_id, GOALS, dump_items(goals))


def save_achievements(store: KeyValueStore, user_id: str, achievements: List[Achievement]) -> None:
    store.save(user_id, ACHIEVEMENTS, dump_items(achievements))


def save_streak(store: KeyValueStore, user_id: str, streak: Streak) -> None:
    store.save(user_id, STREAK, streak.model_dump(mode="json"))
