"""Standalone goal management and the merged goal view."""
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from ..errors import InvalidOperation, NotFound, ValidationFailed
from ..models.course import Course
from ..models.goals import CourseScopedGoal, Goal, GoalCreate, GoalUpdate, GoalView, StandaloneGoal
from ..store import KeyValueStore
from .state import load_courses, load_goals, save_goals

# Goal fed by lesson completions; only user goals created with this id receive progress
LESSON_GOAL_ID = "lesson-goal"

COURSE_GOAL_MESSAGE = (
    "edit via course only: course-specific goals can only be edited from the course editor"
)

Clock = Callable[[], datetime]


def validation_failed(exc: ValidationError) -> ValidationFailed:
    """Turn a pydantic error into a user-facing validation error."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return ValidationFailed("; ".join(parts) or "invalid input")


def as_dict(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


def reconcile_goal(goal: Goal) -> Goal:
    """Clamp `current` into [0, target] and derive `completed` from it."""
    current = max(0, min(goal.current, goal.target))
    goal.current = current
    goal.completed = current >= goal.target
    return goal


def new_goal(data: Union[GoalCreate, Dict[str, Any]], clock: Clock = datetime.now) -> Goal:
    try:
        request = GoalCreate.model_validate(as_dict(data))
    except ValidationError as e:
        raise validation_failed(e) from e
    if not request.title.strip():
        raise ValidationFailed("title: must not be empty")

    return Goal(
        id=str(uuid.uuid4()),
        title=request.title.strip(),
        description=request.description,
        type=request.type,
        target=request.target,
        current=0,
        deadline=request.deadline,
        completed=False,
        course_id=request.course_id,
        created_at=clock(),
    )


def apply_goal_update(goal: Goal, updates: Union[GoalUpdate, Dict[str, Any]]) -> Goal:
    """Return a copy of `goal` with `updates` applied and `completed` re-derived."""
    updates = as_dict(updates)
    # Completion is derived, never taken from the caller
    updates.pop("completed", None)
    updates.pop("id", None)
    try:
        changes = GoalUpdate.model_validate(updates).model_dump(exclude_unset=True)
    except ValidationError as e:
        raise validation_failed(e) from e
    if "title" in changes and (changes["title"] is None or not changes["title"].strip()):
        raise ValidationFailed("title: must not be empty")

    merged = {**goal.model_dump(), **{k: v for k, v in changes.items() if v is not None or k == "course_id"}}
    try:
        updated = Goal.model_validate(merged)
    except ValidationError as e:
        raise validation_failed(e) from e
    return reconcile_goal(updated)


def apply_goal_progress(goal: Goal, increment: int) -> Goal:
    updated = goal.model_copy()
    updated.current = goal.current + increment
    return reconcile_goal(updated)


def merge_goal_views(goals: List[Goal], courses: List[Course]) -> List[GoalView]:
    """Standalone goals followed by every course's embedded goals."""
    views: List[GoalView] = [StandaloneGoal(goal=goal) for goal in goals]
    for course in courses:
        for goal in course.goals:
            views.append(CourseScopedGoal(goal=goal, course_id=course.id, course_title=course.title))
    return views


class GoalTracker:
    """Owns the standalone goal list of one user.

    Course-embedded goals are visible through `merged_view` but are edited
    only through the course aggregate.
    """

    def __init__(
        self,
        store: KeyValueStore,
        user_id: str,
        clock: Clock = datetime.now,
        on_completed: Optional[Callable[[], None]] = None,
    ):
        self.store = store
        self.user_id = user_id
        self.clock = clock
        self.on_completed = on_completed
        self.goals = [reconcile_goal(g) for g in load_goals(store, user_id)]

    def _save(self) -> None:
        save_goals(self.store, self.user_id, self.goals)

    def _index(self, goal_id: str) -> int:
        for i, goal in enumerate(self.goals):
            if goal.id == goal_id:
                return i
        return -1

    def _is_course_goal(self, goal_id: str) -> bool:
        courses = load_courses(self.store, self.user_id)
        return any(g.id == goal_id for course in courses for g in course.goals)

    def _require(self, goal_id: str) -> int:
        index = self._index(goal_id)
        if index == -1:
            if self._is_course_goal(goal_id):
                raise InvalidOperation(COURSE_GOAL_MESSAGE)
            raise NotFound("Goal", goal_id)
        return index

    def _completed_now(self, before: Goal, after: Goal) -> None:
        if after.completed and not before.completed:
            print(f"[Goals] user={self.user_id} goal '{after.title}' completed")
            if self.on_completed:
                self.on_completed()

    def list_goals(self) -> List[Goal]:
        return list(self.goals)

    def get_goal(self, goal_id: str) -> Goal:
        return self.goals[self._require(goal_id)]

    def add_goal(self, data: Union[GoalCreate, Dict[str, Any]]) -> Goal:
        goal = new_goal(data, self.clock)
        self.goals.append(goal)
        self._save()
        return goal

    def update_goal(self, goal_id: str, updates: Union[GoalUpdate, Dict[str, Any]]) -> Goal:
        index = self._require(goal_id)
        before = self.goals[index]
        after = apply_goal_update(before, updates)
        self.goals[index] = after
        self._save()
        self._completed_now(before, after)
        return after

    def complete_goal(self, goal_id: str) -> Goal:
        goal = self.goals[self._require(goal_id)]
        return self.update_goal(goal_id, {"current": goal.target})

    def delete_goal(self, goal_id: str) -> None:
        index = self._require(goal_id)
        del self.goals[index]
        self._save()

    def update_goal_progress(self, goal_id: str, increment: int) -> Optional[Goal]:
        """Add `increment` to a standalone goal, clamped to its target.

        Unknown ids are ignored; course-embedded ids are rejected.
        """
        if self._index(goal_id) == -1 and self._is_course_goal(goal_id):
            raise InvalidOperation(COURSE_GOAL_MESSAGE)
        return self.progress_standalone_goal(goal_id, increment)

    def progress_standalone_goal(self, goal_id: str, increment: int) -> Optional[Goal]:
        """Like `update_goal_progress`, but any id that is not a standalone goal is ignored."""
        index = self._index(goal_id)
        if index == -1:
            return None

        before = self.goals[index]
        after = apply_goal_progress(before, increment)
        self.goals[index] = after
        self._save()
        self._completed_now(before, after)
        return after

    def merged_view(self, courses: Optional[List[Course]] = None) -> List[GoalView]:
        if courses is None:
            courses = load_courses(self.store, self.user_id)
        return merge_goal_views(self.goals, courses)
