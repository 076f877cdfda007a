"""Course aggregate: courses with their lessons, exams, homework, notes and goals.

Completion changes flow out of `update_course` as side effects:
- every net new lesson completion records one "lesson" streak activity and
  one unit of lesson goal progress, then an achievement check is queued
- every net new exam completion records one "exam" activity
- every net new homework completion records one "homework" activity
Un-completing items never reverts anything already recorded.
"""
import math
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from ..errors import NotFound, ValidationFailed
from ..models.course import (
    BulkItem,
    BulkOperation,
    Course,
    CourseCreate,
    CourseUpdate,
    Exam,
    ExamInput,
    ExamUpdate,
    Homework,
    HomeworkInput,
    HomeworkUpdate,
    Lesson,
    LessonInput,
    LessonUpdate,
    Note,
    TimelineEvent,
)
from ..models.goals import Goal, GoalCreate, GoalUpdate
from ..store import KeyValueStore
from .goal_service import (
    LESSON_GOAL_ID,
    GoalTracker,
    apply_goal_progress,
    apply_goal_update,
    as_dict,
    new_goal,
    reconcile_goal,
    validation_failed,
)
from .state import load_courses, save_courses
from .streak_service import StreakTracker

Clock = Callable[[], datetime]
Data = Union[BaseModel, Dict[str, Any]]


def calculate_progress(lessons: List[Lesson]) -> int:
    """Percentage of completed lessons, rounded half up; 0 for an empty course."""
    if not lessons:
        return 0
    completed = sum(1 for lesson in lessons if lesson.completed)
    return int(math.floor(completed * 100 / len(lessons) + 0.5))


def _completed_count(items) -> int:
    return sum(1 for item in items if item.completed)


def _completed_homework(lessons: List[Lesson]) -> int:
    return sum(_completed_count(lesson.homework) for lesson in lessons)


def _new_id() -> str:
    return str(uuid.uuid4())


def _validate(model, data: Data):
    try:
        return model.model_validate(as_dict(data))
    except ValidationError as e:
        raise validation_failed(e) from e


def _find(items, item_id: str, kind: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    raise NotFound(kind, item_id)


class CourseAggregate:
    """Owns all courses of one user."""

    def __init__(
        self,
        store: KeyValueStore,
        user_id: str,
        streak: StreakTracker,
        goals: GoalTracker,
        on_completion: Optional[Callable[[], None]] = None,
        clock: Clock = datetime.now,
    ):
        self.store = store
        self.user_id = user_id
        self.streak = streak
        self.goals = goals
        self.on_completion = on_completion
        self.clock = clock
        self.courses = load_courses(store, user_id)

    def _save(self) -> None:
        save_courses(self.store, self.user_id, self.courses)

    def _schedule_check(self) -> None:
        if self.on_completion:
            self.on_completion()

    # ============================================
    # Courses
    # ============================================

    def list_courses(self) -> List[Course]:
        return list(self.courses)

    def get_course(self, course_id: str) -> Optional[Course]:
        return next((c for c in self.courses if c.id == course_id), None)

    def _require(self, course_id: str) -> Course:
        course = self.get_course(course_id)
        if course is None:
            raise NotFound("Course", course_id)
        return course

    def add_course(self, data: Data) -> Course:
        request = _validate(CourseCreate, data)
        course_id = _new_id()
        now = self.clock()

        lessons = [self._stamp_lesson(lesson, None, now) for lesson in request.lessons]
        goals = [reconcile_goal(goal.model_copy(update={"course_id": course_id})) for goal in request.goals]

        course = Course(
            id=course_id,
            title=request.title,
            description=request.description,
            start_date=request.start_date,
            end_date=request.end_date,
            color=request.color,
            lessons=lessons,
            exams=request.exams,
            goals=goals,
            progress=calculate_progress(lessons),
        )
        self.courses.append(course)
        self._save()
        print(f"[Courses] user={self.user_id} added course '{course.title}'")
        return course

    def update_course(self, course_id: str, data: Data) -> Course:
        """Apply a partial update and fire completion side effects for net increases."""
        old = self._require(course_id)
        changes = _validate(CourseUpdate, data).model_dump(exclude_unset=True)
        for field in ("lessons", "exams", "goals"):
            if field in changes and changes[field] is None:
                changes[field] = []

        try:
            updated = Course.model_validate({**old.model_dump(), **changes})
        except ValidationError as e:
            raise validation_failed(e) from e

        now = self.clock()
        if "lessons" in changes:
            old_lessons = {lesson.id: lesson for lesson in old.lessons}
            updated.lessons = [self._stamp_lesson(l, old_lessons.get(l.id), now) for l in updated.lessons]
            updated.progress = calculate_progress(updated.lessons)

        newly_completed_goals = 0
        if "goals" in changes:
            old_goals = {goal.id: goal for goal in old.goals}
            goals = []
            for goal in updated.goals:
                goal.course_id = course_id
                goal = reconcile_goal(goal)
                previous = old_goals.get(goal.id)
                if goal.completed and not (previous and previous.completed):
                    newly_completed_goals += 1
                goals.append(goal)
            updated.goals = goals

        self.courses = [updated if c.id == course_id else c for c in self.courses]
        self._save()

        lesson_increase = 0
        homework_increase = 0
        if "lessons" in changes:
            lesson_increase = _completed_count(updated.lessons) - _completed_count(old.lessons)
            homework_increase = _completed_homework(updated.lessons) - _completed_homework(old.lessons)
        exam_increase = 0
        if "exams" in changes:
            exam_increase = _completed_count(updated.exams) - _completed_count(old.exams)

        if lesson_increase > 0 or newly_completed_goals > 0:
            self._schedule_check()

        for _ in range(max(lesson_increase, 0)):
            self.streak.record_activity("lesson")
            # A course goal sharing the id is owned by the course, not this hook
            self.goals.progress_standalone_goal(LESSON_GOAL_ID, 1)
        for _ in range(max(exam_increase, 0)):
            self.streak.record_activity("exam")
        for _ in range(max(homework_increase, 0)):
            self.streak.record_activity("homework")

        return updated

    def _stamp_lesson(self, lesson: Lesson, previous: Optional[Lesson], now: datetime) -> Lesson:
        if not lesson.completed:
            lesson.completed_at = None
        elif previous is not None and previous.completed:
            lesson.completed_at = previous.completed_at or lesson.completed_at
        else:
            lesson.completed_at = now
        return lesson

    def delete_course(self, course_id: str) -> None:
        self._require(course_id)
        self.courses = [c for c in self.courses if c.id != course_id]
        self._save()
        print(f"[Courses] user={self.user_id} deleted course {course_id}")

    # ============================================
    # Lessons
    # ============================================

    def _lessons(self, course_id: str) -> List[Lesson]:
        return [lesson.model_copy(deep=True) for lesson in self._require(course_id).lessons]

    def add_lesson(self, course_id: str, data: Data) -> Lesson:
        request = _validate(LessonInput, data)
        lessons = self._lessons(course_id)
        lesson = Lesson(id=_new_id(), **request.model_dump())
        lessons.append(lesson)
        self.update_course(course_id, {"lessons": lessons})
        return self._lesson(course_id, lesson.id)

    def _lesson(self, course_id: str, lesson_id: str) -> Lesson:
        lessons = self._require(course_id).lessons
        return lessons[_find(lessons, lesson_id, "Lesson")]

    def update_lesson(self, course_id: str, lesson_id: str, data: Data) -> Lesson:
        changes = _validate(LessonUpdate, data).model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None or k == "date"}
        lessons = self._lessons(course_id)
        index = _find(lessons, lesson_id, "Lesson")
        try:
            lessons[index] = Lesson.model_validate({**lessons[index].model_dump(), **changes})
        except ValidationError as e:
            raise validation_failed(e) from e
        self.update_course(course_id, {"lessons": lessons})
        return self._lesson(course_id, lesson_id)

    def delete_lesson(self, course_id: str, lesson_id: str) -> None:
        lessons = self._lessons(course_id)
        index = _find(lessons, lesson_id, "Lesson")
        del lessons[index]
        self.update_course(course_id, {"lessons": lessons})

    # ============================================
    # Homework and notes
    # ============================================

    def _edit_lesson(self, course_id: str, lesson_id: str, edit: Callable[[Lesson], Any]) -> Any:
        lessons = self._lessons(course_id)
        lesson = lessons[_find(lessons, lesson_id, "Lesson")]
        result = edit(lesson)
        self.update_course(course_id, {"lessons": lessons})
        return result

    def add_homework(self, course_id: str, lesson_id: str, data: Optional[Data] = None) -> Homework:
        request = _validate(HomeworkInput, data or {})
        if not request.title.strip():
            raise ValidationFailed("title: must not be empty")
        homework = Homework(id=_new_id(), **request.model_dump())

        def edit(lesson: Lesson) -> Homework:
            lesson.homework.append(homework)
            return homework

        return self._edit_lesson(course_id, lesson_id, edit)

    def update_homework(self, course_id: str, lesson_id: str, homework_id: str, data: Data) -> Homework:
        changes = _validate(HomeworkUpdate, data).model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None or k == "due_date"}
        if "title" in changes and not changes["title"].strip():
            raise ValidationFailed("title: must not be empty")

        def edit(lesson: Lesson) -> Homework:
            index = _find(lesson.homework, homework_id, "Homework")
            lesson.homework[index] = Homework.model_validate({**lesson.homework[index].model_dump(), **changes})
            return lesson.homework[index]

        return self._edit_lesson(course_id, lesson_id, edit)

    def delete_homework(self, course_id: str, lesson_id: str, homework_id: str) -> None:
        def edit(lesson: Lesson) -> None:
            del lesson.homework[_find(lesson.homework, homework_id, "Homework")]

        self._edit_lesson(course_id, lesson_id, edit)

    def save_note(self, course_id: str, lesson_id: str, content: str, note_id: Optional[str] = None) -> Note:
        """Create a note, or update the content of `note_id`."""
        now = self.clock()

        def edit(lesson: Lesson) -> Note:
            if note_id is None:
                note = Note(id=_new_id(), content=content, created_at=now, updated_at=now)
                lesson.notes.append(note)
                return note
            note = lesson.notes[_find(lesson.notes, note_id, "Note")]
            note.content = content
            note.updated_at = now
            return note

        return self._edit_lesson(course_id, lesson_id, edit)

    def delete_note(self, course_id: str, lesson_id: str, note_id: str) -> None:
        def edit(lesson: Lesson) -> None:
            del lesson.notes[_find(lesson.notes, note_id, "Note")]

        self._edit_lesson(course_id, lesson_id, edit)

    # ============================================
    # Exams
    # ============================================

    def _exams(self, course_id: str) -> List[Exam]:
        return [exam.model_copy() for exam in self._require(course_id).exams]

    def add_exam(self, course_id: str, data: Data) -> Exam:
        request = _validate(ExamInput, data)
        exams = self._exams(course_id)
        exam = Exam(id=_new_id(), **request.model_dump())
        exams.append(exam)
        self.update_course(course_id, {"exams": exams})
        return exam

    def update_exam(self, course_id: str, exam_id: str, data: Data) -> Exam:
        changes = _validate(ExamUpdate, data).model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None or k in ("date", "score")}
        exams = self._exams(course_id)
        index = _find(exams, exam_id, "Exam")
        try:
            exams[index] = Exam.model_validate({**exams[index].model_dump(), **changes})
        except ValidationError as e:
            raise validation_failed(e) from e
        self.update_course(course_id, {"exams": exams})
        return exams[index]

    def delete_exam(self, course_id: str, exam_id: str) -> None:
        exams = self._exams(course_id)
        del exams[_find(exams, exam_id, "Exam")]
        self.update_course(course_id, {"exams": exams})

    # ============================================
    # Course goals
    # ============================================

    def _goals(self, course_id: str) -> List[Goal]:
        return [goal.model_copy() for goal in self._require(course_id).goals]

    def _course_goal(self, course_id: str, goal_id: str) -> Goal:
        goals = self._require(course_id).goals
        return goals[_find(goals, goal_id, "Goal")]

    def add_course_goal(self, course_id: str, data: Union[GoalCreate, Dict[str, Any]]) -> Goal:
        self._require(course_id)
        goal = new_goal({**as_dict(data), "course_id": course_id}, self.clock)
        goals = self._goals(course_id)
        goals.append(goal)
        self.update_course(course_id, {"goals": goals})
        return self._course_goal(course_id, goal.id)

    def update_course_goal(self, course_id: str, goal_id: str, data: Union[GoalUpdate, Dict[str, Any]]) -> Goal:
        goals = self._goals(course_id)
        index = _find(goals, goal_id, "Goal")
        goals[index] = apply_goal_update(goals[index], data)
        self.update_course(course_id, {"goals": goals})
        return self._course_goal(course_id, goal_id)

    def increment_course_goal(self, course_id: str, goal_id: str, increment: int = 1) -> Goal:
        goals = self._goals(course_id)
        index = _find(goals, goal_id, "Goal")
        goals[index] = apply_goal_progress(goals[index], increment)
        self.update_course(course_id, {"goals": goals})
        return self._course_goal(course_id, goal_id)

    def complete_course_goal(self, course_id: str, goal_id: str) -> Goal:
        goal = self._course_goal(course_id, goal_id)
        return self.update_course_goal(course_id, goal_id, {"current": goal.target})

    def delete_course_goal(self, course_id: str, goal_id: str) -> None:
        goals = self._goals(course_id)
        del goals[_find(goals, goal_id, "Goal")]
        self.update_course(course_id, {"goals": goals})

    # ============================================
    # Bulk operations and timeline
    # ============================================

    def bulk_update(
        self,
        course_id: str,
        items: List[Union[BulkItem, Dict[str, Any]]],
        operation: BulkOperation,
        new_date=None,
    ) -> Course:
        """Apply one operation to many lessons/exams in a single course update."""
        course = self._require(course_id)
        refs = [BulkItem.model_validate(as_dict(item)) for item in items]
        if not refs:
            return course
        if operation == "reschedule" and new_date is None:
            raise ValidationFailed("new_date: required to reschedule items")

        lessons = self._lessons(course_id)
        exams = self._exams(course_id)
        selected = {(ref.type, ref.id) for ref in refs}

        def apply(kind: str, items_):
            kept = []
            for item in items_:
                if (kind, item.id) not in selected:
                    kept.append(item)
                    continue
                if operation == "delete":
                    continue
                if operation == "complete":
                    item.completed = True
                elif operation == "incomplete":
                    item.completed = False
                elif operation == "reschedule":
                    item.date = new_date
                kept.append(item)
            return kept

        changes: Dict[str, Any] = {}
        if any(ref.type == "lesson" for ref in refs):
            changes["lessons"] = apply("lesson", lessons)
        if any(ref.type == "exam" for ref in refs):
            changes["exams"] = apply("exam", exams)
        return self.update_course(course_id, changes)

    def timeline(self, course_id: str) -> List[TimelineEvent]:
        """Dated lessons, exams and homework of a course in chronological order."""
        course = self._require(course_id)
        today = self.clock().date()

        def when(day) -> str:
            if day < today:
                return "past"
            if day == today:
                return "today"
            return "upcoming"

        events: List[TimelineEvent] = []
        for lesson in course.lessons:
            if lesson.date:
                events.append(TimelineEvent(
                    id=f"lesson-{lesson.id}", type="lesson", title=lesson.title, date=lesson.date,
                    completed=lesson.completed, when=when(lesson.date), lesson_type=lesson.type,
                ))
        for exam in course.exams:
            if exam.date:
                events.append(TimelineEvent(
                    id=f"exam-{exam.id}", type="exam", title=exam.title, date=exam.date,
                    completed=exam.completed, when=when(exam.date),
                ))
        for lesson in course.lessons:
            for hw in lesson.homework:
                if hw.due_date:
                    events.append(TimelineEvent(
                        id=f"homework-{hw.id}", type="homework", title=f"{lesson.title} - {hw.title}",
                        date=hw.due_date, completed=hw.completed, when=when(hw.due_date),
                        submitted=hw.submitted,
                    ))

        events.sort(key=lambda event: event.date)
        return events
