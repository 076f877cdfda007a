"""Course endpoints: courses and everything embedded in them."""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from typing import List

from ..deps import get_session, queue_achievement_checks
from ..models.course import (
    BulkUpdateRequest,
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
    NoteInput,
    TimelineEvent,
)
from ..models.goals import Goal, GoalCreate, GoalProgressRequest, GoalUpdate
from ..services.session import StudySession

router = APIRouter(prefix="/api/courses", tags=["Courses"])


@router.get("", response_model=List[Course])
async def list_courses(session: StudySession = Depends(get_session)):
    return session.courses.list_courses()


@router.post("", response_model=Course)
async def add_course(request: CourseCreate, session: StudySession = Depends(get_session)):
    return session.courses.add_course(request)


@router.get("/{course_id}", response_model=Course)
async def get_course(course_id: str, session: StudySession = Depends(get_session)):
    course = session.courses.get_course(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail=f"Course '{course_id}' not found")
    return course


@router.patch("/{course_id}", response_model=Course)
async def update_course(
    course_id: str,
    request: CourseUpdate,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    """Partially update a course. Newly completed lessons/exams feed the streak and goals."""
    course = session.courses.update_course(course_id, request.model_dump(exclude_unset=True))
    queue_achievement_checks(session, background_tasks)
    return course


@router.delete("/{course_id}")
async def delete_course(course_id: str, session: StudySession = Depends(get_session)):
    session.courses.delete_course(course_id)
    return {"success": True}


@router.post("/{course_id}/bulk", response_model=Course)
async def bulk_update(
    course_id: str,
    request: BulkUpdateRequest,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    course = session.courses.bulk_update(course_id, request.items, request.operation, request.new_date)
    queue_achievement_checks(session, background_tasks)
    return course


@router.get("/{course_id}/timeline", response_model=List[TimelineEvent])
async def get_timeline(course_id: str, session: StudySession = Depends(get_session)):
    return session.courses.timeline(course_id)


# ============================================
# Lessons, homework and notes
# ============================================

@router.post("/{course_id}/lessons", response_model=Lesson)
async def add_lesson(
    course_id: str,
    request: LessonInput,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    lesson = session.courses.add_lesson(course_id, request)
    queue_achievement_checks(session, background_tasks)
    return lesson


@router.patch("/{course_id}/lessons/{lesson_id}", response_model=Lesson)
async def update_lesson(
    course_id: str,
    lesson_id: str,
    request: LessonUpdate,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    lesson = session.courses.update_lesson(course_id, lesson_id, request)
    queue_achievement_checks(session, background_tasks)
    return lesson


@router.delete("/{course_id}/lessons/{lesson_id}")
async def delete_lesson(course_id: str, lesson_id: str, session: StudySession = Depends(get_session)):
    session.courses.delete_lesson(course_id, lesson_id)
    return {"success": True}


@router.post("/{course_id}/lessons/{lesson_id}/homework", response_model=Homework)
async def add_homework(
    course_id: str,
    lesson_id: str,
    request: HomeworkInput,
    session: StudySession = Depends(get_session),
):
    return session.courses.add_homework(course_id, lesson_id, request)


@router.patch("/{course_id}/lessons/{lesson_id}/homework/{homework_id}", response_model=Homework)
async def update_homework(
    course_id: str,
    lesson_id: str,
    homework_id: str,
    request: HomeworkUpdate,
    session: StudySession = Depends(get_session),
):
    return session.courses.update_homework(course_id, lesson_id, homework_id, request)


@router.delete("/{course_id}/lessons/{lesson_id}/homework/{homework_id}")
async def delete_homework(
    course_id: str,
    lesson_id: str,
    homework_id: str,
    session: StudySession = Depends(get_session),
):
    session.courses.delete_homework(course_id, lesson_id, homework_id)
    return {"success": True}


@router.post("/{course_id}/lessons/{lesson_id}/notes", response_model=Note)
async def add_note(
    course_id: str,
    lesson_id: str,
    request: NoteInput,
    session: StudySession = Depends(get_session),
):
    return session.courses.save_note(course_id, lesson_id, request.content)


@router.put("/{course_id}/lessons/{lesson_id}/notes/{note_id}", response_model=Note)
async def update_note(
    course_id: str,
    lesson_id: str,
    note_id: str,
    request: NoteInput,
    session: StudySession = Depends(get_session),
):
    return session.courses.save_note(course_id, lesson_id, request.content, note_id=note_id)


@router.delete("/{course_id}/lessons/{lesson_id}/notes/{note_id}")
async def delete_note(
    course_id: str,
    lesson_id: str,
    note_id: str,
    session: StudySession = Depends(get_session),
):
    session.courses.delete_note(course_id, lesson_id, note_id)
    return {"success": True}


# ============================================
# Exams
# ============================================

@router.post("/{course_id}/exams", response_model=Exam)
async def add_exam(course_id: str, request: ExamInput, session: StudySession = Depends(get_session)):
    return session.courses.add_exam(course_id, request)


@router.patch("/{course_id}/exams/{exam_id}", response_model=Exam)
async def update_exam(
    course_id: str,
    exam_id: str,
    request: ExamUpdate,
    session: StudySession = Depends(get_session),
):
    return session.courses.update_exam(course_id, exam_id, request)


@router.delete("/{course_id}/exams/{exam_id}")
async def delete_exam(course_id: str, exam_id: str, session: StudySession = Depends(get_session)):
    session.courses.delete_exam(course_id, exam_id)
    return {"success": True}


# ============================================
# Course goals (the only way to edit them)
# ============================================

@router.post("/{course_id}/goals", response_model=Goal)
async def add_course_goal(
    course_id: str,
    request: GoalCreate,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    goal = session.courses.add_course_goal(course_id, request)
    queue_achievement_checks(session, background_tasks)
    return goal


@router.patch("/{course_id}/goals/{goal_id}", response_model=Goal)
async def update_course_goal(
    course_id: str,
    goal_id: str,
    request: GoalUpdate,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    goal = session.courses.update_course_goal(course_id, goal_id, request)
    queue_achievement_checks(session, background_tasks)
    return goal


@router.post("/{course_id}/goals/{goal_id}/progress", response_model=Goal)
async def increment_course_goal(
    course_id: str,
    goal_id: str,
    request: GoalProgressRequest,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    goal = session.courses.increment_course_goal(course_id, goal_id, request.increment)
    queue_achievement_checks(session, background_tasks)
    return goal


@router.post("/{course_id}/goals/{goal_id}/complete", response_model=Goal)
async def complete_course_goal(
    course_id: str,
    goal_id: str,
    background_tasks: BackgroundTasks,
    session: StudySession = Depends(get_session),
):
    goal = session.courses.complete_course_goal(course_id, goal_id)
    queue_achievement_checks(session, background_tasks)
    return goal


@router.delete("/{course_id}/goals/{goal_id}")
async def delete_course_goal(course_id: str, goal_id: str, session: StudySession = Depends(get_session)):
    session.courses.delete_course_goal(course_id, goal_id)
    return {"success": True}
