from datetime import date

import pytest

from ..errors import NotFound, ValidationFailed
from ..services.course_service import calculate_progress
from ..services.goal_service import LESSON_GOAL_ID
from ..services.session import StudySession
from ..models.course import Lesson
from ..store import COURSES, GOALS


def _course_data(**overrides):
    data = {"title": "Databases", "start_date": "2026-09-01", "end_date": "2027-01-31"}
    data.update(overrides)
    return data


def _lessons(n, completed=0):
    return [
        {"id": f"l{i}", "title": f"Lesson {i}", "type": "lab", "date": "2026-10-0%d" % (i + 1), "completed": i < completed}
        for i in range(n)
    ]


@pytest.fixture
def activity_log(session, monkeypatch):
    """Records every streak activity the course aggregate emits."""
    calls = []
    original = session.streak.record_activity

    def spy(kind="study"):
        calls.append(kind)
        return original(kind)

    monkeypatch.setattr(session.streak, "record_activity", spy)
    return calls


def _set_completed(lessons, index, completed):
    updated = [dict(lesson) for lesson in lessons]
    updated[index]["completed"] = completed
    return updated


def test_progress_rounding():
    assert calculate_progress([]) == 0
    lessons = [Lesson(id=str(i), title="x", completed=i == 0) for i in range(8)]
    assert calculate_progress(lessons) == 13
    lessons = [Lesson(id=str(i), title="x", completed=i == 0) for i in range(3)]
    assert calculate_progress(lessons) == 33


def test_empty_course_has_zero_progress(session):
    course = session.courses.add_course(_course_data())

    assert course.progress == 0
    assert course.lessons == []
    assert course.exams == []


def test_completing_third_of_four_lessons(session, activity_log):
    lessons = _lessons(4, completed=2)
    course = session.courses.add_course(_course_data(lessons=lessons))
    assert course.progress == 50

    updated = session.courses.update_course(course.id, {"lessons": _set_completed(lessons, 2, True)})

    assert updated.progress == 75
    assert activity_log == ["lesson"]
    assert session.achievements.has_pending


def test_uncompleting_does_not_revert_side_effects(session, store):
    store.save("user-1", GOALS, [{"id": LESSON_GOAL_ID, "title": "Lessons", "target": 5}])
    session = StudySession(store, "user-1", clock=session.clock)
    lessons = _lessons(2)
    course = session.courses.add_course(_course_data(lessons=lessons))

    completed = _set_completed(lessons, 0, True)
    session.courses.update_course(course.id, {"lessons": completed})
    reverted = session.courses.update_course(course.id, {"lessons": _set_completed(completed, 0, False)})

    assert reverted.progress == 0
    assert session.streak.streak.current == 1
    assert session.streak.streak.activities[0].count == 1
    assert session.goals.goals[0].current == 1


def test_lesson_completion_feeds_lesson_goal(session, store):
    store.save("user-1", GOALS, [{"id": LESSON_GOAL_ID, "title": "Lessons", "target": 2}])
    session = StudySession(store, "user-1", clock=session.clock)
    lessons = _lessons(3)
    course = session.courses.add_course(_course_data(lessons=lessons))

    all_done = [dict(lesson, completed=True) for lesson in lessons]
    session.courses.update_course(course.id, {"lessons": all_done})

    goal = session.goals.goals[0]
    assert goal.current == 2
    assert goal.completed is True


def test_multiple_completions_record_one_activity_each(session, activity_log):
    lessons = _lessons(3)
    course = session.courses.add_course(_course_data(lessons=lessons))

    session.courses.update_course(course.id, {"lessons": [dict(l, completed=True) for l in lessons]})

    assert activity_log == ["lesson", "lesson", "lesson"]
    # All three land in today's bucket
    assert session.streak.streak.current == 1
    assert session.streak.streak.activities[0].count == 3


def test_exam_completion_records_exam_activity(session, activity_log):
    course = session.courses.add_course(_course_data())
    exam = session.courses.add_exam(course.id, {"title": "Midterm", "date": "2026-11-10"})

    session.courses.update_exam(course.id, exam.id, {"completed": True, "score": 88})
    session.courses.update_exam(course.id, exam.id, {"completed": False})

    assert activity_log == ["exam"]
    assert not session.achievements.has_pending


def test_homework_completion_records_homework_activity(session, activity_log):
    course = session.courses.add_course(_course_data(lessons=_lessons(1)))
    homework = session.courses.add_homework(course.id, "l0", {"title": "Exercise sheet"})

    session.courses.update_homework(course.id, "l0", homework.id, {"completed": True, "submitted": True})

    assert activity_log == ["homework"]
    stored = session.courses.get_course(course.id).lessons[0].homework[0]
    assert stored.completed is True
    assert stored.submitted is True


def test_completed_at_is_stamped_and_cleared(session, clock):
    course = session.courses.add_course(_course_data(lessons=_lessons(1)))

    lesson = session.courses.update_lesson(course.id, "l0", {"completed": True})
    assert lesson.completed_at == clock.now

    clock.advance(days=1)
    session.courses.update_course(course.id, {"title": "Renamed"})
    assert session.courses.get_course(course.id).lessons[0].completed_at == lesson.completed_at

    lesson = session.courses.update_lesson(course.id, "l0", {"completed": False})
    assert lesson.completed_at is None


def test_goal_list_is_bound_to_course(session):
    course = session.courses.add_course(_course_data())

    updated = session.courses.update_course(course.id, {"goals": [
        {"id": "g1", "title": "Stale", "target": 2, "current": 5, "course_id": "other-course"},
        {"id": "g2", "title": "Orphan", "target": 3},
    ]})

    assert [g.course_id for g in updated.goals] == [course.id, course.id]
    assert updated.goals[0].current == 2
    assert updated.goals[0].completed is True
    assert session.achievements.has_pending


def test_course_goal_helpers(session):
    course = session.courses.add_course(_course_data())
    goal = session.courses.add_course_goal(course.id, {"title": "Labs", "target": 2, "deadline": date(2026, 12, 1)})
    assert goal.course_id == course.id

    goal = session.courses.increment_course_goal(course.id, goal.id)
    assert goal.current == 1 and not goal.completed

    goal = session.courses.complete_course_goal(course.id, goal.id)
    assert goal.current == 2 and goal.completed

    session.courses.delete_course_goal(course.id, goal.id)
    assert session.courses.get_course(course.id).goals == []


def test_notes_are_created_and_updated(session, clock):
    course = session.courses.add_course(_course_data(lessons=_lessons(1)))

    note = session.courses.save_note(course.id, "l0", "# Joins")
    clock.advance(hours=2)
    edited = session.courses.save_note(course.id, "l0", "# Joins and indexes", note_id=note.id)

    assert edited.id == note.id
    assert edited.created_at == note.created_at
    assert edited.updated_at == clock.now
    stored = session.courses.get_course(course.id).lessons[0].notes
    assert [n.content for n in stored] == ["# Joins and indexes"]

    session.courses.delete_note(course.id, "l0", note.id)
    assert session.courses.get_course(course.id).lessons[0].notes == []


def test_validation_happens_before_any_change(session, store):
    with pytest.raises(ValidationFailed):
        session.courses.add_course(_course_data(title="  "))
    assert store.load("user-1", COURSES) is None

    course = session.courses.add_course(_course_data(lessons=_lessons(1)))
    before = store.load("user-1", COURSES)

    with pytest.raises(ValidationFailed):
        session.courses.add_lesson(course.id, {"title": ""})
    with pytest.raises(ValidationFailed):
        session.courses.update_course(course.id, {"title": ""})

    assert store.load("user-1", COURSES) == before


def test_delete_course_removes_children(session, store, clock):
    course = session.courses.add_course(_course_data(lessons=_lessons(2)))
    session.courses.add_exam(course.id, {"title": "Final"})

    session.courses.delete_course(course.id)

    assert session.courses.get_course(course.id) is None
    assert StudySession(store, "user-1", clock=clock).courses.list_courses() == []
    with pytest.raises(NotFound):
        session.courses.delete_lesson(course.id, "l0")


def test_bulk_complete_and_delete(session, activity_log):
    course = session.courses.add_course(_course_data(lessons=_lessons(4)))
    exam = session.courses.add_exam(course.id, {"title": "Quiz"})

    updated = session.courses.bulk_update(course.id, [
        {"type": "lesson", "id": "l0"},
        {"type": "lesson", "id": "l1"},
        {"type": "exam", "id": exam.id},
    ], "complete")

    assert updated.progress == 50
    assert activity_log == ["lesson", "lesson", "exam"]

    updated = session.courses.bulk_update(course.id, [{"type": "lesson", "id": "l3"}], "delete")
    assert [l.id for l in updated.lessons] == ["l0", "l1", "l2"]
    assert updated.progress == 67


def test_bulk_reschedule_needs_date(session):
    course = session.courses.add_course(_course_data(lessons=_lessons(1)))

    with pytest.raises(ValidationFailed):
        session.courses.bulk_update(course.id, [{"type": "lesson", "id": "l0"}], "reschedule")

    updated = session.courses.bulk_update(
        course.id, [{"type": "lesson", "id": "l0"}], "reschedule", new_date=date(2026, 12, 24)
    )
    assert updated.lessons[0].date == date(2026, 12, 24)


def test_timeline_orders_dated_events(session):
    lessons = [
        {"id": "a", "title": "Intro", "date": "2026-10-20", "completed": False},
        {"id": "b", "title": "SQL", "date": "2026-10-01", "completed": True,
         "homework": [{"id": "h1", "title": "Sheet 1", "due_date": "2026-10-18"}]},
        {"id": "c", "title": "Undated"},
    ]
    course = session.courses.add_course(_course_data(lessons=lessons, exams=[{"id": "e", "title": "Exam"}]))

    events = session.courses.timeline(course.id)

    assert [e.id for e in events] == ["lesson-b", "homework-h1", "lesson-a"]
    assert [e.when for e in events] == ["past", "today", "upcoming"]
    assert events[1].title == "SQL - Sheet 1"


def test_malformed_stored_course_is_normalized(store, clock):
    store.save("user-1", COURSES, [{
        "id": "c1", "title": "Legacy", "start_date": "2026-01-01", "end_date": "2026-06-01",
        "lessons": {"oops": True}, "exams": None,
    }])

    course = StudySession(store, "user-1", clock=clock).courses.get_course("c1")

    assert course.lessons == []
    assert course.exams == []
    assert course.goals == []


def test_course_goal_named_like_lesson_goal_is_left_alone(session, store):
    course = session.courses.add_course(_course_data(lessons=_lessons(2)))
    session.courses.update_course(course.id, {"goals": [{"id": LESSON_GOAL_ID, "title": "Course labs", "target": 3}]})

    lesson = session.courses.update_lesson(course.id, "l0", {"completed": True})

    assert lesson.completed is True
    assert session.courses.get_course(course.id).goals[0].current == 0
    assert session.streak.streak.current == 1
    assert [a.title for a in session.achievements.run_pending()] == ["First Steps"]


def test_blank_course_goal_title_is_rejected(session, store):
    course = session.courses.add_course(_course_data())
    before = store.load("user-1", COURSES)

    with pytest.raises(ValidationFailed):
        session.courses.update_course(course.id, {"goals": [{"id": "g1", "title": "   ", "target": 2}]})

    assert store.load("user-1", COURSES) == before
