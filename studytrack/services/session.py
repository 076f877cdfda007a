"""Per-user wiring of the study trackers over one store."""
from datetime import datetime
from typing import Callable

from ..models.dashboard import DashboardSummary
from ..store import KeyValueStore
from .achievement_service import AchievementEvaluator
from .course_service import CourseAggregate
from .goal_service import GoalTracker
from .streak_service import StreakTracker

Clock = Callable[[], datetime]


class StudySession:
    """All trackers of one user, sharing a store and a clock.

    Goal completions and lesson completions queue achievement checks on
    `achievements`; the caller runs them with `achievements.run_pending()`
    after the triggering request has finished writing.
    """

    def __init__(self, store: KeyValueStore, user_id: str, clock: Clock = datetime.now):
        self.store = store
        self.user_id = user_id
        self.clock = clock
        self.achievements = AchievementEvaluator(store, user_id, clock=clock)
        self.streak = StreakTracker(store, user_id, clock=clock)
        self.goals = GoalTracker(store, user_id, clock=clock, on_completed=self.achievements.schedule_check)
        self.courses = CourseAggregate(
            store,
            user_id,
            streak=self.streak,
            goals=self.goals,
            on_completion=self.achievements.schedule_check,
            clock=clock,
        )

    def dashboard_summary(self) -> DashboardSummary:
        courses = self.courses.list_courses()
        total_lessons = sum(len(c.lessons) for c in courses)
        completed_lessons = sum(1 for c in courses for lesson in c.lessons if lesson.completed)
        average_progress = sum(c.progress for c in courses) / len(courses) if courses else 0.0

        views = self.goals.merged_view(courses)
        completed_goals = sum(1 for view in views if view.goal.completed)

        return DashboardSummary(
            total_courses=len(courses),
            total_lessons=total_lessons,
            completed_lessons=completed_lessons,
            average_progress=average_progress,
            active_goals=len(views) - completed_goals,
            completed_goals=completed_goals,
            current_streak=self.streak.streak.current,
            longest_streak=self.streak.streak.longest,
            streak_status=self.streak.get_status(),
            achievements_unlocked=len(self.achievements.achievements),
        )
