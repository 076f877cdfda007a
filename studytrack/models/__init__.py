from .course import (
    Course,
    Lesson,
    Exam,
    Homework,
    Note,
    TimelineEvent,
)
from .goals import (
    Goal,
    GoalView,
    StandaloneGoal,
    CourseScopedGoal,
    Achievement,
    AchievementStats,
)
from .streak import Streak, StreakActivity
from .dashboard import DashboardSummary
