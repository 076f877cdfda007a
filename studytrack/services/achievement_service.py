"""Achievement rules and idempotent unlocking."""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..models.goals import Achievement, AchievementCategory, AchievementProgressDto, AchievementStats
from ..store import KeyValueStore
from .state import load_achievements, load_courses, load_goals, load_streak, save_achievements

# Trailing window for the weekly lesson count, in days including today
WEEK_DAYS = 7

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class AchievementRule:
    title: str
    description: str
    icon: str
    category: AchievementCategory
    stat: str  # field of AchievementStats
    threshold: int

    def value(self, stats: AchievementStats) -> int:
        return getattr(stats, self.stat)

    def matches(self, stats: AchievementStats) -> bool:
        return self.value(stats) >= self.threshold


# Evaluated in this order
PREDEFINED_ACHIEVEMENTS = [
    AchievementRule("First Steps", "Complete your first lesson", "👶", "completion", "completed_lessons", 1),
    AchievementRule("Study Streak", "Maintain a 7-day study streak", "🔥", "streak", "current_streak", 7),
    AchievementRule("Goal Achiever", "Complete your first goal", "🎯", "goal", "completed_goals", 1),
    AchievementRule("Dedicated Student", "Complete 10 lessons", "📚", "completion", "completed_lessons", 10),
    AchievementRule("Week Warrior", "Complete 5 lessons in one week", "⚔️", "study", "weekly_lessons", 5),
]


class AchievementEvaluator:
    """Evaluates the badge rules for one user against the persisted state.

    Checks requested while a mutation is in flight are queued with
    `schedule_check` and executed by `run_pending` once the triggering
    writes have been saved.
    """

    def __init__(self, store: KeyValueStore, user_id: str, clock: Clock = datetime.now):
        self.store = store
        self.user_id = user_id
        self.clock = clock
        self.achievements = load_achievements(store, user_id)
        self._pending = 0

    def compute_stats(self) -> AchievementStats:
        today = self.clock().date()
        week_start = today - timedelta(days=WEEK_DAYS - 1)

        courses = load_courses(self.store, self.user_id)
        completed_lessons = 0
        weekly_lessons = 0
        for course in courses:
            for lesson in course.lessons:
                if not lesson.completed:
                    continue
                completed_lessons += 1
                when = lesson.completed_at.date() if lesson.completed_at else lesson.date
                if when is not None and week_start <= when <= today:
                    weekly_lessons += 1

        goals = load_goals(self.store, self.user_id)
        course_goals = [g for course in courses for g in course.goals]
        completed_goals = sum(1 for g in goals + course_goals if g.current >= g.target)

        return AchievementStats(
            completed_lessons=completed_lessons,
            weekly_lessons=weekly_lessons,
            current_streak=load_streak(self.store, self.user_id).current,
            completed_goals=completed_goals,
        )

    def unlock_achievement(self, rule: AchievementRule) -> Optional[Achievement]:
        """Unlock the badge for `rule` unless one with the same title exists."""
        if any(a.title == rule.title for a in self.achievements):
            return None

        achievement = Achievement(
            id=str(uuid.uuid4()),
            title=rule.title,
            description=rule.description,
            icon=rule.icon,
            category=rule.category,
            unlocked_at=self.clock(),
        )
        self.achievements.append(achievement)
        save_achievements(self.store, self.user_id, self.achievements)
        print(f"[Achievements] user={self.user_id} unlocked '{rule.title}'")
        return achievement

    def check_achievements(self) -> List[Achievement]:
        """Evaluate every rule against fresh stats; returns the newly unlocked badges."""
        self.achievements = load_achievements(self.store, self.user_id)
        stats = self.compute_stats()

        unlocked = []
        for rule in PREDEFINED_ACHIEVEMENTS:
            if rule.matches(stats):
                achievement = self.unlock_achievement(rule)
                if achievement is not None:
                    unlocked.append(achievement)
        return unlocked

    def schedule_check(self) -> None:
        self._pending += 1

    @property
    def has_pending(self) -> bool:
        return self._pending > 0

    def run_pending(self) -> List[Achievement]:
        """Run every queued check; duplicates are harmless because unlocking is idempotent."""
        unlocked: List[Achievement] = []
        while self._pending > 0:
            self._pending -= 1
            unlocked.extend(self.check_achievements())
        return unlocked

    def achievement_progress(self) -> List[AchievementProgressDto]:
        self.achievements = load_achievements(self.store, self.user_id)
        stats = self.compute_stats()
        by_title = {a.title: a for a in self.achievements}

        progress = []
        for rule in PREDEFINED_ACHIEVEMENTS:
            unlocked = by_title.get(rule.title)
            progress.append(AchievementProgressDto(
                title=rule.title,
                description=rule.description,
                icon=rule.icon,
                category=rule.category,
                stat=rule.stat,
                current=rule.value(stats),
                threshold=rule.threshold,
                unlocked=unlocked is not None,
                unlocked_at=unlocked.unlocked_at if unlocked else None,
            ))
        return progress
