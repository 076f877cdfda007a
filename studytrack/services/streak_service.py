"""Daily study streak tracking."""
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List

from ..errors import ConfirmationRequired
from ..models.streak import ActivityDay, ActivityType, Streak, StreakActivity, StreakStatus
from ..store import KeyValueStore
from .state import load_streak, save_streak

# Activity log retention, in calendar days including today
ACTIVITY_WINDOW_DAYS = 30

Clock = Callable[[], datetime]


def streak_status(streak: Streak, today: date) -> StreakStatus:
    """
    Classify a stored streak relative to `today`.

    Returns:
        "new" if there was never any activity, "active" if the last activity
        was today or yesterday, otherwise "broken"
    """
    if streak.last_activity_date is None:
        return "new"
    last = streak.last_activity_date.date()
    if last == today or last == today - timedelta(days=1):
        return "active"
    return "broken"


class StreakTracker:
    """Turns completion events into current/longest streak counters for one user."""

    def __init__(self, store: KeyValueStore, user_id: str, clock: Clock = datetime.now):
        self.store = store
        self.user_id = user_id
        self.clock = clock
        self.streak = load_streak(store, user_id)

    def _save(self) -> None:
        save_streak(self.store, self.user_id, self.streak)

    def record_activity(self, kind: ActivityType = "study") -> Streak:
        """Record one discrete completion event.

        Callers completing N items at once call this N times. Only the first
        event of a calendar day can move the streak counters; later ones are
        absorbed into that day's bucket.
        """
        now = self.clock()
        today = now.date()
        streak = self.streak

        todays = next((a for a in streak.activities if a.date.date() == today), None)
        if todays is not None:
            todays.count += 1
        else:
            last = streak.last_activity_date.date() if streak.last_activity_date else None
            if last == today - timedelta(days=1) or streak.current == 0:
                streak.current += 1
            elif last != today:
                streak.current = 1

            streak.longest = max(streak.longest, streak.current)
            streak.last_activity_date = now
            streak.activities.append(StreakActivity(date=now, type=kind, count=1))

        cutoff = today - timedelta(days=ACTIVITY_WINDOW_DAYS)
        streak.activities = [a for a in streak.activities if a.date.date() > cutoff]

        self._save()
        print(f"[Streak] user={self.user_id} {kind} recorded, current={streak.current} longest={streak.longest}")
        return streak

    def get_status(self) -> StreakStatus:
        return streak_status(self.streak, self.clock().date())

    def reset_streak(self, confirm: bool = False) -> Streak:
        """Zero the current streak and activity log; the longest streak is kept."""
        if not confirm:
            raise ConfirmationRequired("reset your study streak")

        self.streak = Streak(longest=self.streak.longest)
        self._save()
        print(f"[Streak] user={self.user_id} streak reset (longest kept at {self.streak.longest})")
        return self.streak

    def activity_calendar(self, days: int = ACTIVITY_WINDOW_DAYS) -> List[ActivityDay]:
        """Per-day activity totals for the last `days` days, oldest first."""
        today = self.clock().date()
        totals: Dict[date, int] = {}
        for activity in self.streak.activities:
            day = activity.date.date()
            totals[day] = totals.get(day, 0) + activity.count

        start = today - timedelta(days=days - 1)
        return [
            ActivityDay(day=start + timedelta(days=offset), count=totals.get(start + timedelta(days=offset), 0))
            for offset in range(days)
        ]
