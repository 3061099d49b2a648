"""User service for learner stats, preferences and recent activity."""
import logging
import time
from dataclasses import fields
from typing import Any, List, Union

from mandarinpath.config import settings
from mandarinpath.models.user_models import RecentActivity, UserPreferences, UserStats
from mandarinpath.models.vocabulary_models import TaskType

# Configure logging
logger = logging.getLogger(__name__)


def default_recent_activities() -> List[RecentActivity]:
    return [
        RecentActivity(1, "🗣️", 'Completed speaking practice with "你好"', "2 hours ago", "92%", TaskType.SPEAKING),
        RecentActivity(2, "📖", 'Read story "小明的一天"', "1 day ago", "Complete", TaskType.READING),
        RecentActivity(3, "✍️", 'Practiced writing character "人"', "2 days ago", "85%", TaskType.WRITING),
    ]


def _apply(target: Any, updates: dict) -> None:
    """Set known dataclass fields on target, rejecting unknown names."""
    known = {f.name for f in fields(target)}
    unknown = set(updates) - known
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
    for key, value in updates.items():
        setattr(target, key, value)


class UserService:
    """In-memory store of the learner's stats and preferences."""

    def __init__(self):
        """Initialize the store with demo progress."""
        self.stats = UserStats(
            streak=7,
            words_this_week=23,
            total_words=156,
            minutes_today=15,
            tasks_completed=89,
            total_hours=12.5,
            days_streak=7,
            words_learned=152,
        )
        self.preferences = UserPreferences()
        self.recent_activities: List[RecentActivity] = default_recent_activities()

    def update_stats(self, **new_stats) -> UserStats:
        _apply(self.stats, new_stats)
        return self.stats

    def update_preferences(self, **new_prefs) -> UserPreferences:
        _apply(self.preferences, new_prefs)
        return self.preferences

    def add_recent_activity(
        self,
        icon: str,
        text: str,
        time_label: str,
        score: str,
        activity_type: Union[TaskType, str],
    ) -> RecentActivity:
        """Prepend an activity, keeping only the newest entries."""
        activity = RecentActivity(
            id=time.time_ns() // 1_000_000,
            icon=icon,
            text=text,
            time=time_label,
            score=score,
            type=TaskType(activity_type),
        )
        self.recent_activities.insert(0, activity)
        del self.recent_activities[settings.learning.recent_activity_limit:]
        return activity

    def increment_streak(self) -> None:
        self.stats.streak += 1
        self.stats.days_streak += 1

    def reset_streak(self) -> None:
        self.stats.streak = 0
        self.stats.days_streak = 0

    def add_words_learned(self, count: int) -> None:
        self.stats.words_learned += count
        self.stats.total_words += count
        self.stats.words_this_week += count

    def add_study_time(self, minutes: float) -> None:
        self.stats.minutes_today += minutes
        self.stats.total_hours += minutes / 60

    def complete_task(self) -> None:
        self.stats.tasks_completed += 1
