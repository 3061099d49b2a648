"""Tests for user service."""
import pytest

from mandarinpath.models.vocabulary_models import TaskType
from mandarinpath.services.user_service import UserService


@pytest.fixture
def users() -> UserService:
    return UserService()


def test_update_stats(users: UserService) -> None:
    users.update_stats(streak=10, minutes_today=30)
    assert users.stats.streak == 10
    assert users.stats.minutes_today == 30
    assert users.stats.total_words == 156


def test_update_stats_rejects_unknown_field(users: UserService) -> None:
    with pytest.raises(ValueError):
        users.update_stats(level=3)


def test_update_preferences(users: UserService) -> None:
    users.update_preferences(writing_tasks=True, show_pinyin=False)
    assert users.preferences.writing_tasks
    assert not users.preferences.show_pinyin
    assert users.preferences.enabled_tasks() == [TaskType.SPEAKING, TaskType.READING, TaskType.WRITING]


def test_add_recent_activity_is_newest_first(users: UserService) -> None:
    activity = users.add_recent_activity("🗣️", "Practised 谢谢", "just now", "88%", "speaking")
    assert users.recent_activities[0] is activity
    assert activity.type == TaskType.SPEAKING


def test_recent_activity_is_capped(users: UserService) -> None:
    for i in range(15):
        users.add_recent_activity("📖", f"Story {i}", "just now", "Complete", TaskType.READING)
    assert len(users.recent_activities) == 10
    assert users.recent_activities[0].text == "Story 14"


def test_streak(users: UserService) -> None:
    users.increment_streak()
    assert users.stats.streak == 8
    assert users.stats.days_streak == 8
    users.reset_streak()
    assert users.stats.streak == 0
    assert users.stats.days_streak == 0


def test_words_and_study_time(users: UserService) -> None:
    users.add_words_learned(3)
    users.add_study_time(30)
    users.complete_task()

    assert users.stats.words_learned == 155
    assert users.stats.total_words == 159
    assert users.stats.words_this_week == 26
    assert users.stats.minutes_today == 45
    assert users.stats.total_hours == pytest.approx(13.0)
    assert users.stats.tasks_completed == 90
