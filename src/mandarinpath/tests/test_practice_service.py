"""Tests for the practice service."""
from unittest.mock import AsyncMock

import pytest

from mandarinpath.models.speech_models import SpeakingAttempt
from mandarinpath.models.vocabulary_models import TaskType
from mandarinpath.services.practice_service import PracticeService
from mandarinpath.services.speech_service import SpeechService
from mandarinpath.services.task_service import TaskService
from mandarinpath.services.user_service import UserService
from mandarinpath.services.vocabulary_service import VocabularyService


@pytest.fixture
def speech() -> SpeechService:
    service = SpeechService(api_client=None)
    service.process_recording = AsyncMock(return_value=SpeakingAttempt(score=90, feedback="Excellent pronunciation!"))
    return service


@pytest.fixture
def practice(speech: SpeechService) -> PracticeService:
    return PracticeService(VocabularyService(), TaskService(), UserService(), speech)


def test_start_picks_pending_words(practice: PracticeService) -> None:
    session = practice.start(TaskType.WRITING)

    assert session.type == TaskType.WRITING
    assert session.total_words == 2
    # 学习 has never been written, 谢谢 has one attempt
    assert practice.current_word.chinese == "学习"
    assert practice.progress == (1, 2)


def test_start_with_nothing_due(practice: PracticeService) -> None:
    for word in practice.vocabulary.words:
        word.tasks.speaking.completed = True
    assert practice.start("speaking") is None
    assert not practice.tasks.is_session_active


@pytest.mark.asyncio
async def test_submit_speaking_records_attempt(practice: PracticeService, speech: SpeechService) -> None:
    practice.start(TaskType.SPEAKING)
    word = practice.current_word

    attempt = await practice.submit_speaking(b"audio")

    speech.process_recording.assert_awaited_once_with(b"audio", "学习", "xué xí", recording_url=None)
    assert attempt.score == 90
    assert practice.has_attempted
    assert practice.last_attempt is attempt
    assert word.tasks.speaking.completed
    assert word.tasks.speaking.last_score == 90
    assert word.strength == 55
    assert practice.tasks.current_session.words_completed == [word.id]
    assert practice.tasks.current_session.average_score == 90


@pytest.mark.asyncio
async def test_submit_without_session_raises(practice: PracticeService) -> None:
    with pytest.raises(RuntimeError):
        await practice.submit_speaking(b"audio")


@pytest.mark.asyncio
async def test_word_is_recorded_once(practice: PracticeService, speech: SpeechService) -> None:
    practice.start(TaskType.SPEAKING)
    await practice.submit_speaking(b"audio")

    with pytest.raises(RuntimeError, match="already answered"):
        await practice.submit_speaking(b"audio again")
    with pytest.raises(RuntimeError, match="already answered"):
        practice.submit_result(score=40)

    speech.process_recording.assert_awaited_once()
    session = practice.tasks.current_session
    assert session.words_completed == ["3"]
    assert session.average_score == 90
    assert practice.finish().words_completed == ["3"]
    assert practice.users.recent_activities[0].text == "Completed speaking practice with 1 words"


def test_next_word_resets_state(practice: PracticeService) -> None:
    practice.start(TaskType.WRITING)
    practice.submit_result(score=80)
    practice.show_pinyin = True

    next_word = practice.next_word()

    assert next_word.chinese == "谢谢"
    assert not practice.has_attempted
    assert not practice.show_pinyin
    assert practice.last_attempt is None
    assert practice.progress == (2, 2)
    assert practice.next_word() is None


def test_submit_result_for_reading(practice: PracticeService) -> None:
    practice.start(TaskType.READING)
    word = practice.submit_result(correct=True)

    assert word.tasks.reading.completed
    assert word.tasks.reading.times_encountered == 6
    assert practice.tasks.current_session.words_completed == [word.id]


def test_incorrect_result_does_not_complete(practice: PracticeService) -> None:
    practice.start(TaskType.READING)
    word = practice.submit_result(correct=False)

    assert not word.tasks.reading.completed
    assert word.strength == 40
    assert practice.tasks.current_session.words_completed == []


def test_finish_updates_user_stats(practice: PracticeService) -> None:
    users = practice.users
    tasks_before = users.stats.tasks_completed
    words_before = users.stats.words_learned

    practice.start(TaskType.WRITING)
    practice.submit_result(score=85)
    practice.next_word()
    practice.submit_result(score=50)
    session = practice.finish()

    assert session.completed
    assert session.average_score == pytest.approx(67.5)
    assert users.stats.tasks_completed == tasks_before + 1
    assert users.stats.words_learned == words_before + 1
    assert users.recent_activities[0].type == TaskType.WRITING
    assert users.recent_activities[0].score == "68%"
    assert practice.tasks.session_history == [session]
    assert practice.current_word is None


def test_finish_without_answers_keeps_stats(practice: PracticeService) -> None:
    before = practice.users.stats.tasks_completed
    practice.start(TaskType.WRITING)
    practice.finish()
    assert practice.users.stats.tasks_completed == before
    assert practice.finish() is None


def test_read_story_counts_encounters(practice: PracticeService) -> None:
    word = practice.vocabulary.add_word("学生", "student")

    story = practice.read_story("1")

    assert story.completed
    assert word.tasks.reading.times_encountered == 1
    assert word.strength == 10
    assert practice.users.recent_activities[0].text == 'Read story "小明的一天"'
    assert practice.read_story("missing") is None


def test_practice_character(practice: PracticeService) -> None:
    assert not practice.practice_character("山", 70)
    assert practice.practice_character("山", 82)
    assert practice.tasks.get_character_by_text("山").attempts == 2
    assert not practice.practice_character("龙", 99)
