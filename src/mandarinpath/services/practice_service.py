"""Practice service: drives a session over the learner's words."""
import logging
from typing import List, Optional, Set, Tuple, Union

from mandarinpath.config import settings
from mandarinpath.models.speech_models import SpeakingAttempt
from mandarinpath.models.task_models import Story, TaskSession
from mandarinpath.models.vocabulary_models import TaskType, Word
from mandarinpath.services.speech_service import SpeechService
from mandarinpath.services.task_service import TaskService
from mandarinpath.services.user_service import UserService
from mandarinpath.services.vocabulary_service import VocabularyService

logger = logging.getLogger(__name__)

ACTIVITY_ICONS = {
    TaskType.SPEAKING: "🗣️",
    TaskType.READING: "📖",
    TaskType.WRITING: "✍️",
}


class PracticeService:
    """Walks the learner through the words picked for one task type."""

    def __init__(
        self,
        vocabulary: VocabularyService,
        tasks: TaskService,
        users: UserService,
        speech: Optional[SpeechService] = None,
    ):
        self.vocabulary = vocabulary
        self.tasks = tasks
        self.users = users
        self.speech = speech
        self.task_type: Optional[TaskType] = None
        self.words: List[Word] = []
        self.index = 0
        self.has_attempted = False
        self.show_pinyin = False
        self.last_attempt: Optional[SpeakingAttempt] = None
        self._passed: Set[str] = set()

    def start(self, task_type: Union[TaskType, str], limit: Optional[int] = None) -> Optional[TaskSession]:
        """Pick words for the task and open a session; None when nothing is due."""
        task_type = TaskType(task_type)
        words = self.vocabulary.get_words_for_task(task_type, limit)
        if not words:
            logger.info(f"No words to practise for {task_type.value}")
            return None

        self.task_type = task_type
        self.words = words
        self.index = 0
        self._passed = set()
        self._reset_word_state()
        return self.tasks.start_session(task_type, total_words=len(words))

    @property
    def current_word(self) -> Optional[Word]:
        if self.index < len(self.words):
            return self.words[self.index]
        return None

    @property
    def progress(self) -> Tuple[int, int]:
        """(1-based position, total words) for display."""
        return min(self.index + 1, len(self.words)), len(self.words)

    def _require_word(self) -> Word:
        word = self.current_word
        if word is None or not self.tasks.is_session_active:
            raise RuntimeError("No practice in progress")
        if self.has_attempted:
            raise RuntimeError(f"{word.chinese} was already answered, move to the next word")
        return word

    async def submit_speaking(
        self, audio: bytes, recording_url: Optional[str] = None
    ) -> SpeakingAttempt:
        """Evaluate a recording of the current word and record the result."""
        if self.speech is None:
            raise RuntimeError("Speech evaluation is not configured")
        word = self._require_word()
        if self.task_type != TaskType.SPEAKING:
            raise RuntimeError(f"Current practice is {self.task_type.value}, not speaking")

        attempt = await self.speech.process_recording(
            audio, word.chinese, word.pinyin, recording_url=recording_url
        )
        self._record(word, TaskType.SPEAKING, attempt.score)
        self.last_attempt = attempt
        self.has_attempted = True
        return attempt

    def submit_result(self, correct: bool = True, score: Optional[float] = None) -> Word:
        """Record a reading or writing answer for the current word."""
        word = self._require_word()
        if score is not None:
            self._record(word, self.task_type, score)
        elif correct:
            self.vocabulary.complete_task(word.id, self.task_type)
            self.tasks.add_word_to_session(word.id)
            self._passed.add(word.id)
        else:
            self.vocabulary.update_word_strength(word.id, False, self.task_type)
        self.has_attempted = True
        return word

    def _record(self, word: Word, task_type: TaskType, score: float) -> None:
        self.vocabulary.complete_task(word.id, task_type, score)
        self.tasks.add_word_to_session(word.id, score)
        if score >= settings.learning.passing_score:
            self._passed.add(word.id)

    def next_word(self) -> Optional[Word]:
        """Advance to the next word, clearing the previous attempt."""
        if self.index < len(self.words):
            self.index += 1
        self._reset_word_state()
        return self.current_word

    def _reset_word_state(self) -> None:
        self.has_attempted = False
        self.show_pinyin = False
        self.last_attempt = None

    def finish(self) -> Optional[TaskSession]:
        """End the session and credit the learner's stats."""
        session = self.tasks.end_session()
        if session is None:
            return None

        if session.words_completed:
            self.users.complete_task()
            self.users.add_words_learned(len(self._passed))
            self.users.add_study_time((session.duration_seconds or 0) / 60)
            score = f"{round(session.average_score)}%" if session.average_score is not None else "Complete"
            self.users.add_recent_activity(
                ACTIVITY_ICONS[session.type],
                f"Completed {session.type.value} practice with {len(session.words_completed)} words",
                "just now",
                score,
                session.type,
            )

        self.words = []
        self.index = 0
        self._reset_word_state()
        return session

    def read_story(self, story_id: str) -> Optional[Story]:
        """Complete a story and count an encounter for each known vocabulary word in it."""
        story = self.tasks.get_story_by_id(story_id)
        if story is None:
            return None

        self.tasks.complete_story(story_id)
        text = {w.chinese for p in story.paragraphs for w in p.words}
        for word in self.vocabulary.words:
            if word.chinese in text:
                self.vocabulary.update_word_strength(word.id, True, TaskType.READING)

        self.users.complete_task()
        self.users.add_recent_activity(
            ACTIVITY_ICONS[TaskType.READING], f'Read story "{story.title}"', "just now", "Complete", TaskType.READING
        )
        return story

    def practice_character(self, chinese: str, score: float) -> bool:
        """Record a writing attempt for a character; returns whether it is now completed."""
        character = self.tasks.get_character_by_text(chinese)
        if character is None:
            return False

        self.tasks.complete_character(chinese, score)
        self.users.add_recent_activity(
            ACTIVITY_ICONS[TaskType.WRITING],
            f'Practiced writing character "{chinese}"',
            "just now",
            f"{round(score)}%",
            TaskType.WRITING,
        )
        return character.completed
