"""Service for tracking vocabulary strength and review scheduling."""
import logging
from datetime import datetime, timedelta, UTC
from typing import Dict, Iterable, List, Optional, Union
from uuid import uuid4

from mandarinpath import monitoring
from mandarinpath.config import settings
from mandarinpath.models.vocabulary_models import (
    Difficulty,
    ReadingProgress,
    SpeakingProgress,
    TaskType,
    Word,
    WordDefinition,
    WordExample,
    WordInfo,
    WordTasks,
    WritingProgress,
)

logger = logging.getLogger(__name__)

# Stories available for reading until a story service reports otherwise
DEFAULT_READING_READY = 3


def default_words() -> List[Word]:
    """Starter vocabulary for a new learner."""
    return [
        Word(
            id="1",
            chinese="你好",
            pinyin="nǐ hǎo",
            definition="hello",
            difficulty=Difficulty.BEGINNER,
            added_date=datetime(2024, 1, 15, tzinfo=UTC),
            last_reviewed=datetime(2024, 1, 20, tzinfo=UTC),
            strength=85,
            correct_attempts=8,
            total_attempts=10,
            tasks=WordTasks(
                speaking=SpeakingProgress(completed=True, last_score=92, attempts=3),
                reading=ReadingProgress(completed=True, times_encountered=15),
                writing=WritingProgress(completed=True, last_score=88, attempts=2),
            ),
        ),
        Word(
            id="2",
            chinese="谢谢",
            pinyin="xiè xiè",
            definition="thank you",
            difficulty=Difficulty.BEGINNER,
            added_date=datetime(2024, 1, 16, tzinfo=UTC),
            last_reviewed=datetime(2024, 1, 21, tzinfo=UTC),
            strength=78,
            correct_attempts=7,
            total_attempts=9,
            tasks=WordTasks(
                speaking=SpeakingProgress(completed=True, last_score=85, attempts=2),
                reading=ReadingProgress(completed=True, times_encountered=12),
                writing=WritingProgress(completed=False, attempts=1),
            ),
        ),
        Word(
            id="3",
            chinese="学习",
            pinyin="xué xí",
            definition="to study/learn",
            difficulty=Difficulty.INTERMEDIATE,
            added_date=datetime(2024, 1, 18, tzinfo=UTC),
            strength=45,
            correct_attempts=3,
            total_attempts=7,
            tasks=WordTasks(
                speaking=SpeakingProgress(completed=False, attempts=2),
                reading=ReadingProgress(completed=False, times_encountered=5),
                writing=WritingProgress(completed=False, attempts=0),
            ),
        ),
    ]


def default_word_database() -> Dict[str, WordInfo]:
    """Dictionary entries keyed by the Chinese text."""
    return {
        "你好": WordInfo(
            id="1",
            chinese="你好",
            pinyin="nǐ hǎo",
            definition="hello",
            difficulty=Difficulty.BEGINNER,
            added_date=datetime(2024, 1, 15, tzinfo=UTC),
            strength=85,
            correct_attempts=8,
            total_attempts=10,
            tasks=WordTasks(
                speaking=SpeakingProgress(completed=True, last_score=92, attempts=3),
                reading=ReadingProgress(completed=True, times_encountered=15),
                writing=WritingProgress(completed=True, last_score=88, attempts=2),
            ),
            definitions=[WordDefinition(part_of_speech="greeting", meaning="hello; hi")],
            examples=[
                WordExample(
                    chinese="你好，我叫小明。",
                    pinyin="Nǐ hǎo, wǒ jiào Xiǎo Míng.",
                    english="Hello, my name is Xiao Ming.",
                )
            ],
        ),
    }


def calculate_next_review(strength: int, now: Optional[datetime] = None) -> datetime:
    """Stronger words wait longer: one extra day per ten points of strength."""
    now = now or datetime.now(UTC)
    return now + timedelta(days=strength // 10 + 1)


class VocabularyService:
    """In-memory store of the learner's words."""

    def __init__(
        self,
        words: Optional[List[Word]] = None,
        word_database: Optional[Dict[str, WordInfo]] = None,
    ):
        """Initialize the store, seeding it with the starter vocabulary by default."""
        self.words: List[Word] = default_words() if words is None else list(words)
        self.word_database: Dict[str, WordInfo] = (
            default_word_database() if word_database is None else dict(word_database)
        )
        self.reading_ready = DEFAULT_READING_READY

    def reset(self) -> None:
        """Restore the starter vocabulary."""
        self.words = default_words()
        self.word_database = default_word_database()

    @property
    def total_words(self) -> int:
        return len(self.words)

    @property
    def words_by_difficulty(self) -> Dict[str, int]:
        counts = {difficulty.value: 0 for difficulty in Difficulty}
        for word in self.words:
            counts[Difficulty(word.difficulty).value] += 1
        return counts

    def words_ready_for_review(self, now: Optional[datetime] = None) -> List[Word]:
        """Words never scheduled or whose review date has passed."""
        now = now or datetime.now(UTC)
        return [w for w in self.words if w.next_review is None or w.next_review <= now]

    @property
    def task_stats(self) -> Dict[str, Dict[str, int]]:
        stats = {}
        for task_type in TaskType:
            completed = sum(1 for w in self.words if w.tasks.for_type(task_type).completed)
            stats[task_type.value] = {
                "ready": self.total_words - completed,
                "completed": completed,
            }
        stats[TaskType.READING.value]["ready"] = self.reading_ready
        return stats

    @property
    def weak_words(self) -> List[Word]:
        threshold = settings.learning.weak_word_threshold
        return [w for w in self.words if w.strength < threshold]

    def get_word(self, word_id: str) -> Optional[Word]:
        """Get a word by its ID."""
        return next((w for w in self.words if w.id == word_id), None)

    def add_word(
        self,
        chinese: str,
        definition: str,
        difficulty: Union[Difficulty, str] = Difficulty.BEGINNER,
        pinyin: Optional[str] = None,
    ) -> Word:
        """Add a new word with no progress."""
        word = Word(
            id=uuid4().hex,
            chinese=chinese,
            pinyin=pinyin,
            definition=definition,
            difficulty=Difficulty(difficulty),
        )
        self.words.append(word)
        logger.info(f"Added word {chinese} ({word.id})")
        return word

    def add_words(self, words_data: Iterable[Dict[str, str]]) -> List[Word]:
        """Add several words at once; each item takes add_word's keyword arguments."""
        return [self.add_word(**data) for data in words_data]

    def update_word_strength(
        self, word_id: str, correct: bool, task_type: Union[TaskType, str]
    ) -> Optional[Word]:
        """Record an attempt and reschedule the word's next review."""
        word = self.get_word(word_id)
        if not word:
            logger.debug(f"Ignoring strength update for unknown word {word_id}")
            return None

        task_type = TaskType(task_type)
        learning = settings.learning
        now = datetime.now(UTC)

        word.total_attempts += 1
        if correct:
            word.correct_attempts += 1
            word.strength = min(learning.strength_max, word.strength + learning.correct_step)
        else:
            word.strength = max(0, word.strength - learning.incorrect_step)

        word.last_reviewed = now

        progress = word.tasks.for_type(task_type)
        if isinstance(progress, ReadingProgress):
            progress.times_encountered += 1
        else:
            progress.attempts += 1

        word.next_review = calculate_next_review(word.strength, now)
        monitoring.word_reviews.labels(task_type=task_type.value, correct=str(correct).lower()).inc()
        return word

    def complete_task(
        self, word_id: str, task_type: Union[TaskType, str], score: Optional[float] = None
    ) -> Optional[Word]:
        """Mark a task done for a word and count it as an attempt.

        A score below the passing score counts as an incorrect attempt; no
        score (or a zero score) counts as correct.
        """
        word = self.get_word(word_id)
        if not word:
            return None

        task_type = TaskType(task_type)
        progress = word.tasks.for_type(task_type)
        progress.completed = True
        if score is not None and task_type in (TaskType.SPEAKING, TaskType.WRITING):
            progress.last_score = score

        correct = score >= settings.learning.passing_score if score else True
        return self.update_word_strength(word_id, correct, task_type)

    def get_word_info(self, chinese: str) -> Optional[WordInfo]:
        return self.word_database.get(chinese)

    def search_words(self, query: str) -> List[Word]:
        """Match Chinese text exactly as typed, pinyin and definition case-insensitively."""
        lower_query = query.lower()
        return [
            w for w in self.words
            if query in w.chinese
            or (w.pinyin is not None and lower_query in w.pinyin.lower())
            or lower_query in w.definition.lower()
        ]

    def get_words_for_task(
        self, task_type: Union[TaskType, str], limit: Optional[int] = None
    ) -> List[Word]:
        """Pick words to practise: untried words first, then the weakest."""
        task_type = TaskType(task_type)
        if limit is None:
            limit = settings.learning.words_per_task

        pending = [w for w in self.words if not w.tasks.for_type(task_type).completed]
        # sorted() is stable, so ties keep insertion order
        pending = sorted(
            pending,
            key=lambda w: (w.tasks.attempts_for(task_type) != 0, w.strength),
        )
        return pending[:limit]

    def remove_word(self, word_id: str) -> bool:
        """Remove a word; returns False when it does not exist."""
        word = self.get_word(word_id)
        if not word:
            return False
        self.words.remove(word)
        return True
