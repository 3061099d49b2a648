"""Models for vocabulary progress."""
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import List, Optional, Union


class TaskType(str, Enum):
    """Kinds of practice a word can take part in."""
    SPEAKING = "speaking"
    READING = "reading"
    WRITING = "writing"


class Difficulty(str, Enum):
    """Difficulty levels for words and stories."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass
class SpeakingProgress:
    """Per-word progress on speaking tasks."""
    completed: bool = False
    last_score: Optional[float] = None
    attempts: int = 0


@dataclass
class ReadingProgress:
    """Per-word progress on reading tasks."""
    completed: bool = False
    times_encountered: int = 0


@dataclass
class WritingProgress:
    """Per-word progress on writing tasks."""
    completed: bool = False
    last_score: Optional[float] = None
    attempts: int = 0


@dataclass
class WordTasks:
    """Progress of a word across all task types."""
    speaking: SpeakingProgress = field(default_factory=SpeakingProgress)
    reading: ReadingProgress = field(default_factory=ReadingProgress)
    writing: WritingProgress = field(default_factory=WritingProgress)

    def for_type(
        self, task_type: Union[TaskType, str]
    ) -> Union[SpeakingProgress, ReadingProgress, WritingProgress]:
        return getattr(self, TaskType(task_type).value)

    def attempts_for(self, task_type: Union[TaskType, str]) -> int:
        """Reading counts encounters, the other tasks count attempts."""
        progress = self.for_type(task_type)
        if isinstance(progress, ReadingProgress):
            return progress.times_encountered
        return progress.attempts


@dataclass
class Word:
    """A vocabulary word and how well the learner knows it."""
    id: str
    chinese: str
    definition: str
    difficulty: Difficulty = Difficulty.BEGINNER
    pinyin: Optional[str] = None
    added_date: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None
    strength: int = 0  # 0-100
    correct_attempts: int = 0
    total_attempts: int = 0
    tasks: WordTasks = field(default_factory=WordTasks)


@dataclass
class WordDefinition:
    part_of_speech: str
    meaning: str


@dataclass
class WordExample:
    chinese: str
    pinyin: str
    english: str


@dataclass
class WordInfo(Word):
    """Dictionary entry for a word, with definitions and example sentences."""
    definitions: List[WordDefinition] = field(default_factory=list)
    examples: List[WordExample] = field(default_factory=list)
