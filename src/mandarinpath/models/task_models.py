"""Models for practice sessions, stories and characters."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from mandarinpath.models.vocabulary_models import Difficulty, TaskType


@dataclass
class TaskSession:
    """A bounded practice interval for one task type."""
    id: str
    type: TaskType
    start_time: datetime
    total_words: int
    end_time: Optional[datetime] = None
    words_completed: List[str] = field(default_factory=list)
    average_score: Optional[float] = None
    completed: bool = False

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()


@dataclass
class StoryWord:
    chinese: str
    pinyin: str
    is_known: Optional[bool] = None
    is_learning: Optional[bool] = None


@dataclass
class StoryParagraph:
    words: List[StoryWord]
    translation: str


@dataclass
class Story:
    """A graded reader story."""
    id: str
    title: str
    difficulty: Difficulty
    word_count: int
    paragraphs: List[StoryParagraph] = field(default_factory=list)
    completed: bool = False
    completed_at: Optional[datetime] = None


@dataclass
class Character:
    """A character practised in writing tasks."""
    chinese: str
    pinyin: str
    meaning: str
    strokes: int
    stroke_order: Optional[List[str]] = None
    completed: bool = False
    best_score: Optional[float] = None
    attempts: int = 0
