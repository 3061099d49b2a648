"""Service for practice sessions, reading stories and writing characters."""
import logging
from dataclasses import replace
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from mandarinpath import monitoring
from mandarinpath.config import settings
from mandarinpath.models.task_models import (
    Character,
    Story,
    StoryParagraph,
    StoryWord,
    TaskSession,
)
from mandarinpath.models.vocabulary_models import Difficulty, TaskType

logger = logging.getLogger(__name__)


def default_stories() -> List[Story]:
    """Starter graded readers."""
    return [
        Story(
            id="1",
            title="小明的一天",
            difficulty=Difficulty.BEGINNER,
            word_count=156,
            paragraphs=[
                StoryParagraph(
                    words=[
                        StoryWord("小明", "Xiǎo Míng", is_known=True),
                        StoryWord("是", "shì", is_known=True),
                        StoryWord("一个", "yí gè", is_known=True),
                        StoryWord("学生", "xué shēng", is_learning=True),
                        StoryWord("。", "。", is_known=True),
                    ],
                    translation="Xiao Ming is a student.",
                )
            ],
        ),
        Story(
            id="2",
            title="去商店",
            difficulty=Difficulty.BEGINNER,
            word_count=128,
            paragraphs=[
                StoryParagraph(
                    words=[
                        StoryWord("我", "wǒ", is_known=True),
                        StoryWord("要", "yào", is_known=True),
                        StoryWord("去", "qù", is_learning=True),
                        StoryWord("商店", "shāng diàn", is_learning=True),
                        StoryWord("。", "。", is_known=True),
                    ],
                    translation="I want to go to the store.",
                )
            ],
        ),
        Story(
            id="3",
            title="中国菜",
            difficulty=Difficulty.INTERMEDIATE,
            word_count=234,
            paragraphs=[
                StoryParagraph(
                    words=[
                        StoryWord("中国菜", "zhōng guó cài"),
                        StoryWord("很", "hěn", is_known=True),
                        StoryWord("好吃", "hǎo chī", is_learning=True),
                        StoryWord("。", "。", is_known=True),
                    ],
                    translation="Chinese food is very delicious.",
                )
            ],
        ),
    ]


def default_characters() -> List[Character]:
    """Starter characters for writing practice."""
    return [
        Character("人", "rén", "person", strokes=2),
        Character("大", "dà", "big", strokes=3),
        Character("小", "xiǎo", "small", strokes=3),
        Character("山", "shān", "mountain", strokes=3),
        Character("水", "shuǐ", "water", strokes=4),
    ]


class TaskService:
    """In-memory store of sessions, stories and characters."""

    def __init__(self):
        """Initialize the store with the starter content."""
        self.current_session: Optional[TaskSession] = None
        self.stories: List[Story] = default_stories()
        self.characters: List[Character] = default_characters()
        self.session_history: List[TaskSession] = []

    def reset(self) -> None:
        """Drop all progress and restore the starter content."""
        self.current_session = None
        self.stories = default_stories()
        self.characters = default_characters()
        self.session_history = []

    @property
    def available_stories(self) -> List[Story]:
        return [s for s in self.stories if not s.completed]

    @property
    def completed_stories(self) -> List[Story]:
        return [s for s in self.stories if s.completed]

    @property
    def available_characters(self) -> List[Character]:
        return [c for c in self.characters if not c.completed]

    @property
    def completed_characters(self) -> List[Character]:
        return [c for c in self.characters if c.completed]

    @property
    def task_progress(self) -> Dict[str, Dict[str, int]]:
        return {
            "stories": {
                "total": len(self.stories),
                "completed": len(self.completed_stories),
                "available": len(self.available_stories),
            },
            "characters": {
                "total": len(self.characters),
                "completed": len(self.completed_characters),
                "available": len(self.available_characters),
            },
        }

    @property
    def is_session_active(self) -> bool:
        return self.current_session is not None and not self.current_session.completed

    def start_session(
        self, task_type: Union[TaskType, str], total_words: Optional[int] = None
    ) -> TaskSession:
        """Start a new session, ending the active one first."""
        if self.is_session_active:
            self.end_session()

        task_type = TaskType(task_type)
        self.current_session = TaskSession(
            id=uuid4().hex,
            type=task_type,
            start_time=datetime.now(UTC),
            total_words=total_words if total_words is not None else settings.learning.words_per_session,
        )
        monitoring.task_sessions.labels(task_type=task_type.value).inc()
        logger.info(f"Started {task_type.value} session {self.current_session.id}")
        return self.current_session

    def end_session(self) -> Optional[TaskSession]:
        """End the active session.

        Only sessions with at least one completed word are kept in history.
        """
        session = self.current_session
        if not session:
            return None

        session.end_time = datetime.now(UTC)
        session.completed = True

        if session.words_completed:
            self.session_history.append(replace(session, words_completed=list(session.words_completed)))
            monitoring.session_duration.labels(task_type=session.type.value).observe(
                session.duration_seconds
            )

        self.current_session = None
        logger.info(f"Ended session {session.id} with {len(session.words_completed)} words")
        return session

    def add_word_to_session(self, word_id: str, score: Optional[float] = None) -> None:
        """Record a completed word, folding its score into the running average."""
        session = self.current_session
        if not session:
            return

        session.words_completed.append(word_id)

        if score is not None:
            count = len(session.words_completed)
            current_avg = session.average_score or 0
            session.average_score = (current_avg * (count - 1) + score) / count

    def complete_story(self, story_id: str) -> None:
        story = self.get_story_by_id(story_id)
        if story:
            story.completed = True
            story.completed_at = datetime.now(UTC)

    def complete_character(self, chinese: str, score: float) -> None:
        """Record a writing attempt; passing scores complete the character."""
        character = self.get_character_by_text(chinese)
        if not character:
            return

        character.attempts += 1
        if not character.best_score or score > character.best_score:
            character.best_score = score
        if score >= settings.learning.character_passing_score:
            character.completed = True

    def get_story_by_id(self, story_id: str) -> Optional[Story]:
        return next((s for s in self.stories if s.id == story_id), None)

    def get_character_by_text(self, chinese: str) -> Optional[Character]:
        return next((c for c in self.characters if c.chinese == chinese), None)

    def reset_character_progress(self, chinese: str) -> None:
        character = self.get_character_by_text(chinese)
        if character:
            character.completed = False
            character.best_score = None
            character.attempts = 0

    def get_session_stats(self, days: Optional[int] = None) -> Dict[str, Any]:
        """Summarise sessions started within the last ``days`` days."""
        if days is None:
            days = settings.learning.session_stats_days
        cutoff = datetime.now(UTC) - timedelta(days=days)
        recent = [s for s in self.session_history if s.start_time > cutoff]

        average_score = 0.0
        if recent:
            average_score = sum(s.average_score or 0 for s in recent) / len(recent)

        return {
            "total_sessions": len(recent),
            "total_words": sum(len(s.words_completed) for s in recent),
            "average_score": average_score,
            "sessions_by_type": {
                task_type.value: sum(1 for s in recent if s.type == task_type)
                for task_type in TaskType
            },
        }

    def add_story(
        self,
        title: str,
        difficulty: Union[Difficulty, str],
        word_count: int,
        paragraphs: Optional[List[StoryParagraph]] = None,
    ) -> Story:
        story = Story(
            id=uuid4().hex,
            title=title,
            difficulty=Difficulty(difficulty),
            word_count=word_count,
            paragraphs=paragraphs or [],
        )
        self.stories.append(story)
        return story

    def add_character(
        self,
        chinese: str,
        pinyin: str,
        meaning: str,
        strokes: int,
        stroke_order: Optional[List[str]] = None,
    ) -> Character:
        character = Character(chinese, pinyin, meaning, strokes, stroke_order=stroke_order)
        self.characters.append(character)
        return character
