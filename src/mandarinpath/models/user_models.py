"""Models for the signed-in user and their progress."""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional

from mandarinpath.models.vocabulary_models import TaskType


@dataclass
class User:
    """Account as returned by the backend."""
    id: str
    email: str
    created_at: str
    display_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            email=data["email"],
            created_at=data.get("created_at", ""),
            display_name=data.get("display_name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AuthResponse:
    """Tokens and user returned by register and login."""
    user: User
    access_token: str
    refresh_token: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthResponse":
        return cls(
            user=User.from_dict(data["user"]),
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
        )


@dataclass
class UserStats:
    streak: int = 0
    words_this_week: int = 0
    total_words: int = 0
    minutes_today: float = 0
    tasks_completed: int = 0
    total_hours: float = 0.0
    days_streak: int = 0
    words_learned: int = 0


@dataclass
class UserPreferences:
    speaking_tasks: bool = True
    reading_tasks: bool = True
    writing_tasks: bool = False
    show_pinyin: bool = True

    def enabled_tasks(self) -> list[TaskType]:
        """Task types the learner has switched on."""
        enabled = []
        if self.speaking_tasks:
            enabled.append(TaskType.SPEAKING)
        if self.reading_tasks:
            enabled.append(TaskType.READING)
        if self.writing_tasks:
            enabled.append(TaskType.WRITING)
        return enabled


@dataclass
class RecentActivity:
    id: int
    icon: str
    text: str
    time: str
    score: str
    type: TaskType = field(default=TaskType.SPEAKING)
