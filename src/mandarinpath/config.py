"""Configuration settings for the client."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
MEDIA_DIR = DATA_DIR / "media"
PRONUNCIATIONS_DIR = MEDIA_DIR / "pronunciations"

# Learning settings
STRENGTH_MAX = 100
STRENGTH_CORRECT_STEP = 10
STRENGTH_INCORRECT_STEP = 5
WEAK_WORD_THRESHOLD = 60  # words below this strength need extra practice
PASSING_SCORE = 70
CHARACTER_PASSING_SCORE = 80
RECENT_ACTIVITY_LIMIT = 10


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        MEDIA_DIR,
        PRONUNCIATIONS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    media_dir: Path = MEDIA_DIR
    pronunciations_dir: Path = PRONUNCIATIONS_DIR


@dataclass
class ApiSettings:
    """Backend API settings."""
    base_url: str = os.getenv("API_URL", "http://localhost:3001/api")
    timeout: float = float(os.getenv("API_TIMEOUT", "10.0"))
    debug: bool = os.getenv("API_DEBUG", "false").lower() == "true"


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///mandarinpath.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class LearningSettings:
    """Learning process settings."""
    words_per_task: int = int(os.getenv("WORDS_PER_TASK", "10"))
    words_per_session: int = int(os.getenv("WORDS_PER_SESSION", "10"))
    session_stats_days: int = int(os.getenv("SESSION_STATS_DAYS", "7"))
    strength_max: int = STRENGTH_MAX
    correct_step: int = STRENGTH_CORRECT_STEP
    incorrect_step: int = STRENGTH_INCORRECT_STEP
    weak_word_threshold: int = WEAK_WORD_THRESHOLD
    passing_score: int = PASSING_SCORE
    character_passing_score: int = CHARACTER_PASSING_SCORE
    recent_activity_limit: int = RECENT_ACTIVITY_LIMIT


@dataclass
class SpeechSettings:
    """Speech evaluation settings."""
    fallback_score: int = int(os.getenv("SPEECH_FALLBACK_SCORE", "75"))
    language: str = os.getenv("SPEECH_LANGUAGE", "cn")
    core: str = os.getenv("SPEECH_CORE", "sent")
    audio_encoding: str = os.getenv("SPEECH_AUDIO_ENCODING", "lame")
    sample_rate: int = int(os.getenv("SPEECH_SAMPLE_RATE", "16000"))
    channels: int = int(os.getenv("SPEECH_CHANNELS", "1"))
    bit_depth: int = int(os.getenv("SPEECH_BIT_DEPTH", "16"))
    tts_language: str = os.getenv("TTS_LANGUAGE", "zh-CN")


@dataclass
class MonitoringSettings:
    """Prometheus settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_api_settings() -> ApiSettings:
    """Get API settings."""
    return ApiSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_speech_settings() -> SpeechSettings:
    """Get speech settings."""
    return SpeechSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    api: ApiSettings = field(default_factory=get_api_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    speech: SpeechSettings = field(default_factory=get_speech_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if not self.api.base_url.startswith(("http://", "https://")):
            raise ValueError("API_URL must be an http(s) URL")

        if self.api.timeout <= 0:
            raise ValueError("API_TIMEOUT must be positive")

        if self.learning.words_per_task < 1:
            raise ValueError("WORDS_PER_TASK must be positive")

        if self.learning.words_per_session < 1:
            raise ValueError("WORDS_PER_SESSION must be positive")

        if not 0 <= self.speech.fallback_score <= 100:
            raise ValueError("SPEECH_FALLBACK_SCORE must be between 0 and 100")


# Create global settings instance
settings = Settings()
settings.validate()
