"""Main application object wiring the client services together."""
import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from mandarinpath.config import ensure_directories, settings
from mandarinpath.models.base import init_db, SessionLocal
from mandarinpath.monitoring import start_monitoring
from mandarinpath.services.api_client import ApiClient
from mandarinpath.services.auth_service import AuthService
from mandarinpath.services.practice_service import PracticeService
from mandarinpath.services.speech_service import SpeechService
from mandarinpath.services.storage import LocalStorage
from mandarinpath.services.task_service import TaskService
from mandarinpath.services.user_service import UserService
from mandarinpath.services.vocabulary_service import VocabularyService


class MandarinPath:
    """Main application class."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize the application."""
        self.transport = transport
        self.db: Optional[Session] = None
        self.api_client: Optional[ApiClient] = None
        self.auth: Optional[AuthService] = None
        self.speech: Optional[SpeechService] = None
        self.vocabulary = VocabularyService()
        self.tasks = TaskService()
        self.users = UserService()
        self.practice: Optional[PracticeService] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    async def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        try:
            ensure_directories()
            init_db()
            self.db = SessionLocal()
            self.logger.info("Database initialized")

            self.api_client = ApiClient(transport=self.transport)
            self.auth = AuthService(self.api_client, LocalStorage(self.db))
            self.speech = SpeechService(self.api_client)
            self.practice = PracticeService(self.vocabulary, self.tasks, self.users, self.speech)
            self.logger.info(f"API client created for {self.api_client.base_url}")

            if settings.monitoring.enabled:
                start_monitoring(settings.monitoring.port)
                self.logger.info(f"Metrics served on port {settings.monitoring.port}")

            self.running = True

        except Exception as e:
            self.logger.error("Failed to start application: %s", str(e))
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the application."""
        if self.api_client:
            await self.api_client.aclose()
            self.api_client = None
            self.logger.info("API client closed")

        if self.db:
            self.db.close()
            self.db = None
            self.logger.info("Database session closed")

        self.running = False

    async def __aenter__(self) -> "MandarinPath":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
