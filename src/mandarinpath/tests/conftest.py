"""Test configuration."""
import json
import os
import tempfile
from pathlib import Path
from typing import Callable, Generator

import httpx
import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DATA_DIR", str(Path(tempfile.gettempdir()) / "mandarinpath-test-data"))
os.environ.setdefault("API_URL", "http://testserver/api")

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from sqlalchemy.orm import Session

from mandarinpath.config import ensure_directories
from mandarinpath.models.base import Base, SessionLocal, engine, init_db
from mandarinpath.services.api_client import ApiClient
from mandarinpath.services.storage import LocalStorage

BASE_URL = "http://testserver/api"


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment before each test."""
    ensure_directories()
    yield


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage(db: Session) -> LocalStorage:
    return LocalStorage(db)


def json_response(status: int, body, cookies: dict = None) -> httpx.Response:
    """Build a JSON response, optionally setting cookies."""
    headers = [("content-type", "application/json")]
    for name, value in (cookies or {}).items():
        headers.append(("set-cookie", f"{name}={value}; Path=/"))
    return httpx.Response(status, headers=headers, content=json.dumps(body).encode())


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], ApiClient]:
    """Factory for an ApiClient whose requests go to the given handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> ApiClient:
        return ApiClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))

    return factory
