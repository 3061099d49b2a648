"""Authentication service with username/password authentication."""
import json
import logging
import re
from typing import Any, Optional, Tuple

from mandarinpath import monitoring
from mandarinpath.models.user_models import AuthResponse, User
from mandarinpath.services.api_client import ApiClient, ApiError
from mandarinpath.services.storage import LocalStorage

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
USER_KEY = "user"
MIN_PASSWORD_LENGTH = 8
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class NotAuthenticatedError(Exception):
    """Raised when an operation needs a signed-in user."""


class AuthService:
    """Keeps the current session and mirrors it into local storage."""

    def __init__(self, api_client: ApiClient, storage: LocalStorage):
        """Initialize the service and restore any stored session."""
        self.api_client = api_client
        self.storage = storage
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.user: Optional[User] = None

        # Requests made through the client carry our bearer token
        self.api_client.token_provider = self.get_access_token
        self._load_tokens_from_storage()

    async def register(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> AuthResponse:
        """Register a new user and sign them in."""
        await self.api_client.initialize_csrf()

        data = await self.api_client.post(
            "/auth/register",
            {"email": email, "password": password, "display_name": display_name},
        )
        response = AuthResponse.from_dict(data)
        self._set_session(response)
        logger.info(f"Registered user {response.user.id}")
        return response

    async def login(self, email: str, password: str) -> AuthResponse:
        """Login with email and password."""
        await self.api_client.initialize_csrf()

        data = await self.api_client.post("/auth/login", {"email": email, "password": password})
        response = AuthResponse.from_dict(data)
        self._set_session(response)
        logger.info(f"User {response.user.id} logged in")
        return response

    async def get_current_user_from_server(self) -> User:
        """Fetch the current user from the backend."""
        if not self.access_token:
            raise NotAuthenticatedError("Not authenticated")

        data = await self.authenticated_request("/auth/me")
        self.user = User.from_dict(data)
        self._save_tokens_to_storage()
        return self.user

    async def refresh_access_token(self) -> bool:
        """Exchange the refresh token for a new access token.

        Any failure signs the user out.
        """
        if not self.refresh_token:
            return False

        try:
            data = await self.api_client.post("/auth/refresh", {"refresh_token": self.refresh_token})
            self.access_token = data["access_token"]
        except (ApiError, KeyError, TypeError) as e:
            logger.warning(f"Token refresh failed: {e}")
            monitoring.token_refreshes.labels(result="failed").inc()
            self._clear_tokens()
            return False

        monitoring.token_refreshes.labels(result="ok").inc()
        self._save_tokens_to_storage()
        return True

    async def logout(self) -> None:
        """Logout from the current session."""
        try:
            if self.access_token:
                # The backend resolves the session from the bearer token
                await self.api_client.post("/auth/logout", {"session_id": "current"})
        except ApiError as e:
            logger.warning(f"Logout request failed: {e}")
        finally:
            self._clear_tokens()

    async def logout_all(self) -> None:
        """Logout from all sessions of the current user."""
        try:
            if self.user:
                await self.api_client.post("/auth/logout-all", {"user_id": self.user.id})
        except ApiError as e:
            logger.warning(f"Logout all request failed: {e}")
        finally:
            self._clear_tokens()

    def get_current_user(self) -> Optional[User]:
        return self.user

    def is_authenticated(self) -> bool:
        return bool(self.access_token and self.user)

    def get_access_token(self) -> Optional[str]:
        return self.access_token

    async def authenticated_request(
        self, endpoint: str, method: str = "GET", body: Optional[Any] = None
    ) -> Any:
        """Make a request, refreshing the access token once on a 401."""
        try:
            return await self.api_client.request(method, endpoint, json=body)
        except ApiError as e:
            if e.status != 401:
                raise
            logger.info(f"Access token rejected for {endpoint}, refreshing")
            if not await self.refresh_access_token():
                raise
        return await self.api_client.request(method, endpoint, json=body)

    @staticmethod
    def validate_email(email: str) -> bool:
        """Basic client-side email format check."""
        return bool(EMAIL_RE.match(email))

    @staticmethod
    def validate_password(password: str) -> Tuple[bool, Optional[str]]:
        """Check password requirements, returning (valid, message)."""
        if len(password) < MIN_PASSWORD_LENGTH:
            return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        return True, None

    def _set_session(self, response: AuthResponse) -> None:
        self.access_token = response.access_token
        self.refresh_token = response.refresh_token
        self.user = response.user
        self._save_tokens_to_storage()

    def _save_tokens_to_storage(self) -> None:
        if self.access_token:
            self.storage.set_item(ACCESS_TOKEN_KEY, self.access_token)
        if self.refresh_token:
            self.storage.set_item(REFRESH_TOKEN_KEY, self.refresh_token)
        if self.user:
            self.storage.set_item(USER_KEY, json.dumps(self.user.to_dict()))
        monitoring.authenticated_users.set(1 if self.is_authenticated() else 0)

    def _load_tokens_from_storage(self) -> None:
        self.access_token = self.storage.get_item(ACCESS_TOKEN_KEY)
        self.refresh_token = self.storage.get_item(REFRESH_TOKEN_KEY)

        user_str = self.storage.get_item(USER_KEY)
        if user_str:
            try:
                self.user = User.from_dict(json.loads(user_str))
            except (ValueError, KeyError, TypeError):
                logger.warning("Discarding corrupt stored user")
                self.storage.remove_item(USER_KEY)

    def _clear_tokens(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.user = None

        self.storage.remove_item(ACCESS_TOKEN_KEY)
        self.storage.remove_item(REFRESH_TOKEN_KEY)
        self.storage.remove_item(USER_KEY)
        monitoring.authenticated_users.set(0)
