"""HTTP client for the MandarinPath backend API."""
import logging
from typing import Any, Callable, Dict, Optional

import httpx

from mandarinpath import monitoring
from mandarinpath.config import settings

logger = logging.getLogger(__name__)

CSRF_COOKIE = "csrf-token"
CSRF_HEADER = "x-csrf-token"
STATE_CHANGING_METHODS = ("POST", "PUT", "DELETE", "PATCH")


class ApiError(Exception):
    """Error returned by the backend, or raised when it could not be reached.

    ``status`` is the HTTP status code, or 0 when no response was received.
    """

    def __init__(
        self,
        message: str,
        status: int,
        code: Optional[str] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, code={self.code!r}, message={self.message!r})"


class ApiClient:
    """Base API client with CSRF and session management.

    The CSRF token is picked up from the ``csrf-token`` cookie after every
    response and echoed in the ``x-csrf-token`` header on state-changing
    requests. When a ``token_provider`` is set, its token is sent as a bearer
    ``Authorization`` header.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.base_url = (base_url or settings.api.base_url).rstrip("/")
        self.csrf_token: Optional[str] = None
        self.token_provider = token_provider
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.api.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    def _build_headers(self, method: str, json_body: bool) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"

        if self.csrf_token and method in STATE_CHANGING_METHODS:
            headers[CSRF_HEADER] = self.csrf_token

        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _update_csrf_token(self) -> None:
        token = self._client.cookies.get(CSRF_COOKIE)
        if token:
            self.csrf_token = token

    async def request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make an HTTP request and return the decoded body.

        JSON responses are decoded, anything else is returned as text.

        Raises:
            ApiError: on a non-2xx response or a transport failure.
        """
        method = method.upper()
        url = f"{self.base_url}{endpoint}"
        is_form = files is not None or data is not None
        headers = self._build_headers(method, json_body=not is_form)

        if settings.api.debug:
            logger.debug(f"API {method} {url}")

        kwargs: Dict[str, Any] = {"headers": headers}
        if is_form:
            kwargs["data"] = data
            kwargs["files"] = files
        elif json is not None:
            kwargs["json"] = json

        try:
            with monitoring.request_duration.labels(method=method).time():
                response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            monitoring.api_errors.labels(error_type="network").inc()
            logger.error(f"API {method} {url} failed: {e}")
            raise ApiError(f"Network error: {e}", 0) from e

        monitoring.api_requests.labels(method=method, status=str(response.status_code)).inc()
        self._update_csrf_token()

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                body = response.json()
            except ValueError as e:
                monitoring.api_errors.labels(error_type="decode").inc()
                raise ApiError("Invalid JSON in response", response.status_code) from e
        else:
            body = response.text

        if not response.is_success:
            error_body = body if isinstance(body, dict) else {}
            monitoring.api_errors.labels(error_type="http").inc()
            if settings.api.debug:
                logger.error(f"API Error {response.status_code} for {method} {url}: {body}")
            raise ApiError(
                error_body.get("error") or f"Request failed with status {response.status_code}",
                response.status_code,
                error_body.get("code"),
                error_body.get("details"),
            )

        return body

    async def get(self, endpoint: str) -> Any:
        """GET request."""
        return await self.request("GET", endpoint)

    async def post(self, endpoint: str, body: Optional[Any] = None) -> Any:
        """POST request with an optional JSON body."""
        return await self.request("POST", endpoint, json=body)

    async def put(self, endpoint: str, body: Optional[Any] = None) -> Any:
        """PUT request with an optional JSON body."""
        return await self.request("PUT", endpoint, json=body)

    async def patch(self, endpoint: str, body: Optional[Any] = None) -> Any:
        """PATCH request with an optional JSON body."""
        return await self.request("PATCH", endpoint, json=body)

    async def delete(self, endpoint: str) -> Any:
        """DELETE request."""
        return await self.request("DELETE", endpoint)

    async def post_form(
        self,
        endpoint: str,
        data: Dict[str, Any],
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """POST a multipart form, e.g. an audio upload."""
        return await self.request("POST", endpoint, data=data, files=files or {})

    async def initialize_csrf(self) -> None:
        """Obtain a CSRF cookie by hitting the health endpoint."""
        try:
            await self.get("/health")
        except ApiError as e:
            logger.warning(f"Failed to initialize CSRF token: {e}")

    async def health(self) -> Dict[str, Any]:
        """Return the backend health report."""
        body = await self.get("/health")
        if isinstance(body, dict):
            return body
        return {"status": body}
