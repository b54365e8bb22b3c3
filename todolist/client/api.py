import logging
from typing import Any, Callable, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-success response or transport failure, carrying the message to show the user."""

    def __init__(self, message: str, status_code: Optional[int] = None, details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or []


class SessionExpired(ApiError):
    def __init__(self, message: str = "Session expired. Please log in again."):
        super().__init__(message, status_code=401)


def error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return fallback


class ApiClient:
    """Thin JSON wrapper over an ``httpx.Client``.

    The session cookie lives in the httpx cookie jar. Any 401 calls
    ``on_unauthorized`` and raises SessionExpired.
    """

    def __init__(self, http: httpx.Client, on_unauthorized: Optional[Callable[[], None]] = None):
        self.http = http
        self.on_unauthorized = on_unauthorized

    def request(self, method: str, url: str, json: Any = None, session_required: bool = True) -> httpx.Response:
        """Send a request. With ``session_required=False`` (login, register) a 401
        is handed back to the caller instead of ending the session."""
        try:
            response = self.http.request(method, url, json=json)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ApiError("Could not connect to the server.") from exc

        if response.status_code == 401 and session_required:
            if self.on_unauthorized is not None:
                self.on_unauthorized()
            raise SessionExpired()
        return response
