"""
agentrelay - Custom exceptions for error handling.
"""

from typing import Any, Optional

import httpx


class AgentRelayError(Exception):
    """Base exception for all agentrelay errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


class APIError(AgentRelayError):
    """Raised when an API request fails with a non-success status."""

    pass


class StreamEventValidationError(AgentRelayError):
    """Raised when a payload does not match any known stream event shape."""

    def __init__(self, message: str, errors: Optional[list[Any]] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.errors = errors or []


class InvalidSocketMessageError(AgentRelayError):
    """Raised when an inbound session message is not trigger, continue or stop."""

    def __init__(self, message: str, errors: Optional[list[Any]] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.errors = errors or []


async def parse_api_error(response: httpx.Response, context: str = "Request failed") -> APIError:
    """
    Build an ``APIError`` from a failed response.

    The message is taken from ``{"error": {"message": ...}}``, ``{"error": "..."}``
    or ``{"message": ...}`` when the body is JSON, and falls back to the
    status line prefixed with ``context``.
    """
    await response.aread()
    data: Any = None
    if response.content:
        try:
            data = response.json()
        except ValueError:
            data = None

    message: Optional[str] = None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            message = error.get("message")
        elif isinstance(error, str):
            message = error
        message = message or data.get("message")
    else:
        data = None

    if not message:
        message = f"{context}: {response.status_code} {response.reason_phrase}".rstrip()

    return APIError(message, status_code=response.status_code, response=data)
