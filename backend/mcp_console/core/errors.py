"""
Centralized error handling for chat pipeline and API failures.
Exception types carry their HTTP status so routes stay thin; vendor errors are mapped by rules below.
"""
from __future__ import annotations

from typing import Callable

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

MSG_AI_QUOTA_EXCEEDED = "AI provider quota or rate limit exceeded. Check the provider plan and billing."
MSG_INTERNAL_ERROR = "Internal server error"

STATUS_BAD_REQUEST = 400
STATUS_UNAUTHORIZED = 401
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_BAD_GATEWAY = 502
STATUS_SERVICE_UNAVAILABLE = 503  # quota, rate limit, provider down
STATUS_INTERNAL_ERROR = 500


class ConsoleError(Exception):
    """Base for errors with a known HTTP status and machine-readable code."""

    status_code = STATUS_INTERNAL_ERROR
    code = "internal_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidRequest(ConsoleError):
    status_code = STATUS_BAD_REQUEST
    code = "invalid_request"


class NotFound(ConsoleError):
    status_code = STATUS_NOT_FOUND
    code = "not_found"


class Conflict(ConsoleError):
    status_code = STATUS_BAD_REQUEST
    code = "conflict"


class Forbidden(ConsoleError):
    status_code = STATUS_FORBIDDEN
    code = "forbidden"


class Unauthorized(ConsoleError):
    status_code = STATUS_UNAUTHORIZED
    code = "unauthorized"


class SessionNotFound(NotFound):
    code = "session_not_found"

    def __init__(self, session_id: int):
        super().__init__(f"Chat session with ID {session_id} not found")
        self.session_id = session_id


class ProviderNotFound(NotFound):
    code = "provider_not_found"

    def __init__(self, provider_id: int):
        super().__init__(f"Provider with ID {provider_id} not found")
        self.provider_id = provider_id


class ProviderInactive(ConsoleError):
    status_code = STATUS_BAD_REQUEST
    code = "provider_inactive"

    def __init__(self, name: str):
        super().__init__(f"Provider {name} is inactive")


class ProviderUnconfigured(ConsoleError):
    status_code = STATUS_BAD_REQUEST
    code = "provider_unconfigured"

    def __init__(self, name: str):
        super().__init__(f"Provider {name} has no API key configured")


class UnsupportedProvider(ConsoleError):
    status_code = STATUS_BAD_REQUEST
    code = "unsupported_provider"

    def __init__(self, kind: str):
        super().__init__(f"Unsupported AI provider: {kind}")


class CompletionFailed(ConsoleError):
    """Vendor call failed or timed out. The original exception is kept on .cause (and __cause__)."""

    status_code = STATUS_BAD_GATEWAY
    code = "completion_failed"

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class MalformedFrame(ConsoleError):
    status_code = STATUS_BAD_REQUEST
    code = "malformed_frame"


class EmptyContent(ConsoleError):
    status_code = STATUS_BAD_REQUEST
    code = "empty_content"

    def __init__(self):
        super().__init__("Message content cannot be empty")


# ---------------------------------------------------------------------------
# Error rules: (predicate, status_code, detail_message)
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

def _is_quota_error(msg: str) -> bool:
    lower = msg.lower()
    return (
        "429" in msg
        or "insufficient_quota" in lower
        or "quota" in lower
        or "rate limit" in lower
    )


# List of (predicate, status_code, detail). First match wins.
ERROR_RULES: list[tuple[Callable[[str], bool], int, str]] = [
    (_is_quota_error, STATUS_SERVICE_UNAVAILABLE, MSG_AI_QUOTA_EXCEEDED),
]


def error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception from the chat pipeline or a provider call into an HTTPException.
    Vendor failures are matched against ERROR_RULES (using the underlying cause when wrapped);
    ConsoleError keeps its own status; anything else is a 500 with the exception message.
    """
    if isinstance(exc, CompletionFailed) or not isinstance(exc, ConsoleError):
        msg = str(exc.cause) if isinstance(exc, CompletionFailed) and exc.cause else str(exc)
        for predicate, status_code, detail in ERROR_RULES:
            if predicate(msg):
                return HTTPException(status_code=status_code, detail=detail)
    if isinstance(exc, ConsoleError):
        return HTTPException(status_code=exc.status_code, detail=exc.message)
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc) or MSG_INTERNAL_ERROR)
