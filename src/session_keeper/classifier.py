"""Decide whether a failure means the authentication token is no longer valid."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .errors import AuthInvalidError, OfflineError, SessionExpiredError, SessionTimeoutError

AUTH_ERROR_CODE_MARKERS = ("JWT", "401", "invalid")
AUTH_ERROR_KEYWORDS = ("jwt", "expired", "invalid", "session", "token", "auth", "401")

_MISSING = object()


def _field(error: Any, name: str) -> Any:
    if isinstance(error, Mapping):
        return error.get(name, _MISSING)
    return getattr(error, name, _MISSING)


def _message(error: Any) -> str | None:
    message = _field(error, "message")
    if isinstance(message, str):
        return message
    if isinstance(error, BaseException):
        return str(error)
    if isinstance(error, str):
        return error
    return None


def is_auth_invalid(error: Any) -> bool:
    """Check whether ``error`` signals an invalid or expired auth token.

    Typed errors are recognised first. Anything else falls back to a coarse
    keyword match on ``status``/``code``/message, which can flag unrelated
    errors that merely mention e.g. "session".
    """
    if error is None:
        return False

    if isinstance(error, (AuthInvalidError, SessionExpiredError)):
        return True

    # Connectivity and deadline failures are never auth failures
    if isinstance(error, (SessionTimeoutError, OfflineError)):
        return False

    if isinstance(error, httpx.HTTPStatusError):
        if error.response.status_code == 401:
            return True
        # str() of an HTTPStatusError includes the URL; match on the body instead
        message = error.response.text
    else:
        for status_field in ("status", "status_code"):
            if _field(error, status_field) == 401:
                return True
        message = _message(error)

    code = _field(error, "code")
    if isinstance(code, str) and any(marker in code for marker in AUTH_ERROR_CODE_MARKERS):
        return True

    if message:
        lowered = message.lower()
        return any(keyword in lowered for keyword in AUTH_ERROR_KEYWORDS)

    return False
