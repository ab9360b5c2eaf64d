"""Error taxonomy for the session coordinator.

Callers treat ``SessionExpiredError`` as "re-authenticate", ``OfflineError``
as "retry once connectivity returns", and anything else as their own
operation's domain error.
"""

from __future__ import annotations

from typing import Any, Literal

OFFLINE_ERROR_MESSAGE = "OFFLINE"
SESSION_EXPIRED_MESSAGE = "SESSION_EXPIRED"

TimeoutKind = Literal["get", "refresh"]


class SessionKeeperError(Exception):
    """Base exception for session coordinator errors."""


class OfflineError(SessionKeeperError):
    """Raised before any backend call when connectivity is known to be absent."""

    def __init__(self, message: str = OFFLINE_ERROR_MESSAGE):
        super().__init__(message)


class SessionTimeoutError(SessionKeeperError):
    """A session get/refresh attempt exceeded its deadline.

    The underlying attempt may still be running when this is raised.
    """

    def __init__(self, kind: TimeoutKind, timeout: float | None = None):
        self.kind = kind
        self.timeout = timeout
        message = f"SESSION_{kind.upper()}_TIMEOUT"
        if timeout:
            message = f"{message} after {timeout:g}s"
        super().__init__(message)


class SessionExpiredError(SessionKeeperError):
    """Canonical "session is gone, sign in again" error."""

    def __init__(self, context: str | None = None):
        self.context = context
        message = SESSION_EXPIRED_MESSAGE
        if context:
            message = f"{message}: {context}"
        super().__init__(message)


class BackendError(SessionKeeperError):
    """Identity backend rejected a request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class NetworkError(BackendError):
    """Identity backend could not be reached."""


class AuthInvalidError(BackendError):
    """Backend reported the access token as invalid or expired."""


class RefreshTokenInvalidError(AuthInvalidError):
    """Backend rejected the refresh token; the session cannot be renewed."""


def is_offline_error(error: object) -> bool:
    """Check whether ``error`` signals missing connectivity."""
    if isinstance(error, OfflineError):
        return True
    if isinstance(error, BaseException):
        return type(error).__name__ == "OfflineError" or str(error) == OFFLINE_ERROR_MESSAGE
    return False


def is_session_timeout_error(error: object) -> bool:
    """Check whether ``error`` is a session get/refresh timeout."""
    if isinstance(error, SessionTimeoutError):
        return True
    return isinstance(error, BaseException) and type(error).__name__ == "SessionTimeoutError"
