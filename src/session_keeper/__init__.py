"""Client-side session lifecycle coordination.

Keeps application operations supplied with a valid authentication session.

Usage:
    from session_keeper import SessionCoordinator, HTTPIdentityBackend

    backend = HTTPIdentityBackend(base_url, api_key, refresh_token=stored_token)
    coordinator = SessionCoordinator(backend)

    # Get a usable session
    session = await coordinator.ensure_session()

    # Run an operation, signing out if it fails on an invalid token
    result = await coordinator.execute_with_session(fetch_profile, context="profile")
"""

from .backend import IdentityBackend, InMemoryIdentityBackend, Session
from .classifier import is_auth_invalid
from .config import SessionSettings
from .connectivity import SocketConnectivity, StaticConnectivity
from .coordinator import SessionCoordinator, SessionEvent
from .errors import (
    AuthInvalidError,
    BackendError,
    NetworkError,
    OfflineError,
    RefreshTokenInvalidError,
    SessionExpiredError,
    SessionKeeperError,
    SessionTimeoutError,
    is_offline_error,
    is_session_timeout_error,
)
from .http_backend import HTTPIdentityBackend
from .timeouts import with_timeout

__all__ = [
    "AuthInvalidError",
    "BackendError",
    "HTTPIdentityBackend",
    "IdentityBackend",
    "InMemoryIdentityBackend",
    "NetworkError",
    "OfflineError",
    "RefreshTokenInvalidError",
    "Session",
    "SessionCoordinator",
    "SessionEvent",
    "SessionExpiredError",
    "SessionKeeperError",
    "SessionSettings",
    "SessionTimeoutError",
    "SocketConnectivity",
    "StaticConnectivity",
    "is_auth_invalid",
    "is_offline_error",
    "is_session_timeout_error",
    "with_timeout",
]
