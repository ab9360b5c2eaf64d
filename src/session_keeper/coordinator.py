"""Session lifecycle coordinator.

Keeps callers supplied with a valid session: retries timed-out lookups,
coalesces concurrent refreshes into one backend call, and signs out when
an operation fails because the token is no longer valid.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from .backend import IdentityBackend, Session
from .classifier import is_auth_invalid
from .config import SessionSettings, settings as default_settings
from .connectivity import ConnectivityCheck, check_online, connectivity_from_settings
from .errors import OfflineError, SessionExpiredError, SessionTimeoutError, TimeoutKind
from .timeouts import with_timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionEvent(str, Enum):
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    REFRESH_FAILED = "REFRESH_FAILED"
    SIGNED_OUT = "SIGNED_OUT"


SessionListener = Callable[[SessionEvent, "Session | None"], None]


class SessionCoordinator:
    """Single point of access to the current session.

    Handles:
    - Offline short-circuit before any backend call
    - Timeout-triggered retry of session lookup and refresh
    - Single-flight refresh shared by concurrent callers
    - Forced sign-out when an operation hits an invalid token

    The in-flight refresh reference is owned by this instance and assumes a
    single event loop.

    Usage:
        coordinator = SessionCoordinator(backend)

        # Get a usable session (refreshes if the cached one is gone)
        session = await coordinator.ensure_session()

        # Run an operation that needs a session
        rows = await coordinator.execute_with_session(
            lambda: api.list_rows(), context="list rows"
        )
    """

    def __init__(
        self,
        backend: IdentityBackend,
        settings: SessionSettings | None = None,
        connectivity: ConnectivityCheck | None = None,
    ):
        """Initialize the coordinator.

        Args:
            backend: Identity backend supplying get/refresh/sign-out
            settings: Timeout/retry policy (uses module settings if not provided)
            connectivity: Offline check (built from settings if not provided)
        """
        self.backend = backend
        self.settings = settings or default_settings
        self.connectivity = connectivity or connectivity_from_settings(self.settings)
        self._refresh_task: asyncio.Task | None = None
        self._listeners: list[SessionListener] = []

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh_task is not None

    # Events

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener for session events.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent, session: Session | None = None) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                logger.exception("Session listener failed on %s", event.value)

    # Retry policy

    async def _with_retry(
        self,
        call: Callable[[], Awaitable[T]],
        timeout: float,
        kind: TimeoutKind,
    ) -> T:
        """Run ``call`` under a deadline, retrying only on timeout."""
        attempt = 1
        while True:
            try:
                return await with_timeout(call(), timeout, kind)
            except SessionTimeoutError:
                if attempt >= self.settings.max_attempts:
                    raise
                logger.debug(
                    "Session %s attempt %d/%d timed out; retrying in %ss",
                    kind,
                    attempt,
                    self.settings.max_attempts,
                    self.settings.retry_delay_seconds,
                )
                attempt += 1
                await asyncio.sleep(self.settings.retry_delay_seconds)

    # Session lookup

    async def get_session(self) -> Session | None:
        """Fetch the cached session.

        Never raises: timeouts that exhaust the retry budget and any other
        backend failure are logged and reported as "no session".
        """
        try:
            return await self._with_retry(
                self.backend.get_cached_session,
                self.settings.get_timeout_seconds,
                "get",
            )
        except SessionTimeoutError:
            logger.warning(
                "Cached session lookup timed out after %d attempts",
                self.settings.max_attempts,
            )
            return None
        except Exception as e:
            logger.warning("Cached session lookup failed: %s", e)
            return None

    async def refresh_session(self) -> Session | None:
        """Refresh the session, sharing one attempt between concurrent callers.

        Returns:
            The refreshed session

        Raises:
            SessionTimeoutError: If every attempt timed out
            Exception: Any non-timeout backend failure, unchanged
        """
        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._run_refresh())
        else:
            logger.debug("Joining in-flight session refresh")
        # Shielded so a cancelled joiner does not abort the shared attempt
        return await asyncio.shield(self._refresh_task)

    async def _run_refresh(self) -> Session | None:
        try:
            session = await self._with_retry(
                self.backend.refresh_session,
                self.settings.refresh_timeout_seconds,
                "refresh",
            )
        except Exception as e:
            logger.warning("Session refresh failed: %s", e)
            self._emit(SessionEvent.REFRESH_FAILED)
            raise
        finally:
            if self._refresh_task is asyncio.current_task():
                self._refresh_task = None

        self._emit(SessionEvent.TOKEN_REFRESHED, session)
        return session

    def clear_refresh_state(self) -> None:
        """Forget the in-flight refresh so the next caller starts a new one."""
        self._refresh_task = None

    async def ensure_session(self) -> Session | None:
        """Get a usable session, refreshing when none is cached.

        Raises:
            OfflineError: If connectivity is absent (no backend call is made)
            SessionTimeoutError: If every refresh attempt timed out
        """
        if not await check_online(self.connectivity):
            raise OfflineError()

        session = await self.get_session()
        if session is not None:
            return session

        return await self.refresh_session()

    # Operations

    async def force_sign_out(self) -> None:
        """Drop refresh state and sign out. Sign-out failures are only logged."""
        self.clear_refresh_state()
        try:
            await self.backend.sign_out()
        except Exception as e:
            logger.warning("Sign-out failed: %s", e)
        self._emit(SessionEvent.SIGNED_OUT)

    async def execute_with_session(
        self,
        operation: Callable[[], Awaitable[T]],
        context: str | None = None,
    ) -> T:
        """Run ``operation`` once a session is available.

        Args:
            operation: Zero-argument callable returning an awaitable
            context: Label carried by SessionExpiredError

        Returns:
            The operation's result, unchanged

        Raises:
            SessionExpiredError: If no session is available or the operation
                failed on an invalid token (after a forced sign-out)
            OfflineError: If connectivity is absent
            Exception: The operation's own non-auth failure, unchanged
        """
        if self.settings.bypass_session_checks:
            logger.warning("Session checks bypassed for %s", context or "operation")
            return await operation()

        session = await self.ensure_session()
        if session is None:
            raise SessionExpiredError(context)

        try:
            return await operation()
        except Exception as e:
            if not is_auth_invalid(e):
                raise
            logger.warning("Operation %s failed on invalid session: %s", context or "", e)

        await self.force_sign_out()
        raise SessionExpiredError(context)
