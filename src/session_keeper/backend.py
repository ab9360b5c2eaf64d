"""Session data and the identity backend contract.

The coordinator never persists sessions; it only holds the references the
backend hands back for the duration of a call chain.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Protocol

from .errors import RefreshTokenInvalidError


@dataclass
class Session:
    """Credential bundle issued by the identity backend."""

    access_token: str
    refresh_token: str
    expires_at: int  # Unix timestamp
    token_type: str = "bearer"
    user_id: str | None = None
    expiry_buffer_seconds: int = field(default=300, repr=False)

    @property
    def is_expired(self) -> bool:
        """Check if access token is expired (within the expiry buffer)."""
        return datetime.now().timestamp() > (self.expires_at - self.expiry_buffer_seconds)

    @property
    def expires_in_seconds(self) -> int:
        """Seconds until token expires."""
        return max(0, int(self.expires_at - datetime.now().timestamp()))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("expiry_buffer_seconds")
        return data

    @classmethod
    def from_token_response(
        cls, data: dict[str, Any], expiry_buffer_seconds: int = 300
    ) -> "Session":
        """Build a session from an OAuth-style token response.

        Raises:
            KeyError: If access_token or refresh_token is missing
        """
        expires_at = data.get("expires_at")
        if expires_at is None:
            expires_in = data.get("expires_in", 3600)
            expires_at = int(datetime.now().timestamp()) + int(expires_in)
        user = data.get("user") or {}
        return cls(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=int(expires_at),
            token_type=data.get("token_type", "bearer"),
            user_id=user.get("id") if isinstance(user, dict) else None,
            expiry_buffer_seconds=expiry_buffer_seconds,
        )


class IdentityBackend(Protocol):
    """The three capabilities the coordinator needs from an identity backend."""

    async def get_cached_session(self) -> Session | None:
        """Return the currently cached session, or None if there is none."""
        ...

    async def refresh_session(self) -> Session:
        """Exchange the refresh token for a fresh session."""
        ...

    async def sign_out(self) -> None:
        """Invalidate the session. Best effort."""
        ...


Refresher = Callable[[Session | None], Awaitable[Session]]


class InMemoryIdentityBackend:
    """Identity backend keeping its session in process memory.

    Refreshing is delegated to ``refresher``, which receives the current
    session (possibly None) and returns the replacement. Expired sessions
    are reported as absent by ``get_cached_session``.

    Usage:
        async def refresher(current):
            return await my_auth_server.refresh(current.refresh_token)

        backend = InMemoryIdentityBackend(refresher, session=initial)
        coordinator = SessionCoordinator(backend)
    """

    def __init__(self, refresher: Refresher | None = None, session: Session | None = None):
        self._refresher = refresher
        self.session = session

    async def get_cached_session(self) -> Session | None:
        if self.session is None or self.session.is_expired:
            return None
        return self.session

    async def refresh_session(self) -> Session:
        if self._refresher is None:
            raise RefreshTokenInvalidError(
                "No refresher configured", error_code="refresh_unavailable"
            )
        self.session = await self._refresher(self.session)
        return self.session

    async def sign_out(self) -> None:
        self.session = None
