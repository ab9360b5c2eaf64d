"""HTTP identity backend for GoTrue-style auth servers.

Handles the three capabilities the coordinator consumes:
1. Serve the cached session while it is still fresh
2. Exchange the refresh token for a new session
3. Sign out (revoke the session server-side and drop it locally)

The session lives in memory only.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .backend import Session
from .errors import BackendError, NetworkError, RefreshTokenInvalidError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/auth/v1/token"
LOGOUT_PATH = "/auth/v1/logout"


def _error_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json() if response.content else {}
    except ValueError:
        data = {"raw_response": response.text[:500]}
    return data if isinstance(data, dict) else {"raw_response": data}


class HTTPIdentityBackend:
    """Identity backend talking to a GoTrue-compatible REST API.

    Usage:
        backend = HTTPIdentityBackend(
            base_url="https://project.supabase.co",
            api_key="anon-key",
            refresh_token="stored-refresh-token",
        )
        coordinator = SessionCoordinator(backend)
        session = await coordinator.ensure_session()
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: Session | None = None,
        refresh_token: str | None = None,
        timeout: float = 30.0,
        expiry_buffer_seconds: int = 300,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session
        self.timeout = timeout
        self.expiry_buffer_seconds = expiry_buffer_seconds
        self._refresh_token = refresh_token or (session.refresh_token if session else None)

    @classmethod
    def from_settings(cls, settings) -> "HTTPIdentityBackend":
        """Create a backend from SessionSettings.

        Raises:
            BackendError: If the auth server is not configured
        """
        if not settings.http_backend_configured:
            raise BackendError(
                "Identity backend not configured. Set SESSION_AUTH_BASE_URL and "
                "SESSION_AUTH_API_KEY.",
                error_code="not_configured",
            )
        return cls(
            base_url=settings.auth_base_url,
            api_key=settings.auth_api_key,
            refresh_token=settings.auth_refresh_token or None,
            timeout=settings.auth_http_timeout_seconds,
            expiry_buffer_seconds=settings.expiry_buffer_seconds,
        )

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def get_cached_session(self) -> Session | None:
        if self.session is None or self.session.is_expired:
            return None
        return self.session

    async def refresh_session(self) -> Session:
        """Exchange the refresh token for a new session.

        Raises:
            RefreshTokenInvalidError: If the server rejects the refresh token
            NetworkError: If the server cannot be reached
            BackendError: For any other failed response
        """
        if not self._refresh_token:
            raise RefreshTokenInvalidError(
                "No refresh token available", error_code="missing_refresh_token"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}{TOKEN_PATH}",
                    params={"grant_type": "refresh_token"},
                    json={"refresh_token": self._refresh_token},
                    headers=self._headers(),
                )
        except httpx.TransportError as e:
            raise NetworkError(f"Session refresh request failed: {e}") from e

        if response.status_code != 200:
            error_data = _error_payload(response)
            error_code = error_data.get("error_code") or error_data.get("error")
            error_cls = (
                RefreshTokenInvalidError if response.status_code in (400, 401) else BackendError
            )
            raise error_cls(
                f"Session refresh failed: {response.status_code}",
                status_code=response.status_code,
                error_code=error_code or "refresh_failed",
                details=error_data,
            )

        try:
            session = Session.from_token_response(
                response.json(), expiry_buffer_seconds=self.expiry_buffer_seconds
            )
        except KeyError as e:
            raise BackendError(
                f"Invalid token response: missing {e}",
                error_code="invalid_response",
            ) from e
        except (ValueError, TypeError, AttributeError) as e:
            raise BackendError(
                f"Invalid token response: {e}",
                error_code="invalid_response",
                details={"raw_response": response.text[:500]},
            ) from e

        self.session = session
        self._refresh_token = session.refresh_token
        return session

    async def sign_out(self) -> None:
        """Revoke the session server-side and forget it locally.

        The local session is dropped even if the request fails.
        """
        session, self.session = self.session, None
        self._refresh_token = None
        if session is None:
            return

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}{LOGOUT_PATH}",
                    headers=self._headers(session.access_token),
                )
        except httpx.TransportError as e:
            raise NetworkError(f"Sign-out request failed: {e}") from e

        if response.status_code >= 400:
            raise BackendError(
                f"Sign-out failed: {response.status_code}",
                status_code=response.status_code,
                error_code="sign_out_failed",
                details=_error_payload(response),
            )
        logger.debug("Signed out session for user %s", session.user_id)
