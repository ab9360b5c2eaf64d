"""Tests for Session and the in-memory identity backend."""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from session_keeper.backend import InMemoryIdentityBackend, Session
from session_keeper.errors import RefreshTokenInvalidError

from tests.conftest import make_session


class TestSession:
    """Tests for Session dataclass."""

    def test_is_expired_false_when_future(self):
        assert make_session(expires_in=3600).is_expired is False

    def test_is_expired_true_when_past(self):
        assert make_session(expires_in=-3600).is_expired is True

    def test_is_expired_with_buffer(self):
        """Session should be considered expired within the 5-minute buffer."""
        assert make_session(expires_in=240).is_expired is True

    def test_expires_in_seconds(self):
        seconds = make_session(expires_in=3600).expires_in_seconds
        assert 3590 <= seconds <= 3600

    def test_expires_in_seconds_never_negative(self):
        assert make_session(expires_in=-10).expires_in_seconds == 0

    def test_to_dict_omits_buffer(self):
        data = make_session().to_dict()
        assert "expiry_buffer_seconds" not in data
        assert data["refresh_token"] == "refresh_token_def456"

    def test_from_token_response_with_expires_in(self):
        session = Session.from_token_response(
            {
                "access_token": "access",
                "refresh_token": "refresh",
                "expires_in": 7200,
                "token_type": "bearer",
                "user": {"id": "user_1"},
            }
        )

        now = int(datetime.now().timestamp())
        assert now + 7190 <= session.expires_at <= now + 7210
        assert session.user_id == "user_1"

    def test_from_token_response_with_expires_at(self):
        session = Session.from_token_response(
            {"access_token": "a", "refresh_token": "r", "expires_at": 1700000000}
        )
        assert session.expires_at == 1700000000
        assert session.user_id is None

    def test_from_token_response_missing_field(self):
        with pytest.raises(KeyError):
            Session.from_token_response({"access_token": "a"})


class TestInMemoryIdentityBackend:
    @pytest.mark.asyncio
    async def test_returns_fresh_session(self):
        session = make_session()
        backend = InMemoryIdentityBackend(session=session)
        assert await backend.get_cached_session() is session

    @pytest.mark.asyncio
    async def test_expired_session_reported_absent(self):
        backend = InMemoryIdentityBackend(session=make_session(expires_in=-60))
        assert await backend.get_cached_session() is None

    @pytest.mark.asyncio
    async def test_refresh_uses_refresher(self):
        old = make_session(expires_in=-60)
        new = make_session("new_access")
        refresher = AsyncMock(return_value=new)
        backend = InMemoryIdentityBackend(refresher, session=old)

        assert await backend.refresh_session() is new
        refresher.assert_awaited_once_with(old)
        assert await backend.get_cached_session() is new

    @pytest.mark.asyncio
    async def test_refresh_without_refresher(self):
        backend = InMemoryIdentityBackend()
        with pytest.raises(RefreshTokenInvalidError):
            await backend.refresh_session()

    @pytest.mark.asyncio
    async def test_sign_out_clears_session(self):
        backend = InMemoryIdentityBackend(session=make_session())
        await backend.sign_out()
        assert await backend.get_cached_session() is None
