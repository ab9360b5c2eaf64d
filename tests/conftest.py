"""Shared test fixtures for the session-keeper test suite."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from session_keeper.backend import Session
from session_keeper.config import SessionSettings
from session_keeper.connectivity import StaticConnectivity
from session_keeper.coordinator import SessionCoordinator

SAMPLE_USER_ID = "user_test789"
SAMPLE_ACCESS_TOKEN = "access_token_abc123"
SAMPLE_REFRESH_TOKEN = "refresh_token_def456"


def make_session(
    access_token: str = SAMPLE_ACCESS_TOKEN,
    refresh_token: str = SAMPLE_REFRESH_TOKEN,
    expires_in: int = 3600,
) -> Session:
    return Session(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=int(datetime.now().timestamp()) + expires_in,
        user_id=SAMPLE_USER_ID,
    )


async def hang_forever():
    """Backend call that never settles within any test deadline."""
    await asyncio.sleep(3600)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def session():
    return make_session()


@pytest.fixture
def fast_settings():
    """Settings with short deadlines so timeout paths run quickly."""
    return SessionSettings(
        _env_file=None,
        environment="test",
        get_timeout_seconds=0.05,
        refresh_timeout_seconds=0.05,
        max_attempts=3,
        retry_delay_seconds=0.01,
    )


@pytest.fixture
def mock_backend():
    """Identity backend with no cached session and an unconfigured refresh."""
    backend = MagicMock()
    backend.get_cached_session = AsyncMock(return_value=None)
    backend.refresh_session = AsyncMock(return_value=make_session("refreshed_token"))
    backend.sign_out = AsyncMock(return_value=None)
    return backend


@pytest.fixture
def connectivity():
    return StaticConnectivity(online=True)


@pytest.fixture
def coordinator(mock_backend, fast_settings, connectivity):
    return SessionCoordinator(mock_backend, settings=fast_settings, connectivity=connectivity)


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()
