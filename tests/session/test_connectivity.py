"""Tests for connectivity checks."""

import threading
from unittest.mock import MagicMock, patch

import pytest

from session_keeper.connectivity import SocketConnectivity, StaticConnectivity, check_online


class TestStaticConnectivity:
    def test_defaults_online(self):
        assert StaticConnectivity()() is True

    def test_toggle(self):
        check = StaticConnectivity(online=False)
        assert check() is False
        check.online = True
        assert check() is True


class TestCheckOnline:
    @pytest.mark.asyncio
    async def test_inline_check(self):
        assert await check_online(StaticConnectivity(online=False)) is False

    @pytest.mark.asyncio
    async def test_blocking_check_runs_in_thread(self):
        caller_thread = threading.get_ident()
        probe_threads = []

        def probe():
            probe_threads.append(threading.get_ident())
            return True

        probe.blocking = True

        assert await check_online(probe) is True
        assert probe_threads and probe_threads[0] != caller_thread


class TestSocketConnectivity:
    def test_online_when_connect_succeeds(self):
        conn = MagicMock()
        conn.__enter__ = MagicMock(return_value=conn)
        conn.__exit__ = MagicMock(return_value=None)

        with patch("socket.create_connection", return_value=conn) as mock_connect:
            assert SocketConnectivity("auth.example.com", 443, 0.5)() is True

        mock_connect.assert_called_once_with(("auth.example.com", 443), timeout=0.5)
        conn.__exit__.assert_called_once()

    def test_offline_when_connect_fails(self):
        with patch("socket.create_connection", side_effect=OSError("unreachable")):
            assert SocketConnectivity("auth.example.com")() is False
