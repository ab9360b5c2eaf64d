"""Point-in-time connectivity checks.

A check is any zero-argument callable returning ``True`` when the network
is believed to be reachable. It is consulted once per ``ensure_session``
call; there is no retry and no change subscription.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Callable

logger = logging.getLogger(__name__)

ConnectivityCheck = Callable[[], bool]


class StaticConnectivity:
    """Connectivity check with a fixed answer, toggled by the host application."""

    def __init__(self, online: bool = True):
        self.online = online

    def __call__(self) -> bool:
        return self.online


class SocketConnectivity:
    """Probe connectivity by opening a TCP connection to a known host.

    The probe blocks on DNS and connect, so async callers run it in a
    worker thread.
    """

    blocking = True

    def __init__(self, host: str, port: int = 443, timeout: float = 1.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    def __call__(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug("Connectivity probe to %s:%s failed: %s", self.host, self.port, e)
            return False


async def check_online(check: ConnectivityCheck) -> bool:
    """Run a connectivity check without stalling the event loop.

    Checks marked ``blocking`` run in a worker thread; others are called inline.
    """
    if getattr(check, "blocking", False):
        return await asyncio.to_thread(check)
    return check()


def connectivity_from_settings(settings) -> ConnectivityCheck:
    """Build the connectivity check described by SessionSettings."""
    if not settings.connectivity_host:
        return StaticConnectivity(online=True)
    return SocketConnectivity(
        host=settings.connectivity_host,
        port=settings.connectivity_port,
        timeout=settings.connectivity_timeout_seconds,
    )
