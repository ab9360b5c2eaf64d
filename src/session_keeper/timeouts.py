"""Race an awaitable against a deadline."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from .errors import SessionTimeoutError, TimeoutKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _discard_late_result(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug("Abandoned attempt failed after timeout: %r", error)
    else:
        logger.debug("Abandoned attempt completed after timeout; result discarded")


async def with_timeout(
    awaitable: Awaitable[T],
    timeout: float | None,
    kind: TimeoutKind,
    *,
    cancel_on_timeout: bool = False,
) -> T:
    """Return the awaitable's result, or raise SessionTimeoutError on deadline.

    The raced operation is left running when the deadline fires unless
    ``cancel_on_timeout`` is set; its late result or error is dropped.

    Args:
        awaitable: Operation to race
        timeout: Deadline in seconds (``None`` or 0 disables the race)
        kind: Tag carried by the raised timeout error ("get" or "refresh")
        cancel_on_timeout: Cancel the abandoned operation instead of letting it finish

    Raises:
        SessionTimeoutError: If the deadline elapses first
    """
    if not timeout:
        return await awaitable

    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.add_done_callback(_discard_late_result)
        raise

    if task in done:
        return task.result()

    if cancel_on_timeout:
        task.cancel()
    task.add_done_callback(_discard_late_result)
    raise SessionTimeoutError(kind, timeout)
