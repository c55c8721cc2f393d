"""
Deadline guards for awaitables.

Two flavors, chosen by whether the work may be interrupted:

- ``with_cancel_timeout`` cancels the awaitable when the deadline passes.
  Use it for work with no external effect yet (gas resolution, a broadcast
  that has not been accepted).
- ``with_timeout`` races the awaitable against a timer. When the timer wins
  the caller gets a TIMEOUT_ERROR immediately; the underlying task is
  shielded rather than cancelled and keeps running for ``abandon_after``
  more seconds, after which it is cancelled so nothing polls forever.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from licensechain.constants import ABANDONED_TASK_GRACE
from licensechain.errors import LicenseChainError
from licensechain.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


def _check_limit(limit: float) -> None:
    if limit <= 0:
        raise LicenseChainError.invalid_config("timeout", limit, "must be positive")


def _consume_abandoned(task: "asyncio.Future[object]", operation: str) -> None:
    if task.cancelled():
        _logger.debug("Abandoned %s cancelled", operation, extra={"operation": operation})
        return
    error = task.exception()
    if error is not None:
        _logger.debug(
            "Abandoned %s finished with %s: %s",
            operation,
            type(error).__name__,
            error,
            extra={"operation": operation},
        )
    else:
        _logger.debug("Abandoned %s completed after its deadline", operation, extra={"operation": operation})


async def with_cancel_timeout(
    awaitable: Awaitable[T],
    limit: Optional[float],
    *,
    operation: str = "operation",
) -> T:
    """
    Await ``awaitable`` for at most ``limit`` seconds, cancelling it on expiry.

    Raises:
        LicenseChainError: kind TIMEOUT_ERROR when the deadline passes first.
        Any exception raised by the awaitable, unchanged.
    """
    if limit is None:
        return await awaitable
    _check_limit(limit)

    try:
        return await asyncio.wait_for(awaitable, timeout=limit)
    except asyncio.TimeoutError:
        _logger.warning(
            "%s exceeded its %ss deadline and was cancelled", operation, limit,
            extra={"operation": operation},
        )
        raise LicenseChainError.timeout(operation, limit) from None


async def with_timeout(
    awaitable: Awaitable[T],
    limit: Optional[float],
    *,
    operation: str = "operation",
    abandon_after: Optional[float] = ABANDONED_TASK_GRACE,
) -> T:
    """
    Await ``awaitable`` for at most ``limit`` seconds.

    Args:
        awaitable: Coroutine, task or future to wait for
        limit: Deadline in seconds; None disables the guard
        operation: Name used in the error message and logs
        abandon_after: Seconds an abandoned task may keep running before it
            is cancelled; None lets it run to completion

    Returns:
        The awaitable's result

    Raises:
        LicenseChainError: kind TIMEOUT_ERROR when the deadline passes first.
        Any exception raised by the awaitable, unchanged.
    """
    if limit is None:
        return await awaitable
    _check_limit(limit)

    task = asyncio.ensure_future(awaitable)
    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout=limit)
    except asyncio.TimeoutError:
        if task.done():
            # Settled in the same tick the timer fired; report the real outcome.
            return task.result()
        task.add_done_callback(lambda t: _consume_abandoned(t, operation))
        if abandon_after is not None:
            handle = asyncio.get_running_loop().call_later(abandon_after, task.cancel)
            task.add_done_callback(lambda _: handle.cancel())
        _logger.warning(
            "%s exceeded its %ss deadline", operation, limit, extra={"operation": operation}
        )
        raise LicenseChainError.timeout(operation, limit) from None
