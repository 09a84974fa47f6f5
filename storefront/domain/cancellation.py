"""Cooperative cancellation for data-access calls.

A CancellationSignal is handed to every service operation.  The caller sets
it (``cancel()``) or gives it a deadline; ``run_cancellable`` races each
network await against it and raises CanceledError when it fires first.

Native asyncio task cancellation is left alone: a CancelledError raised into
the calling task still propagates as CancelledError, after the in-flight
work has been cancelled and awaited.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable
from typing import TypeVar

from .errors import CanceledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationSignal:
    """Caller-controlled cancellation flag with an optional deadline."""

    def __init__(self, timeout: float | None = None) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._deadline = None if timeout is None else time.monotonic() + timeout

    @classmethod
    def with_timeout(cls, seconds: float) -> CancellationSignal:
        return cls(timeout=seconds)

    def cancel(self, reason: str = "canceled by caller") -> None:
        if self._reason is None:
            self._reason = reason
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    @property
    def reason(self) -> str:
        if self._event.is_set():
            return self._reason or "canceled by caller"
        if self.expired:
            return "deadline exceeded"
        return ""

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    async def wait(self) -> None:
        await self._event.wait()


def _discard(aw: Awaitable[object]) -> None:
    if inspect.iscoroutine(aw):
        aw.close()
    elif isinstance(aw, asyncio.Future):
        aw.cancel()


async def run_cancellable(aw: Awaitable[T], signal: CancellationSignal | None) -> T:
    """Await ``aw`` unless ``signal`` fires first.

    Raises CanceledError when the signal is already set, when it is set while
    ``aw`` is pending, or when its deadline passes.  The pending work is
    cancelled and awaited before returning so nothing keeps running behind
    the caller's back.
    """
    if signal is None:
        return await aw
    if signal.cancelled:
        _discard(aw)
        logger.info("Operation canceled before dispatch: %s", signal.reason)
        raise CanceledError(signal.reason)

    work = asyncio.ensure_future(aw)
    watcher = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait(
            {work, watcher},
            timeout=signal.remaining(),
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        work.cancel()
        await asyncio.wait({work})
        raise
    finally:
        watcher.cancel()

    if work in done:
        return work.result()

    # Woken by the signal or by the deadline timeout.
    reason = signal.reason or "deadline exceeded"
    work.cancel()
    await asyncio.wait({work})
    if work.cancelled():
        logger.info("Operation canceled in flight: %s", reason)
        raise CanceledError(reason)
    exc = work.exception()
    if exc is not None:
        raise CanceledError(reason) from exc
    # Finished before the cancel landed; the caller's next checkpoint raises.
    return work.result()
