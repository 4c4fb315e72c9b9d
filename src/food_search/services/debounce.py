"""Cancellable timers for debouncing search input."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

_logger = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled coroutine call that can be cancelled until it fires."""

    def __init__(self, fn: Callable[[], Awaitable[None]], delay: float) -> None:
        self._fired = False
        self._task = asyncio.get_running_loop().create_task(self._run(fn, delay))
        self._task.add_done_callback(_log_failure)

    async def _run(self, fn: Callable[[], Awaitable[None]], delay: float) -> None:
        await asyncio.sleep(delay)
        self._fired = True
        await fn()

    @property
    def fired(self) -> bool:
        """True once the delay elapsed and the call started."""
        return self._fired

    @property
    def cancelled(self) -> bool:
        """True if the timer was cancelled before firing."""
        return self._task.cancelled()

    def cancel(self) -> bool:
        """Cancel the pending call. Calls already running are left alone."""
        if self._fired or self._task.done():
            return False
        return self._task.cancel()

    async def wait(self) -> None:
        """Wait until the call finishes or the timer is cancelled."""
        with contextlib.suppress(asyncio.CancelledError):
            await self._task


@dataclass
class Debouncer:
    """Owns at most one pending timer; scheduling replaces the previous one."""

    _handle: TimerHandle | None = field(default=None, init=False)

    @property
    def pending(self) -> TimerHandle | None:
        """The most recently scheduled timer, if it has not fired yet."""
        if self._handle is None or self._handle.fired or self._handle.cancelled:
            return None
        return self._handle

    def schedule(
        self, fn: Callable[[], Awaitable[None]], delay: float
    ) -> TimerHandle:
        """Schedule `fn` after `delay` seconds, cancelling any unfired timer."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = TimerHandle(fn, delay)
        return self._handle

    def cancel(self) -> None:
        """Cancel the pending timer, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


def _log_failure(task: asyncio.Task[None]) -> None:
    """Report a failed debounced call; nothing else awaits the task."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _logger.error("Debounced call failed", exc_info=exc)
