"""
SessionScheduler — Cancellable asyncio timers tied to one session's lifetime.

Pure Python + asyncio. Holds every repeating and one-shot task a session
registers, so a single ``cancel_all()`` on logout guarantees no stale
callback fires against a torn-down session.

Callback errors are logged and swallowed; a failing sweep does not stop the
next tick from running.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Set

logger = logging.getLogger("Scheduler")

Callback = Callable[[], Awaitable[None]]


class ScheduledTask:
    """Handle returned by every() / later(). Cancelling it is idempotent."""

    def __init__(self, name: str, task: asyncio.Task):
        self.name = name
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()

    def is_current(self) -> bool:
        """True when called from inside this task's own callback."""
        return asyncio.current_task() is self._task


class SessionScheduler:
    """Registry of timer tasks for one session.

    Usage:
        scheduler = SessionScheduler()
        scheduler.every(30, session.sweep, name="sweep")
        scheduler.later(7, queue.expire, name="popup")
        ...
        await scheduler.cancel_all()
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_count(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    def every(
        self,
        interval: float,
        callback: Callback,
        name: str = "periodic",
        run_immediately: bool = True,
    ) -> ScheduledTask:
        """Run ``callback`` every ``interval`` seconds (and once right away)."""
        return self._spawn(self._repeat(interval, callback, name, run_immediately), name)

    def later(self, delay: float, callback: Callback, name: str = "oneshot") -> ScheduledTask:
        """Run ``callback`` once after ``delay`` seconds."""
        return self._spawn(self._once(delay, callback, name), name)

    def _spawn(self, coro, name: str) -> ScheduledTask:
        if self._closed:
            coro.close()
            raise RuntimeError("Scheduler has been shut down")
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Scheduled '{name}'")
        return ScheduledTask(name, task)

    async def _repeat(self, interval: float, callback: Callback, name: str, run_immediately: bool):
        try:
            if run_immediately:
                await self._invoke(callback, name)
            while True:
                await asyncio.sleep(interval)
                await self._invoke(callback, name)
        except asyncio.CancelledError:
            logger.debug(f"'{name}' cancelled")

    async def _once(self, delay: float, callback: Callback, name: str):
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return
        await self._invoke(callback, name)

    async def _invoke(self, callback: Callback, name: str):
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Scheduled callback '{name}' failed: {e}", exc_info=True)

    async def cancel_all(self) -> None:
        """Cancel every task and refuse new ones."""
        self._closed = True
        current = asyncio.current_task()
        pending = [t for t in self._tasks if not t.done() and t is not current]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        logger.info(f"Scheduler shut down ({len(pending)} task(s) cancelled)")
