"""
NotificationQueue — One-at-a-time popup sequencing with auto-dismiss.

Pure Python + asyncio + Pydantic. No rendering; the caller supplies an
``on_display`` callback that receives each event as it becomes current.

Events are shown strictly in enqueue order. A displayed event stays current
until it is resolved (dismiss, claim, undo) or its dismiss timer expires,
at which point the next queued event is shown.
"""

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, List, Optional

from models.notifications import NotificationEvent
from tools.scheduler import ScheduledTask, SessionScheduler

logger = logging.getLogger("NotificationQueue")

DEFAULT_DISMISS_SECONDS = 7

EventCallback = Callable[[NotificationEvent], Awaitable[None]]


class NotificationQueue:
    """FIFO popup queue with a single display slot.

    Usage:
        queue = NotificationQueue(dismiss_seconds=7, on_display=show_popup)
        await queue.enqueue(*events)
        ...
        event = await queue.resolve()  # user pressed Dismiss / Claim / Undo
    """

    def __init__(
        self,
        dismiss_seconds: float = DEFAULT_DISMISS_SECONDS,
        scheduler: Optional[SessionScheduler] = None,
        on_display: Optional[EventCallback] = None,
        on_expire: Optional[EventCallback] = None,
    ):
        self.dismiss_seconds = dismiss_seconds
        self._scheduler = scheduler or SessionScheduler()
        self._owns_scheduler = scheduler is None
        self._on_display = on_display
        self._on_expire = on_expire
        self._pending: Deque[NotificationEvent] = deque()
        self._current: Optional[NotificationEvent] = None
        self._timer: Optional[ScheduledTask] = None
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def current(self) -> Optional[NotificationEvent]:
        return self._current

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending_snapshot(self) -> List[NotificationEvent]:
        return list(self._pending)

    async def enqueue(self, *events: NotificationEvent) -> None:
        """Append events to the tail, preserving their order."""
        if self._closed or not events:
            return
        async with self._lock:
            self._pending.extend(events)
            logger.debug(f"Enqueued {len(events)} event(s), {len(self._pending)} waiting")
        await self._advance()

    async def resolve(self, event_id: Optional[str] = None) -> Optional[NotificationEvent]:
        """Clear the displayed event and show the next one.

        If ``event_id`` is given, only that event is cleared; a different
        (or no) current event makes this a no-op returning None.
        Returns the event that was cleared. The caller applies any
        claim/undo side effect for it.
        """
        async with self._lock:
            event = self._current
            if event is None or (event_id is not None and event.id != event_id):
                return None
            self._current = None
            self._cancel_timer()
        await self._advance()
        return event

    async def _advance(self) -> None:
        async with self._lock:
            if self._closed or self._current is not None or not self._pending:
                return
            if self._scheduler.closed:
                logger.warning(f"Scheduler shut down, dropping {len(self._pending)} queued popup(s)")
                self._pending.clear()
                return
            event = self._pending.popleft()
            self._current = event
            self._cancel_timer()
            self._timer = self._scheduler.later(
                self.dismiss_seconds,
                lambda: self._expire(event),
                name=f"dismiss:{event.id[:8]}",
            )
        logger.info(f"Showing {event.summary()}")
        if self._on_display:
            try:
                await self._on_display(event)
            except Exception as e:
                logger.error(f"Display callback error: {e}", exc_info=True)

    async def _expire(self, event: NotificationEvent) -> None:
        """Dismiss timer fired. Only clears the event it was started for."""
        async with self._lock:
            if self._current is not event:
                return
            self._current = None
            self._timer = None
        logger.debug(f"Auto-dismissed {event.type.value} popup for {event.quest_id}")
        if self._on_expire:
            try:
                await self._on_expire(event)
            except Exception as e:
                logger.error(f"Expire callback error: {e}", exc_info=True)
        await self._advance()

    def _cancel_timer(self) -> None:
        if self._timer is not None and self._timer.active and not self._timer.is_current():
            self._timer.cancel()
        self._timer = None

    async def close(self) -> None:
        """Drop everything and stop the dismiss timer."""
        async with self._lock:
            self._closed = True
            self._cancel_timer()
            self._pending.clear()
            self._current = None
        if self._owns_scheduler:
            await self._scheduler.cancel_all()
        logger.info("Notification queue closed.")
