"""
QuestSession — The single owner of a logged-in user's quest state.

Created on login, destroyed on logout. Wires the pure QuestBoard / QuestSweep
transitions to the outside world:

  - every operation runs under one asyncio.Lock and swaps the whole
    SessionState at once, so timers and user actions never interleave
  - every change is persisted (fire-and-forget; a failed write only costs
    durability)
  - produced events go to the NotificationQueue after the lock is released
  - the sweep and popup timers live on a SessionScheduler that close()
    cancels in one go
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

from models.notifications import NotificationEvent
from models.quests import Quest, QuestDraft, utcnow
from models.session import SessionState
from tools import quest_board
from tools.accounts import AccountRegistry
from tools.errors import SessionClosedError
from tools.notification_queue import DEFAULT_DISMISS_SECONDS, EventCallback, NotificationQueue
from tools.progression import level_progress
from tools.quest_sweep import sweep as sweep_quests
from tools.scheduler import SessionScheduler
from tools.session_store import SessionStore

logger = logging.getLogger("QuestSession")

DEFAULT_SWEEP_SECONDS = 30

LevelUpCallback = Callable[[int, int, int], Awaitable[None]]


class QuestSession:
    """Session-scoped quest engine for one user.

    Usage:
        async with QuestSession(user.id, store, on_display=show) as session:
            await session.generate(3)
            await session.complete(quest_id)
            await session.claim()
    """

    def __init__(
        self,
        user_id: str,
        store: SessionStore,
        sweep_interval: float = DEFAULT_SWEEP_SECONDS,
        popup_seconds: float = DEFAULT_DISMISS_SECONDS,
        daily_quests: int = quest_board.DAILY_QUEST_COUNT,
        clock: Callable[[], datetime] = utcnow,
        rng=None,
        on_display: Optional[EventCallback] = None,
        on_level_up: Optional[LevelUpCallback] = None,
    ):
        self.user_id = user_id
        self.store = store
        self.sweep_interval = sweep_interval
        self.daily_quests = daily_quests
        self.clock = clock
        self.rng = rng
        self._on_level_up = on_level_up
        self.scheduler = SessionScheduler()
        self.queue = NotificationQueue(
            dismiss_seconds=popup_seconds,
            scheduler=self.scheduler,
            on_display=on_display,
            on_expire=self._on_popup_expired,
        )
        self._state = SessionState()
        self._lock = asyncio.Lock()
        self._started = False
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._started and not self._closed

    @property
    def progress_percent(self) -> int:
        return level_progress(self._state.exp, self._state.level)

    async def __aenter__(self) -> "QuestSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _initial_state(self) -> SessionState:
        """Saved state, else a fresh state seeded from the directory profile."""
        saved = self.store.load_user_data(self.user_id)
        if saved is not None:
            return saved
        record = self.store.load_users().get(self.user_id)
        if record is None:
            return SessionState()
        profile = record.profile
        return SessionState(
            stats=dict(profile.stats),
            exp=profile.exp,
            level=profile.level,
            unspent=profile.unspent,
        )

    async def start(self, sweep: bool = True) -> None:
        """Load state, run the daily generation, and start the sweep timer."""
        if self._started:
            return
        self._started = True
        async with self._lock:
            self._state = self._initial_state()
        logger.info(
            f"Session started for {self.user_id}: level {self._state.level}, "
            f"{len(self._state.quests)} quest(s)"
        )

        today = self.clock().date()
        await self._run(lambda s: quest_board.ensure_daily_quests(
            s, today, count=self.daily_quests, rng=self.rng, clock=self.clock,
        ))
        if sweep:
            self.scheduler.every(self.sweep_interval, self.sweep, name="sweep")

    async def close(self) -> None:
        """Cancel every timer, persist, and sync the directory profile."""
        if self._closed:
            return
        async with self._lock:
            self._closed = True
        await self.queue.close()
        await self.scheduler.cancel_all()
        self._persist()
        AccountRegistry(self.store).sync_profile(self.user_id, self._state)
        logger.info(f"Session closed for {self.user_id}")

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Session for {self.user_id} is closed")

    def _persist(self) -> None:
        if not self.store.save_user_data(self.user_id, self._state):
            logger.warning(f"State for {self.user_id} kept in memory only")

    async def _run(self, op) -> List[NotificationEvent]:
        """Apply ``op(state) -> (state, events)`` atomically, persist, then enqueue."""
        self._ensure_open()
        async with self._lock:
            self._ensure_open()
            new_state, events = op(self._state)
            if new_state is not self._state:
                self._state = new_state
                self._persist()
        await self.queue.enqueue(*events)
        return events

    # ------------------------------------------------------------------
    # Quest list
    # ------------------------------------------------------------------

    async def generate(self, count: int = 3, subject: Optional[str] = None) -> List[Quest]:
        fresh: List[Quest] = []

        def op(state):
            new_state, events = quest_board.generate_into(
                state, count=count, subject=subject, rng=self.rng, clock=self.clock,
            )
            # generate_into prepends, one event per new quest
            fresh.extend(new_state.quests[:len(events)])
            return new_state, events

        await self._run(op)
        return fresh

    async def add_quest(self, draft: QuestDraft) -> Quest:
        """Create a hand-made quest. Raises QuestValidationError on bad input."""
        added: List[Quest] = []

        def op(state):
            new_state, events = quest_board.add_custom_quest(state, draft, clock=self.clock)
            added.append(new_state.quests[0])
            return new_state, events

        await self._run(op)
        return added[0]

    async def remove_quest(self, quest_id: str) -> None:
        await self._run(lambda s: (quest_board.remove_quest(s, quest_id), []))

    async def clear_quests(self) -> None:
        await self._run(lambda s: (quest_board.clear_quests(s), []))

    # ------------------------------------------------------------------
    # Completion flow
    # ------------------------------------------------------------------

    async def complete(self, quest_id: str) -> bool:
        """Start completing a quest. Returns False if it was already done or pending."""
        events = await self._run(lambda s: quest_board.trigger_complete(s, quest_id))
        return bool(events)

    async def claim(self) -> Optional[Quest]:
        """Claim the completion popup currently on display.

        Returns the completed quest, or None if no completion popup is shown.
        """
        self._ensure_open()
        event = self.queue.current
        if event is None or not event.needs_resolution:
            return None

        result = None
        async with self._lock:
            self._ensure_open()
            old_level = self._state.level
            # The quest may have been removed while its popup was showing
            if self._state.find_quest(event.quest_id) is not None:
                result = quest_board.claim_completion(self._state, event.quest_id, clock=self.clock)
                self._state = result.state
                self._persist()
        await self.queue.resolve(event.id)

        if result is None:
            return None
        if result.levels_gained and self._on_level_up:
            try:
                await self._on_level_up(old_level, result.state.level, result.points_gained)
            except Exception as e:
                logger.error(f"Level-up callback error: {e}", exc_info=True)
        return self._state.find_quest(event.quest_id)

    async def undo(self) -> bool:
        """Undo the completion popup currently on display."""
        self._ensure_open()
        event = self.queue.current
        if event is None or not event.needs_resolution:
            return False
        await self._run(lambda s: (quest_board.undo_completion(s, event.quest_id), []))
        await self.queue.resolve(event.id)
        return True

    async def dismiss(self) -> Optional[NotificationEvent]:
        """Dismiss the displayed popup. A completion popup is treated as undo."""
        self._ensure_open()
        event = self.queue.current
        if event is None:
            return None
        if event.needs_resolution:
            await self.undo()
            return event
        return await self.queue.resolve(event.id)

    async def _on_popup_expired(self, event: NotificationEvent) -> None:
        # An unanswered completion popup must not leave the quest stuck as pending
        if not event.needs_resolution or self._closed:
            return
        await self._run(lambda s: (quest_board.undo_completion(s, event.quest_id), []))

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    async def sweep(self) -> List[NotificationEvent]:
        """Evaluate reminders and penalties against the current clock."""
        if self._closed:
            return []
        now = self.clock()
        events = await self._run(lambda s: sweep_quests(s, now))
        if events:
            logger.info(f"Sweep produced {len(events)} event(s)")
        return events
