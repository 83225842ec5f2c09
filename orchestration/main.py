"""
LevelUp Academy — Headless Entry Point

Runs one user's quest session against the JSON file store until interrupted:
daily quests are generated on start, the reminder/penalty sweep ticks on its
interval, and every popup is written to the log instead of a screen.

Configuration comes from the environment / .env (see tools/config.py).
The user is LEVELUP_USER, or the last identity that logged in with
"remember me".

To run: python orchestration/main.py
"""

import asyncio
import logging

from models.notifications import NotificationEvent
from tools.accounts import AccountRegistry
from tools.config import Settings, load_settings, setup_logging
from tools.quest_session import QuestSession
from tools.session_store import JsonFileStore, SessionStore

logger = logging.getLogger("LevelUp")


async def _show(event: NotificationEvent) -> None:
    logger.info(f"POPUP {event.summary()}")


async def _level_up(old_level: int, new_level: int, points: int) -> None:
    logger.info(f"LEVEL UP {old_level} -> {new_level}, {points} attribute point(s) to spend")


async def serve(settings: Settings) -> None:
    store = SessionStore(JsonFileStore(settings.data_file))
    user_id = settings.user
    if not user_id:
        identity = AccountRegistry(store).last_user()
        user_id = identity.id if identity else ""
    if not user_id:
        logger.error("No user to run. Set LEVELUP_USER or log in once with remember enabled.")
        return

    async with QuestSession(
        user_id,
        store,
        sweep_interval=settings.sweep_interval,
        popup_seconds=settings.popup_seconds,
        daily_quests=settings.daily_quests,
        on_display=_show,
        on_level_up=_level_up,
    ) as session:
        state = session.state
        logger.info(
            f"{user_id}: level {state.level} ({session.progress_percent}%), "
            f"{len(state.active_quests)} active quest(s)"
        )
        await asyncio.Event().wait()


def run() -> None:
    settings = load_settings()
    setup_logging(settings)
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, session saved.")


if __name__ == "__main__":
    run()
