"""
Config — Environment-driven settings and logging setup.

Values come from the process environment, with a local ``.env`` loaded
first via python-dotenv. Bad numeric values fall back to the defaults.
"""

import os
import logging
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger("Config")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a number, using {default}")
        return default
    if value <= 0:
        logger.warning(f"{name}={raw!r} must be positive, using {default}")
        return default
    return value


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


@dataclass(frozen=True)
class Settings:
    data_file: str = "data/levelup_store.json"
    sweep_interval: float = 30.0
    popup_seconds: float = 7.0
    daily_quests: int = 4
    log_level: str = "INFO"
    log_dir: str = "logs"
    user: str = ""


def load_settings(dotenv: bool = True) -> Settings:
    """Read settings from the environment (and ``.env`` when ``dotenv``)."""
    if dotenv:
        load_dotenv()
    return Settings(
        data_file=os.getenv("LEVELUP_DATA_FILE", Settings.data_file),
        sweep_interval=_env_float("LEVELUP_SWEEP_INTERVAL", Settings.sweep_interval),
        popup_seconds=_env_float("LEVELUP_POPUP_SECONDS", Settings.popup_seconds),
        daily_quests=_env_int("LEVELUP_DAILY_QUESTS", Settings.daily_quests),
        log_level=os.getenv("LEVELUP_LOG_LEVEL", Settings.log_level).upper(),
        log_dir=os.getenv("LEVELUP_LOG_DIR", Settings.log_dir),
        user=os.getenv("LEVELUP_USER", Settings.user).strip().lower(),
    )


def setup_logging(settings: Settings) -> None:
    """File + console logging, one named logger per module."""
    if not os.path.exists(settings.log_dir):
        os.makedirs(settings.log_dir)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(os.path.join(settings.log_dir, "levelup.log"), encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
