"""
SessionStore — Key-value persistence for user data, the user directory,
and the last-used identity pointer.

The backing store only needs ``get(key) -> str | None`` and
``set(key, value: str)``. Both may fail; failures are logged and treated as
a cache miss (reads) or a dropped write (writes), never raised.

Keys:
    levelup_academy_v1::<user_id>   per-user SessionState blob
    levelup_academy_v1::users       {normalized_email: UserRecord}
    levelup_academy_v1::last_user   last identity that chose "remember me"
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

from pydantic import ValidationError

from models.session import SessionState, UserRecord

logger = logging.getLogger("SessionStore")

ROOT_KEY = "levelup_academy_v1"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """In-process store. Used by tests and as a throwaway session backend."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """All keys kept in a single JSON document on disk.

    Writes go to a temp file first and are swapped in with os.replace so a
    crash mid-write leaves the previous document intact.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._load()
        except ValueError as e:
            # json.JSONDecodeError is a ValueError; keep the bad file aside and start over
            corrupt = self.path.with_suffix(self.path.suffix + ".corrupt")
            os.replace(self.path, corrupt)
            logger.warning(f"{self.path} is unreadable ({e}); moved to {corrupt.name}, starting fresh")
            data = {}
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)


class SessionStore:
    """Typed access to the key-value store with fail-soft semantics."""

    def __init__(self, backend: KeyValueStore, root: str = ROOT_KEY):
        self.backend = backend
        self.root = root

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    def _key(self, name: str) -> str:
        return f"{self.root}::{name}"

    def safe_get(self, name: str) -> Optional[str]:
        try:
            return self.backend.get(self._key(name))
        except Exception as e:
            logger.warning(f"Storage read failed for '{name}': {e}")
            return None

    def safe_set(self, name: str, value: str) -> bool:
        """Write a value. Returns False if the write was dropped."""
        try:
            self.backend.set(self._key(name), value)
            return True
        except Exception as e:
            logger.warning(f"Storage write dropped for '{name}': {e}")
            return False

    def _load_json(self, name: str) -> Optional[object]:
        raw = self.safe_get(name)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Malformed JSON under '{name}', ignoring: {e}")
            return None

    # ------------------------------------------------------------------
    # Per-user session blob
    # ------------------------------------------------------------------

    def load_user_data(self, user_id: str) -> Optional[SessionState]:
        """Return the saved state, or None if absent or unreadable."""
        data = self._load_json(user_id)
        if data is None:
            return None
        try:
            return SessionState.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Saved state for {user_id} failed validation, using defaults: {e}")
            return None

    def save_user_data(self, user_id: str, state: SessionState) -> bool:
        return self.safe_set(user_id, json.dumps(state.to_record()))

    # ------------------------------------------------------------------
    # User directory
    # ------------------------------------------------------------------

    def load_users(self) -> Dict[str, UserRecord]:
        data = self._load_json("users")
        if not isinstance(data, dict):
            return {}
        users: Dict[str, UserRecord] = {}
        for user_id, raw in data.items():
            try:
                users[user_id] = UserRecord.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed user record '{user_id}': {e}")
        return users

    def save_users(self, users: Dict[str, UserRecord]) -> bool:
        payload = {uid: record.model_dump(mode="json") for uid, record in users.items()}
        return self.safe_set("users", json.dumps(payload))

    # ------------------------------------------------------------------
    # Last identity
    # ------------------------------------------------------------------

    def get_last_user(self) -> Optional[str]:
        return self.safe_get("last_user") or None

    def set_last_user(self, user_id: str) -> bool:
        return self.safe_set("last_user", user_id)
