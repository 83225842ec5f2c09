"""
Accounts — Local sign-up / log-in against the user directory.

Accounts never leave the machine. Passwords are base64-obscured so they are
not stored as plain text; this is not a security boundary.
"""

import base64
import logging
from typing import NamedTuple, Optional

from models.session import UserProfile, UserRecord, SessionState
from tools.errors import AccountError
from tools.session_store import SessionStore

logger = logging.getLogger("Accounts")


class UserIdentity(NamedTuple):
    id: str
    email: str


def normalize_email(email: Optional[str]) -> str:
    """Directory key for an email: trimmed and lowercased."""
    return (email or "").strip().lower()


def obscure_password(password: str) -> str:
    return base64.b64encode(password.encode("utf-8")).decode("ascii")


class AccountRegistry:
    """Sign-up and log-in over a SessionStore.

    All failures raise AccountError before anything is written.
    """

    def __init__(self, store: SessionStore):
        self.store = store

    def sign_up(self, email: str, password: str, confirm: str, remember: bool = True) -> UserIdentity:
        user_id = normalize_email(email)
        if not user_id or not password:
            raise AccountError("Provide email and password")
        if password != confirm:
            raise AccountError("Passwords do not match")

        users = self.store.load_users()
        if user_id in users:
            raise AccountError("User already exists")

        users[user_id] = UserRecord(
            email=user_id,
            password=obscure_password(password),
            profile=UserProfile(),
        )
        self.store.save_users(users)
        if remember:
            self.store.set_last_user(user_id)
        logger.info(f"Registered new user: {user_id}")
        return UserIdentity(id=user_id, email=user_id)

    def log_in(self, email: str, password: str, remember: bool = True) -> UserIdentity:
        user_id = normalize_email(email)
        users = self.store.load_users()
        record = users.get(user_id)
        if record is None:
            raise AccountError("No such user — please sign up")
        if record.password != obscure_password(password or ""):
            raise AccountError("Wrong password")
        if remember:
            self.store.set_last_user(user_id)
        logger.info(f"User logged in: {user_id}")
        return UserIdentity(id=user_id, email=user_id)

    def last_user(self) -> Optional[UserIdentity]:
        """Identity remembered from the last log-in, if any."""
        user_id = self.store.get_last_user()
        if not user_id:
            return None
        return UserIdentity(id=user_id, email=user_id)

    def log_out(self, forget: bool = False) -> None:
        """Forget the remembered identity if asked. Session teardown is the caller's job."""
        if forget:
            self.store.set_last_user("")
            logger.info("Remembered identity cleared")

    def sync_profile(self, user_id: str, state: SessionState) -> bool:
        """Copy the session's progression into the user directory entry."""
        users = self.store.load_users()
        record = users.get(user_id)
        if record is None:
            return False
        record.profile = UserProfile(
            stats=dict(state.stats),
            exp=state.exp,
            level=state.level,
            unspent=state.unspent,
        )
        return self.store.save_users(users)
