"""
LevelUp Error Types — Structured exception hierarchy.

Only user-input failures are raised. Storage problems and malformed saved
data are logged and degraded to defaults by the session store instead.
"""


class LevelUpError(Exception):
    """Base class for all quest engine errors."""
    pass


class QuestValidationError(LevelUpError):
    """A hand-made quest is missing required fields or has bad values."""
    pass


class QuestNotFoundError(LevelUpError):
    """No quest with the given ID exists in the session."""
    pass


class AccountError(LevelUpError):
    """Sign-up or log-in was rejected (missing fields, bad credentials)."""
    pass


class SessionClosedError(LevelUpError):
    """An operation was attempted on a session that has been torn down."""
    pass
