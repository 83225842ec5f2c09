"""
Unit tests for tools/accounts.py — local sign-up and log-in.
"""

import pytest

from models.session import SessionState
from tools.accounts import AccountRegistry, normalize_email, obscure_password
from tools.errors import AccountError


@pytest.fixture
def registry(store):
    return AccountRegistry(store)


class TestHelpers:

    def test_normalize_email(self):
        assert normalize_email("  Ada@Example.COM ") == "ada@example.com"
        assert normalize_email(None) == ""

    def test_obscure_is_base64(self):
        assert obscure_password("pw") == "cHc="


class TestSignUp:

    def test_creates_user_with_default_profile(self, registry, store):
        identity = registry.sign_up(" Ada@Example.com", "secret", "secret")
        assert identity.id == "ada@example.com"
        record = store.load_users()["ada@example.com"]
        assert record.password == obscure_password("secret")
        assert record.profile.level == 1
        assert record.profile.stats["Strength"] == 40
        assert store.get_last_user() == "ada@example.com"

    def test_remember_off_leaves_pointer(self, registry, store):
        registry.sign_up("ada@example.com", "pw", "pw", remember=False)
        assert store.get_last_user() is None

    @pytest.mark.parametrize("email,password,confirm,message", [
        ("", "pw", "pw", "Provide email and password"),
        ("ada@example.com", "", "", "Provide email and password"),
        ("ada@example.com", "pw", "other", "Passwords do not match"),
    ])
    def test_rejects_bad_input(self, registry, store, email, password, confirm, message):
        with pytest.raises(AccountError, match=message):
            registry.sign_up(email, password, confirm)
        assert store.load_users() == {}

    def test_duplicate_rejected(self, registry):
        registry.sign_up("ada@example.com", "pw", "pw")
        with pytest.raises(AccountError, match="already exists"):
            registry.sign_up("ADA@example.com", "pw2", "pw2")


class TestLogIn:

    def test_success(self, registry):
        registry.sign_up("ada@example.com", "pw", "pw", remember=False)
        identity = registry.log_in("Ada@Example.com ", "pw")
        assert identity.email == "ada@example.com"
        assert registry.last_user().id == "ada@example.com"

    def test_unknown_user(self, registry):
        with pytest.raises(AccountError, match="No such user"):
            registry.log_in("ghost@example.com", "pw")

    def test_wrong_password(self, registry):
        registry.sign_up("ada@example.com", "pw", "pw", remember=False)
        with pytest.raises(AccountError, match="Wrong password"):
            registry.log_in("ada@example.com", "nope")
        assert registry.last_user() is None

    def test_log_out_forget(self, registry):
        registry.sign_up("ada@example.com", "pw", "pw")
        registry.log_out()
        assert registry.last_user() is not None
        registry.log_out(forget=True)
        assert registry.last_user() is None


class TestSyncProfile:

    def test_copies_progression(self, registry, store):
        registry.sign_up("ada@example.com", "pw", "pw")
        state = SessionState(exp=12, level=3, unspent=6, stats={"Intelligence": 70})
        assert registry.sync_profile("ada@example.com", state) is True
        profile = store.load_users()["ada@example.com"].profile
        assert (profile.exp, profile.level, profile.unspent) == (12, 3, 6)
        assert profile.stats == {"Intelligence": 70}

    def test_unknown_user(self, registry):
        assert registry.sync_profile("ghost@example.com", SessionState()) is False
