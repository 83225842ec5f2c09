"""
Tests for tools/session_store.py — fail-soft key-value persistence.
"""

import json

from models.session import SessionState, UserRecord
from tools.session_store import JsonFileStore, MemoryStore, SessionStore

from conftest import NOW, make_quest


class TestMemoryStore:

    def test_get_set(self):
        kv = MemoryStore()
        assert kv.get("missing") is None
        kv.set("k", "v")
        assert kv.get("k") == "v"


class TestJsonFileStore:

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        JsonFileStore(str(path)).set("a", "1")
        JsonFileStore(str(path)).set("b", "2")
        reopened = JsonFileStore(str(path))
        assert reopened.get("a") == "1"
        assert reopened.get("b") == "2"
        assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1", "b": "2"}

    def test_missing_file_reads_none(self, tmp_path):
        assert JsonFileStore(str(tmp_path / "none.json")).get("a") is None

    def test_corrupt_file_degrades_to_absent(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        store = SessionStore(JsonFileStore(str(path)))
        assert store.load_user_data("someone") is None
        assert store.load_users() == {}

    def test_write_recovers_from_corrupt_file(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        store = SessionStore(JsonFileStore(str(path)))
        assert store.save_user_data("ada", SessionState(exp=5)) is True
        assert store.load_user_data("ada").exp == 5
        assert (tmp_path / "store.json.corrupt").read_text(encoding="utf-8") == "{not json"


class TestUserData:

    def test_round_trip(self, store):
        state = SessionState(quests=[make_quest(due_at=NOW)], exp=35, level=2, unspent=3)
        assert store.save_user_data("ada@example.com", state) is True
        loaded = store.load_user_data("ada@example.com")
        assert loaded == state

    def test_key_layout(self, store, memory_store):
        store.save_user_data("ada@example.com", SessionState())
        assert "levelup_academy_v1::ada@example.com" in memory_store.data
        blob = json.loads(memory_store.data["levelup_academy_v1::ada@example.com"])
        assert blob["lastGeneratedAt"] is None
        assert blob["level"] == 1

    def test_absent_is_none(self, store):
        assert store.load_user_data("nobody") is None

    def test_malformed_json_is_none(self, store, memory_store):
        memory_store.set("levelup_academy_v1::x", "{{{")
        assert store.load_user_data("x") is None

    def test_invalid_shape_is_none(self, store, memory_store):
        memory_store.set("levelup_academy_v1::x", json.dumps({"level": -3}))
        assert store.load_user_data("x") is None


class TestUsers:

    def test_users_round_trip(self, store):
        users = {"ada@example.com": UserRecord(email="ada@example.com", password="cHc=")}
        store.save_users(users)
        assert store.load_users()["ada@example.com"].password == "cHc="

    def test_malformed_record_skipped(self, store, memory_store):
        memory_store.set("levelup_academy_v1::users", json.dumps({
            "good@example.com": {"email": "good@example.com", "password": "eA=="},
            "bad@example.com": {"nope": True},
        }))
        assert list(store.load_users()) == ["good@example.com"]

    def test_last_user(self, store):
        assert store.get_last_user() is None
        store.set_last_user("ada@example.com")
        assert store.get_last_user() == "ada@example.com"


class TestUnavailableStorage:

    def test_reads_absent_writes_dropped(self, broken_store):
        assert broken_store.load_user_data("ada") is None
        assert broken_store.save_user_data("ada", SessionState()) is False
        assert broken_store.load_users() == {}
        assert broken_store.get_last_user() is None
        assert broken_store.set_last_user("ada") is False
