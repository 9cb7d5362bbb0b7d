from __future__ import annotations

import asyncio
import json

import pytest

from aurorajournal import logic
from aurorajournal.crypto import SEALED_PREFIX
from aurorajournal.errors import DecodeError, Denied, LockStateError, NotFound, WeakPasswordError
from aurorajournal.logic import DEFAULT_CONFIG, describe_error, load_config, open_journal, save_config
from aurorajournal.store import STORAGE_KEY


def run(coro):
    return asyncio.run(coro)


def test_plain_entry_flow(journal):
    async def flow():
        entry = await journal.new_entry("Morning", "I feel calm.", "peaceful")
        record, content = await journal.read_entry(entry.id)
        assert content == "I feel calm."
        await journal.save_entry(entry.id, "Morning", "Still calm.")
        return await journal.read_entry(entry.id)

    record, content = run(flow())
    assert content == "Still calm."
    assert record.mood.value == "peaceful"


def test_set_password_caches_for_session(journal, storage):
    async def flow():
        entry = await journal.new_entry("Morning", "I feel calm.")
        await journal.set_password(entry.id, "abcd")
        return entry, await journal.read_entry(entry.id)

    entry, (record, content) = run(flow())
    assert record.locked
    assert content == "I feel calm."
    assert "I feel calm." not in storage.blobs[STORAGE_KEY]


def test_lock_session_hides_content_again(journal):
    async def flow():
        entry = await journal.new_entry("t", "secret")
        await journal.set_password(entry.id, "abcd")
        journal.lock_session()
        return await journal.read_entry(entry.id)

    record, content = run(flow())
    assert record.locked
    assert content is None


def test_unlock_then_edit_locked_entry(journal, storage):
    async def flow():
        entry = await journal.new_entry("t", "secret")
        await journal.set_password(entry.id, "abcd")
        journal.lock_session()
        with pytest.raises(LockStateError):
            await journal.save_entry(entry.id, "t", "edited")
        with pytest.raises(Denied):
            await journal.unlock_entry(entry.id, "wxyz")
        assert await journal.unlock_entry(entry.id, "abcd") == "secret"
        saved = await journal.save_entry(entry.id, "t2", "edited")
        journal.lock_session()
        return saved, await journal.unlock_entry(entry.id, "abcd")

    saved, content = run(flow())
    assert saved.locked
    assert saved.title == "t2"
    assert content == "edited"
    assert "edited" not in storage.blobs[STORAGE_KEY]


def test_change_password_updates_cache(journal):
    async def flow():
        entry = await journal.new_entry("t", "secret")
        await journal.set_password(entry.id, "abcd")
        await journal.change_password(entry.id, "abcd", "efgh")
        assert journal.cache.password_for(entry.id) == "efgh"
        journal.lock_session()
        with pytest.raises(Denied):
            await journal.unlock_entry(entry.id, "abcd")
        return await journal.unlock_entry(entry.id, "efgh")

    assert run(flow()) == "secret"


def test_change_password_without_cache_leaves_cache_empty(journal):
    async def flow():
        entry = await journal.new_entry("t", "secret")
        await journal.set_password(entry.id, "abcd")
        journal.lock_session()
        await journal.change_password(entry.id, "abcd", "efgh")
        return entry.id in journal.cache

    assert run(flow()) is False


def test_remove_password(journal):
    async def flow():
        entry = await journal.new_entry("t", "secret")
        await journal.set_password(entry.id, "abcd")
        plain = await journal.remove_password(entry.id, "abcd")
        assert entry.id not in journal.cache
        return plain, await journal.read_entry(entry.id)

    plain, (record, content) = run(flow())
    assert not plain.locked
    assert not record.locked
    assert content == "secret"


def test_weak_password_is_rejected(journal):
    async def flow():
        entry = await journal.new_entry("t", "secret")
        with pytest.raises(WeakPasswordError):
            await journal.set_password(entry.id, "abc")
        return await journal.read_entry(entry.id)

    record, _ = run(flow())
    assert not record.locked


def test_delete_forgets_cache(journal):
    async def flow():
        entry = await journal.new_entry("t", "secret")
        await journal.set_password(entry.id, "abcd")
        assert await journal.delete_entry(entry.id) is True
        assert entry.id not in journal.cache
        assert await journal.delete_entry(entry.id) is False
        with pytest.raises(NotFound):
            await journal.read_entry(entry.id)

    run(flow())


def test_missing_entry_raises_not_found(journal):
    with pytest.raises(NotFound):
        run(journal.unlock_entry("missing", "abcd"))


def test_describe_error_keeps_causes_distinct():
    assert describe_error(Denied()) == "Incorrect password"
    assert describe_error(DecodeError("bad base64")) == "This entry's data could not be read"
    assert describe_error(NotFound("x")) == "Entry not found: x"
    assert describe_error(RuntimeError("boom")) == "Unexpected error: boom"


def test_load_config_creates_defaults_and_merges(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    cfg = load_config()
    assert cfg == DEFAULT_CONFIG
    path = tmp_path / "aurorajournal" / "config.json"
    assert path.exists()

    path.write_text(json.dumps({"active_theme": "night"}), encoding="utf-8")
    cfg = load_config()
    assert cfg["active_theme"] == "night"
    assert cfg["obscure_codec"] == "xor"

    cfg["min_password_length"] = 6
    save_config(cfg)
    assert load_config()["min_password_length"] == 6


def test_open_journal_from_config(tmp_path, monkeypatch):
    monkeypatch.delenv("AURORA_JOURNAL_DB", raising=False)
    cfg = dict(DEFAULT_CONFIG)
    cfg.update({
        "db_path": str(tmp_path / "journal.sqlite3"),
        "hash_time_cost": 1,
        "hash_memory_cost": 8,
        "hash_parallelism": 1,
        "obscure_codec": "aesgcm",
    })
    journal = open_journal(cfg)

    async def flow():
        entry = await journal.new_entry("Morning", "I feel calm.")
        locked = await journal.set_password(entry.id, "abcd")
        journal.lock_session()
        reopened = open_journal(cfg)
        return locked, await reopened.unlock_entry(entry.id, "abcd")

    locked, content = run(flow())
    assert locked.cipher_content.startswith(SEALED_PREFIX)
    assert content == "I feel calm."


def test_env_var_overrides_db_path(monkeypatch):
    monkeypatch.setenv("AURORA_JOURNAL_DB", "/tmp/elsewhere.sqlite3")
    assert logic.resolve_db_path({"db_path": "here.sqlite3"}) == "/tmp/elsewhere.sqlite3"
