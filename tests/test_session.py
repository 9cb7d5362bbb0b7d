from __future__ import annotations

from aurorajournal.session import SessionUnlockCache


def test_remember_and_forget():
    cache = SessionUnlockCache()
    cache.remember("a", "abcd", "secret")
    assert "a" in cache
    assert len(cache) == 1
    assert cache.password_for("a") == "abcd"
    assert cache.content_for("a") == "secret"
    cache.forget("a")
    assert "a" not in cache
    assert cache.password_for("a") is None
    cache.forget("a")


def test_update_content_only_for_known_ids():
    cache = SessionUnlockCache()
    cache.update_content("ghost", "x")
    assert "ghost" not in cache
    cache.remember("a", "abcd", "old")
    cache.update_content("a", "new")
    assert cache.content_for("a") == "new"


def test_clear_and_repr_hide_secrets():
    cache = SessionUnlockCache()
    cache.remember("a", "abcd", "secret")
    assert "abcd" not in repr(cache._entries["a"])
    assert "secret" not in repr(cache._entries["a"])
    cache.clear()
    assert len(cache) == 0
