"""Unit tests for the sliding-TTL session store."""

from __future__ import annotations

from pitchlab.models.session.inmemory_session import InMemorySessionStore


def test_value_expires_after_ttl() -> None:
    """Reads past the TTL return nothing and drop the entry."""
    store = InMemorySessionStore(ttl_sec=10)
    store.put("s", "v", now=0.0)

    assert store.get("s", now=9.0) == "v"
    assert store.get("s", now=10.0) is None
    assert len(store) == 0


def test_put_slides_expiry() -> None:
    """Writing again pushes expiry forward."""
    store = InMemorySessionStore(ttl_sec=10)
    store.put("s", "v", now=0.0)
    store.put("s", "v", now=8.0)

    assert store.get("s", now=15.0) == "v"


def test_sweep_and_delete() -> None:
    """Sweep removes expired entries; delete removes one outright."""
    store = InMemorySessionStore(ttl_sec=10)
    store.put("old", 1, now=0.0)
    store.put("new", 2, now=5.0)
    store.put("gone", 3, now=5.0)
    store.delete("gone")

    assert store.sweep(now=12.0) == 1
    assert store.get("new", now=12.0) == 2
    assert store.get("gone", now=12.0) is None
