"""Unit tests for container wiring and request-level admission routing."""

from __future__ import annotations

import pytest

from fakes import FakeSavantSource, make_settings
from pitchlab.container import build_container
from pitchlab.core.ports.store import IPitchStore, IReferencePitchStore, IUserPitchStore
from pitchlab.db.deps import admission_policy
from pitchlab.models.store.inmemory_store import InMemoryPitchStore
from pitchlab.models.store.pg_store import PgPitchStore


def test_memory_backend_wires_one_store_for_both_ports() -> None:
    """The same store instance serves seeding and batch uploads."""
    container = build_container(make_settings(), source=FakeSavantSource())

    assert isinstance(container.store, IPitchStore)
    assert container.seed_ingestor.store is container.store
    assert container.batch_coordinator.store is container.store


@pytest.mark.parametrize("adapter", [InMemoryPitchStore, PgPitchStore])
def test_adapters_implement_both_store_ports(adapter) -> None:
    """Each backend satisfies the reference and user store contracts."""
    assert issubclass(adapter, IPitchStore)
    assert issubclass(adapter, IReferencePitchStore)
    assert issubclass(adapter, IUserPitchStore)


def test_postgres_backend_requires_database() -> None:
    """Selecting Postgres without a pool is a startup error."""
    with pytest.raises(RuntimeError):
        build_container(make_settings(store_backend="postgres"), source=FakeSavantSource())


@pytest.mark.parametrize(
    "method,path,expected",
    [
        ("POST", "/seed", "heavy"),
        ("post", "/seed/", "heavy"),
        ("DELETE", "/seed", "heavy"),
        ("POST", "/seed/preview", "heavy"),
        ("POST", "/pitches/batch", "batch"),
        ("GET", "/seed", None),
        ("POST", "/seed/job/cancel", None),
        ("GET", "/health", None),
    ],
)
def test_admission_policy_by_route(method: str, path: str, expected) -> None:
    """Only write and fetch-heavy routes are throttled."""
    assert admission_policy(method, path) == expected
