"""Shared fixtures: an in-memory store with known pitchers and a deterministic source."""

from __future__ import annotations

import pytest

from fakes import FakeSavantSource
from pitchlab.models.store.inmemory_store import InMemoryPitchStore


@pytest.fixture
def store() -> InMemoryPitchStore:
    s = InMemoryPitchStore()
    s.add_pitcher(1, "user-1")
    s.add_pitcher(2, "someone-else")
    s.add_pitcher(3, None)
    return s


@pytest.fixture
def source() -> FakeSavantSource:
    return FakeSavantSource()

