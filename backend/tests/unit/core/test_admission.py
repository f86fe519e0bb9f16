"""Unit tests for fixed-window admission control."""

from __future__ import annotations

import pytest

from pitchlab.core.errors import RateLimited
from pitchlab.core.services.admission import AdmissionControl, RatePolicy, client_id_from_headers
from pitchlab.models.admission.inmemory_admission import InMemoryAdmissionStore


def _control(limit: int = 3, window: float = 300.0) -> AdmissionControl:
    return AdmissionControl(InMemoryAdmissionStore(), {"heavy": RatePolicy("heavy", limit, window)})


def test_limit_then_reject() -> None:
    """The fourth call inside the window is refused with retry info."""
    control = _control()
    for _ in range(3):
        control.admit("heavy", "1.2.3.4", now=1000.0)

    with pytest.raises(RateLimited) as excinfo:
        control.admit("heavy", "1.2.3.4", now=1010.0)

    err = excinfo.value
    assert err.retry_after == 290
    assert err.headers()["Retry-After"] == "290"
    assert err.headers()["X-RateLimit-Limit"] == "3"
    assert err.headers()["X-RateLimit-Reset"] == "1300"
    assert err.to_payload() == {"error": "Too many requests. Please try again later.", "retryAfter": 290}


def test_window_resets_after_expiry() -> None:
    """A new window starts once the old one has passed."""
    control = _control()
    for _ in range(3):
        control.admit("heavy", "c", now=0.0)

    decision = control.admit("heavy", "c", now=300.0)

    assert decision.allowed
    assert decision.remaining == 2


def test_clients_are_counted_separately() -> None:
    """One noisy client does not throttle another."""
    control = _control(limit=1)
    control.admit("heavy", "a", now=0.0)

    assert control.admit("heavy", "b", now=0.0).allowed


def test_remaining_counts_down() -> None:
    """Each admitted call consumes one slot."""
    control = _control(limit=3)

    assert [control.admit("heavy", "c", now=0.0).remaining for _ in range(3)] == [2, 1, 0]


def test_sweep_drops_only_expired_windows() -> None:
    """Sweep keeps live counters."""
    store = InMemoryAdmissionStore()
    store.hit("a", 5, 10.0, now=0.0)
    store.hit("b", 5, 100.0, now=0.0)

    assert store.sweep(now=50.0) == 1
    assert len(store) == 1


def test_retry_after_is_at_least_one_second() -> None:
    """Clients are never told to retry immediately."""
    store = InMemoryAdmissionStore()
    store.hit("k", 1, 10.0, now=0.0)

    decision = store.hit("k", 1, 10.0, now=9.99)

    assert not decision.allowed
    assert decision.retry_after == 1


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"x-forwarded-for": "10.0.0.1, 172.16.0.1"}, "10.0.0.1"),
        ({"x-real-ip": " 10.0.0.2 "}, "10.0.0.2"),
        ({}, "fallback"),
    ],
)
def test_client_id_resolution(headers: dict, expected: str) -> None:
    """First forwarded address wins, then real-ip, then the socket peer."""
    assert client_id_from_headers(headers, "fallback") == expected
