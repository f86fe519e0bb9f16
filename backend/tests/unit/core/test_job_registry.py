"""Unit tests for per-session ingestion job state."""

from __future__ import annotations

import asyncio

from pitchlab.core.entities import JobStatus, SeedResult
from pitchlab.core.services.job_registry import JobRegistry
from pitchlab.models.session.inmemory_session import InMemorySessionStore


def test_unknown_session_is_idle() -> None:
    """No stored job reads as an idle one."""
    registry = JobRegistry(InMemorySessionStore())

    assert registry.current("nobody").status is JobStatus.IDLE


def test_start_then_finish() -> None:
    """idle -> running -> success."""
    registry = JobRegistry(InMemorySessionStore())

    job = asyncio.run(registry.start("s1", "go"))
    assert registry.current("s1").status is JobStatus.RUNNING

    job.finish(SeedResult(status=JobStatus.SUCCESS, inserted=4), "done")
    assert registry.current("s1").to_dict()["totals"] == {"inserted": 4, "skipped": 0}
    assert registry.current("s1").status is JobStatus.SUCCESS


def test_starting_again_cancels_prior_running_job() -> None:
    """A second start signals the first job and waits for it to stop."""
    registry = JobRegistry(InMemorySessionStore(), takeover_timeout_sec=1.0)

    async def scenario():
        first = await registry.start("s1", "first")

        async def worker():
            while not first.token.cancelled:
                await asyncio.sleep(0.01)
            first.finish(SeedResult(status=JobStatus.CANCELLED), "cancelled")

        task = asyncio.create_task(worker())
        second = await registry.start("s1", "second")
        await task
        return first, second

    first, second = asyncio.run(scenario())

    assert first.status is JobStatus.CANCELLED
    assert second.status is JobStatus.RUNNING
    assert registry.current("s1") is second


def test_takeover_gives_up_after_timeout() -> None:
    """A prior job that never stops does not block the new one forever."""
    registry = JobRegistry(InMemorySessionStore(), takeover_timeout_sec=0.05)

    async def scenario():
        await registry.start("s1", "stuck")
        return await registry.start("s1", "fresh")

    fresh = asyncio.run(scenario())

    assert fresh.message == "fresh"
    assert fresh.status is JobStatus.RUNNING


def test_sessions_are_independent() -> None:
    """Jobs are keyed by session."""
    registry = JobRegistry(InMemorySessionStore())

    asyncio.run(registry.start("s1", "one"))

    assert registry.current("s2").status is JobStatus.IDLE


def test_cancel_sets_token_only_when_running() -> None:
    """Cancelling an idle session is a no-op."""
    registry = JobRegistry(InMemorySessionStore())
    assert registry.cancel("s1").status is JobStatus.IDLE

    job = asyncio.run(registry.start("s1", "go"))
    registry.cancel("s1")

    assert job.token.cancelled


def test_reset_terminal_job_returns_to_idle() -> None:
    """Reset leaves a terminal state for idle."""
    registry = JobRegistry(InMemorySessionStore())
    job = asyncio.run(registry.start("s1", "go"))
    job.finish(SeedResult(status=JobStatus.FAILED), "boom")

    assert registry.reset("s1").status is JobStatus.IDLE
    assert registry.current("s1").status is JobStatus.IDLE


def test_reset_of_running_job_cancels_instead() -> None:
    """A running job cannot be reset out from under its worker."""
    registry = JobRegistry(InMemorySessionStore())
    job = asyncio.run(registry.start("s1", "go"))

    after = registry.reset("s1")

    assert after is job
    assert job.status is JobStatus.RUNNING
    assert job.token.cancelled


def test_expired_session_forgets_job() -> None:
    """Session TTL bounds how long job state lingers."""
    sessions = InMemorySessionStore(ttl_sec=10)
    registry = JobRegistry(sessions)
    asyncio.run(registry.start("s1", "go"))

    assert sessions.sweep(now=10**12) == 1
    assert registry.current("s1").status is JobStatus.IDLE


def test_reset_drops_session_entry() -> None:
    """Resetting a finished job frees its session slot; idle sessions stay idle."""
    sessions = InMemorySessionStore()
    registry = JobRegistry(sessions)
    assert registry.reset("s1").status is JobStatus.IDLE

    job = asyncio.run(registry.start("s1", "go"))
    job.finish(SeedResult(status=JobStatus.SUCCESS), "done")
    assert len(sessions) == 1

    registry.reset("s1")

    assert len(sessions) == 0
    assert registry.current("s1").status is JobStatus.IDLE
