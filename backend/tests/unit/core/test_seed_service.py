"""Unit tests for chunked reference seeding."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from fakes import FakeSavantSource
from pitchlab.core.entities import JobStatus, SeedMode
from pitchlab.core.errors import InvalidRange, StorageFailure, UpstreamFailure
from pitchlab.core.services.job_registry import IngestionJob, JobRegistry
from pitchlab.core.services.seed_service import SeedIngestor
from pitchlab.models.session.inmemory_session import InMemorySessionStore
from pitchlab.models.store.inmemory_store import InMemoryPitchStore

START, END = date(2024, 9, 1), date(2024, 9, 6)


def _running_job() -> IngestionJob:
    job = IngestionJob()
    job.start("test")
    return job


def test_append_twice_is_idempotent() -> None:
    """A second identical run inserts nothing and reports every row as skipped."""
    store = InMemoryPitchStore()
    ingestor = SeedIngestor(FakeSavantSource(), store, max_window_days=3)

    first = asyncio.run(ingestor.run(START, END, SeedMode.APPEND, _running_job()))
    second = asyncio.run(ingestor.run(START, END, SeedMode.APPEND, _running_job()))

    assert first.status is JobStatus.SUCCESS
    assert first.inserted == 12
    assert second.inserted == 0
    assert second.skipped == 12
    assert len(store) == 12


def test_replace_leaves_no_rows_from_previous_run() -> None:
    """Replace mode wipes before inserting; only the new range survives."""
    store = InMemoryPitchStore()
    asyncio.run(SeedIngestor(FakeSavantSource(tag="A"), store).run(START, END, SeedMode.APPEND, _running_job()))

    new_start, new_end = date(2024, 8, 1), date(2024, 8, 3)
    result = asyncio.run(
        SeedIngestor(FakeSavantSource(tag="B"), store).run(new_start, new_end, SeedMode.REPLACE, _running_job())
    )

    assert result.inserted == 6
    assert len(store) == 6
    assert all(new_start <= r["game_date"] <= new_end for r in store.reference)
    assert all(r["pitcher_name"].startswith("Pitcher B") for r in store.reference)


def test_append_keeps_existing_rows() -> None:
    """Append over a new range adds to what is there."""
    store = InMemoryPitchStore()
    ingestor = SeedIngestor(FakeSavantSource(), store)
    asyncio.run(ingestor.run(START, END, SeedMode.APPEND, _running_job()))

    asyncio.run(ingestor.run(date(2024, 9, 7), date(2024, 9, 9), SeedMode.APPEND, _running_job()))

    assert len(store) == 18


def test_cancellation_stops_between_windows() -> None:
    """Cancel during the first window: that window commits, nothing after it is fetched."""
    store = InMemoryPitchStore()
    source = FakeSavantSource()
    job = _running_job()

    result = asyncio.run(
        SeedIngestor(source, store).run(
            date(2024, 9, 1), date(2024, 9, 9), SeedMode.APPEND, job,
            on_progress=lambda _: job.token.cancel(),
        )
    )

    assert result.status is JobStatus.CANCELLED
    assert result.windows_done == 1
    assert len(source.calls) == 1
    assert len(store) == 6
    assert job.status is JobStatus.CANCELLED
    assert result.to_dict()["completedThrough"] == "2024-09-03"


def test_cancel_before_start_does_nothing() -> None:
    """A token already cancelled short-circuits the run."""
    source = FakeSavantSource()
    job = _running_job()
    job.token.cancel()

    result = asyncio.run(SeedIngestor(source, InMemoryPitchStore()).run(START, END, SeedMode.REPLACE, job))

    assert result.status is JobStatus.CANCELLED
    assert source.calls == []


def test_cancel_on_last_window_still_succeeds() -> None:
    """Nothing is left to skip once the final window is done."""
    job = _running_job()

    result = asyncio.run(
        SeedIngestor(FakeSavantSource(), InMemoryPitchStore()).run(
            date(2024, 9, 1), date(2024, 9, 3), SeedMode.APPEND, job,
            on_progress=lambda _: job.token.cancel(),
        )
    )

    assert result.status is JobStatus.SUCCESS


def test_upstream_failure_reports_partial_progress() -> None:
    """Windows before the failure stay committed and are reported on the error."""
    store = InMemoryPitchStore()
    job = _running_job()
    ingestor = SeedIngestor(FakeSavantSource(fail_on={date(2024, 9, 4)}), store)

    with pytest.raises(UpstreamFailure) as excinfo:
        asyncio.run(ingestor.run(START, END, SeedMode.APPEND, job))

    partial = excinfo.value.partial
    assert partial.windows_done == 1
    assert partial.inserted == 6
    assert len(store) == 6
    assert job.status is JobStatus.FAILED
    assert excinfo.value.to_payload()["partial"]["completedThrough"] == "2024-09-03"


def test_resume_after_failure_fills_the_gap() -> None:
    """Re-running the same range in append mode completes it without duplicates."""
    store = InMemoryPitchStore()
    with pytest.raises(UpstreamFailure):
        asyncio.run(
            SeedIngestor(FakeSavantSource(fail_on={date(2024, 9, 4)}), store).run(
                START, END, SeedMode.APPEND, _running_job()
            )
        )

    result = asyncio.run(SeedIngestor(FakeSavantSource(), store).run(START, END, SeedMode.APPEND, _running_job()))

    assert result.inserted == 6
    assert result.skipped == 6
    assert len(store) == 12


class _BrokenStore(InMemoryPitchStore):
    async def insert_reference(self, rows):
        raise RuntimeError("disk full")


def test_storage_failure_is_wrapped() -> None:
    """Store errors surface as StorageFailure with the job marked failed."""
    job = _running_job()

    with pytest.raises(StorageFailure) as excinfo:
        asyncio.run(SeedIngestor(FakeSavantSource(), _BrokenStore()).run(START, END, SeedMode.APPEND, job))

    assert "disk full" in excinfo.value.details[0]
    assert job.status is JobStatus.FAILED


def test_invalid_range_finishes_job_as_failed() -> None:
    """A bad range never leaves the job stuck in running."""
    job = _running_job()

    with pytest.raises(InvalidRange):
        asyncio.run(SeedIngestor(FakeSavantSource(), InMemoryPitchStore()).run(END, START, SeedMode.APPEND, job))

    assert job.status is JobStatus.FAILED


class _PartlyBadSource(FakeSavantSource):
    async def fetch_window(self, window):
        rows = await super().fetch_window(window)
        rows[0]["pitch_type"] = ""
        return rows


def test_unusable_rows_count_as_skipped() -> None:
    """Rows missing essentials are dropped and counted, not fatal."""
    result = asyncio.run(
        SeedIngestor(_PartlyBadSource(), InMemoryPitchStore()).run(
            date(2024, 9, 1), date(2024, 9, 3), SeedMode.APPEND, _running_job()
        )
    )

    assert result.inserted == 5
    assert result.skipped == 1


def test_stats_view_refreshed_after_insert() -> None:
    """The summary view is refreshed once per run that changed data."""
    store = InMemoryPitchStore()
    ingestor = SeedIngestor(FakeSavantSource(), store)

    asyncio.run(ingestor.run(START, END, SeedMode.APPEND, _running_job()))
    asyncio.run(ingestor.run(START, END, SeedMode.APPEND, _running_job()))

    assert store.view_refreshes == 1


def test_progress_reported_per_window() -> None:
    """One progress event per committed window, with running totals."""
    events = []

    asyncio.run(
        SeedIngestor(FakeSavantSource(), InMemoryPitchStore()).run(
            START, END, SeedMode.APPEND, _running_job(), on_progress=events.append
        )
    )

    assert [e.window_index for e in events] == [1, 2]
    assert [e.inserted for e in events] == [6, 12]


class _HangingSource(FakeSavantSource):
    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()

    async def fetch_window(self, window):
        self.entered.set()
        await asyncio.sleep(10)
        return await super().fetch_window(window)


def test_task_cancellation_leaves_job_terminal_and_resettable() -> None:
    """Cancelling the running task itself still finishes the job, so reset works."""
    registry = JobRegistry(InMemorySessionStore(), takeover_timeout_sec=0.5)

    async def scenario():
        job = await registry.start("s1", "go")
        source = _HangingSource()
        task = asyncio.create_task(
            SeedIngestor(source, InMemoryPitchStore()).run(START, END, SeedMode.APPEND, job)
        )
        await source.entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return job

    job = asyncio.run(scenario())

    assert job.status is JobStatus.CANCELLED
    assert job.finished_at is not None
    assert registry.reset("s1").status is JobStatus.IDLE
    assert registry.current("s1").status is JobStatus.IDLE
