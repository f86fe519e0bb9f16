from __future__ import annotations
import asyncio
import logging
import time
from datetime import date
from typing import Callable, List, Optional

from pitchlab.core.entities import IngestionWindow, JobStatus, SeedMode, SeedProgress, SeedResult
from pitchlab.core.errors import InvalidRange, StorageFailure, UpstreamFailure
from pitchlab.core.ports.source import IPitchSource
from pitchlab.core.ports.store import IReferencePitchStore
from pitchlab.core.services.job_registry import CancellationToken, IngestionJob
from pitchlab.core.services.range_chunker import chunk_range
from pitchlab.core.services.statcast_transform import transform_rows

log = logging.getLogger("pitchlab.seed")

ProgressCallback = Callable[[SeedProgress], None]


class SeedIngestor:
    """
    Chunked import of Statcast data into the reference table.

    Windows run strictly one after another. A failed window stops the run
    without touching windows already committed, so re-running in append mode
    resumes safely: rows already present by identity are skipped.
    """

    def __init__(
        self,
        source: IPitchSource,
        store: IReferencePitchStore,
        max_window_days: int = 3,
        insert_batch_size: int = 1000,
    ):
        self.source = source
        self.store = store
        self.max_window_days = max_window_days
        self.insert_batch_size = max(1, insert_batch_size)

    def plan(self, start: date, end: date) -> List[IngestionWindow]:
        """Windows a run over [start, end] would process; raises InvalidRange."""
        return chunk_range(start, end, self.max_window_days)

    async def run(
        self,
        start: date,
        end: date,
        mode: SeedMode,
        job: IngestionJob,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SeedResult:
        token = token or job.token
        started = time.time()
        try:
            windows = self.plan(start, end)
        except InvalidRange as e:
            job.finish(SeedResult(status=JobStatus.FAILED), e.message)
            raise
        result = SeedResult(status=JobStatus.RUNNING, windows_total=len(windows))

        try:
            if token.cancelled:
                result.status = JobStatus.CANCELLED
                job.finish(result, "Ingestion cancelled")
                return result

            if mode is SeedMode.REPLACE:
                # the wipe completes before the first fetch, never between inserts
                log.warning("Replace mode: truncating reference table before seeding %s..%s", start, end)
                try:
                    await self.store.truncate_reference()
                except StorageFailure:
                    raise
                except Exception as e:
                    raise StorageFailure("Failed to clear existing data", [str(e)]) from e

            for idx, window in enumerate(windows, 1):
                raw = await self._fetch(window)
                rows, dropped = transform_rows(raw)
                inserted = await self._insert(rows, window, result)

                result.inserted += inserted
                result.skipped += dropped + (len(rows) - inserted)
                result.windows_done = idx
                result.last_window = window

                job.update(
                    f"Processed {window.start}..{window.end} ({idx}/{len(windows)})",
                    result.inserted, result.skipped,
                )
                if on_progress is not None:
                    on_progress(SeedProgress(
                        window_index=idx,
                        windows_total=len(windows),
                        window=window,
                        inserted=result.inserted,
                        skipped=result.skipped,
                    ))

                if token.cancelled and idx < len(windows):
                    result.status = JobStatus.CANCELLED
                    break
            else:
                result.status = JobStatus.SUCCESS

        except (UpstreamFailure, StorageFailure) as e:
            result.status = JobStatus.FAILED
            e.partial = result
            job.finish(result, e.message)
            log.error(
                "Seed failed | range=%s..%s | windows_done=%d/%d | inserted=%d | error=%s",
                start, end, result.windows_done, result.windows_total, result.inserted, e.message,
            )
            raise
        except asyncio.CancelledError:
            # the request task itself went away; the job must still end terminal
            result.status = JobStatus.CANCELLED
            job.finish(result, "Ingestion cancelled")
            log.warning(
                "Seed task cancelled | range=%s..%s | windows_done=%d/%d | inserted=%d",
                start, end, result.windows_done, result.windows_total, result.inserted,
            )
            raise
        except Exception:
            result.status = JobStatus.FAILED
            job.finish(result, "Ingestion failed")
            raise

        if result.inserted or mode is SeedMode.REPLACE:
            await self._refresh_stats_view()

        message = "Ingestion complete!" if result.status is JobStatus.SUCCESS else "Ingestion cancelled"
        job.finish(result, message)
        log.info(
            "Seed summary | range=%s..%s | mode=%s | status=%s | windows=%d/%d | inserted=%d | skipped=%d | took=%.3fs",
            start, end, mode.value, result.status.value, result.windows_done, result.windows_total,
            result.inserted, result.skipped, time.time() - started,
        )
        return result

    async def _refresh_stats_view(self) -> None:
        try:
            await self.store.refresh_stats_view()
        except Exception as e:
            # the view may not exist yet; seeding itself already succeeded
            log.warning("Could not refresh stats view: %s", e)

    async def _fetch(self, window):
        try:
            return await self.source.fetch_window(window)
        except UpstreamFailure:
            raise
        except Exception as e:
            raise UpstreamFailure(
                f"Failed to fetch data for {window.start}..{window.end}", [str(e)],
            ) from e

    async def _insert(self, rows, window, result: SeedResult) -> int:
        inserted = 0
        try:
            for i in range(0, len(rows), self.insert_batch_size):
                inserted += await self.store.insert_reference(rows[i:i + self.insert_batch_size])
        except Exception as e:
            # rows from this window that did land are still reported
            result.inserted += inserted
            raise StorageFailure(
                f"Failed to insert data for {window.start}..{window.end}", [str(e)],
            ) from e
        return inserted
