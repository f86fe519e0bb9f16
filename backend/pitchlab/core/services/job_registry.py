from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pitchlab.core.entities import JobStatus, SeedResult
from pitchlab.core.ports.session import ISessionStore

log = logging.getLogger("pitchlab.jobs")


class CancellationToken:
    """Cooperative cancellation; checked by the ingestor between chunks."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class IngestionJob:
    status: JobStatus = JobStatus.IDLE
    message: str = ""
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    inserted: int = 0
    skipped: int = 0
    token: CancellationToken = field(default_factory=CancellationToken)
    _finished: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @property
    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return (self.finished_at or time.time()) - self.started_at

    def start(self, message: str) -> None:
        self.status = JobStatus.RUNNING
        self.message = message
        self.started_at = time.time()
        self.finished_at = None
        self.inserted = self.skipped = 0

    def update(self, message: str, inserted: int, skipped: int) -> None:
        self.message = message
        self.inserted = inserted
        self.skipped = skipped

    def finish(self, result: SeedResult, message: str) -> None:
        self.status = result.status
        self.inserted = result.inserted
        self.skipped = result.skipped
        self.message = message
        self.finished_at = time.time()
        self._finished.set()

    async def wait_finished(self) -> None:
        await self._finished.wait()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "startedAt": self.started_at,
            "elapsedSeconds": int(self.elapsed),
            "totals": {"inserted": self.inserted, "skipped": self.skipped},
        }


class JobRegistry:
    """At most one running ingestion job per caller session."""

    def __init__(self, sessions: ISessionStore, takeover_timeout_sec: float = 30.0):
        self.sessions = sessions
        self.takeover_timeout_sec = takeover_timeout_sec

    def current(self, session_id: str) -> IngestionJob:
        job = self.sessions.get(session_id)
        return job if job is not None else IngestionJob()

    def touch(self, session_id: str) -> None:
        job = self.sessions.get(session_id)
        if job is not None:
            self.sessions.put(session_id, job)

    async def start(self, session_id: str, message: str) -> IngestionJob:
        prior: Optional[IngestionJob] = self.sessions.get(session_id)
        if prior is not None and prior.status is JobStatus.RUNNING:
            log.info("Session %s already has a running job; cancelling it first", session_id)
            prior.token.cancel()
            try:
                await asyncio.wait_for(prior.wait_finished(), timeout=self.takeover_timeout_sec)
            except asyncio.TimeoutError:
                log.warning(
                    "Prior job for session %s did not stop within %.1fs; starting anyway",
                    session_id, self.takeover_timeout_sec,
                )

        job = IngestionJob()
        job.start(message)
        self.sessions.put(session_id, job)
        return job

    def cancel(self, session_id: str) -> IngestionJob:
        job = self.current(session_id)
        if job.status is JobStatus.RUNNING:
            job.token.cancel()
            job.message = "Cancellation requested"
        return job

    def reset(self, session_id: str) -> IngestionJob:
        job = self.current(session_id)
        if not job.status.terminal:
            # reset only leaves terminal states; a running job is cancelled instead
            return self.cancel(session_id)
        self.sessions.delete(session_id)
        return IngestionJob()
