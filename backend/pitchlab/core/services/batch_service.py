from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from pitchlab.core.entities import ValidatedPitch
from pitchlab.core.errors import (
    DuplicateConflict,
    InputError,
    OwnerNotFound,
    PartialCommitError,
    PitchValidationError,
)
from pitchlab.core.ports.fingerprint import IFingerprintEngine
from pitchlab.core.ports.store import IUserPitchStore
from pitchlab.models.pitch_model import PitchIn, describe_errors

log = logging.getLogger("pitchlab.batch")


@dataclass(frozen=True)
class BatchSubmission:
    pitcher_id: Any
    pitches: Any
    check_only: bool = False
    skip_duplicates: bool = False
    force_insert: bool = False


@dataclass(frozen=True)
class BatchCheckReport:
    duplicate_indices: List[int]
    total_count: int

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicate_indices)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasDuplicates": self.duplicate_count > 0,
            "duplicateCount": self.duplicate_count,
            "uniqueCount": self.total_count - self.duplicate_count,
            "totalCount": self.total_count,
            "duplicateIndices": list(self.duplicate_indices),
        }


@dataclass(frozen=True)
class BatchCommitResult:
    count: int
    message: str
    skipped_duplicates: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": True, "count": self.count, "message": self.message}
        if self.skipped_duplicates is not None:
            body["skippedDuplicates"] = self.skipped_duplicates
        return body


BatchOutcome = Union[BatchCheckReport, BatchCommitResult]


def parse_owner_id(raw: Any) -> int:
    if raw is None or raw == "":
        raise InputError("pitcher_id is required")
    if isinstance(raw, bool):
        raise InputError("pitcher_id must be a valid integer")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        value = int(raw.strip())
    else:
        raise InputError("pitcher_id must be a valid integer")
    if value < 1:
        raise InputError("pitcher_id must be a positive integer")
    return value


class BatchCommitCoordinator:
    """
    Staged commit for user batch uploads:
    validate all rows -> fingerprint check -> check-only / confirm / skip / insert.
    Only the final insert stage writes.
    """

    def __init__(
        self,
        store: IUserPitchStore,
        engine: IFingerprintEngine,
        chunk_size: int = 100,
        max_rows: int = 5000,
        detail_limit: int = 10,
    ):
        self.store = store
        self.engine = engine
        self.chunk_size = max(1, chunk_size)
        self.max_rows = max_rows
        self.detail_limit = detail_limit

    def validate(self, rows: Sequence[Any]) -> List[ValidatedPitch]:
        """All-or-nothing: any bad row rejects the whole batch."""
        valid: List[ValidatedPitch] = []
        errors: List[str] = []
        for i, row in enumerate(rows, 1):
            if not isinstance(row, dict):
                errors.append(f"Row {i}: must be an object")
                continue
            try:
                valid.append(PitchIn.model_validate(row).to_validated())
            except ValidationError as e:
                errors.append(f"Row {i}: {describe_errors(e)}")

        if errors:
            log.info("Batch validation failed | rows=%d | invalid=%d", len(rows), len(errors))
            raise PitchValidationError("Validation failed", errors[: self.detail_limit])
        return valid

    async def submit(self, owner_uid: str, submission: BatchSubmission) -> BatchOutcome:
        started = time.time()
        pitcher_id = parse_owner_id(submission.pitcher_id)

        rows = submission.pitches
        if not isinstance(rows, list) or not rows:
            raise InputError("pitches array is required and must not be empty")
        if len(rows) > self.max_rows:
            raise InputError(f"pitches array must not exceed {self.max_rows} rows (got {len(rows)})")

        if not await self.store.owner_exists(pitcher_id, owner_uid):
            raise OwnerNotFound("Pitcher not found")

        pitches = self.validate(rows)
        check = await self.engine.check(pitcher_id, pitches)

        if submission.check_only:
            return BatchCheckReport(duplicate_indices=check.duplicate_indices, total_count=len(pitches))

        if check.has_duplicates and not submission.force_insert:
            if not submission.skip_duplicates:
                raise DuplicateConflict(check.duplicate_count, len(pitches))
            log.info(
                "Batch skipped as duplicate | pitcher=%d | duplicates=%d/%d",
                pitcher_id, check.duplicate_count, len(pitches),
            )
            return BatchCommitResult(
                count=0,
                skipped_duplicates=check.duplicate_count,
                message="Duplicate batch skipped - these pitches were already in the database.",
            )

        inserted = await self._insert_chunks(pitcher_id, pitches)
        log.info(
            "Batch commit | pitcher=%d | inserted=%d | forced=%s | duplicates=%d | took=%.3fs",
            pitcher_id, inserted, submission.force_insert, check.duplicate_count, time.time() - started,
        )
        return BatchCommitResult(count=inserted, message=f"Successfully uploaded {inserted} pitches")

    async def _insert_chunks(self, pitcher_id: int, pitches: List[ValidatedPitch]) -> int:
        total = 0
        for i in range(0, len(pitches), self.chunk_size):
            chunk = pitches[i:i + self.chunk_size]
            try:
                total += await self.store.insert_user_pitches(pitcher_id, chunk)
            except Exception as e:
                log.error("Batch insert failed at chunk %d after %d rows: %s", i // self.chunk_size, total, e)
                raise PartialCommitError(
                    f"Batch insert failed at chunk {i // self.chunk_size}", committed=total, total=len(pitches),
                ) from e
        return total
