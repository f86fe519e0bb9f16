from __future__ import annotations
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Sequence, Set

from pitchlab.core.entities import DuplicateCheckResult, PitchFingerprint, ValidatedPitch
from pitchlab.core.ports.fingerprint import IFingerprintEngine
from pitchlab.core.ports.store import IUserPitchStore

log = logging.getLogger("pitchlab.fingerprint")

# Two decimals survives a float round-trip through the store.
_MEASURE_PLACES = Decimal("0.01")


def normalize_measure(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(Decimal(str(value)).quantize(_MEASURE_PLACES, rounding=ROUND_HALF_UP))


def normalize_spin(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def normalize_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def fingerprint_row(owner_id: int, row: Dict[str, Any]) -> PitchFingerprint:
    """Fingerprint a persisted row (column names as stored)."""
    return PitchFingerprint(
        owner_id=int(owner_id),
        pitch_type=str(row["pitch_type"]),
        velocity=normalize_measure(row.get("velocity_mph")),
        spin_rate=normalize_spin(row.get("spin_rate")),
        horizontal_break=normalize_measure(row.get("horizontal_break")),
        vertical_break=normalize_measure(row.get("vertical_break")),
        date=normalize_date(row.get("date")),
    )


class FingerprintEngine(IFingerprintEngine):
    """
    Content identity for pitch events. There is no natural key, so two real
    pitches with identical tracked values collapse into one fingerprint; the
    batch protocol surfaces that to the caller instead of guessing.
    """

    def __init__(self, store: IUserPitchStore):
        self.store = store

    def fingerprint(self, owner_id: int, pitch: ValidatedPitch) -> PitchFingerprint:
        return PitchFingerprint(
            owner_id=int(owner_id),
            pitch_type=pitch.pitch_type,
            velocity=normalize_measure(pitch.velocity_mph),
            spin_rate=normalize_spin(pitch.spin_rate),
            horizontal_break=normalize_measure(pitch.horizontal_break),
            vertical_break=normalize_measure(pitch.vertical_break),
            date=normalize_date(pitch.date),
        )

    async def check(self, owner_id: int, pitches: Sequence[ValidatedPitch]) -> DuplicateCheckResult:
        if not pitches:
            return DuplicateCheckResult(duplicate_indices=[])

        candidates = [self.fingerprint(owner_id, p) for p in pitches]
        pitch_types = sorted({fp.pitch_type for fp in candidates})
        persisted_rows = await self.store.find_owner_pitches(owner_id, pitch_types)
        persisted: Set[PitchFingerprint] = {fingerprint_row(owner_id, r) for r in persisted_rows}

        indices = [i for i, fp in enumerate(candidates) if fp in persisted]
        log.info(
            "Duplicate check | owner=%s | candidates=%d | persisted=%d | duplicates=%d",
            owner_id, len(candidates), len(persisted), len(indices),
        )
        return DuplicateCheckResult(duplicate_indices=indices)
