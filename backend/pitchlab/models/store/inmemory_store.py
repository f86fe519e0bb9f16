from __future__ import annotations
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from pitchlab.core.entities import ReferenceStats, ValidatedPitch
from pitchlab.core.ports.store import IPitchStore
from pitchlab.core.services.statcast_transform import REFERENCE_IDENTITY


class InMemoryPitchStore(IPitchStore):
    """Process-local store for single-instance runs and tests."""

    def __init__(self) -> None:
        self.reference: List[Dict[str, Any]] = []
        self._identities: Set[Tuple[Any, ...]] = set()
        self.pitchers: Dict[int, Optional[str]] = {}  # id -> owner uid (None = unowned)
        self.user_pitches: List[Dict[str, Any]] = []
        self.view_refreshes = 0

    def add_pitcher(self, pitcher_id: int, owner_uid: Optional[str]) -> None:
        self.pitchers[pitcher_id] = owner_uid

    # ---------------- reference table ----------------
    async def has_reference_data(self) -> bool:
        return bool(self.reference)

    async def reference_stats(self) -> ReferenceStats:
        dates = [r["game_date"] for r in self.reference if r.get("game_date")]
        counts = Counter(r["pitch_type"] for r in self.reference)
        return ReferenceStats(
            total_pitches=len(self.reference),
            unique_pitchers=len({r["pitcher_name"] for r in self.reference}),
            pitch_type_counts=dict(counts.most_common()),
            min_date=min(dates) if dates else None,
            max_date=max(dates) if dates else None,
        )

    async def insert_reference(self, rows: Sequence[Dict[str, Any]]) -> int:
        inserted = 0
        for row in rows:
            key = tuple(row[k] for k in REFERENCE_IDENTITY)
            if key in self._identities:
                continue
            self._identities.add(key)
            self.reference.append(dict(row))
            inserted += 1
        return inserted

    async def truncate_reference(self) -> None:
        self.reference.clear()
        self._identities.clear()

    async def refresh_stats_view(self) -> None:
        self.view_refreshes += 1

    # ---------------- user uploads ----------------
    async def owner_exists(self, pitcher_id: int, uid: str) -> bool:
        if pitcher_id not in self.pitchers:
            return False
        owner = self.pitchers[pitcher_id]
        return owner is None or owner == uid

    async def find_owner_pitches(self, pitcher_id: int, pitch_types: Sequence[str]) -> List[Dict[str, Any]]:
        wanted = set(pitch_types)
        return [dict(r) for r in self.user_pitches if r["pitcher_id"] == pitcher_id and r["pitch_type"] in wanted]

    async def insert_user_pitches(self, pitcher_id: int, pitches: Sequence[ValidatedPitch]) -> int:
        for p in pitches:
            self.user_pitches.append({
                "pitcher_id": pitcher_id,
                "pitch_type": p.pitch_type,
                "velocity_mph": p.velocity_mph,
                "spin_rate": p.spin_rate,
                "horizontal_break": p.horizontal_break,
                "vertical_break": p.vertical_break,
                "date": p.date,
                "notes": p.notes,
            })
        return len(pitches)

    def __len__(self) -> int:
        return len(self.reference)
