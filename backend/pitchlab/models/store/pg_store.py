# backend/pitchlab/models/store/pg_store.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Sequence

from pitchlab.core.entities import ReferenceStats, ValidatedPitch
from pitchlab.core.ports.store import IPitchStore
from pitchlab.core.services.statcast_transform import REFERENCE_IDENTITY, REFERENCE_TABLE
from pitchlab.db.database import Database

logger = logging.getLogger("pitchlab.store.pg")

USER_PITCH_TABLE = "user_pitches"
STATS_VIEW = "mv_pitcher_stats"


class PgPitchStore(IPitchStore):
    """Postgres-backed stores, expressed through the Database contract."""

    def __init__(self, db: Database):
        self.db = db

    # ---------------- reference table ----------------
    async def has_reference_data(self) -> bool:
        rows = await self.db.query(f"SELECT EXISTS (SELECT 1 FROM {REFERENCE_TABLE}) AS present")
        return bool(rows and rows[0]["present"])

    async def reference_stats(self) -> ReferenceStats:
        totals = await self.db.query(
            f"""
            SELECT COUNT(*) AS total,
                   COUNT(DISTINCT pitcher_name) AS pitchers,
                   MIN(game_date) AS min_date,
                   MAX(game_date) AS max_date
            FROM {REFERENCE_TABLE}
            """
        )
        types = await self.db.query(
            f"SELECT pitch_type, COUNT(*) AS count FROM {REFERENCE_TABLE} "
            "GROUP BY pitch_type ORDER BY count DESC"
        )
        t = totals[0]
        return ReferenceStats(
            total_pitches=int(t["total"]),
            unique_pitchers=int(t["pitchers"]),
            pitch_type_counts={r["pitch_type"]: int(r["count"]) for r in types},
            min_date=t["min_date"],
            max_date=t["max_date"],
        )

    async def insert_reference(self, rows: Sequence[Dict[str, Any]]) -> int:
        return await self.db.insert(REFERENCE_TABLE, rows, conflict_columns=REFERENCE_IDENTITY)

    async def truncate_reference(self) -> None:
        await self.db.truncate(REFERENCE_TABLE)

    async def refresh_stats_view(self) -> None:
        await self.db.query(f"REFRESH MATERIALIZED VIEW {STATS_VIEW}")
        logger.info("🔄 Refreshed %s", STATS_VIEW)

    # ---------------- user uploads ----------------
    async def owner_exists(self, pitcher_id: int, uid: str) -> bool:
        rows = await self.db.query(
            "SELECT id FROM user_pitchers WHERE id = %s AND (owner_uid = %s OR owner_uid IS NULL)",
            (pitcher_id, uid),
        )
        return bool(rows)

    async def find_owner_pitches(self, pitcher_id: int, pitch_types: Sequence[str]) -> List[Dict[str, Any]]:
        if not pitch_types:
            return []
        return await self.db.query(
            f"""
            SELECT pitch_type, velocity_mph, spin_rate, horizontal_break, vertical_break, date
            FROM {USER_PITCH_TABLE}
            WHERE pitcher_id = %s AND pitch_type = ANY(%s)
            """,
            (pitcher_id, list(pitch_types)),
        )

    async def insert_user_pitches(self, pitcher_id: int, pitches: Sequence[ValidatedPitch]) -> int:
        rows = [
            {
                "pitcher_id": pitcher_id,
                "pitch_type": p.pitch_type,
                "velocity_mph": p.velocity_mph,
                "spin_rate": p.spin_rate,
                "horizontal_break": p.horizontal_break,
                "vertical_break": p.vertical_break,
                "date": p.date,
                "notes": p.notes,
            }
            for p in pitches
        ]
        return await self.db.insert(USER_PITCH_TABLE, rows)
