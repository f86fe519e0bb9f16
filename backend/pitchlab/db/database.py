# backend/pitchlab/db/database.py
from __future__ import annotations
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

logger = logging.getLogger("pitchlab.db")


class Database:
    """
    The narrow persistence contract the pipeline relies on:
    ``query``, chunked ``insert`` and destructive ``truncate``.
    Each call runs in its own pooled connection and commits on success.
    """

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def query(self, statement: str | sql.Composable, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        start = time.time()
        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(statement, params)
                rows = await cur.fetchall() if cur.description else []
        logger.debug("Executed query | rows=%d | took=%.3fs", len(rows), time.time() - start)
        return rows

    async def insert(
        self,
        table: str,
        rows: Sequence[Dict[str, Any]],
        conflict_columns: Optional[Sequence[str]] = None,
    ) -> int:
        """
        Multi-row INSERT of ``rows`` (all sharing the first row's keys).
        With ``conflict_columns``, conflicting rows are skipped rather than
        failing the statement. Returns the number of rows written.
        """
        if not rows:
            return 0
        columns = list(rows[0].keys())
        row_sql = sql.SQL("({})").format(sql.SQL(", ").join(sql.Placeholder() * len(columns)))
        stmt = sql.SQL("INSERT INTO {table} ({cols}) VALUES {values}").format(
            table=sql.Identifier(table),
            cols=sql.SQL(", ").join(map(sql.Identifier, columns)),
            values=sql.SQL(", ").join([row_sql] * len(rows)),
        )
        if conflict_columns:
            stmt += sql.SQL(" ON CONFLICT ({}) DO NOTHING").format(
                sql.SQL(", ").join(map(sql.Identifier, conflict_columns))
            )
        params: List[Any] = [row[c] for row in rows for c in columns]

        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(stmt, params)
                return max(cur.rowcount, 0)

    async def truncate(self, table: str) -> None:
        async with self.pool.connection() as conn:
            await conn.execute(
                sql.SQL("TRUNCATE TABLE {} RESTART IDENTITY").format(sql.Identifier(table))
            )
        logger.warning("Truncated table %s", table)
