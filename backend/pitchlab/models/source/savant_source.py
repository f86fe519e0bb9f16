# backend/pitchlab/models/source/savant_source.py
from __future__ import annotations
import asyncio
import csv
import io
import logging
import time
from typing import Dict, List, Optional, Sequence

import httpx

from pitchlab.core.entities import IngestionWindow
from pitchlab.core.errors import UpstreamFailure
from pitchlab.core.ports.source import IPitchSource

logger = logging.getLogger("pitchlab.source.savant")

SAVANT_CSV_URL = "https://baseballsavant.mlb.com/statcast_search/csv"

PITCH_TYPES: Dict[str, str] = {
    "FF": "4-Seam Fastball",
    "SI": "Sinker",
    "SL": "Slider",
    "CU": "Curveball",
    "CH": "Changeup",
    "FC": "Cutter",
    "FS": "Splitter",
    "KC": "Knuckle Curve",
    "ST": "Sweeper",
    "SV": "Slurve",
}

DEFAULT_HEADERS = {
    "user-agent": "PitchLab/1.0",
    "accept": "text/csv",
}


def build_statcast_params(window: IngestionWindow, pitch_types: Optional[Sequence[str]] = None) -> Dict[str, str]:
    """Query string for one regular-season window of pitch-level detail rows."""
    types = pitch_types or list(PITCH_TYPES)
    return {
        "all": "true",
        "hfPT": "".join(f"{t}|" for t in types),
        "hfGT": "R|",
        "hfSea": f"{window.start.year}|",
        "player_type": "pitcher",
        "game_date_gt": window.start.isoformat(),
        "game_date_lt": window.end.isoformat(),
        "group_by": "name",
        "min_pitches": "0",
        "min_results": "0",
        "min_pas": "0",
        "sort_col": "pitches",
        "player_event_sort": "api_p_release_speed",
        "sort_order": "desc",
        "type": "details",
    }


def parse_csv(text: str) -> List[Dict[str, str]]:
    text = text.lstrip("\ufeff")
    if not text.strip():
        return []
    reader = csv.DictReader(io.StringIO(text))
    return [{(k or "").strip(): (v or "").strip() for k, v in row.items()} for row in reader]


class MinIntervalPacer:
    """Keeps at least ``interval`` seconds between consecutive requests."""

    def __init__(self, interval: float = 1.0):
        self.interval = max(0.0, interval)
        self._last = 0.0

    async def wait(self) -> None:
        delay = self._last + self.interval - time.time()
        if delay > 0:
            await asyncio.sleep(delay)
        self._last = time.time()


class SavantSource(IPitchSource):
    """
    Baseball Savant Statcast CSV export. One request per window; no retries,
    the caller decides whether to re-run.
    """

    def __init__(
        self,
        base_url: str = SAVANT_CSV_URL,
        timeout: float = 120.0,
        min_interval: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.pacer = MinIntervalPacer(min_interval)
        self._client = client

    async def _get(self, params: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(self.base_url, params=params, headers=DEFAULT_HEADERS)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await client.get(self.base_url, params=params, headers=DEFAULT_HEADERS)

    async def fetch_window(self, window: IngestionWindow) -> List[Dict[str, str]]:
        await self.pacer.wait()
        started = time.time()
        try:
            r = await self._get(build_statcast_params(window))
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamFailure(
                f"Statcast source returned {e.response.status_code} for {window.start}..{window.end}",
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFailure(
                f"Statcast source unreachable for {window.start}..{window.end}", [str(e) or type(e).__name__],
            ) from e

        rows = parse_csv(r.text)
        logger.info(
            "Fetched window %s..%s | %.2f MB | rows=%d | took=%.2fs",
            window.start, window.end, len(r.content) / 1024 / 1024, len(rows), time.time() - started,
        )
        return rows
