from __future__ import annotations
import logging
import time
from datetime import date
from typing import List

import numpy as np

from pitchlab.core.entities import IngestionWindow, PreviewResult
from pitchlab.core.ports.source import IPitchSource
from pitchlab.core.services.range_chunker import chunk_range, total_days
from pitchlab.core.services.statcast_transform import transform_rows

log = logging.getLogger("pitchlab.preview")


class PreviewEstimator:
    """
    Cheap size projection for a prospective seed: fetch the first few windows
    only and extrapolate their average row count across every window.
    """

    def __init__(self, source: IPitchSource, max_window_days: int = 3, sample_chunks: int = 3):
        self.source = source
        self.max_window_days = max_window_days
        self.sample_chunks = max(1, sample_chunks)

    async def preview(self, start: date, end: date) -> PreviewResult:
        started = time.time()
        windows = chunk_range(start, end, self.max_window_days)
        sample = windows[: self.sample_chunks]

        # UpstreamFailure propagates: an unreachable source is not an empty range.
        counts: List[int] = []
        for window in sample:
            raw = await self.source.fetch_window(window)
            rows, _ = transform_rows(raw)
            counts.append(len(rows))

        estimated = int(round(float(np.mean(counts)) * len(windows)))
        result = PreviewResult(
            estimated_rows=estimated,
            total_days=total_days(start, end),
            sampled=len(sample) < len(windows),
            window=IngestionWindow(start=start, end=end),
        )
        log.info(
            "Preview | range=%s..%s | windows=%d | sampled=%d | counts=%s | estimated=%d | took=%.3fs",
            start, end, len(windows), len(sample), counts, estimated, time.time() - started,
        )
        return result
