"""Unit tests for the seed size preview."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from fakes import FakeSavantSource
from pitchlab.core.errors import InvalidRange, UpstreamFailure
from pitchlab.core.services.preview_service import PreviewEstimator


def test_ninety_day_range_is_sampled() -> None:
    """90 days in 3-day windows: only the first windows are fetched, then extrapolated."""
    source = FakeSavantSource(rows_per_day=2)
    estimator = PreviewEstimator(source, max_window_days=3, sample_chunks=3)

    result = asyncio.run(estimator.preview(date(2024, 7, 1), date(2024, 9, 28)))

    assert result.total_days == 90
    assert result.sampled is True
    assert len(source.calls) == 3
    # 6 rows per 3-day window, 30 windows
    assert result.estimated_rows == 180
    assert result.to_dict()["dateRange"] == {"startDate": "2024-07-01", "endDate": "2024-09-28"}


def test_short_range_is_not_sampled() -> None:
    """When every window fits in the sample the estimate is exact."""
    source = FakeSavantSource(rows_per_day=4)
    estimator = PreviewEstimator(source, max_window_days=3, sample_chunks=3)

    result = asyncio.run(estimator.preview(date(2024, 9, 1), date(2024, 9, 5)))

    assert result.sampled is False
    assert result.total_days == 5
    assert len(source.calls) == 2


def test_preview_does_not_mask_upstream_failure() -> None:
    """An unreachable source must not look like an empty range."""
    source = FakeSavantSource(fail_on={date(2024, 9, 1)})
    estimator = PreviewEstimator(source)

    with pytest.raises(UpstreamFailure):
        asyncio.run(estimator.preview(date(2024, 9, 1), date(2024, 9, 30)))


def test_preview_rejects_inverted_range() -> None:
    """Range validation happens before any fetch."""
    source = FakeSavantSource()

    with pytest.raises(InvalidRange):
        asyncio.run(PreviewEstimator(source).preview(date(2024, 9, 30), date(2024, 9, 1)))
    assert source.calls == []
