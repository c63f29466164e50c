"""
Pause-period calendar adjustment.

Timeline metrics (for example days from incident to resolution) exclude
institutional breaks and holidays. The adjustment for one range is the total
inclusive day-overlap with every configured pause period.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from conduct import config
from conduct.analytics.errors import InputLengthMismatch
from conduct.analytics.schema import coerce_dates

logger = logging.getLogger(__name__)


def _as_series(values) -> pd.Series:
    if isinstance(values, pd.Series):
        return values.reset_index(drop=True)
    return pd.Series(list(values), dtype=object)


def _parse_pause_periods(pause_periods: Sequence[tuple]) -> list[tuple[pd.Timestamp, pd.Timestamp]]:
    parsed = []
    for start, end in pause_periods:
        parsed.append((pd.Timestamp(start).normalize(), pd.Timestamp(end).normalize()))
    return parsed


def compute_overlap_adjustment(
    start_dates,
    end_dates,
    resolution_types,
    pause_periods: Sequence[tuple] = config.PAUSE_PERIODS,
) -> pd.Series:
    """
    Days of each range that fall inside configured pause periods.

    Parameters
    ----------
    start_dates, end_dates : sequence of date-like
        Parallel range bounds (inclusive). Null bounds contribute 0.
    resolution_types : sequence of str
        Parallel resolution types. "Warning Letter" ranges are never adjusted.
    pause_periods : sequence of (start, end)
        Inclusive pause ranges. Order does not matter.

    Returns
    -------
    pd.Series
        Integer adjustment per range, indexed like ``start_dates`` when it is
        a Series, else positionally.

    Raises
    ------
    InputLengthMismatch
        If the three parallel inputs differ in length.
    """
    starts = _as_series(start_dates)
    ends = _as_series(end_dates)
    resolutions = _as_series(resolution_types)
    lengths = {"start_dates": len(starts), "end_dates": len(ends), "resolution_types": len(resolutions)}
    if len(set(lengths.values())) != 1:
        raise InputLengthMismatch(
            reason="start_dates, end_dates, and resolution_types must have same length",
            missing_or_invalid_fields=[f"{k}={v}" for k, v in lengths.items()],
            operator_fix_steps=["Pass three columns taken from the same table."],
        )

    start = coerce_dates(starts).to_numpy(dtype="datetime64[ns]")
    end = coerce_dates(ends).to_numpy(dtype="datetime64[ns]")
    adjust = (resolutions.astype("string") != config.WARNING_LETTER).fillna(True).to_numpy(dtype=bool)
    valid = ~(np.isnat(start) | np.isnat(end)) & adjust

    adjustment = np.zeros(len(starts), dtype=np.int64)
    for pause_start, pause_end in _parse_pause_periods(pause_periods):
        overlap_start = np.maximum(start[valid], pause_start.to_datetime64())
        overlap_end = np.minimum(end[valid], pause_end.to_datetime64())
        days = (overlap_end - overlap_start).astype("timedelta64[D]").astype(np.int64) + 1
        adjustment[valid] += np.maximum(days, 0)

    index = start_dates.index if isinstance(start_dates, pd.Series) else None
    logger.debug(
        "[calendar] %d range(s) adjusted against %d pause period(s)",
        int(valid.sum()), len(pause_periods),
    )
    return pd.Series(adjustment, index=index, name="pause_adjustment")


def compute_adjusted_elapsed_days(
    start_dates,
    end_dates,
    resolution_types,
    pause_periods: Sequence[tuple] = config.PAUSE_PERIODS,
) -> pd.Series:
    """Elapsed days from start to end minus pause overlap. Null where a bound is null."""
    adjustment = compute_overlap_adjustment(start_dates, end_dates, resolution_types, pause_periods)
    start = coerce_dates(_as_series(start_dates))
    end = coerce_dates(_as_series(end_dates))
    elapsed = (end - start).dt.days.astype("Int64")
    result = elapsed - pd.array(adjustment.to_numpy(), dtype="Int64")
    result.index = adjustment.index
    result.name = "adjusted_elapsed_days"
    return result
