"""
Academic-year resolution.

The academic year starts August 1: Aug-Dec dates belong to the year starting
in their calendar year, Jan-Jul dates to the year starting the calendar year
before. Labels are "AY" + two-digit start year + two-digit end year.

Labels carry no century. Parsing a label assumes 20xx, so ordering and
follow-up dates are only meaningful for academic years 2000-01 through 2098-99.
"""

from __future__ import annotations

import re
from datetime import date, datetime

import pandas as pd

from conduct import config
from conduct.analytics.errors import InvalidAcademicYear, InvalidDate
from conduct.analytics.schema import coerce_dates

ACADEMIC_YEAR_START_MONTH: int = 8

_LABEL_PATTERN = re.compile(r"^AY(\d{2})(\d{2})$")


def _label(start_year: int) -> str:
    return f"AY{start_year % 100:02d}{(start_year + 1) % 100:02d}"


def resolve_academic_year(value) -> str:
    """
    Map a single calendar date to its academic-year label.

    Accepts ``date``, ``datetime`` or ``pd.Timestamp``. Raw text is not
    parsed here; null or non-date input raises InvalidDate.
    """
    if value is None or value is pd.NaT or (isinstance(value, float) and pd.isna(value)):
        raise InvalidDate(
            reason="Cannot resolve academic year for a null date",
            missing_or_invalid_fields=["date"],
            operator_fix_steps=["Drop or repair records with missing incident dates before resolving."],
        )
    if not isinstance(value, (date, datetime)):
        raise InvalidDate(
            reason=f"Expected a date, got {type(value).__name__}",
            missing_or_invalid_fields=[repr(value)],
            operator_fix_steps=["Parse raw text into dates at the ingestion boundary."],
        )
    start = value.year if value.month >= ACADEMIC_YEAR_START_MONTH else value.year - 1
    return _label(start)


def academic_year_series(dates) -> pd.Series:
    """Vectorized resolver. Null or unparseable dates yield a null label."""
    parsed = coerce_dates(dates)
    start = parsed.dt.year - (parsed.dt.month < ACADEMIC_YEAR_START_MONTH).astype(int)
    labels = pd.Series(None, index=parsed.index, dtype=object)
    valid = parsed.notna()
    labels[valid] = [_label(int(y)) for y in start[valid]]
    return labels


def assign_academic_year(
    df: pd.DataFrame,
    date_column: str = config.INCIDENT_DATE,
    target_column: str = config.ACADEMIC_YEAR,
) -> pd.DataFrame:
    """Add ``ACADEMIC_YEAR`` derived from the incident date when the column is absent."""
    if target_column in df.columns:
        return df
    df = df.copy()
    df[target_column] = academic_year_series(df[date_column])
    return df


def _parse_label(label: str) -> tuple[int, int]:
    match = _LABEL_PATTERN.match(str(label).strip())
    if match is None:
        raise InvalidAcademicYear(
            reason=f"Malformed academic year label '{label}'",
            missing_or_invalid_fields=[str(label)],
            operator_fix_steps=["Use labels of the form AY2324 (start and end year digits)."],
        )
    return int(match.group(1)), int(match.group(2))


def academic_year_order(label: str) -> int:
    """Sort key for a label: "AY2324" -> 2324."""
    start, end = _parse_label(label)
    return start * 100 + end


def followup_end_date(label: str) -> date:
    """Last day (July 31) of the academic year named by ``label``."""
    _, end = _parse_label(label)
    return date(2000 + end, 7, 31)
