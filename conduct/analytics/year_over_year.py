"""
Year-over-year violation frequency comparison.
"""

from __future__ import annotations

import logging
from functools import reduce
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from conduct import config
from conduct.analytics.academic_year import academic_year_order, assign_academic_year
from conduct.analytics.rates import WITHIN_YEAR_ACCURACY, format_percent
from conduct.analytics.schema import OutputFormat, coerce_dates, validate_columns

logger = logging.getLogger(__name__)

VIOLATION: str = "VIOLATION"

# Display marker for growth from zero. 0 -> 0 renders as null.
NEW_VIOLATION_MARKER: str = "Inf"


def _year_key(label: str) -> str:
    return f"AY{str(label)[2:6]}"


def change_column_name(prev_label: str, cur_label: str) -> str:
    return f"Change from {_year_key(prev_label)} to {_year_key(cur_label)}"


def _year_counts(df: pd.DataFrame, label: str, charge_columns: list[str]) -> pd.DataFrame:
    subset = df.loc[df[config.ACADEMIC_YEAR] == label, charge_columns]
    violations = subset.melt(value_name=VIOLATION)[VIOLATION].dropna().astype(str).str.strip()
    violations = violations[violations != ""]
    counts = violations.value_counts(sort=False)
    return pd.DataFrame({VIOLATION: counts.index.astype(object), _year_key(label): counts.to_numpy()})


def _display_change(value: float) -> Optional[str]:
    if np.isposinf(value):
        return NEW_VIOLATION_MARKER
    return format_percent(value, WITHIN_YEAR_ACCURACY)


def compare_violations(
    records: pd.DataFrame,
    years: Sequence[str],
    charge_columns: Optional[Sequence[str]] = None,
    output_format: Union[OutputFormat, str] = OutputFormat.DISPLAY,
) -> pd.DataFrame:
    """
    Violation counts per academic year with percent change between
    consecutive years (in the order given).

    Every label seen in any requested year appears, with 0 where absent.
    A change from a zero count is not a percentage: raw output keeps ``inf``
    (growth from zero) or ``NaN`` (zero to zero); display output renders
    "Inf" or null respectively.
    """
    fmt = OutputFormat.parse(output_format)
    years = list(dict.fromkeys(years))
    for label in years:
        academic_year_order(label)
    if charge_columns is None:
        charge_columns = [charge for charge, _ in config.CHARGE_FINDING_SLOTS]
    charge_columns = list(charge_columns)

    validate_columns(records, charge_columns, "violation comparison input")
    df = records
    if config.ACADEMIC_YEAR not in df.columns:
        validate_columns(df, [config.INCIDENT_DATE], "violation comparison input")
        df = df.copy()
        df[config.INCIDENT_DATE] = coerce_dates(df[config.INCIDENT_DATE])
        df = assign_academic_year(df)

    if not years:
        return pd.DataFrame(columns=[VIOLATION])

    yearly = [_year_counts(df, label, charge_columns) for label in years]
    comparison = reduce(lambda left, right: left.merge(right, on=VIOLATION, how="outer"), yearly)

    for i, label in enumerate(years):
        key = _year_key(label)
        comparison[key] = comparison[key].fillna(0).astype(int)
        if i == 0:
            continue
        prev_key = _year_key(years[i - 1])
        cur = comparison[key].to_numpy(dtype=float)
        prev = comparison[prev_key].to_numpy(dtype=float)
        with np.errstate(divide="ignore", invalid="ignore"):
            change = (cur - prev) / prev
        name = change_column_name(years[i - 1], label)
        if fmt is OutputFormat.RAW:
            comparison[name] = change
        else:
            comparison[name] = pd.Series([_display_change(v) for v in change], index=comparison.index, dtype=object)

    comparison = comparison[comparison[VIOLATION].notna()]
    comparison = comparison.sort_values(VIOLATION, kind="stable").reset_index(drop=True)
    logger.info("[year_over_year] %d violation label(s) across %d year(s)", len(comparison), len(years))
    return comparison
