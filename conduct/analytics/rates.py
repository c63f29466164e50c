"""
Rate aggregation and output shaping shared by the recidivism engines.
"""

from __future__ import annotations

import math
from itertools import product
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from conduct import config
from conduct.analytics.academic_year import academic_year_order
from conduct.analytics.schema import OutputFormat

REPEAT_FLAG: str = "_repeat"

# Percent precision, in percentage points.
WITHIN_YEAR_ACCURACY: float = 0.01
COHORT_ACCURACY: float = 0.1


def safe_rate(numerator, denominator) -> Optional[float]:
    """numerator / denominator, or None when the denominator is zero or null."""
    if denominator is None or pd.isna(denominator) or denominator == 0:
        return None
    if numerator is None or pd.isna(numerator):
        return None
    return float(numerator) / float(denominator)


def format_percent(rate, accuracy: float = WITHIN_YEAR_ACCURACY) -> Optional[str]:
    """Render a fraction as a percent string; null and non-finite rates stay None."""
    if rate is None or pd.isna(rate) or not math.isfinite(float(rate)):
        return None
    decimals = max(0, -int(math.floor(math.log10(accuracy))))
    return f"{float(rate) * 100:,.{decimals}f}%"


def _summarize(
    students: pd.DataFrame,
    keys: list[str],
    total_name: str,
    repeat_name: str,
) -> pd.DataFrame:
    if students.empty:
        return pd.DataFrame(columns=keys + [total_name, repeat_name, "Rate"])
    summary = (
        students.groupby(keys, sort=True)
        .agg(**{total_name: (REPEAT_FLAG, "size"), repeat_name: (REPEAT_FLAG, "sum")})
        .reset_index()
    )
    summary[repeat_name] = summary[repeat_name].astype(int)
    summary["Rate"] = pd.Series(
        [safe_rate(r, n) for r, n in zip(summary[repeat_name], summary[total_name])],
        index=summary.index,
        dtype=float,
    )
    return summary


def summarize_rates(
    students: pd.DataFrame,
    year_column: str,
    group_by: Optional[str],
    total_name: str,
    repeat_name: str,
) -> pd.DataFrame:
    """
    Aggregate one-row-per-student data into counts and a rate per year[, group].

    ``students`` carries a boolean ``_repeat`` column. With a grouping column,
    an "Overall" row per year is computed from the same student rows directly,
    never by summing group rows.
    """
    keys = [year_column] + ([group_by] if group_by else [])
    result = _summarize(students, keys, total_name, repeat_name)
    if group_by:
        overall = _summarize(students, [year_column], total_name, repeat_name)
        overall[group_by] = config.OVERALL
        result = pd.concat([result, overall[result.columns]], ignore_index=True)
    return result


def finalize_rates(
    result: pd.DataFrame,
    years: Sequence[str],
    year_column: str,
    group_by: Optional[str],
    output_format: OutputFormat,
    accuracy: float,
    count_columns: Sequence[str],
) -> pd.DataFrame:
    """
    Shape aggregated rows for the requested output format.

    display: ``Rate`` becomes a percent string; group rows precede the Overall
    rows. raw: numeric ``Rate`` with ``AY_Order`` and ``Rate_Pct_Label``; the
    rows form the complete grid of requested years by observed groups (Overall
    always included), missing combinations carrying null counts and rate.
    """
    columns = [year_column] + ([group_by] if group_by else []) + list(count_columns) + ["Rate"]
    result = result[columns].copy()

    if output_format is OutputFormat.DISPLAY:
        result["_order"] = result[year_column].map(academic_year_order)
        sort_cols = ["_order"]
        if group_by:
            result["_overall"] = (result[group_by] == config.OVERALL).astype(int)
            sort_cols = ["_overall", "_order", group_by]
        result = result.sort_values(sort_cols, kind="stable").reset_index(drop=True)
        result["Rate"] = pd.Series([format_percent(r, accuracy) for r in result["Rate"]], index=result.index, dtype=object)
        return result[columns]

    if group_by:
        observed = [g for g in pd.unique(result[group_by]) if g != config.OVERALL]
        grid = pd.DataFrame(
            list(product(years, observed + [config.OVERALL])),
            columns=[year_column, group_by],
        )
        result = grid.merge(result, on=[year_column, group_by], how="left")
    else:
        grid = pd.DataFrame({year_column: list(years)})
        result = grid.merge(result, on=[year_column], how="left")

    for col in count_columns:
        result[col] = result[col].astype("Int64")
    result["Rate"] = result["Rate"].astype(float)
    result["AY_Order"] = result[year_column].map(academic_year_order).astype(int)
    result["Rate_Pct_Label"] = pd.Series([format_percent(r, accuracy) for r in result["Rate"]], index=result.index, dtype=object)

    if group_by:
        result["_overall"] = np.where(result[group_by] == config.OVERALL, 0, 1)
        result = result.sort_values(["AY_Order", "_overall", group_by], kind="stable")
        result = result.drop(columns="_overall")
    else:
        result = result.sort_values("AY_Order", kind="stable")
    return result.reset_index(drop=True)
