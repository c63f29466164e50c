"""
Within-window recidivism.

For each academic year, the share of students found responsible in more than
one distinct case during that year.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

import pandas as pd

from conduct import config
from conduct.analytics.academic_year import academic_year_order
from conduct.analytics.rates import (
    REPEAT_FLAG,
    WITHIN_YEAR_ACCURACY,
    finalize_rates,
    summarize_rates,
)
from conduct.analytics.records import attach_groups, prepare_records, responsible_cases, student_groups
from conduct.analytics.schema import OutputFormat

logger = logging.getLogger(__name__)

YEAR_COLUMN: str = "Academic_Year"
COUNT_COLUMNS: tuple[str, str] = ("Found_Resp", "Found_Resp_Again")


def compute_recidivism(
    records: pd.DataFrame,
    years: Sequence[str],
    group_by: Optional[str] = None,
    output_format: Union[OutputFormat, str] = OutputFormat.DISPLAY,
    slots: Sequence[tuple[str, str]] = config.CHARGE_FINDING_SLOTS,
) -> pd.DataFrame:
    """
    Recidivism rate per academic year, optionally per group.

    Parameters
    ----------
    records : pd.DataFrame
        Case records (FILE_ID, SID, ROLE, INCIDENT_DATE, finding slots).
        ACADEMIC_YEAR is derived from INCIDENT_DATE when absent.
    years : sequence of str
        Academic-year labels forming the analysis window.
    group_by : str, optional
        Grouping column (e.g. "College"). Each student takes the value of
        their most recent respondent record inside the window.
    output_format : OutputFormat or str
        "display" or "raw".
    slots : sequence of (charge, finding)
        Charge/finding column pairs.

    Returns
    -------
    pd.DataFrame
        Academic_Year[, group], Found_Resp, Found_Resp_Again, Rate
        (+ AY_Order, Rate_Pct_Label in raw mode).
    """
    fmt = OutputFormat.parse(output_format)
    years = list(dict.fromkeys(years))
    for label in years:
        academic_year_order(label)

    df, charge_slots = prepare_records(records, slots, group_by)
    window = df[df[config.ACADEMIC_YEAR].isin(years)]

    # Phase 1: one row per (year, student, case)
    cases = responsible_cases(window, charge_slots)

    # Phase 2: distinct cases per student per year
    students = (
        cases.groupby([config.ACADEMIC_YEAR, config.SID], as_index=False)[config.FILE_ID]
        .nunique()
        .rename(columns={config.FILE_ID: "case_count"})
    ) if not cases.empty else pd.DataFrame(columns=[config.ACADEMIC_YEAR, config.SID, "case_count"])
    students[REPEAT_FLAG] = students["case_count"].astype(int) > 1

    if group_by:
        students = attach_groups(students, student_groups(window, group_by), group_by)

    logger.info(
        "[recidivism] %d student-year(s) across %d year(s); %d repeat",
        len(students), len(years), int(students[REPEAT_FLAG].sum()),
    )

    # Phase 3: aggregate
    result = summarize_rates(students, config.ACADEMIC_YEAR, group_by, *COUNT_COLUMNS)
    result = result.rename(columns={config.ACADEMIC_YEAR: YEAR_COLUMN})
    return finalize_rates(
        result,
        years=years,
        year_column=YEAR_COLUMN,
        group_by=group_by,
        output_format=fmt,
        accuracy=WITHIN_YEAR_ACCURACY,
        count_columns=COUNT_COLUMNS,
    )


def recidivism_by_college(
    records: pd.DataFrame,
    years: Sequence[str],
    output_format: Union[OutputFormat, str] = OutputFormat.DISPLAY,
    slots: Sequence[tuple[str, str]] = config.CHARGE_FINDING_SLOTS,
) -> pd.DataFrame:
    """compute_recidivism grouped by the College column."""
    return compute_recidivism(records, years, group_by=config.COLLEGE, output_format=output_format, slots=slots)
