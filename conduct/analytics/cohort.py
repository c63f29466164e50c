"""
Cohort recidivism.

A student's cohort is the academic year of their first-ever responsible case,
found over the entire record history regardless of the requested cohorts. A
cohort member is a recidivist when any later responsible case exists, up to an
optional follow-up cutoff.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

import pandas as pd

from conduct import config
from conduct.analytics.academic_year import academic_year_order, followup_end_date
from conduct.analytics.rates import (
    COHORT_ACCURACY,
    REPEAT_FLAG,
    finalize_rates,
    summarize_rates,
)
from conduct.analytics.records import attach_groups, prepare_records, responsible_cases, student_groups
from conduct.analytics.schema import ChargeSlots, OutputFormat

logger = logging.getLogger(__name__)

YEAR_COLUMN: str = "Cohort_Year"
COUNT_COLUMNS: tuple[str, str] = ("Cohort_N", "Recidivists")

COHORT_COLUMNS: list[str] = [config.SID, "cohort_year", "first_incident_date", "first_file_id"]


def _first_cases(cases: pd.DataFrame) -> pd.DataFrame:
    """Earliest responsible case per student; ties keep the first encountered."""
    if cases.empty:
        return pd.DataFrame(columns=COHORT_COLUMNS)
    first = (
        cases.sort_values(config.INCIDENT_DATE, kind="stable")
        .drop_duplicates(subset=config.SID, keep="first")
        .rename(columns={
            config.ACADEMIC_YEAR: "cohort_year",
            config.INCIDENT_DATE: "first_incident_date",
            config.FILE_ID: "first_file_id",
        })
    )
    return first[COHORT_COLUMNS].sort_values(config.SID, kind="stable").reset_index(drop=True)


def _cohort_cases(
    records: pd.DataFrame,
    slots: Sequence[tuple[str, str]],
    group_by: Optional[str] = None,
) -> tuple[pd.DataFrame, pd.DataFrame, ChargeSlots]:
    df, charge_slots = prepare_records(records, slots, group_by)
    return df, responsible_cases(df, charge_slots), charge_slots


def assign_cohorts(
    records: pd.DataFrame,
    slots: Sequence[tuple[str, str]] = config.CHARGE_FINDING_SLOTS,
) -> pd.DataFrame:
    """
    Cohort assignment for every student with a responsible finding.

    Returns one row per SID with cohort_year, first_incident_date and
    first_file_id, computed over the full history in ``records``.
    """
    _, cases, _ = _cohort_cases(records, slots)
    return _first_cases(cases)


def compute_cohort_recidivism(
    records: pd.DataFrame,
    cohort_years: Sequence[str],
    followup_through: Optional[str] = None,
    group_by: Optional[str] = None,
    output_format: Union[OutputFormat, str] = OutputFormat.DISPLAY,
    slots: Sequence[tuple[str, str]] = config.CHARGE_FINDING_SLOTS,
) -> pd.DataFrame:
    """
    Share of each cohort with a subsequent responsible case.

    Parameters
    ----------
    records : pd.DataFrame
        Complete case history. Passing a subset changes cohort assignment.
    cohort_years : sequence of str
        Cohorts to report.
    followup_through : str, optional
        Academic year closing the follow-up window. Later cases count only
        when dated on or before July 31 of that year's end. Default: no cutoff.
    group_by : str, optional
        Grouping column; each student takes the value of their most recent
        respondent record anywhere in the history.
    output_format : OutputFormat or str
        "display" or "raw".
    slots : sequence of (charge, finding)
        Charge/finding column pairs.

    Returns
    -------
    pd.DataFrame
        Cohort_Year[, group], Cohort_N, Recidivists, Rate
        (+ AY_Order, Rate_Pct_Label in raw mode).
    """
    fmt = OutputFormat.parse(output_format)
    cohort_years = list(dict.fromkeys(cohort_years))
    for label in cohort_years:
        academic_year_order(label)
    cutoff = pd.Timestamp(followup_end_date(followup_through)) if followup_through else None

    # Phase 1: responsible cases across the entire history
    df, cases, _ = _cohort_cases(records, slots, group_by)

    # Phase 2: globally-first case per student
    first = _first_cases(cases)

    # Phase 3: any strictly later case, inside the follow-up window
    later = cases.merge(first[[config.SID, "first_incident_date"]], on=config.SID)
    later = later[later[config.INCIDENT_DATE] > later["first_incident_date"]]
    if cutoff is not None:
        later = later[later[config.INCIDENT_DATE] <= cutoff]
    recidivists = set(later[config.SID])

    # Phase 4: requested cohorts only
    cohort = first[first["cohort_year"].isin(cohort_years)].copy()
    cohort[REPEAT_FLAG] = cohort[config.SID].isin(recidivists)
    if group_by:
        cohort = attach_groups(cohort, student_groups(df, group_by), group_by)

    logger.info(
        "[cohort] %d cohort member(s) in %d cohort(s); %d recidivist(s)%s",
        len(cohort), len(cohort_years), int(cohort[REPEAT_FLAG].sum()),
        f" through {followup_through}" if followup_through else "",
    )

    result = summarize_rates(cohort, "cohort_year", group_by, *COUNT_COLUMNS)
    result = result.rename(columns={"cohort_year": YEAR_COLUMN})
    return finalize_rates(
        result,
        years=cohort_years,
        year_column=YEAR_COLUMN,
        group_by=group_by,
        output_format=fmt,
        accuracy=COHORT_ACCURACY,
        count_columns=COUNT_COLUMNS,
    )
