"""
Record preparation shared by the recidivism and cohort engines.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import pandas as pd

from conduct import config
from conduct.analytics.academic_year import assign_academic_year
from conduct.analytics.schema import (
    ChargeSlots,
    coerce_dates,
    has_responsible_finding,
    normalize_group,
    resolve_slots,
    validate_columns,
)

logger = logging.getLogger(__name__)


def prepare_records(
    records: pd.DataFrame,
    slots: Sequence[tuple[str, str]],
    group_by: Optional[str] = None,
) -> tuple[pd.DataFrame, ChargeSlots]:
    """
    Validate the table and return a working copy with coerced incident dates,
    an academic-year column and a normalized grouping column.
    """
    validate_columns(records, config.REQUIRED_COLUMNS)
    charge_slots = resolve_slots(records, slots)

    df = records.copy()
    df[config.INCIDENT_DATE] = coerce_dates(df[config.INCIDENT_DATE])
    null_dates = int(df[config.INCIDENT_DATE].isna().sum())
    if null_dates:
        logger.debug("[records] %d row(s) with null INCIDENT_DATE excluded from bucketing", null_dates)
    df = assign_academic_year(df)
    df = normalize_group(df, group_by)
    return df, charge_slots


def respondents(df: pd.DataFrame) -> pd.DataFrame:
    return df[df[config.ROLE] == config.RESPONDENT_ROLE]


def responsible_cases(df: pd.DataFrame, charge_slots: ChargeSlots) -> pd.DataFrame:
    """
    One row per (ACADEMIC_YEAR, SID, FILE_ID) for respondent records with a
    responsible finding, carrying the earliest incident date of the case.
    Rows without an incident date or academic year are excluded.
    """
    rows = respondents(df)
    mask = (
        has_responsible_finding(rows, charge_slots.finding_columns)
        & rows[config.INCIDENT_DATE].notna()
        & rows[config.ACADEMIC_YEAR].notna()
    )
    rows = rows[mask]
    keys = [config.ACADEMIC_YEAR, config.SID, config.FILE_ID]
    if rows.empty:
        return pd.DataFrame(columns=keys + [config.INCIDENT_DATE])
    return rows.groupby(keys, as_index=False, sort=True)[config.INCIDENT_DATE].min()


def student_groups(df: pd.DataFrame, group_by: str) -> pd.DataFrame:
    """
    Grouping value per student, taken from the student's most recent
    respondent record (latest INCIDENT_DATE; undated rows rank last).
    """
    rows = respondents(df).sort_values(
        config.INCIDENT_DATE, ascending=False, na_position="last", kind="stable",
    )
    latest = rows.drop_duplicates(subset=config.SID, keep="first")
    return latest[[config.SID, group_by]].reset_index(drop=True)


def attach_groups(students: pd.DataFrame, groups: pd.DataFrame, group_by: str) -> pd.DataFrame:
    merged = students.merge(groups, on=config.SID, how="left")
    merged[group_by] = merged[group_by].fillna(config.NOT_REPORTED)
    return merged
