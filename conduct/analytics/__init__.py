"""
Temporal analytics engine.

Public API:
  compute_overlap_adjustment, compute_adjusted_elapsed_days
  resolve_academic_year, academic_year_series, assign_academic_year
  hash_value, hash_column, anonymize_columns, load_key
  compute_recidivism, recidivism_by_college
  assign_cohorts, compute_cohort_recidivism
  compare_violations
"""

from conduct.analytics.academic_year import (
    academic_year_order,
    academic_year_series,
    assign_academic_year,
    followup_end_date,
    resolve_academic_year,
)
from conduct.analytics.anonymize import anonymize_columns, hash_column, hash_value, load_key
from conduct.analytics.calendar import compute_adjusted_elapsed_days, compute_overlap_adjustment
from conduct.analytics.cohort import assign_cohorts, compute_cohort_recidivism
from conduct.analytics.errors import (
    AnalyticsError,
    InputLengthMismatch,
    InvalidAcademicYear,
    InvalidDate,
    KeyMaterialError,
    MissingColumns,
    NoFindingColumns,
    UnknownOutputFormat,
)
from conduct.analytics.recidivism import compute_recidivism, recidivism_by_college
from conduct.analytics.schema import ChargeSlots, OutputFormat
from conduct.analytics.year_over_year import compare_violations
