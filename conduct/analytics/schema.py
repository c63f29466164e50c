"""
Shared record-schema helpers for the analytics engines.

Charge/finding slots are an explicit, fixed-arity list resolved once per call
at the boundary, never re-derived by column-name pattern inside aggregation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

import pandas as pd

from conduct import config
from conduct.analytics.errors import MissingColumns, NoFindingColumns, UnknownOutputFormat

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output format
# ---------------------------------------------------------------------------


class OutputFormat(Enum):
    DISPLAY = "display"
    RAW = "raw"

    @classmethod
    def parse(cls, value: Union["OutputFormat", str]) -> "OutputFormat":
        """Resolve a format once at the call boundary. "pbi" is accepted as raw."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "pbi":
            return cls.RAW
        for member in cls:
            if member.value == key:
                return member
        raise UnknownOutputFormat(
            reason=f"Unknown output format '{value}'",
            missing_or_invalid_fields=["output_format"],
            operator_fix_steps=["Use 'display' (percent strings) or 'raw' (numeric rates)."],
        )


# ---------------------------------------------------------------------------
# Charge / finding slots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChargeSlots:
    """Ordered (charge, finding) column pairs present in a table."""
    pairs: tuple[tuple[str, str], ...]

    @property
    def charge_columns(self) -> list[str]:
        return [charge for charge, _ in self.pairs]

    @property
    def finding_columns(self) -> list[str]:
        return [finding for _, finding in self.pairs]


def resolve_slots(
    df: pd.DataFrame,
    slots: Sequence[tuple[str, str]] = config.CHARGE_FINDING_SLOTS,
    require_all: bool = False,
) -> ChargeSlots:
    """
    Validate configured slot pairs against ``df``.

    With ``require_all`` every configured column must exist. Otherwise pairs
    whose finding column is absent are skipped, and the call halts only when
    no finding column resolves at all.
    """
    pairs = tuple((str(c), str(f)) for c, f in slots)
    if require_all:
        expected = [col for pair in pairs for col in pair]
        validate_columns(df, expected, "charge/finding slots")
        return ChargeSlots(pairs)

    present = tuple((c, f) for c, f in pairs if f in df.columns)
    if not present:
        raise NoFindingColumns(
            reason="No finding columns found in dataframe",
            missing_or_invalid_fields=[f for _, f in pairs],
            operator_fix_steps=[
                "Confirm the export includes the FINDING_n columns.",
                "Pass the institution's (charge, finding) pairs explicitly via slots=.",
            ],
        )
    skipped = len(pairs) - len(present)
    if skipped:
        logger.debug("[schema] %d configured slot(s) absent from table; skipped", skipped)
    return ChargeSlots(present)


def validate_columns(df: pd.DataFrame, required: Iterable[str], label: str = "conduct data") -> None:
    """Halt if any required column is absent."""
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise MissingColumns(
            reason=f"Required columns missing from {label}",
            missing_or_invalid_fields=missing,
            operator_fix_steps=[
                f"Add or rename missing column(s): {', '.join(missing)}",
                "Run ingestion first so the export schema is normalized.",
            ],
        )


# ---------------------------------------------------------------------------
# Row-level helpers
# ---------------------------------------------------------------------------


def has_responsible_finding(df: pd.DataFrame, finding_columns: Sequence[str]) -> pd.Series:
    """True where any finding slot reads "responsible" (trimmed, case-folded)."""
    mask = pd.Series(False, index=df.index)
    for col in finding_columns:
        text = df[col].astype("string").str.strip().str.casefold()
        mask |= (text == config.RESPONSIBLE_FINDING).fillna(False).astype(bool)
    return mask


def coerce_dates(values) -> pd.Series:
    """Coerce to normalized datetimes; unparseable values become NaT."""
    series = values if isinstance(values, pd.Series) else pd.Series(list(values), dtype=object)
    if pd.api.types.is_datetime64_any_dtype(series):
        parsed = series
    else:
        parsed = pd.to_datetime(series, errors="coerce", format="mixed")
    if getattr(parsed.dt, "tz", None) is not None:
        parsed = parsed.dt.tz_localize(None)
    return parsed.dt.normalize()


def normalize_group(df: pd.DataFrame, group_by: Optional[str]) -> pd.DataFrame:
    """Cast the grouping column to text and fill missing values with "Not Reported"."""
    if group_by is None:
        return df
    validate_columns(df, [group_by], "conduct data (group_by)")
    df = df.copy()
    values = df[group_by].astype("string").str.strip()
    values = values.mask(values.eq("").fillna(False).astype(bool))
    df[group_by] = values.fillna(config.NOT_REPORTED).astype(object)
    return df
