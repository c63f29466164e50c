"""
Name canonicalization for charge, college and location values.

RULES:
- Deterministic exact string matching only. No fuzzy matching.
- Values are compared after NBSP repair and whitespace trimming.
- Values with no entry in the lookup pass through unchanged.
- Nulls stay null.

Public API:
  build_replacement_lookup(*sections) -> dict[str, str]
  replace_values(df, columns, lookup, file_label) -> pd.DataFrame
  fix_nbsp(values) -> pd.Series
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

import pandas as pd

from conduct.ingestion.errors import IngestionError

logger = logging.getLogger(__name__)


def fix_nbsp(values: pd.Series) -> pd.Series:
    """NBSP -> space, collapse repeated whitespace, trim. Nulls preserved."""
    text = values.astype("string")
    text = text.str.replace("\u00a0", " ", regex=False)
    text = text.str.replace(r"\s+", " ", regex=True).str.strip()
    return text.astype(object).where(values.notna(), None)


def build_replacement_lookup(*sections: tuple[str, Mapping[str, str]]) -> dict[str, str]:
    """
    Merge labelled replacement maps into one flat lookup.

    Keys are trimmed. The same source value may appear in several sections
    only when it maps to the same target.

    Raises ValueError on a conflicting duplicate.
    """
    lookup: dict[str, str] = {}
    for section_name, replacements in sections:
        for raw_value, canonical in replacements.items():
            key = raw_value.strip()
            if key in lookup:
                existing = lookup[key]
                if existing != canonical:
                    raise ValueError(
                        f"Replacement conflict in '{section_name}': "
                        f"'{raw_value}' maps to '{canonical}' but was already mapped to '{existing}'."
                    )
                continue
            lookup[key] = canonical
    return lookup


def replace_values(
    df: pd.DataFrame,
    columns: Iterable[str],
    lookup: Mapping[str, str],
    file_label: str = "conduct data",
) -> pd.DataFrame:
    """Replace exact matches in each named column. Returns a new DataFrame."""
    columns = list(columns)
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise IngestionError(
            reason="Columns to canonicalize not found",
            affected_file=file_label,
            missing_or_invalid_fields=missing,
            operator_fix_steps=[f"Add or rename missing column(s): {', '.join(missing)}"],
        )

    df = df.copy()
    for col in columns:
        cleaned = fix_nbsp(df[col])
        replaced = cleaned.map(lambda v: lookup.get(v, v) if v is not None else None)
        changed = int(((replaced != cleaned) & cleaned.notna()).sum())
        if changed:
            logger.info("[canonicalize] %s: %d value(s) replaced in '%s'", file_label, changed, col)
        df[col] = replaced
    return df
