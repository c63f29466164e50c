"""
One-way identifier anonymization.

Tokens are HMAC-SHA256 digests keyed with process-scoped pepper material, over
the value's text followed by the same key bytes, truncated to a fixed number of
hex characters. Identical (value, key) pairs always give identical tokens so
anonymized identifiers join across independent runs. There is no decode path.
"""

from __future__ import annotations

import functools
import hashlib
import hmac
import logging
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from conduct import config
from conduct.analytics.errors import KeyMaterialError
from conduct.analytics.schema import validate_columns

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=None)
def load_key(path: str = config.PEPPER_PATH, expected_length: Optional[int] = None) -> bytes:
    """
    Read pepper bytes once per process. Only the length is ever logged.
    """
    key_path = Path(path)
    if not key_path.exists():
        raise KeyMaterialError(
            reason="Pepper file not found",
            missing_or_invalid_fields=[str(key_path)],
            operator_fix_steps=[
                "Place the pepper file at the configured path or set CONDUCT_PEPPER_PATH.",
            ],
        )
    key = key_path.read_bytes()
    if not key:
        raise KeyMaterialError(
            reason="Pepper file is empty",
            missing_or_invalid_fields=[str(key_path)],
            operator_fix_steps=["Restore the pepper file from secret storage."],
        )
    if expected_length is not None and len(key) != expected_length:
        raise KeyMaterialError(
            reason=f"Pepper must be {expected_length} bytes, got {len(key)}",
            missing_or_invalid_fields=[str(key_path)],
            operator_fix_steps=["Restore the original pepper; never regenerate it between runs."],
        )
    logger.info("[anonymize] loaded %d-byte pepper", len(key))
    return key


def _is_null(value) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def hash_value(value, key: bytes, truncate_length: Optional[int] = config.DEFAULT_HASH_LENGTH) -> Optional[str]:
    """Keyed one-way token for ``value``; null maps to None."""
    if _is_null(value):
        return None
    message = str(value).encode("utf-8") + key
    digest = hmac.new(key, message, hashlib.sha256).hexdigest()
    return digest[:truncate_length] if truncate_length is not None else digest


def hash_column(
    values: pd.Series,
    key: bytes,
    truncate_length: Optional[int] = config.DEFAULT_HASH_LENGTH,
) -> pd.Series:
    return pd.Series([hash_value(v, key, truncate_length) for v in values], index=values.index, dtype=object)


def anonymize_columns(
    df: pd.DataFrame,
    columns: Iterable[str],
    key: bytes,
    truncate_length: Optional[int] = config.DEFAULT_HASH_LENGTH,
) -> pd.DataFrame:
    """Replace each named column with its anonymized tokens."""
    columns = list(columns)
    validate_columns(df, columns, "anonymization input")
    df = df.copy()
    for col in columns:
        df[col] = hash_column(df[col], key, truncate_length)
        logger.info("[anonymize] column '%s' hashed (%d non-null)", col, int(df[col].notna().sum()))
    return df
