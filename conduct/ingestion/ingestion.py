"""
Conduct Ingestion Pipeline

CONTRACT ANCHORS
----------------
- One or more CSV case exports, concatenated in the order given.
- Required: FILE_ID, SID, ROLE, INCIDENT_DATE and every configured
  CHARGE_n / FINDING_n slot. Missing columns halt the run.
- Unparseable incident dates become null and are flagged, never guessed.
- Charge, college and location names are canonicalized through explicit lookups.
- SID is anonymized when key material is supplied.
- No partial output. A halt returns nothing.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Mapping, Optional, Sequence

import pandas as pd

from conduct import config
from conduct.analytics.academic_year import assign_academic_year
from conduct.analytics.anonymize import anonymize_columns
from conduct.ingestion.canonicalize import build_replacement_lookup, replace_values
from conduct.ingestion.errors import IngestionError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class DataReadinessReport:
    """
    Produced before analysis begins.
    Surfaces all flags. No suppressed flags.
    """
    timestamp: str
    export_files: list[str]
    file_fingerprints: dict[str, str]
    rows_per_file: dict[str, int]
    total_rows: int
    duplicate_rows_removed: int
    null_incident_dates: int
    unparseable_incident_dates: int
    out_of_range_dates: int
    academic_year_counts: dict[str, int]
    charge_slots: list[tuple[str, str]]
    anonymized_columns: list[str]
    flags: list[str] = field(default_factory=list)

    def as_text(self) -> str:
        lines = [
            "═" * 60,
            "CONDUCT DATA READINESS REPORT",
            "═" * 60,
            f"Generated       : {self.timestamp}",
            "",
            "FILES",
        ]
        for name in self.export_files:
            lines.append(
                f"  {name}: {self.rows_per_file.get(name, 0)} rows "
                f"(sha256 {self.file_fingerprints.get(name, '?')})"
            )
        lines += [
            "",
            "ROW COUNTS",
            f"  Total rows        : {self.total_rows}",
            f"  Duplicates removed: {self.duplicate_rows_removed}",
            "",
            "INCIDENT DATES",
            f"  Null              : {self.null_incident_dates}",
            f"  Unparseable       : {self.unparseable_incident_dates}",
            f"  Out of range      : {self.out_of_range_dates}",
            "",
            "ACADEMIC YEARS",
        ]
        if not self.academic_year_counts:
            lines.append("  None")
        for label, count in self.academic_year_counts.items():
            lines.append(f"  {label}: {count}")
        lines += ["", "CHARGE / FINDING SLOTS"]
        for charge, finding in self.charge_slots:
            lines.append(f"  {charge} / {finding}")
        lines += [
            "",
            f"ANONYMIZED COLUMNS: {', '.join(self.anonymized_columns) or 'None'}",
        ]
        if self.flags:
            lines += ["", "FLAGS (all surfaced)"]
            for flag in self.flags:
                lines.append(f"  ⚑ {flag}")
        lines.append("═" * 60)
        return "\n".join(lines)


@dataclass
class IngestionResult:
    data: pd.DataFrame
    report: DataReadinessReport


# ---------------------------------------------------------------------------
# Internal utilities
# ---------------------------------------------------------------------------


def _mechanical_normalize(df: pd.DataFrame) -> tuple[pd.DataFrame, list[str]]:
    """
    Allowed mechanical normalization:
    - remove BOM/invisible characters
    - NBSP to space
    - trim whitespace on string cells; blank cells become null

    Returns normalized df and a log of transformations.
    """
    log: list[str] = []
    df = df.copy()
    df.columns = [str(c).replace("\ufeff", "").strip() for c in df.columns]

    for col in df.columns:
        if not (pd.api.types.is_object_dtype(df[col]) or pd.api.types.is_string_dtype(df[col])):
            continue
        original = df[col]
        cleaned = (
            original.astype("string")
            .str.replace("[\u200b\u200c\u200d\ufeff]", "", regex=True)  # BOM / invisible
            .str.replace("\u00a0", " ", regex=False)
            .str.strip()
        )
        cleaned = cleaned.mask(cleaned.eq("").fillna(False).astype(bool))
        cleaned = cleaned.astype(object).where(cleaned.notna(), None)
        if cleaned.fillna("").astype(str).tolist() != original.fillna("").astype(str).tolist():
            log.append(f"Mechanical normalize applied to column '{col}'")
        df[col] = cleaned

    return df, log


def _validate_required_columns(
    df: pd.DataFrame,
    required: Sequence[str],
    file_label: str,
) -> None:
    """Halt if any required column is absent."""
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise IngestionError(
            reason="Required columns missing",
            affected_file=file_label,
            missing_or_invalid_fields=missing,
            operator_fix_steps=[
                f"Add or rename missing column(s): {', '.join(missing)}",
                "Ensure every export uses the standard case export schema.",
                "If the institution uses a different number of charge slots, pass slots= explicitly.",
            ],
        )


def _parse_date(val) -> Optional[date]:
    """Parse a date value tolerantly. Return None if unparseable."""
    if val is None or (not isinstance(val, str) and pd.isna(val)):
        return None
    if isinstance(val, (date, datetime)):
        return val.date() if isinstance(val, datetime) else val
    s = str(val).strip()
    for fmt in ("%m/%d/%Y", "%Y-%m-%d", "%m-%d-%Y", "%Y/%m/%d",
                "%m/%d/%y", "%Y-%m-%d %H:%M:%S", "%m/%d/%Y %H:%M", "%m/%d/%Y %I:%M %p"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def _file_hash(path: str) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()[:12]


def describe_schema(
    df: pd.DataFrame,
    show_example: bool = True,
    max_example_length: int = 60,
) -> pd.DataFrame:
    """One row per column: dtype, non-null / null counts, null percent, example value."""
    rows = []
    for col in df.columns:
        series = df[col]
        non_na = int(series.notna().sum())
        na = int(series.isna().sum())
        row = {
            "column": col,
            "type": str(series.dtype),
            "non_na_count": non_na,
            "na_count": na,
            "na_percent": round(na / len(df) * 100, 1) if len(df) else 0.0,
        }
        if show_example:
            values = series.dropna()
            example = None
            if not values.empty:
                example = str(values.iloc[0])
                if len(example) > max_example_length:
                    example = example[: max_example_length - 3] + "..."
            row["example"] = example
        rows.append(row)
    return pd.DataFrame(rows)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def run_ingestion(
    export_paths: Sequence[str],
    slots: Sequence[tuple[str, str]] = config.CHARGE_FINDING_SLOTS,
    key: Optional[bytes] = None,
    anonymize: Sequence[str] = (config.SID,),
    charge_replacements: Mapping[str, str] = config.VIOLATION_REPLACEMENTS,
    group_column: str = config.COLLEGE,
    group_replacements: Mapping[str, str] = config.COLLEGE_REPLACEMENTS,
    location_column: str = config.LOCATION,
    location_replacements: Mapping[str, str] = config.LOCATION_MAP,
    date_range: tuple[date, date] = config.DATE_RANGE,
    truncate_length: int = config.DEFAULT_HASH_LENGTH,
) -> IngestionResult:
    """
    Load case exports into one enriched case table.

    Parameters
    ----------
    export_paths : sequence of str
        CSV exports, concatenated in order.
    slots : sequence of (charge, finding)
        Charge/finding column pairs every export must carry.
    key : bytes, optional
        Pepper for anonymization. When None, identifiers are left as-is
        and the report flags it.
    anonymize : sequence of str
        Identifier columns to hash when a key is supplied.
    charge_replacements, group_replacements : mapping
        Canonicalization lookups for charge columns and ``group_column``.
    location_column, location_replacements : str, mapping
        Location column and its lookup; skipped when the column is absent.
    date_range : (date, date)
        Expected incident-date bounds; rows outside are flagged, not dropped.

    Returns
    -------
    IngestionResult
        Cleaned DataFrame (INCIDENT_DATE as datetime64, ACADEMIC_YEAR added)
        and its DataReadinessReport.

    Raises
    ------
    IngestionError
        Missing or unparseable file, or missing required columns.
    """
    flags: list[str] = []
    timestamp = datetime.now().isoformat(timespec="seconds")
    slot_pairs = [(str(c), str(f)) for c, f in slots]

    if not export_paths:
        raise IngestionError(
            reason="No export files supplied",
            affected_file="(none)",
            missing_or_invalid_fields=[],
            operator_fix_steps=["Pass at least one case export CSV."],
        )

    # ------------------------------------------------------------------
    # STEP 1: Verify files exist and are parseable
    # ------------------------------------------------------------------
    frames: list[pd.DataFrame] = []
    rows_per_file: dict[str, int] = {}
    fingerprints: dict[str, str] = {}
    for path in export_paths:
        name = Path(path).name
        if not Path(path).exists():
            raise IngestionError(
                reason="Export file not found",
                affected_file=str(path),
                missing_or_invalid_fields=[],
                operator_fix_steps=[
                    f"Verify the path is correct: {path}",
                    "Ensure the export has been downloaded before running ingestion.",
                ],
            )
        try:
            frame = pd.read_csv(path, dtype=str)
        except Exception as e:
            raise IngestionError(
                reason="Export file is not parseable",
                affected_file=str(path),
                missing_or_invalid_fields=[],
                operator_fix_steps=[
                    "Verify the file is a valid CSV.",
                    f"Parse error: {e}",
                ],
            ) from e

        # ------------------------------------------------------------------
        # STEP 2: Mechanical normalization (logged)
        # ------------------------------------------------------------------
        frame, norm_log = _mechanical_normalize(frame)
        flags.extend(f"{name}: {entry}" for entry in norm_log)

        # ------------------------------------------------------------------
        # STEP 3: Required columns and charge/finding slots, per file
        # ------------------------------------------------------------------
        _validate_required_columns(frame, config.REQUIRED_COLUMNS, name)
        _validate_required_columns(frame, [col for pair in slot_pairs for col in pair], name)

        rows_per_file[name] = len(frame)
        fingerprints[name] = _file_hash(str(path))
        frames.append(frame)
        logger.info("[ingestion] %s: %d rows", name, len(frame))

    df = pd.concat(frames, ignore_index=True)

    # ------------------------------------------------------------------
    # STEP 4: Incident dates (soft: unparseable -> null, flagged)
    # ------------------------------------------------------------------
    raw_dates = df[config.INCIDENT_DATE]
    parsed = raw_dates.map(_parse_date)
    unparseable = int((raw_dates.notna() & parsed.isna()).sum())
    df[config.INCIDENT_DATE] = pd.to_datetime(parsed, errors="coerce")
    null_dates = int(df[config.INCIDENT_DATE].isna().sum())
    if unparseable:
        flags.append(f"{unparseable} incident date(s) unparseable; set to null and excluded from bucketing")

    lo, hi = pd.Timestamp(date_range[0]), pd.Timestamp(date_range[1])
    dated = df[config.INCIDENT_DATE].notna()
    out_of_range = int((dated & ((df[config.INCIDENT_DATE] < lo) | (df[config.INCIDENT_DATE] > hi))).sum())
    if out_of_range:
        flags.append(f"{out_of_range} incident date(s) outside {date_range[0]} – {date_range[1]} (kept)")

    # ------------------------------------------------------------------
    # STEP 5: Canonicalize names
    # ------------------------------------------------------------------
    charge_lookup = build_replacement_lookup(("charges", charge_replacements))
    df = replace_values(df, [c for c, _ in slot_pairs], charge_lookup, "charges")
    if group_column in df.columns:
        group_lookup = build_replacement_lookup((group_column, group_replacements))
        df = replace_values(df, [group_column], group_lookup, group_column)
    if location_column in df.columns:
        location_lookup = build_replacement_lookup((location_column, location_replacements))
        df = replace_values(df, [location_column], location_lookup, location_column)

    # ------------------------------------------------------------------
    # STEP 6: Duplicate rows (identical across every column)
    # ------------------------------------------------------------------
    before = len(df)
    df = df.drop_duplicates().reset_index(drop=True)
    duplicates = before - len(df)
    if duplicates:
        flags.append(f"{duplicates} duplicate row(s) removed across exports")

    # ------------------------------------------------------------------
    # STEP 7: Academic year
    # ------------------------------------------------------------------
    df = assign_academic_year(df)
    year_counts = {
        str(label): int(count)
        for label, count in df[config.ACADEMIC_YEAR].value_counts(dropna=True).sort_index().items()
    }

    # ------------------------------------------------------------------
    # STEP 8: Anonymize identifiers
    # ------------------------------------------------------------------
    anonymized: list[str] = []
    if key is not None:
        df = anonymize_columns(df, anonymize, key, truncate_length)
        anonymized = list(anonymize)
    else:
        flags.append("No key supplied; identifiers NOT anonymized")

    report = DataReadinessReport(
        timestamp=timestamp,
        export_files=list(rows_per_file),
        file_fingerprints=fingerprints,
        rows_per_file=rows_per_file,
        total_rows=len(df),
        duplicate_rows_removed=duplicates,
        null_incident_dates=null_dates,
        unparseable_incident_dates=unparseable,
        out_of_range_dates=out_of_range,
        academic_year_counts=year_counts,
        charge_slots=slot_pairs,
        anonymized_columns=anonymized,
        flags=flags,
    )
    return IngestionResult(data=df, report=report)


# ---------------------------------------------------------------------------
# CLI / direct execution
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import sys

    from conduct.analytics.anonymize import load_key
    from conduct.analytics.errors import KeyMaterialError

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if len(sys.argv) < 2:
        print("Usage: python -m conduct.ingestion.ingestion <export_csv> [<export_csv> ...]")
        sys.exit(1)

    try:
        pepper = load_key(config.PEPPER_PATH)
    except KeyMaterialError as e:
        print(str(e))
        sys.exit(2)

    try:
        result = run_ingestion(sys.argv[1:], key=pepper)
        print(result.report.as_text())
        print(f"\nCase rows ready for analysis: {len(result.data)}")
    except IngestionError as e:
        print(str(e))
        sys.exit(2)
