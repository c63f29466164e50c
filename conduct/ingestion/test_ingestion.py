"""
Conduct Ingestion Test Suite

Every test is labeled with the rule it enforces.
Tests must pass deterministically. No random data.
"""

import os
import tempfile
from datetime import date

import pandas as pd
import pytest

from conduct.analytics.anonymize import hash_value
from conduct.analytics.recidivism import compute_recidivism
from conduct.ingestion.errors import IngestionError
from conduct.ingestion.ingestion import (
    DataReadinessReport,
    IngestionResult,
    _parse_date,
    describe_schema,
    run_ingestion,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SLOTS = (("CHARGE_1", "FINDING_1"), ("CHARGE_2", "FINDING_2"))
KEY = bytes(range(32))


def write_csv(df: pd.DataFrame, suffix: str = ".csv") -> str:
    tmp = tempfile.NamedTemporaryFile(mode="w", suffix=suffix, delete=False)
    df.to_csv(tmp.name, index=False)
    tmp.close()
    return tmp.name


def make_export(rows: list[dict]) -> str:
    return write_csv(pd.DataFrame(rows))


def case_row(file_id, sid, incident_date, charge="Noise", finding="Responsible", **extra):
    row = {
        "FILE_ID": file_id,
        "SID": sid,
        "ROLE": "Respondent",
        "INCIDENT_DATE": incident_date,
        "CHARGE_1": charge,
        "FINDING_1": finding,
        "CHARGE_2": None,
        "FINDING_2": None,
    }
    row.update(extra)
    return row


GOOD_ROWS = [
    case_row("F1", "S1", "09/15/2021", College="Col of Arts & Science"),
    case_row("F2", "S1", "2022-02-01", College="Col of Arts & Science"),
    case_row("F3", "S2", "10/01/2021", College="Lindner College of Business"),
]


def ingest(rows, **kwargs):
    path = make_export(rows)
    try:
        return run_ingestion([path], slots=SLOTS, **kwargs)
    finally:
        os.unlink(path)


# ---------------------------------------------------------------------------
# RULE: Export files must exist and parse
# ---------------------------------------------------------------------------

class TestFilesRequired:
    def test_no_paths_halts(self):
        with pytest.raises(IngestionError) as exc_info:
            run_ingestion([], slots=SLOTS)
        assert "no export files" in str(exc_info.value).lower()

    def test_missing_file_halts(self):
        with pytest.raises(IngestionError) as exc_info:
            run_ingestion(["/nonexistent/cases.csv"], slots=SLOTS)
        assert "not found" in str(exc_info.value).lower()

    def test_empty_file_halts(self):
        tmp = tempfile.NamedTemporaryFile(mode="w", suffix=".csv", delete=False)
        tmp.close()
        try:
            with pytest.raises(IngestionError) as exc_info:
                run_ingestion([tmp.name], slots=SLOTS)
            assert "not parseable" in str(exc_info.value).lower()
        finally:
            os.unlink(tmp.name)


# ---------------------------------------------------------------------------
# RULE: Required columns and slots must be present in every file
# ---------------------------------------------------------------------------

class TestRequiredColumns:
    def test_missing_sid_halts(self):
        rows = [{k: v for k, v in row.items() if k != "SID"} for row in GOOD_ROWS]
        with pytest.raises(IngestionError) as exc_info:
            ingest(rows)
        assert "SID" in exc_info.value.missing_or_invalid_fields

    def test_missing_slot_column_halts(self):
        rows = [{k: v for k, v in row.items() if k != "FINDING_2"} for row in GOOD_ROWS]
        with pytest.raises(IngestionError) as exc_info:
            ingest(rows)
        assert exc_info.value.missing_or_invalid_fields == ["FINDING_2"]

    def test_second_file_checked_too(self):
        good = make_export(GOOD_ROWS)
        bad = make_export([{k: v for k, v in row.items() if k != "ROLE"} for row in GOOD_ROWS])
        try:
            with pytest.raises(IngestionError) as exc_info:
                run_ingestion([good, bad], slots=SLOTS)
            assert exc_info.value.affected_file == os.path.basename(bad)
        finally:
            os.unlink(good)
            os.unlink(bad)

    def test_bom_in_header_tolerated(self):
        path = make_export(GOOD_ROWS)
        with open(path, encoding="utf-8") as f:
            text = f.read()
        with open(path, "w", encoding="utf-8") as f:
            f.write("\ufeff" + text)
        try:
            result = run_ingestion([path], slots=SLOTS)
            assert "FILE_ID" in result.data.columns
        finally:
            os.unlink(path)


# ---------------------------------------------------------------------------
# RULE: Unparseable dates become null and are flagged, never guessed
# ---------------------------------------------------------------------------

class TestIncidentDates:
    def test_parse_date_formats(self):
        assert _parse_date("09/15/2021") == date(2021, 9, 15)
        assert _parse_date("2021-09-15") == date(2021, 9, 15)
        assert _parse_date("09/15/2021 03:30 PM") == date(2021, 9, 15)
        assert _parse_date("yesterday") is None
        assert _parse_date(None) is None

    def test_dates_become_datetimes(self):
        result = ingest(GOOD_ROWS)
        assert pd.api.types.is_datetime64_any_dtype(result.data["INCIDENT_DATE"])
        assert result.data["INCIDENT_DATE"].iloc[0] == pd.Timestamp("2021-09-15")

    def test_unparseable_date_nulled_and_flagged(self):
        rows = GOOD_ROWS + [case_row("F4", "S3", "sometime in fall")]
        result = ingest(rows)
        assert result.report.unparseable_incident_dates == 1
        assert result.report.null_incident_dates == 1
        assert any("unparseable" in f for f in result.report.flags)
        row = result.data[result.data["FILE_ID"] == "F4"].iloc[0]
        assert pd.isna(row["INCIDENT_DATE"])
        assert pd.isna(row["ACADEMIC_YEAR"])

    def test_blank_date_is_null_not_unparseable(self):
        rows = GOOD_ROWS + [case_row("F4", "S3", None)]
        result = ingest(rows)
        assert result.report.unparseable_incident_dates == 0
        assert result.report.null_incident_dates == 1

    def test_out_of_range_kept_and_flagged(self):
        rows = GOOD_ROWS + [case_row("F4", "S3", "2015-03-01")]
        result = ingest(rows)
        assert result.report.out_of_range_dates == 1
        assert len(result.data) == 4
        assert any("outside" in f for f in result.report.flags)

    def test_academic_years_counted(self):
        result = ingest(GOOD_ROWS)
        assert result.data["ACADEMIC_YEAR"].tolist() == ["AY2122", "AY2122", "AY2122"]
        assert result.report.academic_year_counts == {"AY2122": 3}


# ---------------------------------------------------------------------------
# RULE: Names canonicalized through explicit lookups
# ---------------------------------------------------------------------------

class TestCanonicalization:
    def test_charges_canonicalized(self):
        rows = [case_row("F1", "S1", "2021-09-15", charge="Alcohol - Underage possession")]
        result = ingest(rows)
        assert result.data["CHARGE_1"].iloc[0] == "Alcohol"

    def test_colleges_canonicalized(self):
        result = ingest(GOOD_ROWS)
        assert result.data["College"].tolist() == ["CAS", "CAS", "LCOB"]

    def test_custom_charge_lookup(self):
        rows = [case_row("F1", "S1", "2021-09-15", charge="Loud Music")]
        result = ingest(rows, charge_replacements={"Loud Music": "Noise"})
        assert result.data["CHARGE_1"].iloc[0] == "Noise"

    def test_group_column_optional(self):
        rows = [{k: v for k, v in row.items() if k != "College"} for row in GOOD_ROWS]
        result = ingest(rows)
        assert "College" not in result.data.columns

    def test_locations_canonicalized(self):
        rows = [
            case_row("F1", "S1", "2021-09-15", Location="Stratford Hts Bld 2"),
            case_row("F2", "S2", "2021-09-16", Location="Usquare"),
            case_row("F3", "S3", "2021-09-17", Location="Off Campus"),
            case_row("F4", "S4", "2021-09-18", Location=None),
        ]
        result = ingest(rows)
        locations = result.data["Location"]
        assert locations.iloc[:3].tolist() == ["Stratford Heights", "USquare", "Off Campus"]
        assert pd.isna(locations.iloc[3])

    def test_custom_location_lookup(self):
        rows = [case_row("F1", "S1", "2021-09-15", Site="Hall A")]
        result = ingest(rows, location_column="Site", location_replacements={"Hall A": "Alpha Hall"})
        assert result.data["Site"].iloc[0] == "Alpha Hall"


# ---------------------------------------------------------------------------
# RULE: Duplicates across exports removed and reported
# ---------------------------------------------------------------------------

class TestDuplicates:
    def test_overlapping_exports_deduplicated(self):
        first = make_export(GOOD_ROWS)
        second = make_export(GOOD_ROWS[1:] + [case_row("F9", "S9", "2022-01-05")])
        try:
            result = run_ingestion([first, second], slots=SLOTS)
            assert result.report.total_rows == 4
            assert result.report.duplicate_rows_removed == 2
            assert sum(result.report.rows_per_file.values()) == 6
        finally:
            os.unlink(first)
            os.unlink(second)


# ---------------------------------------------------------------------------
# RULE: Identifiers anonymized only with key material
# ---------------------------------------------------------------------------

class TestAnonymization:
    def test_sid_hashed_with_key(self):
        result = ingest(GOOD_ROWS, key=KEY)
        assert result.data["SID"].iloc[0] == hash_value("S1", KEY)
        assert len(result.data["SID"].iloc[0]) == 32
        assert result.report.anonymized_columns == ["SID"]

    def test_same_student_same_token(self):
        result = ingest(GOOD_ROWS, key=KEY)
        assert result.data["SID"].iloc[0] == result.data["SID"].iloc[1]
        assert result.data["SID"].iloc[0] != result.data["SID"].iloc[2]

    def test_no_key_flags_raw_identifiers(self):
        result = ingest(GOOD_ROWS)
        assert result.data["SID"].iloc[0] == "S1"
        assert result.report.anonymized_columns == []
        assert any("NOT anonymized" in f for f in result.report.flags)


# ---------------------------------------------------------------------------
# Report and schema summary
# ---------------------------------------------------------------------------

class TestReport:
    def test_result_types(self):
        result = ingest(GOOD_ROWS)
        assert isinstance(result, IngestionResult)
        assert isinstance(result.report, DataReadinessReport)

    def test_report_text_surfaces_everything(self):
        result = ingest(GOOD_ROWS + [case_row("F4", "S3", "not a date")], key=KEY)
        text = result.report.as_text()
        assert "CONDUCT DATA READINESS REPORT" in text
        assert "AY2122: 3" in text
        assert "CHARGE_2 / FINDING_2" in text
        assert "ANONYMIZED COLUMNS: SID" in text
        assert "FLAGS (all surfaced)" in text

    def test_fingerprint_recorded(self):
        result = ingest(GOOD_ROWS)
        (fingerprint,) = result.report.file_fingerprints.values()
        assert len(fingerprint) == 12


class TestDescribeSchema:
    def test_one_row_per_column(self):
        df = pd.DataFrame({"a": [1, None, 3], "b": ["x" * 80, None, None]})
        summary = describe_schema(df)
        assert summary["column"].tolist() == ["a", "b"]
        assert summary["na_count"].tolist() == [1, 2]
        assert summary.loc[1, "na_percent"] == pytest.approx(66.7)
        assert summary.loc[1, "example"].endswith("...")
        assert len(summary.loc[1, "example"]) == 60

    def test_without_examples(self):
        summary = describe_schema(pd.DataFrame({"a": [1]}), show_example=False)
        assert "example" not in summary.columns


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------

class TestEndToEnd:
    def test_ingested_data_feeds_recidivism(self):
        result = ingest(GOOD_ROWS, key=KEY)
        rates = compute_recidivism(result.data, ["AY2122"], group_by="College", slots=SLOTS)
        assert rates["College"].tolist() == ["CAS", "LCOB", "Overall"]
        overall = rates[rates["College"] == "Overall"].iloc[0]
        assert overall["Found_Resp"] == 2
        assert overall["Found_Resp_Again"] == 1
        assert overall["Rate"] == "50.00%"
