from datetime import date, datetime

import pandas as pd
import pytest

from conduct.analytics.academic_year import (
    academic_year_order,
    academic_year_series,
    assign_academic_year,
    followup_end_date,
    resolve_academic_year,
)
from conduct.analytics.errors import InvalidAcademicYear, InvalidDate


class TestResolveBoundary:
    def test_july_31_belongs_to_previous_year(self):
        assert resolve_academic_year(date(2023, 7, 31)) == "AY2223"

    def test_august_1_starts_new_year(self):
        assert resolve_academic_year(date(2023, 8, 1)) == "AY2324"

    def test_december_and_january_share_a_year(self):
        assert resolve_academic_year(date(2023, 12, 31)) == resolve_academic_year(date(2024, 1, 1)) == "AY2324"

    def test_century_rollover(self):
        assert resolve_academic_year(date(1999, 9, 1)) == "AY9900"

    def test_datetime_and_timestamp_accepted(self):
        assert resolve_academic_year(datetime(2021, 10, 5, 14, 30)) == "AY2122"
        assert resolve_academic_year(pd.Timestamp("2022-03-01")) == "AY2122"


class TestResolveInvalid:
    @pytest.mark.parametrize("value", [None, pd.NaT, float("nan")])
    def test_null_raises(self, value):
        with pytest.raises(InvalidDate):
            resolve_academic_year(value)

    def test_raw_text_is_not_parsed(self):
        with pytest.raises(InvalidDate):
            resolve_academic_year("2023-08-01")


class TestVectorized:
    def test_series_with_nulls_and_garbage(self):
        labels = academic_year_series(["2023-07-31", None, "garbage", "2023-08-01"])
        assert labels.isna().tolist() == [False, True, True, False]
        assert labels[labels.notna()].tolist() == ["AY2223", "AY2324"]

    def test_assign_adds_column_when_absent(self):
        df = pd.DataFrame({"INCIDENT_DATE": pd.to_datetime(["2021-09-01", "2022-02-01"])})
        out = assign_academic_year(df)
        assert out["ACADEMIC_YEAR"].tolist() == ["AY2122", "AY2122"]
        assert "ACADEMIC_YEAR" not in df.columns

    def test_assign_keeps_existing_column(self):
        df = pd.DataFrame({"INCIDENT_DATE": pd.to_datetime(["2021-09-01"]), "ACADEMIC_YEAR": ["AY9999"]})
        out = assign_academic_year(df)
        assert out["ACADEMIC_YEAR"].tolist() == ["AY9999"]


class TestLabels:
    def test_order(self):
        assert academic_year_order("AY2324") == 2324
        assert academic_year_order("AY1920") < academic_year_order("AY2021")

    def test_followup_end_date(self):
        assert followup_end_date("AY2324") == date(2024, 7, 31)

    def test_labels_read_as_twenty_first_century(self):
        assert followup_end_date("AY0001") == date(2001, 7, 31)
        assert followup_end_date("AY9899") == date(2099, 7, 31)
        assert academic_year_order("AY0001") < academic_year_order("AY9899")

    @pytest.mark.parametrize("label", ["2324", "AY23", "FY2324", ""])
    def test_malformed_label_raises(self, label):
        with pytest.raises(InvalidAcademicYear):
            academic_year_order(label)
