import hashlib
import hmac

import numpy as np
import pandas as pd
import pytest

from conduct.analytics.anonymize import anonymize_columns, hash_column, hash_value, load_key
from conduct.analytics.errors import KeyMaterialError, MissingColumns

KEY = bytes(range(32))
OTHER_KEY = bytes(range(1, 33))


class TestHashValue:
    def test_matches_keyed_digest_over_value_and_key(self):
        expected = hmac.new(KEY, b"M01234567" + KEY, hashlib.sha256).hexdigest()[:32]
        assert hash_value("M01234567", KEY) == expected

    def test_stable_across_calls(self):
        assert hash_value("M01234567", KEY) == hash_value("M01234567", KEY)

    def test_key_changes_token(self):
        assert hash_value("M01234567", KEY) != hash_value("M01234567", OTHER_KEY)

    def test_value_changes_token(self):
        assert hash_value("M01234567", KEY) != hash_value("M01234568", KEY)

    def test_string_form_is_hashed(self):
        assert hash_value(12345, KEY) == hash_value("12345", KEY)

    @pytest.mark.parametrize("value", [None, np.nan, pd.NA])
    def test_null_maps_to_null(self, value):
        assert hash_value(value, KEY) is None

    def test_default_truncation_is_32_hex(self):
        token = hash_value("M01234567", KEY)
        assert len(token) == 32
        int(token, 16)

    def test_custom_and_no_truncation(self):
        assert len(hash_value("M01234567", KEY, truncate_length=16)) == 16
        assert len(hash_value("M01234567", KEY, truncate_length=None)) == 64

    def test_token_never_contains_input(self):
        assert "M01234567" not in hash_value("M01234567", KEY)
        assert "12345678" not in hash_value("12345678", KEY)


class TestColumns:
    def test_hash_column_preserves_nulls(self):
        out = hash_column(pd.Series(["A", None, "A"]), KEY)
        assert out.iloc[0] == out.iloc[2]
        assert pd.isna(out.iloc[1])

    def test_anonymize_columns_only_touches_named_columns(self):
        df = pd.DataFrame({"SID": ["S1", "S2"], "FILE_ID": ["F1", "F2"]})
        out = anonymize_columns(df, ["SID"], KEY)
        assert out["FILE_ID"].tolist() == ["F1", "F2"]
        assert out["SID"].tolist() == [hash_value("S1", KEY), hash_value("S2", KEY)]
        assert df["SID"].tolist() == ["S1", "S2"]

    def test_anonymize_missing_column_halts(self):
        with pytest.raises(MissingColumns):
            anonymize_columns(pd.DataFrame({"FILE_ID": ["F1"]}), ["SID"], KEY)


class TestLoadKey:
    def test_reads_bytes(self, tmp_path):
        path = tmp_path / "pepper.bin"
        path.write_bytes(KEY)
        assert load_key(str(path)) == KEY

    def test_expected_length_enforced(self, tmp_path):
        path = tmp_path / "short.bin"
        path.write_bytes(b"abc")
        with pytest.raises(KeyMaterialError):
            load_key(str(path), expected_length=32)

    def test_missing_file(self, tmp_path):
        with pytest.raises(KeyMaterialError):
            load_key(str(tmp_path / "absent.bin"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        with pytest.raises(KeyMaterialError):
            load_key(str(path))

    def test_key_never_logged(self, tmp_path, caplog):
        path = tmp_path / "logged.bin"
        path.write_bytes(b"super-secret-pepper")
        with caplog.at_level("DEBUG"):
            load_key(str(path))
        assert "super-secret-pepper" not in caplog.text
