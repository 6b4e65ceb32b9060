"""
Tests for the Upload-Metadata codec.
"""

import pytest

from cobalt_upload.core.domain.errors import InvalidMetadataError
from cobalt_upload.core.domain.metadata import parse_metadata, validate_metadata


class TestValidateMetadata:
    """Validation of raw Upload-Metadata values."""

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_metadata_is_valid(self, raw) -> None:
        validate_metadata(raw)

    def test_pairs_and_bare_keys(self) -> None:
        validate_metadata("filename d29ybGRfZG9taW5hdGlvbl9wbGFuLnBkZg==,is_confidential")

    def test_surrounding_whitespace_is_ignored(self) -> None:
        validate_metadata("  name   dGVzdA==  ,  flag ")

    def test_non_ascii_key_rejected(self) -> None:
        with pytest.raises(InvalidMetadataError) as exc_info:
            validate_metadata("naïve dGVzdA==")

        assert exc_info.value.status_code == 400
        assert "non-ASCII" in exc_info.value.message

    @pytest.mark.parametrize("value", ["abc", "dGVzdA", "***=", "dGVz dA=="])
    def test_invalid_base64_rejected(self, value: str) -> None:
        with pytest.raises(InvalidMetadataError):
            validate_metadata(f"name {value}")

    def test_first_bad_pair_fails_whole_value(self) -> None:
        with pytest.raises(InvalidMetadataError):
            validate_metadata("good dGVzdA==,bad not-base64")


class TestParseMetadata:
    """Decoding of raw Upload-Metadata values for diagnostics."""

    def test_empty(self) -> None:
        assert parse_metadata("") == {}
        assert parse_metadata(None) == {}

    def test_decodes_values_and_bare_keys(self) -> None:
        parsed = parse_metadata("filename d29ybGRfZG9taW5hdGlvbl9wbGFuLnBkZg==,is_confidential")

        assert parsed == {
            "filename": b"world_domination_plan.pdf",
            "is_confidential": None,
        }

    def test_trims_and_skips_empty_pairs(self) -> None:
        parsed = parse_metadata(" name  dGVzdA== ,, flag ")

        assert parsed == {"name": b"test", "flag": None}

    def test_invalid_value_raises(self) -> None:
        with pytest.raises(InvalidMetadataError):
            parse_metadata("name %%%%")
