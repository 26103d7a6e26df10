"""Unit tests for date parsing and normalization."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from changefeed.extractors.dates import DateParseError, normalize_date, parse_date


class TestParseDate:
    def test_iso_date(self):
        parsed = parse_date("2024-03-01")
        assert parsed.date() == date(2024, 3, 1)

    def test_result_is_utc_aware(self):
        parsed = parse_date("2024-03-01")
        assert parsed.tzinfo is not None
        assert parsed.utcoffset() == timedelta(0)

    def test_human_readable_date(self):
        parsed = parse_date("March 1, 2024")
        assert parsed.date() == date(2024, 3, 1)

    def test_iso_datetime_with_offset_converted_to_utc(self):
        parsed = parse_date("2024-03-01T23:30:00+02:00")
        assert parsed.date() == date(2024, 3, 1)
        assert parsed.hour == 21

    def test_collapses_internal_whitespace(self):
        parsed = parse_date("  February\n   1,   2024 ")
        assert parsed.date() == date(2024, 2, 1)

    def test_empty_raises(self):
        with pytest.raises(DateParseError):
            parse_date("")

    def test_none_raises(self):
        with pytest.raises(DateParseError):
            parse_date(None)

    def test_garbage_raises(self):
        with pytest.raises(DateParseError) as exc_info:
            parse_date("xyzzy")
        assert exc_info.value.text == "xyzzy"

    def test_epoch_default_rejected(self):
        with pytest.raises(DateParseError, match="implausible year"):
            parse_date("1970-01-01")

    def test_is_value_error(self):
        assert issubclass(DateParseError, ValueError)


class TestNormalizeDate:
    def test_valid_date_passes_through(self):
        assert normalize_date("2024-02-01").date() == date(2024, 2, 1)

    def test_unparsable_is_none(self):
        assert normalize_date("xyzzy") is None

    def test_blank_is_none(self):
        assert normalize_date("   ") is None

    def test_never_defaults_to_now(self):
        assert normalize_date(None) is None
