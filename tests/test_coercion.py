"""
Unit tests for value coercion in templatemerge.coercion.

Order of checks: number, date/time, boolean, text.
"""
from datetime import datetime, timezone

import pytest
from openpyxl import Workbook

from templatemerge.coercion import ValueCoercer, write_cell, write_value


class RecordingSink:
    def __init__(self):
        self.calls = []

    def set_number(self, value):
        self.calls.append(("number", value))

    def set_datetime(self, value):
        self.calls.append(("datetime", value))

    def set_boolean(self, value):
        self.calls.append(("boolean", value))

    def set_text(self, value):
        self.calls.append(("text", value))


class TestCoerce:

    @pytest.mark.parametrize("raw,expected", [
        ("123", 123.0),
        ("10.5", 10.5),
        ("-0.25", -0.25),
        (" 42 ", 42.0),
        ("1e3", 1000.0),
        (".5", 0.5),
        ("20230115", 20230115.0),
    ])
    def test_numbers(self, raw, expected):
        value = ValueCoercer.coerce(raw)
        assert isinstance(value, float)
        assert value == expected

    @pytest.mark.parametrize("raw", ["1,000", "1_000", "nan", "inf", "12abc"])
    def test_non_invariant_numbers_fall_through(self, raw):
        assert ValueCoercer.parse_number(raw) is None

    def test_iso_date(self):
        assert ValueCoercer.coerce("2023-01-15") == datetime(2023, 1, 15)

    def test_iso_datetime(self):
        assert ValueCoercer.coerce("2023-01-15T10:30:00") == datetime(2023, 1, 15, 10, 30)

    def test_us_slash_date(self):
        assert ValueCoercer.coerce("01/15/2023") == datetime(2023, 1, 15)

    def test_month_name_date(self):
        assert ValueCoercer.coerce("15 Jan 2023") == datetime(2023, 1, 15)

    def test_timezone_input_becomes_local_naive(self):
        expected = datetime(2023, 1, 15, 10, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        value = ValueCoercer.coerce("2023-01-15T10:30:00Z")
        assert value == expected
        assert value.tzinfo is None

    def test_invalid_date_is_text(self):
        assert ValueCoercer.coerce("2023-13-45") == "2023-13-45"

    @pytest.mark.parametrize("raw,expected", [("true", True), ("FALSE", False), (" True ", True)])
    def test_booleans(self, raw, expected):
        assert ValueCoercer.coerce(raw) is expected

    def test_yes_is_text(self):
        assert ValueCoercer.coerce("yes") == "yes"

    def test_empty_is_text(self):
        value = ValueCoercer.coerce("")
        assert value == ""
        assert isinstance(value, str)

    def test_none_is_empty_text(self):
        assert ValueCoercer.coerce(None) == ""

    def test_plain_text(self):
        assert ValueCoercer.coerce("Bob") == "Bob"


class TestWriteValue:

    def test_number_goes_to_numeric_sink(self):
        sink = RecordingSink()
        write_value(sink, "123")
        assert sink.calls == [("number", 123.0)]

    def test_boolean_only_after_number_and_date_fail(self):
        sink = RecordingSink()
        write_value(sink, "true")
        assert sink.calls == [("boolean", True)]

    def test_date_goes_to_datetime_sink(self):
        sink = RecordingSink()
        write_value(sink, "2024-03-01")
        assert sink.calls == [("datetime", datetime(2024, 3, 1))]

    def test_empty_string_goes_to_text_sink(self):
        sink = RecordingSink()
        write_value(sink, "")
        assert sink.calls == [("text", "")]

    def test_write_cell_sets_typed_value(self):
        ws = Workbook().active
        write_cell(ws["A1"], "10.5")
        write_cell(ws["A2"], "2024-03-01")
        write_cell(ws["A3"], "false")
        write_cell(ws["A4"], "Bob")
        assert ws["A1"].value == 10.5
        assert ws["A2"].value == datetime(2024, 3, 1)
        assert ws["A2"].is_date
        assert ws["A3"].value is False
        assert ws["A4"].value == "Bob"

    def test_write_cell_keeps_formula_like_text_as_string(self):
        ws = Workbook().active
        write_cell(ws["A1"], "=HYPERLINK(\"http://x\")")
        assert ws["A1"].value == "=HYPERLINK(\"http://x\")"
        assert ws["A1"].data_type == "s"
