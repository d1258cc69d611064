"""
Unit tests for templatemerge.csv_reader.
"""
import pytest

from templatemerge.csv_reader import parse, parse_csv, parse_csv_line, split_lines


class TestParseCsvLine:

    def test_plain_fields(self):
        assert parse_csv_line("a,b,c") == ["a", "b", "c"]

    def test_quoted_field_with_comma_and_escaped_quote(self):
        assert parse_csv_line('"a,b""c"') == ['a,b"c']

    def test_quotes_can_open_mid_field(self):
        assert parse_csv_line('x"y,z"w,v') == ["xy,zw", "v"]

    def test_unterminated_quote_closes_at_end_of_line(self):
        assert parse_csv_line('"abc,def') == ["abc,def"]

    def test_trailing_separator_adds_empty_field(self):
        assert parse_csv_line("a,") == ["a", ""]

    def test_empty_line_is_one_empty_field(self):
        assert parse_csv_line("") == [""]

    def test_whitespace_is_preserved_in_values(self):
        assert parse_csv_line(" a , b ") == [" a ", " b "]

    def test_custom_separator(self):
        assert parse_csv_line("a;b,c;d", separator=";") == ["a", "b,c", "d"]


class TestSplitLines:

    def test_mixed_line_endings(self):
        assert split_lines("a\r\nb\nc\rd") == ["a", "b", "c", "d"]

    def test_trailing_newline_does_not_add_line(self):
        assert split_lines("a\nb\n") == ["a", "b"]

    def test_empty_text(self):
        assert split_lines("") == []


class TestParseCsv:

    def test_header_is_trimmed_and_rows_are_verbatim(self):
        table = parse_csv(" Name , Age \n Alice ,30\n")
        assert table.header == ["Name", "Age"]
        assert table.rows == [[" Alice ", "30"]]

    def test_blank_rows_are_dropped(self):
        table = parse_csv("Name,Age\n , ,\nAlice,30\n\nBob,41\n")
        assert table.rows == [["Alice", "30"], ["Bob", "41"]]

    def test_blank_header_is_kept(self):
        table = parse_csv(",,\nx,y,z")
        assert table.header == ["", "", ""]
        assert table.rows == [["x", "y", "z"]]

    def test_empty_input(self):
        table = parse_csv("")
        assert table.header == []
        assert table.rows == []
        assert table.is_empty

    def test_header_only(self):
        table = parse_csv("Name,Age\n")
        assert table.header == ["Name", "Age"]
        assert table.row_count == 0

    def test_ragged_rows_are_not_errors(self):
        table = parse_csv("A,B,C\n1\n1,2,3,4\n")
        assert table.rows == [["1"], ["1", "2", "3", "4"]]

    def test_byte_order_mark_is_removed(self):
        table = parse_csv("\ufeffName\nAlice")
        assert table.header == ["Name"]

    def test_record_is_case_insensitive(self):
        table = parse_csv("Name,Age\nAlice,30")
        assert table.record(0)["name"] == "Alice"

    def test_tuple_form(self):
        header, rows = parse("Name\nAlice")
        assert header == ["Name"]
        assert rows == [["Alice"]]

    def test_separator_must_be_single_character(self):
        with pytest.raises(ValueError):
            parse_csv("a;;b", separator=";;")
