"""
templatemerge - CSV to spreadsheet/document template merge engine.

Public API:
-----------
Spreadsheet (.xlsx, ${Field} placeholders):
    fill_spreadsheet_from_csv(template, csv, output) -> path
    append_spreadsheet_table_from_csv(template, csv, output, sheet_name=None, header_row_index=0) -> path

Document (.docx, «Field» placeholders):
    fill_document_placeholders_from_csv_batch(template, csv, output_name_pattern) -> last path
    append_document_table_from_csv(template, csv, output, match_by_header=True) -> path

Utilities:
    parse_csv, to_record_map, PlaceholderTokenizer, ValueCoercer
"""

from templatemerge.coercion import ValueCoercer, write_value
from templatemerge.csv_reader import parse_csv, parse_csv_line
from templatemerge.document import (
    DocumentMergeEngine,
    UniformRunRewriter,
    append_document_table_from_csv,
    fill_document_placeholders_from_csv_batch,
)
from templatemerge.errors import (
    AssetNotFound,
    EmptyDataset,
    EmptyTable,
    InvalidNamePattern,
    MergeError,
    MissingHeaderRow,
    MissingSheet,
    MissingTable,
    NoMatchingTable,
)
from templatemerge.ir import CsvTable, HeaderMatch, MergeReport, OptionsSource
from templatemerge.placeholders import DOCUMENT_TOKENS, SPREADSHEET_TOKENS, PlaceholderTokenizer
from templatemerge.record_map import RecordMap, build_option_map, to_record_map
from templatemerge.spreadsheet import (
    SpreadsheetMergeEngine,
    append_spreadsheet_table_from_csv,
    fill_spreadsheet_from_csv,
)

__all__ = [
    # Engines
    "SpreadsheetMergeEngine",
    "DocumentMergeEngine",
    "UniformRunRewriter",
    # Operations
    "fill_spreadsheet_from_csv",
    "append_spreadsheet_table_from_csv",
    "fill_document_placeholders_from_csv_batch",
    "append_document_table_from_csv",
    # Utilities
    "parse_csv",
    "parse_csv_line",
    "RecordMap",
    "to_record_map",
    "build_option_map",
    "PlaceholderTokenizer",
    "SPREADSHEET_TOKENS",
    "DOCUMENT_TOKENS",
    "ValueCoercer",
    "write_value",
    # Models
    "CsvTable",
    "MergeReport",
    "OptionsSource",
    "HeaderMatch",
    # Errors
    "MergeError",
    "AssetNotFound",
    "EmptyDataset",
    "MissingSheet",
    "MissingTable",
    "MissingHeaderRow",
    "NoMatchingTable",
    "EmptyTable",
    "InvalidNamePattern",
]
