import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from templatemerge.assets import AssetSource, OutputSink
from templatemerge.config import get_settings
from templatemerge.document import DEFAULT_NAME_PATTERN, DocumentMergeEngine
from templatemerge.errors import MergeError
from templatemerge.ir import OptionsSource
from templatemerge.logger import set_level
from templatemerge.spreadsheet import SpreadsheetMergeEngine


def _separator(value: str) -> str:
    if len(value) != 1:
        raise argparse.ArgumentTypeError("separator must be a single character")
    return value


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("template", help="Template file name (relative to --template-dir) or path.")
    parser.add_argument("csv", help="CSV file name (relative to --template-dir) or path.")
    parser.add_argument(
        "--template-dir",
        default=None,
        help="Directory holding template and CSV assets (default: TEMPLATE_DIR).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to write merged files into (default: OUTPUT_DIR).",
    )
    parser.add_argument(
        "--separator",
        type=_separator,
        default=None,
        help="Single-character CSV field separator (default: CSV_SEPARATOR).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="templatemerge",
        description="Merge CSV rows into spreadsheet and document templates.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_fill_xlsx = subparsers.add_parser("fill-xlsx", help="Fill ${Field} placeholders from the first CSV row.")
    _add_common_arguments(p_fill_xlsx)
    p_fill_xlsx.add_argument("--output", default="Output_Filled.xlsx", help="Output file name.")

    p_append_xlsx = subparsers.add_parser("append-xlsx", help="Append CSV rows below a sheet's header row.")
    _add_common_arguments(p_append_xlsx)
    p_append_xlsx.add_argument("--output", default="Output_Table.xlsx", help="Output file name.")
    p_append_xlsx.add_argument("--sheet", default=None, help="Target sheet name (default: first sheet).")
    p_append_xlsx.add_argument("--header-row", type=int, default=0, help="0-based header row index.")

    p_fill_docx = subparsers.add_parser("fill-docx", help="Write one document per CSV row.")
    _add_common_arguments(p_fill_docx)
    p_fill_docx.add_argument(
        "--name-pattern",
        default=DEFAULT_NAME_PATTERN,
        help="Output name pattern; {fields} and {index} are available.",
    )
    p_fill_docx.add_argument(
        "--options-source",
        choices=[source.value for source in OptionsSource],
        default=None,
        help="Row that feeds Options1..N (default: DOCX_OPTIONS_SOURCE).",
    )

    p_append_docx = subparsers.add_parser("append-docx", help="Append CSV rows to a document table.")
    _add_common_arguments(p_append_docx)
    p_append_docx.add_argument("--output", default="Output_Table.docx", help="Output file name.")
    p_append_docx.add_argument(
        "--first-table",
        action="store_true",
        help="Use the first table instead of matching table headers against the CSV header.",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> str:
    settings = get_settings()
    assets = AssetSource(args.template_dir or settings.TEMPLATE_DIR)
    output = OutputSink(args.output_dir or settings.OUTPUT_DIR)

    if args.command == "fill-xlsx":
        engine = SpreadsheetMergeEngine(assets=assets, output=output, separator=args.separator)
        return engine.fill_first_record(args.template, args.csv, args.output)
    if args.command == "append-xlsx":
        engine = SpreadsheetMergeEngine(assets=assets, output=output, separator=args.separator)
        return engine.append_table(
            args.template,
            args.csv,
            args.output,
            sheet_name=args.sheet,
            header_row_index=args.header_row,
        )
    if args.command == "fill-docx":
        doc_engine = DocumentMergeEngine(
            assets=assets,
            output=output,
            separator=args.separator,
            options_source=args.options_source,
        )
        return doc_engine.fill_placeholders_batch(args.template, args.csv, args.name_pattern)
    doc_engine = DocumentMergeEngine(assets=assets, output=output, separator=args.separator)
    return doc_engine.append_table_rows(
        args.template,
        args.csv,
        args.output,
        match_by_header=not args.first_table,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    set_level(logging.DEBUG if args.verbose else get_settings().LOG_LEVEL)
    try:
        output_path = run(args)
    except MergeError as exc:
        print(f"[error] {exc}")
        return 1
    print(output_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
