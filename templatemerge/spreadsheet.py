"""
电子表格合并模块 (Spreadsheet Merge Module)
==========================================

将 CSV 数据合并到 .xlsx 模板中，两种模式:
  - fill_first_record: 用第一条数据行替换所有工作表中的 ${Field} 占位符
  - append_table:      在表头行下方逐行追加 CSV 数据，沿用模型行的单元格样式，
                       并按数字/日期/布尔/文本推断写入类型
"""

from __future__ import annotations

from copy import copy
from io import BytesIO
from typing import Any, Dict, List, Optional, Set

from openpyxl import load_workbook
from openpyxl.cell.cell import Cell
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from templatemerge.assets import AssetSource, OutputSink, PathLike, read_csv_asset
from templatemerge.coercion import write_cell
from templatemerge.config import get_settings
from templatemerge.errors import EmptyDataset, MissingHeaderRow, MissingSheet
from templatemerge.ir import CsvTable, MergeReport
from templatemerge.logger import get_logger, log_report
from templatemerge.placeholders import SPREADSHEET_TOKENS

logger = get_logger(__name__)

DEFAULT_TEMPLATE = "Template.xlsx"
DEFAULT_CSV = "Data.csv"
DEFAULT_FILL_OUTPUT = "Output_Filled.xlsx"
DEFAULT_TABLE_OUTPUT = "Output_Table.xlsx"


class SpreadsheetMergeEngine:
    """
    电子表格合并引擎：读取模板与 CSV、在内存中修改工作簿、写出输出文件。

    每次调用独占其工作簿实例；last_report 记录最近一次调用的结果摘要。
    """

    def __init__(
        self,
        assets: Optional[AssetSource] = None,
        output: Optional[OutputSink] = None,
        separator: Optional[str] = None,
        encoding: Optional[str] = None,
    ):
        settings = get_settings()
        self.assets = assets or AssetSource(settings.TEMPLATE_DIR)
        self.output = output or OutputSink(settings.OUTPUT_DIR)
        self.separator = separator or settings.CSV_SEPARATOR
        self.encoding = encoding or settings.CSV_ENCODING
        self.last_report: Optional[MergeReport] = None

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def fill_first_record(
        self,
        template: PathLike = DEFAULT_TEMPLATE,
        csv: PathLike = DEFAULT_CSV,
        output: PathLike = DEFAULT_FILL_OUTPUT,
    ) -> str:
        """
        用 CSV 第一条数据行替换所有工作表中的 ${Field} 占位符。
        CSV 没有数据行时抛出 EmptyDataset，不写任何文件。
        """
        template_bytes = self.assets.open_packaged_asset(template)
        table = self._read_csv(csv)
        if table.is_empty:
            raise EmptyDataset("CSV has no data rows.")

        record = table.record(0)
        logger.info("fill_first_record: template=%s, csv=%s, keys=%d", template, csv, len(record))

        wb = self._load(template_bytes)
        cells_written = 0
        unresolved: Set[str] = set()
        for ws in wb.worksheets:
            for row in ws.iter_rows():
                for cell in row:
                    if not _is_text_cell(cell):
                        continue
                    text = cell.value
                    replaced = SPREADSHEET_TOKENS.substitute(text, record)
                    unresolved.update(SPREADSHEET_TOKENS.find_keys(replaced))
                    if replaced is not text:
                        cell.value = replaced
                        cell.data_type = "s"
                        cells_written += 1
        _mark_for_recalculation(wb)

        warnings = [f"unresolved placeholder: {key}" for key in sorted(unresolved)]

        out_path = self._save(wb, output)
        self.last_report = MergeReport(
            operation="fill_first_record",
            output_paths=[out_path],
            rows_processed=1,
            cells_written=cells_written,
            warnings=warnings,
        )
        log_report(logger, self.last_report)
        return out_path

    def append_table(
        self,
        template: PathLike = DEFAULT_TEMPLATE,
        csv: PathLike = DEFAULT_CSV,
        output: PathLike = DEFAULT_TABLE_OUTPUT,
        sheet_name: Optional[str] = None,
        header_row_index: int = 0,
    ) -> str:
        """
        在模板表头行（0 起始的 header_row_index）下方追加 CSV 数据行。

        表头行下一行是模型行，其行高与各单元格样式复制到每个追加行；列按表头文本
        （去空白）在 RecordMap 中查找，空表头列保持不变。
        """
        template_bytes = self.assets.open_packaged_asset(template)
        wb = self._load(template_bytes)
        ws = self._resolve_sheet(wb, sheet_name)
        template_cols = self._read_header_row(ws, header_row_index)

        table = self._read_csv(csv)
        if not table.header:
            raise EmptyDataset("CSV has no header row.")

        header_row = header_row_index + 1
        model_row = header_row + 1
        model = _RowStyle.capture(ws, model_row)
        logger.info(
            "append_table: template=%s, sheet=%s, header_row=%d, columns=%d, rows=%d",
            template,
            ws.title,
            header_row,
            len(template_cols),
            table.row_count,
        )

        write_row = model_row
        cells_written = 0
        for row_idx in range(table.row_count):
            record = table.record(row_idx)
            model.apply(ws, write_row)
            for col_idx, key in enumerate(template_cols, start=1):
                if not key:
                    continue
                write_cell(ws.cell(write_row, col_idx), record.get(key, ""))
                cells_written += 1
            logger.debug("append_table: wrote csv row %d to sheet row %d", row_idx + 1, write_row)
            write_row += 1
        _mark_for_recalculation(wb)

        out_path = self._save(wb, output)
        self.last_report = MergeReport(
            operation="append_table",
            output_paths=[out_path],
            rows_processed=table.row_count,
            cells_written=cells_written,
        )
        log_report(logger, self.last_report)
        return out_path

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read_csv(self, csv: PathLike) -> CsvTable:
        return read_csv_asset(self.assets, csv, self.separator, self.encoding)

    @staticmethod
    def _load(template_bytes: bytes) -> Workbook:
        return load_workbook(BytesIO(template_bytes), data_only=False)

    def _save(self, wb: Workbook, output: PathLike) -> str:
        out_path = self.output.resolve_output_path(output)
        with self.output.create_file(out_path) as fh:
            wb.save(fh)
        wb.close()
        return str(out_path)

    @staticmethod
    def _resolve_sheet(wb: Workbook, sheet_name: Optional[str]) -> Worksheet:
        if sheet_name is None:
            return wb.worksheets[0]
        if sheet_name not in wb.sheetnames:
            available = ", ".join(wb.sheetnames) if wb.sheetnames else "none"
            raise MissingSheet(f"Sheet '{sheet_name}' not found in template. Available sheets: {available}")
        return wb[sheet_name]

    @staticmethod
    def _read_header_row(ws: Worksheet, header_row_index: int) -> List[str]:
        header_row = header_row_index + 1
        if header_row_index < 0 or header_row > ws.max_row:
            raise MissingHeaderRow(f"Template header row {header_row_index} not found.")
        cells = next(ws.iter_rows(min_row=header_row, max_row=header_row))
        if all(cell.value is None for cell in cells):
            raise MissingHeaderRow(f"Template header row {header_row_index} not found.")
        return ["" if cell.value is None else str(cell.value).strip() for cell in cells]


class _RowStyle:
    """Snapshot of a model row: its height and per-column cell styles."""

    def __init__(self, height: Optional[float], styles: Dict[int, Any]):
        self.height = height
        self.styles = styles

    @classmethod
    def capture(cls, ws: Worksheet, row: int) -> "_RowStyle":
        height = ws.row_dimensions[row].height if row in ws.row_dimensions else None
        styles: Dict[int, Any] = {}
        if row <= ws.max_row:
            for cell in next(ws.iter_rows(min_row=row, max_row=row)):
                if cell.has_style:
                    styles[cell.column] = copy(cell._style)
        return cls(height, styles)

    def apply(self, ws: Worksheet, row: int) -> None:
        if self.height is not None:
            ws.row_dimensions[row].height = self.height
        for col_idx, style in self.styles.items():
            ws.cell(row, col_idx)._style = copy(style)


def _is_text_cell(cell: Cell) -> bool:
    return isinstance(cell.value, str) and cell.data_type == "s"


def _mark_for_recalculation(wb: Workbook) -> None:
    wb.calculation.fullCalcOnLoad = True


# ---------------------------------------------------------------------------
# Module-level entry points
# ---------------------------------------------------------------------------

def fill_spreadsheet_from_csv(
    template: PathLike = DEFAULT_TEMPLATE,
    csv: PathLike = DEFAULT_CSV,
    output: PathLike = DEFAULT_FILL_OUTPUT,
    **engine_options: Any,
) -> str:
    """公开入口：用第一条数据行填充 ${Field} 占位符，返回输出路径。"""
    return SpreadsheetMergeEngine(**engine_options).fill_first_record(template, csv, output)


def append_spreadsheet_table_from_csv(
    template: PathLike = DEFAULT_TEMPLATE,
    csv: PathLike = DEFAULT_CSV,
    output: PathLike = DEFAULT_TABLE_OUTPUT,
    sheet_name: Optional[str] = None,
    header_row_index: int = 0,
    **engine_options: Any,
) -> str:
    """公开入口：在表头下追加 CSV 数据行，返回输出路径。"""
    return SpreadsheetMergeEngine(**engine_options).append_table(
        template, csv, output, sheet_name=sheet_name, header_row_index=header_row_index
    )
