"""
文档合并模块 (Document Merge Module)
===================================

将 CSV 数据合并到 .docx 模板中，两种模式:
  - fill_placeholders_batch: 每条数据行生成一份文档，替换正文与表格中的 «Field» 占位符
  - append_table_rows:       按表头定位表格，在末尾逐行追加 CSV 数据（原样字符串）

Paragraph rewriting is run-destructive: the paragraph text is substituted
as one string and, when it changes, all runs are replaced by a single run
carrying uniform formatting. ``UniformRunRewriter`` is that policy; pass a
different ``ParagraphRewriter`` to change it.
"""

from __future__ import annotations

from io import BytesIO
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Set

from docx import Document
from docx.document import Document as DocumentObject
from docx.oxml.ns import qn
from docx.shared import Pt
from docx.table import Table, _Cell, _Row
from docx.text.paragraph import Paragraph

from templatemerge.assets import AssetSource, OutputSink, PathLike, read_csv_asset
from templatemerge.config import get_settings
from templatemerge.errors import EmptyDataset, EmptyTable, InvalidNamePattern, MissingTable, NoMatchingTable
from templatemerge.ir import CsvTable, HeaderMatch, MergeReport, OptionsSource
from templatemerge.logger import get_logger, log_report
from templatemerge.placeholders import DOCUMENT_TOKENS, PlaceholderTokenizer
from templatemerge.record_map import RecordMap, build_option_map

logger = get_logger(__name__)

DEFAULT_TEMPLATE = "Template.docx"
DEFAULT_CSV = "Data.csv"
DEFAULT_TABLE_OUTPUT = "Output_Table.docx"
DEFAULT_NAME_PATTERN = "{fields}.docx"

RUN_CONTAINER_TAGS = (qn("w:r"), qn("w:hyperlink"))
RE_PATH_SEPARATORS = re.compile(r"[\\/]")


# ---------------------------------------------------------------------------
# Paragraph rewriting policy
# ---------------------------------------------------------------------------

class ParagraphRewriter(Protocol):
    def __call__(self, paragraph: Paragraph, original: str, replaced: str) -> None:
        ...


class UniformRunRewriter:
    """
    Rebuild a paragraph as one run with uniform formatting.

    Per-run formatting of the original paragraph is discarded. Paragraphs
    whose original text equals one of the ``emphasis`` keys get that font
    size (in points) on the new run.
    """

    def __init__(self, bold: bool = True, emphasis: Optional[Mapping[str, float]] = None):
        self.bold = bold
        self.emphasis = dict(emphasis or {})

    def __call__(self, paragraph: Paragraph, original: str, replaced: str) -> None:
        clear_runs(paragraph)
        run = paragraph.add_run(replaced)
        run.bold = self.bold
        size = self.emphasis.get(original)
        if size:
            run.font.size = Pt(size)


def clear_runs(paragraph: Paragraph) -> None:
    """Remove every run (including hyperlink-wrapped runs) from the paragraph."""
    p = paragraph._p
    for child in list(p):
        if child.tag in RUN_CONTAINER_TAGS:
            p.remove(child)


# ---------------------------------------------------------------------------
# Table header matching strategies
# ---------------------------------------------------------------------------

HeaderMatcher = Callable[[Sequence[str], Sequence[str]], bool]


def any_overlap(table_names: Sequence[str], csv_header: Sequence[str]) -> bool:
    """True when any non-empty table header name appears in the CSV header."""
    wanted = set(csv_header)
    return any(name and name in wanted for name in table_names)


def exact_ordered_match(table_names: Sequence[str], csv_header: Sequence[str]) -> bool:
    """True when both headers have the same names in the same order, ignoring case."""
    if len(table_names) != len(csv_header):
        return False
    return all(a.casefold() == b.casefold() for a, b in zip(table_names, csv_header))


HEADER_MATCHERS: Dict[HeaderMatch, HeaderMatcher] = {
    HeaderMatch.ANY_OVERLAP: any_overlap,
    HeaderMatch.EXACT_ORDERED_MATCH: exact_ordered_match,
}


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class DocumentMergeEngine:
    """
    文档合并引擎。

    批量模式下模板字节只读取一次，每条数据行从这些字节构建独立的文档实例。
    选项映射（Options1..N）的数据来源由 options_source 控制，默认沿用第一条数据行。
    """

    def __init__(
        self,
        assets: Optional[AssetSource] = None,
        output: Optional[OutputSink] = None,
        separator: Optional[str] = None,
        encoding: Optional[str] = None,
        options_source: Optional[OptionsSource] = None,
        options_column_index: Optional[int] = None,
        options_slot_count: Optional[int] = None,
        options_separator: Optional[str] = None,
        options_table_row_count: Optional[int] = None,
        output_name_fields: Optional[Sequence[int]] = None,
        header_match: Optional[HeaderMatch] = None,
        rewriter: Optional[ParagraphRewriter] = None,
        tokenizer: PlaceholderTokenizer = DOCUMENT_TOKENS,
    ):
        settings = get_settings()
        self.assets = assets or AssetSource(settings.TEMPLATE_DIR)
        self.output = output or OutputSink(settings.OUTPUT_DIR)
        self.separator = separator or settings.CSV_SEPARATOR
        self.encoding = encoding or settings.CSV_ENCODING
        self.options_source = OptionsSource(options_source or settings.DOCX_OPTIONS_SOURCE)
        self.options_column_index = _pick(options_column_index, settings.DOCX_OPTIONS_COLUMN_INDEX)
        self.options_slot_count = _pick(options_slot_count, settings.DOCX_OPTIONS_SLOT_COUNT)
        self.options_separator = options_separator or settings.DOCX_OPTIONS_SEPARATOR
        self.options_table_row_count = _pick(options_table_row_count, settings.DOCX_OPTIONS_TABLE_ROW_COUNT)
        self.output_name_fields = list(_pick(output_name_fields, settings.DOCX_OUTPUT_NAME_FIELDS))
        self.header_match = HeaderMatch(header_match or settings.DOCX_HEADER_MATCH)
        self.rewriter = rewriter or UniformRunRewriter(
            bold=True,
            emphasis={settings.DOCX_EMPHASIS_PLACEHOLDER: settings.DOCX_EMPHASIS_FONT_SIZE},
        )
        self.tokenizer = tokenizer
        self.last_report: Optional[MergeReport] = None

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def fill_placeholders_batch(
        self,
        template: PathLike = DEFAULT_TEMPLATE,
        csv: PathLike = DEFAULT_CSV,
        output_name_pattern: str = DEFAULT_NAME_PATTERN,
    ) -> str:
        """
        为每条数据行生成一份文档并返回最后写出的路径。

        正文段落用当前行的 RecordMap 替换；行数恰好等于 options_table_row_count
        的表格改用选项映射替换。输出文件名由 output_name_pattern 生成，
        可用字段 {fields}（指定位置字段以 _ 连接）与 {index}（从 1 开始的行号）。
        """
        check_name_pattern(output_name_pattern)
        template_bytes = self.assets.open_packaged_asset(template)
        table = self._read_csv(csv)
        if table.is_empty:
            raise EmptyDataset("CSV has no data rows.")

        logger.info(
            "fill_placeholders_batch: template=%s, csv=%s, rows=%d, options_source=%s",
            template,
            csv,
            table.row_count,
            self.options_source.value,
        )

        first_row_options = self._option_map(table.rows[0])
        output_paths: List[str] = []
        unresolved: Set[str] = set()
        paragraphs_rewritten = 0

        for row_idx, row in enumerate(table.rows):
            doc = Document(BytesIO(template_bytes))
            record = table.record(row_idx)
            if self.options_source is OptionsSource.PER_ROW:
                options = self._option_map(row)
            else:
                options = first_row_options

            for paragraph in doc.paragraphs:
                paragraphs_rewritten += self._replace_in_paragraph(paragraph, record, unresolved)

            for doc_table in doc.tables:
                data = options if len(doc_table.rows) == self.options_table_row_count else record
                for table_row in doc_table.rows:
                    for cell in row_cells(table_row, doc_table):
                        for paragraph in cell.paragraphs:
                            paragraphs_rewritten += self._replace_in_paragraph(paragraph, data, unresolved)

            filename = self._output_name(row, row_idx, output_name_pattern)
            out_path = self._save(doc, filename)
            output_paths.append(out_path)
            logger.debug("fill_placeholders_batch: row %d -> %s", row_idx + 1, out_path)

        warnings = [f"unresolved placeholder: {key}" for key in sorted(unresolved)]
        self.last_report = MergeReport(
            operation="fill_placeholders_batch",
            output_paths=output_paths,
            rows_processed=table.row_count,
            cells_written=paragraphs_rewritten,
            warnings=warnings,
        )
        log_report(logger, self.last_report)
        return output_paths[-1]

    def append_table_rows(
        self,
        template: PathLike = DEFAULT_TEMPLATE,
        csv: PathLike = DEFAULT_CSV,
        output: PathLike = DEFAULT_TABLE_OUTPUT,
        match_by_header: bool = True,
    ) -> str:
        """
        在目标表格末尾为每条数据行追加一行，写入原样字符串（不做类型推断、不复制样式）。

        match_by_header 为 True 时按表头匹配策略定位表格，否则使用文档中的第一个表格。
        """
        template_bytes = self.assets.open_packaged_asset(template)
        doc = Document(BytesIO(template_bytes))

        table = self._read_csv(csv)
        if not table.header:
            raise EmptyDataset("CSV has no header row.")

        if match_by_header:
            target = self.find_table_by_header(doc, table.header)
            if target is None:
                raise NoMatchingTable("No table found whose first row matches the CSV header.")
        else:
            if not doc.tables:
                raise MissingTable("No tables found in the document.")
            target = doc.tables[0]

        if len(target.rows) == 0:
            raise EmptyTable("Target table has no rows (need at least a header row).")

        header_names = [first_paragraph_text(cell) for cell in row_cells(target.rows[0], target)]
        logger.info(
            "append_table_rows: template=%s, columns=%d, rows=%d, match_by_header=%s",
            template,
            len(header_names),
            table.row_count,
            match_by_header,
        )

        cells_written = 0
        for row_idx in range(table.row_count):
            record = table.record(row_idx)
            new_row = target.add_row()
            while len(new_row._tr.tc_lst) < len(header_names):
                new_row._tr.add_tc()
            cells = row_cells(new_row, target)

            for col_idx, name in enumerate(header_names):
                if not name:
                    continue
                text = record.get(self.tokenizer.strip(name), "")
                write_cell_text(cells[col_idx], text)
                cells_written += 1

        out_path = self._save(doc, output)
        self.last_report = MergeReport(
            operation="append_table_rows",
            output_paths=[out_path],
            rows_processed=table.row_count,
            cells_written=cells_written,
        )
        log_report(logger, self.last_report)
        return out_path

    def find_table_by_header(self, doc: DocumentObject, csv_header: Sequence[str]) -> Optional[Table]:
        """Return the first table whose stripped first-row names match ``csv_header``."""
        matcher = HEADER_MATCHERS[self.header_match]
        for idx, candidate in enumerate(doc.tables):
            if len(candidate.rows) == 0:
                continue
            names = [
                self.tokenizer.strip(first_paragraph_text(cell))
                for cell in row_cells(candidate.rows[0], candidate)
            ]
            if matcher(names, csv_header):
                logger.debug("find_table_by_header: matched table %d (%s)", idx, self.header_match.value)
                return candidate
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read_csv(self, csv: PathLike) -> CsvTable:
        return read_csv_asset(self.assets, csv, self.separator, self.encoding)

    def _replace_in_paragraph(self, paragraph: Paragraph, data: Mapping[str, str], unresolved: Set[str]) -> int:
        original = paragraph.text or ""
        replaced = self.tokenizer.substitute(original, data)
        unresolved.update(self.tokenizer.find_keys(replaced))
        if replaced == original:
            return 0
        self.rewriter(paragraph, original, replaced)
        return 1

    def _option_map(self, row: Sequence[str]) -> RecordMap:
        if self.options_column_index < len(row):
            raw = row[self.options_column_index]
        else:
            logger.warning(
                "options column %d missing from row with %d field(s); options left empty",
                self.options_column_index,
                len(row),
            )
            raw = ""
        return build_option_map(raw, self.options_slot_count, self.options_separator)

    def _output_name(self, row: Sequence[str], row_idx: int, pattern: str) -> str:
        parts = [
            RE_PATH_SEPARATORS.sub("_", row[i]) if 0 <= i < len(row) else ""
            for i in self.output_name_fields
        ]
        fields = "_".join(parts) if parts else f"row_{row_idx + 1}"
        return pattern.format(fields=fields, index=row_idx + 1)

    def _save(self, doc: DocumentObject, output: PathLike) -> str:
        out_path = self.output.resolve_output_path(output)
        with self.output.create_file(out_path) as fh:
            doc.save(fh)
        return str(out_path)


# ---------------------------------------------------------------------------
# python-docx helpers
# ---------------------------------------------------------------------------

def row_cells(row: _Row, table: Table) -> List[_Cell]:
    """The row's physical cells (one per ``w:tc``), ignoring grid spans."""
    return [_Cell(tc, table) for tc in row._tr.tc_lst]


def first_paragraph_text(cell: _Cell) -> str:
    paragraphs = cell.paragraphs
    return (paragraphs[0].text if paragraphs else "").strip()


def check_name_pattern(pattern: str) -> str:
    """Reject patterns that cannot be formatted with ``fields`` and ``index``."""
    try:
        pattern.format(fields="", index=1)
    except (KeyError, IndexError, AttributeError, ValueError) as exc:
        raise InvalidNamePattern(
            f"Invalid output name pattern {pattern!r}: only {{fields}} and {{index}} are available ({exc!r})"
        ) from exc
    return pattern


def write_cell_text(cell: _Cell, text: str) -> None:
    """Clear the cell's first paragraph and write ``text`` as a single run."""
    paragraph = cell.paragraphs[0] if cell.paragraphs else cell.add_paragraph()
    clear_runs(paragraph)
    paragraph.add_run(text)


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


# ---------------------------------------------------------------------------
# Module-level entry points
# ---------------------------------------------------------------------------

def fill_document_placeholders_from_csv_batch(
    template: PathLike = DEFAULT_TEMPLATE,
    csv: PathLike = DEFAULT_CSV,
    output_name_pattern: str = DEFAULT_NAME_PATTERN,
    **engine_options: Any,
) -> str:
    """公开入口：每条数据行生成一份文档，返回最后一份的路径。"""
    return DocumentMergeEngine(**engine_options).fill_placeholders_batch(template, csv, output_name_pattern)


def append_document_table_from_csv(
    template: PathLike = DEFAULT_TEMPLATE,
    csv: PathLike = DEFAULT_CSV,
    output: PathLike = DEFAULT_TABLE_OUTPUT,
    match_by_header: bool = True,
    **engine_options: Any,
) -> str:
    """公开入口：向文档表格追加 CSV 数据行，返回输出路径。"""
    return DocumentMergeEngine(**engine_options).append_table_rows(
        template, csv, output, match_by_header=match_by_header
    )
