"""
CSV 读取模块 (CSV Reader Module)
===============================

按物理行解析 CSV：每行一条记录，支持 RFC-4180 风格的双引号转义，
不支持跨行的引号字段。第一行为表头，其余为数据行；全空白的数据行被丢弃。
"""

from __future__ import annotations

import re
from typing import List, Tuple

from templatemerge.ir import CsvTable
from templatemerge.logger import get_logger

logger = get_logger(__name__)

RE_LINE_BREAK = re.compile(r"\r\n|\r|\n")
QUOTE = '"'


def split_lines(text: str) -> List[str]:
    """Split on CR, LF or CRLF; a trailing line break does not add an empty line."""
    if not text:
        return []
    lines = RE_LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def parse_csv_line(line: str, separator: str = ",") -> List[str]:
    """
    Parse a single physical line into fields.

    An unterminated quote closes implicitly at end of line; every field is
    returned verbatim as a string.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        ch = line[i]
        if in_quotes:
            if ch == QUOTE:
                if i + 1 < length and line[i + 1] == QUOTE:
                    current.append(QUOTE)
                    i += 1
                else:
                    in_quotes = False
            else:
                current.append(ch)
        elif ch == QUOTE:
            in_quotes = True
        elif ch == separator:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current))
    return fields


def _is_blank_row(row: List[str]) -> bool:
    return all(not value.strip() for value in row)


def parse_csv(text: str, separator: str = ",") -> CsvTable:
    """
    Parse CSV text into a header and data rows.

    Returns an empty CsvTable for empty input. The header row is never
    filtered, even when every field is blank.
    """
    if len(separator) != 1:
        raise ValueError(f"separator must be a single character, got {separator!r}")

    if text.startswith("\ufeff"):
        text = text[1:]

    parsed = [parse_csv_line(line, separator) for line in split_lines(text)]
    if not parsed:
        return CsvTable()

    header = [field.strip() for field in parsed[0]]
    rows = [row for row in parsed[1:] if not _is_blank_row(row)]

    dropped = len(parsed) - 1 - len(rows)
    if dropped:
        logger.debug("parse_csv: dropped %d blank row(s)", dropped)
    return CsvTable(header=header, rows=rows)


def parse(text: str, separator: str = ",") -> Tuple[List[str], List[List[str]]]:
    """Tuple form of :func:`parse_csv`: ``(header, rows)``."""
    table = parse_csv(text, separator)
    return table.header, table.rows
