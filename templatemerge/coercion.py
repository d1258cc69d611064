"""
值类型推断模块 (Value Coercion Module)
=====================================

把 CSV 中的原始字符串推断为数字、日期时间、布尔值或文本，以便按正确类型写入单元格。

判断顺序固定（先匹配者胜出）:
  1. 数字（与区域设置无关的浮点格式）
  2. 日期时间（不含时区的输入视为本地时间）
  3. 布尔值（true/false，不区分大小写）
  4. 文本（空字符串总是写为文本）
推断永远不会失败：无法解析的值落入文本分支。
"""

from __future__ import annotations

from datetime import datetime
import re
from typing import Any, Optional, Protocol, Tuple, Union

from openpyxl.cell.cell import Cell


# ------------------------------
# Constants / precompiled regex
# ------------------------------

# Leading/trailing whitespace, optional sign, decimal point and exponent.
# No thousands separators, no underscores, no NaN/Infinity.
RE_INVARIANT_FLOAT = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*$")

DATE_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d-%b-%Y",
)

BOOLEAN_LITERALS = {"true": True, "false": False}

CellValue = Union[float, datetime, bool, str]


class CellSink(Protocol):
    """Typed write target for a single cell."""

    def set_number(self, value: float) -> None:
        ...

    def set_datetime(self, value: datetime) -> None:
        ...

    def set_boolean(self, value: bool) -> None:
        ...

    def set_text(self, value: str) -> None:
        ...


class OpenpyxlCellSink:
    """CellSink over an openpyxl cell; openpyxl picks the date number format itself."""

    def __init__(self, cell: Cell):
        self.cell = cell

    def set_number(self, value: float) -> None:
        self.cell.value = value

    def set_datetime(self, value: datetime) -> None:
        self.cell.value = value

    def set_boolean(self, value: bool) -> None:
        self.cell.value = value

    def set_text(self, value: str) -> None:
        self.cell.value = value
        # Text starting with "=" stays a literal string, never a formula
        self.cell.data_type = "s"


class ValueCoercer:
    """
    值推断工具类。

    parse_* 方法在无法解析时返回 None；coerce 按固定顺序组合它们。
    """

    @staticmethod
    def parse_number(text: str) -> Optional[float]:
        if not text or not RE_INVARIANT_FLOAT.match(text):
            return None
        try:
            return float(text.strip())
        except ValueError:
            return None

    @staticmethod
    def parse_datetime(text: str) -> Optional[datetime]:
        """
        解析日期时间。带时区的输入换算为本地时间并去掉时区信息，
        因为工作簿单元格只能保存无时区的日期时间。
        """
        if not text:
            return None
        value = text.strip()
        if not value:
            return None

        parsed: Optional[datetime] = None
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except (ValueError, TypeError):
            for fmt in DATE_FORMATS:
                try:
                    parsed = datetime.strptime(value, fmt)
                    break
                except (ValueError, TypeError):
                    continue
        if parsed is None:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed

    @staticmethod
    def parse_boolean(text: str) -> Optional[bool]:
        if not text:
            return None
        return BOOLEAN_LITERALS.get(text.strip().lower())

    @staticmethod
    def coerce(raw: Optional[str]) -> CellValue:
        """按 数字 → 日期 → 布尔 → 文本 的顺序推断值。"""
        text = raw or ""

        number = ValueCoercer.parse_number(text)
        if number is not None:
            return number

        moment = ValueCoercer.parse_datetime(text)
        if moment is not None:
            return moment

        flag = ValueCoercer.parse_boolean(text)
        if flag is not None:
            return flag

        return text


def write_value(sink: CellSink, raw: Optional[str]) -> CellValue:
    """推断 raw 的类型并写入 sink，返回实际写入的值。"""
    value = ValueCoercer.coerce(raw)
    if isinstance(value, bool):
        sink.set_boolean(value)
    elif isinstance(value, float):
        sink.set_number(value)
    elif isinstance(value, datetime):
        sink.set_datetime(value)
    else:
        sink.set_text(value)
    return value


def write_cell(cell: Cell, raw: Optional[str]) -> Any:
    """Convenience wrapper: coerce ``raw`` into an openpyxl cell."""
    return write_value(OpenpyxlCellSink(cell), raw)
