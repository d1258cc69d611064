"""
中间表示模块 (Intermediate Representation Module)
================================================

定义合并流程中的核心数据结构：CsvTable、MergeReport，以及文档引擎的策略枚举。
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from templatemerge.record_map import RecordMap, to_record_map


class OptionsSource(str, Enum):
    """
    文档批量填充时 Options1..N 映射的数据来源。

    FIRST_ROW 始终取第一条数据行（历史行为）；PER_ROW 取当前正在渲染的行。
    """
    FIRST_ROW = "first_row"
    PER_ROW = "per_row"


class HeaderMatch(str, Enum):
    """按表头定位文档表格时使用的匹配策略。"""
    ANY_OVERLAP = "any_overlap"
    EXACT_ORDERED_MATCH = "exact_ordered_match"


class CsvTable(BaseModel):
    """
    解析后的 CSV 数据。

    属性:
        header: 已去除首尾空白的表头字段
        rows: 数据行（已过滤全空白行），每个字段保持原始字符串
    """
    header: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def record(self, index: int) -> RecordMap:
        """构建第 index 行的 RecordMap（大小写不敏感）。"""
        return to_record_map(self.header, self.rows[index])


class MergeReport(BaseModel):
    """
    单次合并调用的结果摘要。

    引擎在每次调用后把它保存在 last_report 上，公开操作本身只返回输出路径。
    """
    operation: str
    output_paths: List[str] = Field(default_factory=list)
    rows_processed: int = 0
    cells_written: int = 0
    warnings: List[str] = Field(default_factory=list)

    @property
    def last_output(self) -> str:
        return self.output_paths[-1] if self.output_paths else ""
