"""
错误类型模块 (Error Types Module)
================================

合并流程中所有致命错误的类型定义。每种错误在写出任何输出文件之前同步抛出，
调用方可以按类型区分处理。
"""


class MergeError(Exception):
    """Base class for every fatal merge condition."""


class AssetNotFound(MergeError, FileNotFoundError):
    """Template or CSV asset does not exist."""

    def __init__(self, name: str, location: str = ""):
        self.name = name
        self.location = location
        where = f" under {location}" if location else ""
        super().__init__(f"Asset '{name}' not found{where}")


class EmptyDataset(MergeError, ValueError):
    """The CSV yielded no header or no data rows where at least one is required."""


class MissingSheet(MergeError, ValueError):
    """The requested worksheet is not present in the workbook."""


class MissingTable(MergeError, ValueError):
    """The document has no table to append into."""


class MissingHeaderRow(MergeError, ValueError):
    """The configured header row does not exist in the template sheet."""


class NoMatchingTable(MergeError, ValueError):
    """No table header matched the CSV header under the active match strategy."""


class EmptyTable(MergeError, ValueError):
    """The target table lacks even a header row."""


class InvalidNamePattern(MergeError, ValueError):
    """The batch output name pattern uses a field other than {fields} or {index}."""
