"""
资源与输出模块 (Assets & Output Module)
======================================

AssetSource  – 读取打包的模板/CSV 资源（只读），缺失时抛出 AssetNotFound
OutputSink   – 解析输出路径并以覆盖方式创建输出文件
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Optional, Union

from templatemerge.csv_reader import parse_csv
from templatemerge.errors import AssetNotFound
from templatemerge.ir import CsvTable
from templatemerge.logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


class AssetSource:
    """
    Read-only asset directory.

    Relative names resolve under ``root``; absolute paths are used as-is.
    """

    def __init__(self, root: PathLike = "."):
        self.root = Path(root).expanduser()

    def resolve(self, name: PathLike) -> Path:
        path = Path(name).expanduser()
        if not path.is_absolute():
            path = self.root / path
        return path

    def open_packaged_asset(self, name: PathLike) -> bytes:
        path = self.resolve(name)
        if not path.is_file():
            raise AssetNotFound(str(name), str(self.root))
        data = path.read_bytes()
        logger.debug("AssetSource: read %s (%d bytes)", path, len(data))
        return data

    def read_text(self, name: PathLike, encoding: str = "utf-8-sig") -> str:
        data = self.open_packaged_asset(name)
        return data.decode(encoding)


class OutputSink:
    """Writable output directory, created on first use."""

    def __init__(self, directory: PathLike = "output"):
        self.directory = Path(directory).expanduser()

    def resolve_output_path(self, filename: PathLike) -> Path:
        path = Path(filename)
        if path.is_absolute():
            return path
        return self.directory / path

    def create_file(self, path: PathLike) -> BinaryIO:
        """以覆盖方式打开输出文件，必要时创建父目录。"""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        return open(target, "wb")


def read_csv_asset(
    source: AssetSource,
    name: PathLike,
    separator: str = ",",
    encoding: Optional[str] = None,
) -> CsvTable:
    """Read a CSV asset and parse it into a CsvTable."""
    text = source.read_text(name, encoding=encoding or "utf-8-sig")
    table = parse_csv(text, separator)
    logger.debug(
        "read_csv_asset: %s header=%d columns, rows=%d",
        name,
        len(table.header),
        table.row_count,
    )
    return table
