"""
日志模块 (Logging Module)
========================

templatemerge 的所有模块共用 "templatemerge" 日志器层级，输出到 stdout。

    from templatemerge.logger import get_logger, log_report

    logger = get_logger(__name__)
    logger.debug("append_table: wrote csv row %d", row_idx)
    log_report(logger, engine.last_report)

日志级别可用名称（来自 LOG_LEVEL 配置，如 "debug"）或 logging 常量设置。
"""

import logging
import sys
from typing import Optional, Union

PROJECT_LOGGER = "templatemerge"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LevelLike = Union[int, str, None]

_handler: Optional[logging.Handler] = None


def _install_handler() -> None:
    global _handler
    if _handler is not None:
        return
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    project = logging.getLogger(PROJECT_LOGGER)
    project.addHandler(_handler)
    project.setLevel(logging.INFO)
    project.propagate = False


def resolve_level(level: LevelLike, default: int = logging.INFO) -> int:
    """
    将级别名称或数值转换为 logging 常量。

    None、空字符串或未知名称返回 default；名称不区分大小写。
    """
    if isinstance(level, int):
        return level
    if not level:
        return default
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else default


def get_logger(name: str, level: LevelLike = None) -> logging.Logger:
    """Return a logger under the project hierarchy, installing the stdout handler once."""
    _install_handler()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(resolve_level(level))
    return logger


def set_level(level: LevelLike, logger_name: Optional[str] = None) -> None:
    """
    设置日志级别；logger_name 为 None 时作用于整个 templatemerge 层级。

        set_level("debug")
        set_level(logging.DEBUG, "templatemerge.document")
    """
    _install_handler()
    logging.getLogger(logger_name or PROJECT_LOGGER).setLevel(resolve_level(level))


def log_report(logger: logging.Logger, report) -> None:
    """Log a MergeReport: one INFO summary line plus one WARNING per collected warning."""
    if report is None:
        return
    for warning in report.warnings:
        logger.warning("%s: %s", report.operation, warning)
    logger.info(
        "%s: rows=%d, cells_written=%d, outputs=%d, last=%s",
        report.operation,
        report.rows_processed,
        report.cells_written,
        len(report.output_paths),
        report.last_output,
    )
