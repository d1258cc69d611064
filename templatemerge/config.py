"""
配置模块 (Configuration Module)
==============================

从环境变量和 .env 文件加载合并引擎的默认配置：资源目录、输出目录、CSV 分隔符，
以及文档模板的各项约定（选项列、选项表行数、输出文件名字段等）。
"""

from typing import List

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from templatemerge.ir import HeaderMatch, OptionsSource

load_dotenv()


class Settings(BaseSettings):
    """
    应用配置类，继承自 Pydantic BaseSettings，支持从环境变量自动加载。

    属性:
        TEMPLATE_DIR: 打包模板与 CSV 资源所在目录
        OUTPUT_DIR: 输出文件目录，首次写入时创建
        CSV_SEPARATOR / CSV_ENCODING: CSV 读取方式
        DOCX_*: 文档模板约定，见各字段注释
    """
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    TEMPLATE_DIR: str = "."
    OUTPUT_DIR: str = "output"
    CSV_SEPARATOR: str = ","
    CSV_ENCODING: str = "utf-8-sig"
    LOG_LEVEL: str = "INFO"

    # Column whose pipe-delimited value feeds Options1..N
    DOCX_OPTIONS_COLUMN_INDEX: int = 10
    DOCX_OPTIONS_SLOT_COUNT: int = 40
    DOCX_OPTIONS_SEPARATOR: str = "|"
    # Tables with exactly this many rows are rendered from the options mapping
    DOCX_OPTIONS_TABLE_ROW_COUNT: int = 20
    DOCX_OPTIONS_SOURCE: OptionsSource = OptionsSource.FIRST_ROW
    DOCX_OUTPUT_NAME_FIELDS: List[int] = [1, 2, 4, 9]
    DOCX_EMPHASIS_PLACEHOLDER: str = "«Price»"
    DOCX_EMPHASIS_FONT_SIZE: float = 28.0
    DOCX_HEADER_MATCH: HeaderMatch = HeaderMatch.ANY_OVERLAP

    @field_validator("CSV_SEPARATOR")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        """分隔符必须恰好是一个字符。"""
        if v is None or len(v) != 1:
            raise ValueError(f"CSV_SEPARATOR must be a single character, got {v!r}")
        return v

    @field_validator("DOCX_OPTIONS_SLOT_COUNT", "DOCX_OPTIONS_TABLE_ROW_COUNT")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must not be negative")
        return v


# 全局单例，避免重复加载配置
_settings_instance = None


def get_settings() -> Settings:
    """
    获取配置单例。

    首次调用时创建 Settings 实例并缓存，后续调用返回同一实例。
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """丢弃缓存的配置，下次 get_settings() 重新读取环境变量。"""
    global _settings_instance
    _settings_instance = None
