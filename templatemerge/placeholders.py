"""
占位符替换模块 (Placeholder Substitution Module)
==============================================

每种模板使用一对固定的分隔符包裹字段名：
  - 电子表格: ${FieldName}
  - 文档:     «FieldName»

替换是字面子串替换，不使用正则，也不转义值中的分隔符。token 的匹配区分大小写，
token 中的字段名取自 RecordMap 的键（即 CSV 表头的拼写）。
若一个字段名是另一个 token 的子串，替换顺序不作保证，调用方应避免这种命名。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional


@dataclass(frozen=True)
class PlaceholderTokenizer:
    """A delimiter pair that turns field names into placeholder tokens."""

    open: str
    close: str

    def token(self, key: str) -> str:
        return f"{self.open}{key}{self.close}"

    def strip(self, text: str) -> str:
        """
        Remove one character of wrapping from each end of ``text``.

        Used for document table headers, where the wrapping is assumed to be
        the one-character delimiters; text shorter than two characters has
        nothing inside the wrapping and yields ``""``.
        """
        if len(text) < 2:
            return ""
        return text[1:-1]

    def substitute(self, text: str, data: Mapping[str, Optional[str]]) -> str:
        """
        Replace every ``open + key + close`` occurrence with its value.

        Returns ``text`` itself when nothing was replaced.
        """
        if not text:
            return text
        result = text
        for key, value in data.items():
            tok = self.token(key)
            if tok in result:
                result = result.replace(tok, value or "")
        if result == text:
            return text
        return result

    def find_keys(self, text: str) -> List[str]:
        """Field names of all well-formed tokens in ``text``, in order of appearance."""
        keys: List[str] = []
        start = 0
        while True:
            begin = text.find(self.open, start)
            if begin < 0:
                break
            end = text.find(self.close, begin + len(self.open))
            if end < 0:
                break
            keys.append(text[begin + len(self.open):end])
            start = end + len(self.close)
        return keys


SPREADSHEET_TOKENS = PlaceholderTokenizer("${", "}")
DOCUMENT_TOKENS = PlaceholderTokenizer("«", "»")


def substitute(text: str, data: Mapping[str, Optional[str]], open: str, close: str) -> str:
    """Functional form of :meth:`PlaceholderTokenizer.substitute`."""
    return PlaceholderTokenizer(open, close).substitute(text, data)
