"""
Case-insensitive row mapping.

``RecordMap`` binds one CSV row to its header. Lookups ignore case while
iteration yields the header spelling first seen for each key, which is
what placeholder tokens are built from.
"""

from __future__ import annotations

from typing import Dict, Iterator, MutableMapping, Optional, Sequence, Tuple


class RecordMap(MutableMapping[str, str]):
    """Mapping from field name to raw value with case-insensitive keys."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self._store: Dict[str, Tuple[str, str]] = {}
        if items:
            for key, value in items.items():
                self[key] = value

    @staticmethod
    def _fold(key: str) -> str:
        return key.casefold()

    def __getitem__(self, key: str) -> str:
        return self._store[self._fold(key)][1]

    def __setitem__(self, key: str, value: str) -> None:
        folded = self._fold(key)
        existing = self._store.get(folded)
        # Overwriting keeps the original key spelling
        original = existing[0] if existing else key
        self._store[folded] = (original, value)

    def __delitem__(self, key: str) -> None:
        del self._store[self._fold(key)]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._fold(key) in self._store

    def __repr__(self) -> str:
        return f"RecordMap({dict(self.items())!r})"


def to_record_map(header: Sequence[str], row: Sequence[str]) -> RecordMap:
    """
    Bind ``row`` to ``header`` positionally.

    Blank header names are skipped, missing trailing values become ``""``,
    extra values are ignored and duplicate names keep the last value.
    """
    record = RecordMap()
    for idx, key in enumerate(header):
        if key is None or not key.strip():
            continue
        record[key] = row[idx] if idx < len(row) else ""
    return record


def build_option_map(
    raw: str,
    slot_count: int,
    separator: str = "|",
    prefix: str = "Options",
) -> RecordMap:
    """
    Expand a delimited list into ``Options1..OptionsN`` slots.

    Slots beyond the number of list items are empty; items beyond
    ``slot_count`` are dropped.
    """
    parts = (raw or "").split(separator)
    header = [f"{prefix}{i + 1}" for i in range(slot_count)]
    values = [parts[i] if i < len(parts) else "" for i in range(slot_count)]
    return to_record_map(header, values)
