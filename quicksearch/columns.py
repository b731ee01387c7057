# quicksearch/columns.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

log = logging.getLogger(__name__)


class Column:
    """A grid column: the internal (database) name plus the label shown to users."""

    def __init__(self, name: str, label: Optional[str] = None) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Columns require a non-empty name.")
        self._name = name.strip()
        self._label = label.strip() if isinstance(label, str) and label.strip() else self._name

    @property
    def name(self) -> str:
        return self._name

    @property
    def label(self) -> str:
        return self._label

    def __repr__(self) -> str:
        return f"Column(name={self._name!r}, label={self._label!r})"


def build_column_map(columns: Iterable[Column]) -> Dict[str, str]:
    """
    Map every column's label and name onto the canonical column name.

    Registration order matters: when a label collides with another column's
    name the entry registered last wins.
    """
    column_map: Dict[str, str] = {}
    for column in columns:
        column_map[column.label] = column.name
        column_map[column.name] = column.name
    log.debug("Built column map with %d keys", len(column_map))
    return column_map


def resolve_column(column_map: Dict[str, str], key: str) -> Optional[str]:
    """Return the canonical column for ``key`` or ``None`` when it is unknown."""
    if not key:
        return None
    return column_map.get(key)
