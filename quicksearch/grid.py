# quicksearch/grid.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from sqlalchemy import Table
from sqlalchemy.engine import Connection, Engine

from .columns import Column, build_column_map
from .config_loader import QuickSearchConfig
from .model_query import ModelQuery
from .quick_search import apply_quick_search
from .search_spec import SearchSpec, make_search_spec

log = logging.getLogger(__name__)

ColumnInput = Union[Column, str, Tuple[str, str]]


class Grid:
    """A searchable listing over one table, with labelled columns."""

    def __init__(
        self,
        name: str,
        table: Table,
        columns: Optional[Iterable[ColumnInput]] = None,
        config: Optional[QuickSearchConfig] = None,
    ) -> None:
        if not name:
            raise ValueError("Grids require a name.")
        self.name = name
        self.table = table
        self.config = config if config is not None else QuickSearchConfig()
        self._columns: List[Column] = []
        self._search: Optional[SearchSpec] = None
        self._search_position: Optional[str] = None
        for entry in columns or ():
            if isinstance(entry, Column):
                self._columns.append(entry)
            elif isinstance(entry, tuple):
                self.column(*entry)
            else:
                self.column(entry)

    def column(self, name: str, label: Optional[str] = None) -> Column:
        col = Column(name, label)
        self._columns.append(col)
        return col

    @property
    def columns(self) -> List[Column]:
        return list(self._columns)

    def column_map(self) -> Dict[str, str]:
        return build_column_map(self._columns)

    def quick_search(self, *search: Any, position: Optional[str] = None) -> "Grid":
        """
        Enable quick search; ``position`` is a placement hint for the search box.

        A callback may take its position positionally: ``quick_search(callback, "right")``.
        """
        if len(search) == 2 and callable(search[0]):
            if position is None:
                position = search[1]
            search = search[:1]
        self._search = make_search_spec(*search)
        self._search_position = position
        log.debug("Grid %s quick search: %r (position=%r)", self.name, self._search, position)
        return self

    @property
    def search(self) -> Optional[SearchSpec]:
        return self._search

    @property
    def search_position(self) -> Optional[str]:
        return self._search_position

    def model(self, bind: Union[Engine, Connection, str, None] = None) -> ModelQuery:
        """Start a fresh query over this grid's table for an engine, connection or dialect name."""
        if bind is None or isinstance(bind, str):
            return ModelQuery(self.table, dialect_name=bind or "postgresql")
        return ModelQuery.for_engine(self.table, bind)

    def apply_quick_search(
        self,
        params: Mapping[str, Any],
        query: ModelQuery,
        config: Optional[QuickSearchConfig] = None,
    ) -> Any:
        if self._search is None:
            log.debug("Grid %s has no quick search configured", self.name)
            return None
        return apply_quick_search(params, query, self._search, self.column_map(), config or self.config)

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "table": self.table.name,
            "columns": [{"name": c.name, "label": c.label} for c in self._columns],
            "search": self._search.describe() if self._search is not None else None,
            "search_position": self._search_position,
            "search_key": self.config.search_key,
        }

    def __repr__(self) -> str:
        return f"Grid(name={self.name!r}, table={self.table.name!r}, columns={len(self._columns)})"
