# quicksearch/model_query.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy import Date, String, Table, Time, and_, cast, extract, func, or_, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.sql.expression import ColumnElement, Select

from .search_expression import DatePart

log = logging.getLogger(__name__)

# Dialects whose users expect pattern matches to ignore case.
CASE_INSENSITIVE_LIKE_DIALECTS = frozenset({"postgresql"})


def _as_text(col: ColumnElement) -> ColumnElement:
    # pattern operators only exist for string types; other columns match on their text form
    if isinstance(col.type, String):
        return col
    return cast(col, String)


_COMPARATORS: Dict[str, Callable[[Any, Any], ColumnElement]] = {
    "=": lambda col, value: col == value,
    "!=": lambda col, value: col != value,
    "<>": lambda col, value: col != value,
    ">": lambda col, value: col > value,
    ">=": lambda col, value: col >= value,
    "<": lambda col, value: col < value,
    "<=": lambda col, value: col <= value,
    "like": lambda col, value: _as_text(col).like(value),
    "ilike": lambda col, value: _as_text(col).ilike(value),
    "regexp": lambda col, value: _as_text(col).regexp_match(value),
}

_NUMERIC_DATE_PARTS = (DatePart.DAY, DatePart.MONTH, DatePart.YEAR)


class ModelQuery:
    """
    Accumulate filters for one table, in the order they are added.

    Each filter is joined to what came before with AND or OR and nothing is
    parenthesised, exactly as a flat SQL ``WHERE a AND b OR c AND d`` would
    read: AND binds tighter, so runs of AND clauses form groups which are then
    ORed together.
    """

    def __init__(self, table: Table, dialect_name: str = "postgresql") -> None:
        self.table = table
        self._dialect_name = (dialect_name or "").lower()
        self._wheres: List[Tuple[str, ColumnElement]] = []

    @classmethod
    def for_engine(cls, table: Table, engine: Union[Engine, Connection]) -> "ModelQuery":
        return cls(table, dialect_name=engine.dialect.name)

    @property
    def dialect_name(self) -> str:
        return self._dialect_name

    def prefers_case_insensitive_like(self) -> bool:
        return self._dialect_name in CASE_INSENSITIVE_LIKE_DIALECTS

    def column(self, name: str) -> ColumnElement:
        # KeyError for unknown columns is left to the caller
        return self.table.c[name]

    def _add(self, clause: ColumnElement, boolean: str) -> "ModelQuery":
        boolean = boolean.lower()
        if boolean not in ("and", "or"):
            raise ValueError(f"Unknown boolean {boolean!r}; expected 'and' or 'or'")
        self._wheres.append((boolean, clause))
        return self

    # --- basic comparisons ---

    def where(self, column: str, operator: str, value: Any, boolean: str = "and") -> "ModelQuery":
        comparator = _COMPARATORS.get((operator or "").lower())
        if comparator is None:
            raise ValueError(f"Unsupported comparison operator {operator!r}")
        return self._add(comparator(self.column(column), value), boolean)

    def or_where(self, column: str, operator: str, value: Any) -> "ModelQuery":
        return self.where(column, operator, value, boolean="or")

    # --- set membership ---

    def where_in(self, column: str, values: Sequence[Any], boolean: str = "and", negate: bool = False) -> "ModelQuery":
        col = self.column(column)
        clause = col.not_in(list(values)) if negate else col.in_(list(values))
        return self._add(clause, boolean)

    def or_where_in(self, column: str, values: Sequence[Any]) -> "ModelQuery":
        return self.where_in(column, values, boolean="or")

    def where_not_in(self, column: str, values: Sequence[Any]) -> "ModelQuery":
        return self.where_in(column, values, negate=True)

    def or_where_not_in(self, column: str, values: Sequence[Any]) -> "ModelQuery":
        return self.where_in(column, values, boolean="or", negate=True)

    # --- ranges ---

    def where_between(self, column: str, values: Sequence[Any], boolean: str = "and") -> "ModelQuery":
        start, end = values
        return self._add(self.column(column).between(start, end), boolean)

    def or_where_between(self, column: str, values: Sequence[Any]) -> "ModelQuery":
        return self.where_between(column, values, boolean="or")

    # --- date parts ---

    def _date_part_expression(self, part: DatePart, col: ColumnElement) -> ColumnElement:
        if part in _NUMERIC_DATE_PARTS:
            return extract(part.value, col)
        if self._dialect_name == "sqlite":
            # SQLite stores timestamps as text; CAST(... AS DATE) yields a number there
            return func.date(col) if part == DatePart.DATE else func.time(col)
        return cast(col, Date if part == DatePart.DATE else Time)

    def where_date_part(self, part: Union[DatePart, str], column: str, value: Any, boolean: str = "and") -> "ModelQuery":
        part = DatePart(part)
        if part in _NUMERIC_DATE_PARTS and isinstance(value, str) and value.strip().isdigit():
            value = int(value)
        expression = self._date_part_expression(part, self.column(column))
        return self._add(expression == value, boolean)

    def or_where_date_part(self, part: Union[DatePart, str], column: str, value: Any) -> "ModelQuery":
        return self.where_date_part(part, column, value, boolean="or")

    # --- pattern and regular expression matches ---

    def where_like(self, column: str, pattern: Optional[str], boolean: str = "and") -> "ModelQuery":
        return self.where(column, "like", pattern, boolean=boolean)

    def or_where_like(self, column: str, pattern: Optional[str]) -> "ModelQuery":
        return self.where_like(column, pattern, boolean="or")

    def where_ilike(self, column: str, pattern: Optional[str], boolean: str = "and") -> "ModelQuery":
        return self.where(column, "ilike", pattern, boolean=boolean)

    def or_where_ilike(self, column: str, pattern: Optional[str]) -> "ModelQuery":
        return self.where_ilike(column, pattern, boolean="or")

    def where_regexp(self, column: str, pattern: Optional[str], boolean: str = "and") -> "ModelQuery":
        return self.where(column, "regexp", pattern, boolean=boolean)

    def or_where_regexp(self, column: str, pattern: Optional[str]) -> "ModelQuery":
        return self.where_regexp(column, pattern, boolean="or")

    # --- output ---

    @property
    def where_count(self) -> int:
        return len(self._wheres)

    def whereclause(self) -> Optional[ColumnElement]:
        groups: List[List[ColumnElement]] = []
        for boolean, clause in self._wheres:
            if not groups or boolean == "or":
                groups.append([clause])
            else:
                groups[-1].append(clause)
        if not groups:
            return None
        conjunctions = [and_(*group) if len(group) > 1 else group[0] for group in groups]
        return or_(*conjunctions) if len(conjunctions) > 1 else conjunctions[0]

    def statement(self) -> Select:
        stmt = select(self.table)
        clause = self.whereclause()
        if clause is not None:
            stmt = stmt.where(clause)
        return stmt

    def fetch_all(self, conn: Connection) -> List[Dict[str, Any]]:
        stmt = self.statement()
        log.debug("Executing %s", stmt)
        return [dict(row) for row in conn.execute(stmt).mappings().all()]

    def __repr__(self) -> str:
        return f"ModelQuery(table={self.table.name!r}, dialect={self._dialect_name!r}, wheres={len(self._wheres)})"
