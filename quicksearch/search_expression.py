# quicksearch/search_expression.py
"""
Quick search expression parsing.

A quick search string is a whitespace separated list of ``column:condition``
tokens. A leading ``|`` on the column key ORs the clause onto the query
instead of ANDing it. Double-quoted substrings are never split, so
``name:"john smith"`` stays a single token.

The condition text is matched against six shapes, first match wins:

    (1,2,3)  !(1,2)        set membership (``NULL`` becomes null)
    [start,end]            range
    date,2024-01-01        date part (date, time, day, month, year)
    %text%                 pattern match
    /regex/                regular expression
    >=18  !=NULL  %jo  x   basic comparison (catch-all)

Malformed input never raises: tokens without a colon or naming an unknown
column are dropped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional, Pattern, Tuple

from .columns import resolve_column

log = logging.getLogger(__name__)

NULL_LITERAL = "NULL"
OR_PREFIX = "|"


class OperatorKind(str, Enum):
    LIKE = "like"
    ILIKE = "ilike"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    DATE_PART = "date_part"
    REGEXP = "regexp"
    BASIC = "basic"


class DatePart(str, Enum):
    DATE = "date"
    TIME = "time"
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class Binding:
    """A token split into its resolved column and the raw condition text."""

    column: str
    condition: str
    is_or: bool = False


@dataclass(frozen=True)
class Predicate:
    """A classified filter, ready to be emitted onto a query."""

    column: str
    kind: OperatorKind
    operands: Tuple[Any, ...]
    is_or: bool = False
    comparator: Optional[str] = None
    date_part: Optional[DatePart] = None

    def __post_init__(self) -> None:
        if self.date_part is not None and not isinstance(self.date_part, DatePart):
            object.__setattr__(self, "date_part", DatePart(self.date_part))

    def describe(self) -> str:
        boolean = "OR" if self.is_or else "AND"
        if self.kind == OperatorKind.BASIC:
            return f"{boolean} {self.column} {self.comparator} {self.operands[0]!r}"
        if self.kind == OperatorKind.DATE_PART:
            return f"{boolean} {self.date_part.value}({self.column}) = {self.operands[0]!r}"
        if self.kind == OperatorKind.BETWEEN:
            return f"{boolean} {self.column} BETWEEN {self.operands[0]!r} AND {self.operands[1]!r}"
        if self.kind in (OperatorKind.IN, OperatorKind.NOT_IN):
            keyword = "IN" if self.kind == OperatorKind.IN else "NOT IN"
            return f"{boolean} {self.column} {keyword} {list(self.operands)!r}"
        return f"{boolean} {self.column} {self.kind.value.upper()} {self.operands[0]!r}"


# --------------------- tokenizer ---------------------

# whitespace followed by an even number of double quotes, i.e. not inside quotes
_TOKEN_SPLIT = re.compile(r'\s(?=(?:[^"]*"[^"]*")*[^"]*$)')


def tokenize(raw: Optional[str]) -> List[str]:
    """Split a search string on whitespace, keeping double-quoted runs intact."""
    if not raw:
        return []
    trimmed = raw.strip()
    if not trimmed:
        return []
    return [tok for tok in _TOKEN_SPLIT.split(trimmed) if tok != ""]


# --------------------- binding parser ---------------------

def parse_binding(token: str, column_map: Mapping[str, str]) -> Optional[Binding]:
    segments = token.split(":", 1)
    if len(segments) != 2:
        log.debug("Dropping token without a column binding: %r", token)
        return None

    key, condition = segments
    is_or = False
    if key.startswith(OR_PREFIX):
        is_or = True
        key = key[len(OR_PREFIX):]

    column = resolve_column(column_map, key)
    if column is None:
        log.debug("Dropping token for unknown column %r: %r", key, token)
        return None
    return Binding(column=column, condition=condition, is_or=is_or)


def parse_bindings(tokens: Iterable[str], column_map: Mapping[str, str]) -> List[Binding]:
    bindings: List[Binding] = []
    for tok in tokens:
        binding = parse_binding(tok, column_map)
        if binding is not None:
            bindings.append(binding)
    return bindings


# --------------------- condition classifier ---------------------

def _normalize_value(value: str) -> Optional[str]:
    """``NULL`` becomes null; a value wrapped in double quotes loses them."""
    if value == NULL_LITERAL:
        return None
    if value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def _set_membership(binding: Binding, m: "re.Match[str]") -> Predicate:
    values = [None if v == NULL_LITERAL else v for v in m.group("values").split(",")]
    kind = OperatorKind.NOT_IN if m.group("not") else OperatorKind.IN
    return Predicate(binding.column, kind, tuple(values), binding.is_or)


def _range(binding: Binding, m: "re.Match[str]") -> Predicate:
    return Predicate(binding.column, OperatorKind.BETWEEN, (m.group("start"), m.group("end")), binding.is_or)


def _date_part(binding: Binding, m: "re.Match[str]") -> Predicate:
    return Predicate(
        binding.column,
        OperatorKind.DATE_PART,
        (m.group("value"),),
        binding.is_or,
        date_part=DatePart(m.group("function")),
    )


def _pattern(binding: Binding, m: "re.Match[str]") -> Predicate:
    return Predicate(binding.column, OperatorKind.LIKE, (m.group("pattern"),), binding.is_or)


def _regexp(binding: Binding, m: "re.Match[str]") -> Predicate:
    return Predicate(binding.column, OperatorKind.REGEXP, (_normalize_value(m.group("value")),), binding.is_or)


def _basic(binding: Binding, m: "re.Match[str]") -> Predicate:
    comparator = m.group("operator") or "="
    value = m.group("value")
    if comparator == "%":
        comparator = "like"
        value = f"%{value}%"
    return Predicate(
        binding.column,
        OperatorKind.BASIC,
        (_normalize_value(value),),
        binding.is_or,
        comparator=comparator,
    )


ShapeHandler = Callable[[Binding, "re.Match[str]"], Predicate]

# Priority order. The basic pattern matches any string, so it must stay last.
SHAPES: Tuple[Tuple[str, Pattern[str], ShapeHandler], ...] = (
    ("set", re.compile(r"(?P<not>!?)\((?P<values>.+)\)"), _set_membership),
    ("range", re.compile(r"\[(?P<start>.*?),(?P<end>.*?)]"), _range),
    ("date_part", re.compile(r"(?P<function>date|time|day|month|year),(?P<value>.*)"), _date_part),
    ("pattern", re.compile(r"(?P<pattern>%[^%]+%)"), _pattern),
    ("regexp", re.compile(r"/(?P<value>.*)/"), _regexp),
    ("basic", re.compile(r"(?P<operator>>=?|<=?|!=|%)?(?P<value>.*)"), _basic),
)


def classify_shape(condition: str) -> Tuple[str, "re.Match[str]", ShapeHandler]:
    for name, pattern, handler in SHAPES:
        m = pattern.search(condition)
        if m is not None:
            return name, m, handler
    # unreachable: the basic shape matches the empty string
    raise AssertionError(f"no shape matched {condition!r}")


def classify(binding: Binding) -> Predicate:
    name, m, handler = classify_shape(binding.condition)
    predicate = handler(binding, m)
    log.debug("Classified %r on %r as %s -> %s", binding.condition, binding.column, name, predicate.describe())
    return predicate


def compile_search(raw: Optional[str], column_map: Mapping[str, str]) -> List[Predicate]:
    """Turn a raw quick search string into predicates, in token order."""
    return [classify(b) for b in parse_bindings(tokenize(raw), column_map)]
