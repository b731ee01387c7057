# quicksearch/emitter.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Tuple

from .model_query import ModelQuery
from .search_expression import OperatorKind, Predicate

log = logging.getLogger(__name__)

EmitFunction = Callable[[ModelQuery, Predicate], Any]

# (kind, is_or) -> query operation
_DISPATCH: Dict[Tuple[OperatorKind, bool], EmitFunction] = {
    (OperatorKind.IN, False): lambda q, p: q.where_in(p.column, p.operands),
    (OperatorKind.IN, True): lambda q, p: q.or_where_in(p.column, p.operands),
    (OperatorKind.NOT_IN, False): lambda q, p: q.where_not_in(p.column, p.operands),
    (OperatorKind.NOT_IN, True): lambda q, p: q.or_where_not_in(p.column, p.operands),
    (OperatorKind.BETWEEN, False): lambda q, p: q.where_between(p.column, p.operands),
    (OperatorKind.BETWEEN, True): lambda q, p: q.or_where_between(p.column, p.operands),
    (OperatorKind.DATE_PART, False): lambda q, p: q.where_date_part(p.date_part, p.column, p.operands[0]),
    (OperatorKind.DATE_PART, True): lambda q, p: q.or_where_date_part(p.date_part, p.column, p.operands[0]),
    (OperatorKind.LIKE, False): lambda q, p: q.where_like(p.column, p.operands[0]),
    (OperatorKind.LIKE, True): lambda q, p: q.or_where_like(p.column, p.operands[0]),
    (OperatorKind.ILIKE, False): lambda q, p: q.where_ilike(p.column, p.operands[0]),
    (OperatorKind.ILIKE, True): lambda q, p: q.or_where_ilike(p.column, p.operands[0]),
    (OperatorKind.REGEXP, False): lambda q, p: q.where_regexp(p.column, p.operands[0]),
    (OperatorKind.REGEXP, True): lambda q, p: q.or_where_regexp(p.column, p.operands[0]),
    (OperatorKind.BASIC, False): lambda q, p: q.where(p.column, p.comparator, p.operands[0]),
    (OperatorKind.BASIC, True): lambda q, p: q.or_where(p.column, p.comparator, p.operands[0]),
}


def resolve_kind(predicate: Predicate, query: ModelQuery) -> OperatorKind:
    """Pattern matches become case-insensitive on dialects that prefer it."""
    if predicate.kind == OperatorKind.LIKE and query.prefers_case_insensitive_like():
        return OperatorKind.ILIKE
    return predicate.kind


def emit(predicate: Predicate, query: ModelQuery) -> None:
    kind = resolve_kind(predicate, query)
    if log.isEnabledFor(logging.DEBUG):
        log.debug("Emitting %s as %s", predicate.describe(), kind.value)
    _DISPATCH[(kind, predicate.is_or)](query, predicate)


def emit_all(predicates: Iterable[Predicate], query: ModelQuery) -> int:
    """Apply predicates in order onto ``query``; returns how many were applied."""
    count = 0
    for predicate in predicates:
        emit(predicate, query)
        count += 1
    return count


def pattern_predicate(column: str, pattern: str, is_or: bool = False) -> Predicate:
    return Predicate(column, OperatorKind.LIKE, (pattern,), is_or)
