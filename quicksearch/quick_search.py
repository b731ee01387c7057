# quicksearch/quick_search.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .config_loader import QuickSearchConfig
from .emitter import emit, emit_all, pattern_predicate
from .model_query import ModelQuery
from .search_expression import compile_search
from .search_spec import ColumnListSearch, CustomSearch, DefaultSearch, SearchSpec

log = logging.getLogger(__name__)


def read_search_value(params: Mapping[str, Any], config: QuickSearchConfig) -> Optional[str]:
    """Fetch the raw search string; missing or empty means there is nothing to do."""
    value = params.get(config.search_key)
    # only absent or "" means no search; "0" is searched like any other value
    if value is None or value == "":
        return None
    return value if isinstance(value, str) else str(value)


def apply_search_string(
    raw: str,
    query: ModelQuery,
    spec: Optional[SearchSpec],
    column_map: Mapping[str, str],
) -> Any:
    """
    Apply one raw search string onto ``query`` according to ``spec``.

    Returns whatever a custom callback returns, otherwise ``None``.
    """
    if spec is None:
        spec = DefaultSearch()

    if isinstance(spec, CustomSearch):
        log.debug("Quick search %r handed to custom callback", raw)
        return spec(raw, query)

    if isinstance(spec, ColumnListSearch):
        pattern = f"%{raw}%"
        for column in spec.columns:
            emit(pattern_predicate(column, pattern, is_or=True), query)
        log.debug("Quick search %r matched against %d columns", raw, len(spec.columns))
        return None

    applied = emit_all(compile_search(raw, column_map), query)
    log.debug("Quick search %r produced %d predicates", raw, applied)
    return None


def apply_quick_search(
    params: Mapping[str, Any],
    query: ModelQuery,
    spec: Optional[SearchSpec],
    column_map: Mapping[str, str],
    config: Optional[QuickSearchConfig] = None,
) -> Any:
    """Read the search value from request parameters and apply it onto ``query``."""
    if config is None:
        config = QuickSearchConfig()
    raw = read_search_value(params, config)
    if raw is None:
        return None
    return apply_search_string(raw, query, spec, column_map)
