"""
Quick search: compile a single free-text search value into column filters.

Avoid side effects here: no network, DB, or logging setup.

Typical use::

    from quicksearch import Grid

    grid = Grid("people", people_table, [("name", "Name"), "age"]).quick_search()
    query = grid.model(engine)
    grid.apply_quick_search({"__search__": "Name:%jo% age:>=18"}, query)

Run the HTTP surface with ``flask --app quicksearch.main:create_app run``.
"""

from .columns import Column, build_column_map
from .config_loader import DEFAULT_SEARCH_KEY, QuickSearchConfig
from .grid import Grid
from .model_query import ModelQuery
from .quick_search import apply_quick_search, apply_search_string
from .search_expression import Binding, DatePart, OperatorKind, Predicate, compile_search, tokenize
from .search_spec import ColumnListSearch, CustomSearch, DefaultSearch, SearchSpec, make_search_spec

__all__ = [
    "Binding",
    "Column",
    "ColumnListSearch",
    "CustomSearch",
    "DEFAULT_SEARCH_KEY",
    "DatePart",
    "DefaultSearch",
    "Grid",
    "ModelQuery",
    "OperatorKind",
    "Predicate",
    "QuickSearchConfig",
    "SearchSpec",
    "apply_quick_search",
    "apply_search_string",
    "build_column_map",
    "compile_search",
    "make_search_spec",
    "tokenize",
]
