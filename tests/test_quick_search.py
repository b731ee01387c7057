"""Tests for the emitter, search specs and the quick search apply pass."""

from __future__ import annotations

import logging
import warnings

import pytest
from sqlalchemy.dialects import postgresql

from quicksearch.config_loader import QuickSearchConfig
from quicksearch.emitter import emit, emit_all, pattern_predicate, resolve_kind
from quicksearch.model_query import ModelQuery
from quicksearch.quick_search import apply_quick_search, apply_search_string, read_search_value
from quicksearch.search_expression import DatePart, OperatorKind, Predicate, compile_search
from quicksearch.search_spec import (
    ColumnListSearch,
    CustomSearch,
    DefaultSearch,
    make_search_spec,
)
from tests.helpers import ALL_IDS, row_ids


def _pg(query: ModelQuery):
    return query.whereclause().compile(dialect=postgresql.dialect())


def _search(engine, people_table, column_map, raw, spec=None):
    query = ModelQuery.for_engine(people_table, engine)
    apply_quick_search({"__search__": raw}, query, spec or DefaultSearch(), column_map)
    with engine.connect() as conn:
        return row_ids(query.fetch_all(conn))


@pytest.mark.unit
class TestEmitter:
    """Tests for predicate dispatch."""

    def test_like_becomes_ilike_on_postgres(self, people_table) -> None:
        query = ModelQuery(people_table, dialect_name="postgresql")
        p = pattern_predicate("name", "%jo%")
        assert resolve_kind(p, query) == OperatorKind.ILIKE
        emit(p, query)
        assert "ILIKE" in str(_pg(query))

    def test_like_stays_like_elsewhere(self, people_table) -> None:
        query = ModelQuery(people_table, dialect_name="sqlite")
        assert resolve_kind(pattern_predicate("name", "%jo%"), query) == OperatorKind.LIKE

    def test_basic_percent_comparator_is_plain_like(self, people_table) -> None:
        query = ModelQuery(people_table, dialect_name="postgresql")
        emit_all(compile_search("name:%jo", {"name": "name"}), query)
        sql = str(_pg(query))
        assert " LIKE " in sql
        assert "ILIKE" not in sql

    def test_or_flag_selects_or_operation(self, people_table) -> None:
        query = ModelQuery(people_table)
        emit_all(
            [
                Predicate("age", OperatorKind.BASIC, ("1",), False, comparator=">"),
                Predicate("status", OperatorKind.NOT_IN, ("1", "2"), True),
            ],
            query,
        )
        sql = str(_pg(query))
        assert " OR " in sql
        assert "NOT IN" in sql

    def test_emit_all_counts(self, people_table) -> None:
        predicates = compile_search("age:1 |age:2 name:x", {"age": "age", "name": "name"})
        assert emit_all(predicates, ModelQuery(people_table)) == 3

    @pytest.mark.parametrize("kind", list(OperatorKind))
    @pytest.mark.parametrize("is_or", [False, True])
    def test_every_kind_dispatches(self, people_table, kind, is_or) -> None:
        operands = {
            OperatorKind.IN: ("1", "2"),
            OperatorKind.NOT_IN: ("1",),
            OperatorKind.BETWEEN: ("1", "9"),
        }.get(kind, ("x",))
        predicate = Predicate(
            "created_at" if kind == OperatorKind.DATE_PART else "name",
            kind,
            operands,
            is_or,
            comparator="=" if kind == OperatorKind.BASIC else None,
            date_part="year" if kind == OperatorKind.DATE_PART else None,
        )
        query = ModelQuery(people_table)
        emit(predicate, query)
        assert query.where_count == 1


@pytest.mark.unit
class TestSearchSpec:
    """Tests for make_search_spec() and the spec variants."""

    def test_no_argument_is_default(self) -> None:
        assert isinstance(make_search_spec(), DefaultSearch)
        assert isinstance(make_search_spec(None), DefaultSearch)

    def test_single_column(self) -> None:
        spec = make_search_spec("name")
        assert isinstance(spec, ColumnListSearch)
        assert spec.columns == ("name",)

    def test_several_columns(self) -> None:
        assert make_search_spec("name", "status").columns == ("name", "status")
        assert make_search_spec(["name", "status"]).columns == ("name", "status")

    def test_callable(self) -> None:
        def cb(raw, query):
            return raw

        spec = make_search_spec(cb)
        assert isinstance(spec, CustomSearch)
        assert spec.describe() == {"variant": "custom", "callback": "cb"}

    def test_existing_spec_is_returned(self) -> None:
        spec = ColumnListSearch(["name"])
        assert make_search_spec(spec) is spec

    def test_column_list_requires_columns(self) -> None:
        with pytest.raises(ValueError):
            ColumnListSearch([])
        with pytest.raises(ValueError):
            make_search_spec([])

    def test_custom_requires_callable(self) -> None:
        with pytest.raises(TypeError):
            CustomSearch("nope")

    def test_unsupported_definition(self) -> None:
        with pytest.raises(TypeError):
            make_search_spec(1, 2)
        with pytest.raises(TypeError):
            make_search_spec(42)


@pytest.mark.unit
class TestReadSearchValue:
    """Tests for reading the raw string from request parameters."""

    def test_default_key(self) -> None:
        assert read_search_value({"__search__": "age:1"}, QuickSearchConfig()) == "age:1"

    def test_custom_key(self) -> None:
        config = QuickSearchConfig()
        config.search_key = "q"
        assert read_search_value({"q": "age:1", "__search__": "x"}, config) == "age:1"

    @pytest.mark.parametrize("params", [{}, {"__search__": ""}, {"__search__": None}])
    def test_missing_or_empty(self, params) -> None:
        assert read_search_value(params, QuickSearchConfig()) is None


@pytest.mark.unit
class TestApplyQuickSearch:
    """End-to-end apply passes against the people table."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("name:%john%", [1, 2]),
            ("age:[18,30]", [1, 3, 5]),
            ("status:(1,2,3)", [1, 2, 3, 5]),
            ("status:!(1,2)", [3]),
            ("created_at:date,2024-01-01", [1, 4]),
            ("age:>=18", [1, 3, 4, 5]),
            ("unknown_col:5", ALL_IDS),
            ("Name:/^Jo/", [1, 2]),
            ("status:NULL", [4]),
            ('name:"Bob Brown"', [4]),
            ("Created:year,2024 age:<20", [2]),
            ("age:<18 |age:>40", [2, 4]),
            ("no colon here", ALL_IDS),
        ],
    )
    def test_default_search(self, engine, people_table, column_map, raw, expected) -> None:
        assert _search(engine, people_table, column_map, raw) == expected

    def test_missing_search_value_is_a_no_op(self, people_table, column_map) -> None:
        query = ModelQuery(people_table)
        assert apply_quick_search({}, query, DefaultSearch(), column_map) is None
        assert query.where_count == 0

    def test_whitespace_only_search_is_a_no_op(self, people_table, column_map) -> None:
        query = ModelQuery(people_table)
        apply_quick_search({"__search__": "   "}, query, DefaultSearch(), column_map)
        assert query.where_count == 0

    def test_spec_none_means_default(self, people_table, column_map) -> None:
        query = ModelQuery(people_table)
        apply_search_string("age:1", query, None, column_map)
        assert query.where_count == 1

    def test_column_list_search(self, engine, people_table, column_map) -> None:
        spec = ColumnListSearch(["name", "status"])
        assert _search(engine, people_table, column_map, "Jo", spec) == [1, 2, 3]

    def test_column_list_uses_raw_string_verbatim(self, people_table, column_map) -> None:
        query = ModelQuery(people_table, dialect_name="postgresql")
        apply_quick_search({"__search__": '"john smith"'}, query, ColumnListSearch(["name"]), column_map)
        compiled = _pg(query)
        assert "ILIKE" in str(compiled)
        assert list(compiled.params.values()) == ['%"john smith"%']

    def test_column_list_ors_every_column(self, people_table, column_map) -> None:
        query = ModelQuery(people_table, dialect_name="postgresql")
        apply_search_string("x", query, ColumnListSearch(["name", "status"]), column_map)
        assert str(_pg(query)).count(" OR ") == 1

    def test_custom_search(self, people_table, column_map) -> None:
        seen = []

        def callback(raw, query):
            seen.append((raw, query))
            query.where("age", ">", raw)
            return "handled"

        query = ModelQuery(people_table)
        result = apply_quick_search({"__search__": "age:>1"}, query, CustomSearch(callback), column_map)
        assert result == "handled"
        assert seen == [("age:>1", query)]
        assert query.where_count == 1

    def test_engine_errors_propagate(self, people_table) -> None:
        query = ModelQuery(people_table)
        with pytest.raises(KeyError):
            apply_search_string("x", query, ColumnListSearch(["missing"]), {})


@pytest.mark.unit
class TestDatePartPredicates:
    """Date-part predicates built by hand with plain strings."""

    def test_string_date_part_is_normalised(self) -> None:
        p = Predicate("created_at", OperatorKind.DATE_PART, ("2024",), date_part="year")
        assert p.date_part is DatePart.YEAR
        assert p.describe() == "AND year(created_at) = '2024'"

    def test_unknown_date_part_name(self) -> None:
        with pytest.raises(ValueError):
            Predicate("created_at", OperatorKind.DATE_PART, ("1",), date_part="week")

    def test_emit_string_date_part(self, engine, people_table) -> None:
        query = ModelQuery.for_engine(people_table, engine)
        emit(Predicate("created_at", OperatorKind.DATE_PART, ("2024",), date_part="year"), query)
        with engine.connect() as conn:
            assert row_ids(query.fetch_all(conn)) == [1, 2, 4]

    def test_emit_logs_predicate_at_debug(self, people_table, caplog) -> None:
        caplog.set_level(logging.DEBUG, logger="quicksearch.emitter")
        emit(Predicate("created_at", OperatorKind.DATE_PART, ("3",), True, date_part="month"), ModelQuery(people_table))
        assert "OR month(created_at) = '3'" in caplog.text


@pytest.mark.unit
class TestZeroSearchValue:
    """The string "0" is a real search value, not an empty one."""

    def test_read_zero(self) -> None:
        assert read_search_value({"__search__": "0"}, QuickSearchConfig()) == "0"

    def test_zero_is_applied(self, people_table, column_map) -> None:
        query = ModelQuery(people_table)
        apply_quick_search({"__search__": "0"}, query, ColumnListSearch(["name"]), column_map)
        assert query.where_count == 1

    def test_zero_with_column(self, engine, people_table, column_map) -> None:
        assert _search(engine, people_table, column_map, "status:0") == []


@pytest.mark.unit
class TestPatternsOnNonStringColumns:
    """Pattern operators match non-string columns on their text form."""

    def test_column_list_over_integer_column(self, engine, people_table, column_map) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            ids = _search(engine, people_table, column_map, "2", ColumnListSearch(["status"]))
        assert ids == [2, 5]

    def test_integer_column_is_cast_on_postgres(self, people_table) -> None:
        query = ModelQuery(people_table, dialect_name="postgresql").where_ilike("age", "%1%")
        assert "CAST(people.age AS VARCHAR) ILIKE" in str(_pg(query))

    def test_string_column_is_not_cast(self, people_table) -> None:
        query = ModelQuery(people_table, dialect_name="postgresql").where_ilike("name", "%1%")
        assert "CAST" not in str(_pg(query))

    def test_regexp_over_integer_column(self, engine, people_table) -> None:
        query = ModelQuery.for_engine(people_table, engine).where_regexp("age", "^1")
        with engine.connect() as conn:
            assert row_ids(query.fetch_all(conn)) == [2, 5]
