# quicksearch/tools/explain.py
# Show how a quick search string is understood:
#   python -m quicksearch.tools.explain 'age:>=18 |Name:%jo%' --columns age name:Name --sql
# With --table the search runs against DATABASE_URL (see quicksearch.db).

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from sqlalchemy import Column as SAColumn
from sqlalchemy import MetaData, String, Table
from sqlalchemy.dialects import mysql, postgresql, sqlite

from quicksearch import db
from quicksearch.columns import Column, build_column_map
from quicksearch.emitter import emit_all
from quicksearch.model_query import ModelQuery
from quicksearch.search_expression import compile_search

DIALECTS = {
    "postgresql": postgresql.dialect,
    "sqlite": sqlite.dialect,
    "mysql": mysql.dialect,
}


def parse_column(spec: str) -> Column:
    """'name' or 'name:Label'"""
    if ":" in spec:
        name, label = spec.split(":", 1)
        return Column(name, label)
    return Column(spec)


def _scratch_table(columns: List[Column]) -> Table:
    md = MetaData()
    return Table("quick_search", md, *(SAColumn(c.name, String) for c in columns))


def explain(search: str, columns: List[Column], dialect: str = "postgresql", show_sql: bool = False) -> List[str]:
    lines: List[str] = []
    predicates = compile_search(search, build_column_map(columns))
    if not predicates:
        lines.append("(no predicates)")
    for p in predicates:
        lines.append(p.describe())

    if show_sql and predicates:
        query = ModelQuery(_scratch_table(columns), dialect_name=dialect)
        emit_all(predicates, query)
        compiled = query.whereclause().compile(
            dialect=DIALECTS[dialect](),
            compile_kwargs={"literal_binds": True},
        )
        lines.append(f"WHERE {compiled}")
    return lines


def run_against_table(search: str, columns: List[Column], table_name: str) -> List[str]:
    engine = db.get_engine()
    table = db.reflect_table(engine, table_name)
    query = ModelQuery.for_engine(table, engine)
    emit_all(compile_search(search, build_column_map(columns)), query)
    with engine.connect() as conn:
        rows = query.fetch_all(conn)
    return [repr(row) for row in rows] + [f"{len(rows)} row(s)"]


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Explain how a quick search string is parsed")
    ap.add_argument("search", help="The quick search string, e.g. 'age:[18,30] |name:%%jo%%'")
    ap.add_argument("--columns", nargs="+", required=True, help="Column names, optionally name:Label")
    ap.add_argument("--dialect", default="postgresql", choices=sorted(DIALECTS), help="SQL dialect (default: postgresql)")
    ap.add_argument("--sql", action="store_true", help="Also print the compiled WHERE clause")
    ap.add_argument("--table", help="Reflect this table from the database and print matching rows")
    args = ap.parse_args(argv)

    columns = [parse_column(c) for c in args.columns]
    if args.table:
        lines = run_against_table(args.search, columns, args.table)
    else:
        lines = explain(args.search, columns, dialect=args.dialect, show_sql=args.sql)
    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
