"""Shared pytest fixtures for all tests."""

from __future__ import annotations

import logging
from typing import Dict, Iterator

import pytest
from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, create_engine, insert
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from quicksearch.grid import Grid
from tests.helpers import PEOPLE_ROWS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep host settings from leaking into tests."""
    monkeypatch.delenv("QUICKSEARCH_SEARCH_KEY", raising=False)
    monkeypatch.setenv("QUICKSEARCH_CONFIG", str(tmp_path / "missing-quicksearch.json"))


@pytest.fixture
def people_table() -> Table:
    md = MetaData()
    return Table(
        "people",
        md,
        Column("id", Integer, primary_key=True),
        Column("name", String(64)),
        Column("age", Integer),
        Column("status", Integer, nullable=True),
        Column("created_at", DateTime),
    )


@pytest.fixture
def engine(people_table: Table) -> Iterator[Engine]:
    """In-memory SQLite shared across connections and threads."""
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    people_table.metadata.create_all(eng)
    with eng.begin() as conn:
        conn.execute(insert(people_table), PEOPLE_ROWS)
    yield eng
    eng.dispose()


@pytest.fixture
def grid(people_table: Table) -> Grid:
    return Grid(
        "people",
        people_table,
        [("id", "ID"), ("name", "Name"), ("age", "Age"), ("status", "Status"), ("created_at", "Created")],
    )


@pytest.fixture
def column_map(grid: Grid) -> Dict[str, str]:
    return grid.column_map()


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        if h not in handlers:
            h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
