"""Sample data and small assertions shared by the test modules."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List

PEOPLE_ROWS: List[Dict[str, Any]] = [
    {"id": 1, "name": "John Smith", "age": 25, "status": 1, "created_at": datetime(2024, 1, 1, 9, 30)},
    {"id": 2, "name": "Johnny Walker", "age": 17, "status": 2, "created_at": datetime(2024, 3, 15, 14, 0)},
    {"id": 3, "name": "Alice Jones", "age": 30, "status": 3, "created_at": datetime(2023, 12, 31, 23, 59)},
    {"id": 4, "name": "Bob Brown", "age": 42, "status": None, "created_at": datetime(2024, 1, 1, 18, 45)},
    {"id": 5, "name": "Carol White", "age": 18, "status": 2, "created_at": datetime(2022, 7, 4, 12, 0)},
]

ALL_IDS = [1, 2, 3, 4, 5]


def row_ids(rows: Iterable[Dict[str, Any]]) -> List[int]:
    return sorted(row["id"] for row in rows)
