# quicksearch/db.py
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv
from sqlalchemy import MetaData, Table, create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import NoSuchTableError

log = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[1]
ROOT_ENV = REPO_ROOT / ".env"
OPTIONAL_DB_JSON = REPO_ROOT / "config" / "db.json"

# connection part -> (primary env var, libpq fallback, default)
_URL_PARTS: Dict[str, tuple] = {
    "user": ("DB_USER", "PGUSER", "app"),
    "password": ("DB_PASSWORD", "PGPASSWORD", "app"),
    "name": ("DB_NAME", "PGDATABASE", "app"),
    "host": ("DB_HOST", "PGHOST", "127.0.0.1"),
    "port": ("DB_PORT", "PGPORT", "5432"),
}

_engine: Optional[Engine] = None
_engine_lock = threading.Lock()


def _load_env_once() -> None:
    """Pull the repository .env into os.environ; real environment values win."""
    if ROOT_ENV.exists():
        log.debug("loading %s", ROOT_ENV)
        load_dotenv(ROOT_ENV, override=False)


def _from_db_json() -> Dict[str, str]:
    """
    Connection parts from config/db.json, used only for parts the environment
    leaves unset. Keys mirror the env names, e.g. {"DB_NAME": "grids", "DB_PORT": 5432}.
    """
    if not OPTIONAL_DB_JSON.exists():
        return {}
    try:
        data = json.loads(OPTIONAL_DB_JSON.read_text(encoding="utf-8"))
    except Exception:
        log.warning("Failed to read %s", OPTIONAL_DB_JSON, exc_info=True)
        return {}
    if not isinstance(data, dict):
        log.warning("%s does not hold a JSON object; ignoring it", OPTIONAL_DB_JSON)
        return {}
    return {str(k): str(v) for k, v in data.items()}


def _build_db_url() -> str:
    """DATABASE_URL if set, else a psycopg URL assembled from DB_*/PG* parts."""
    _load_env_once()

    url = os.getenv("DATABASE_URL")
    if url:
        return url

    file_parts: Optional[Dict[str, str]] = None
    parts: Dict[str, str] = {}
    for part, (env_name, pg_name, default) in _URL_PARTS.items():
        value = os.getenv(env_name) or os.getenv(pg_name)
        if value is None:
            if file_parts is None:
                file_parts = _from_db_json()
            value = file_parts.get(env_name)
        parts[part] = value or default

    return "postgresql+psycopg://{user}:{pwd}@{host}:{port}/{name}".format(
        user=parts["user"],
        pwd=quote_plus(parts["password"]),
        host=parts["host"],
        port=parts["port"],
        name=parts["name"],
    )


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": bool(int(os.getenv("SQLALCHEMY_ECHO", "0")))}
    if url.startswith("sqlite"):
        return options
    options["pool_size"] = int(os.getenv("SQLALCHEMY_POOL_SIZE", "5"))
    options["max_overflow"] = int(os.getenv("SQLALCHEMY_MAX_OVERFLOW", "10"))
    options["pool_pre_ping"] = bool(int(os.getenv("SQLALCHEMY_POOL_PRE_PING", "1")))
    return options


def get_engine() -> Engine:
    """The process-wide engine the grid endpoints query through, created on first use."""
    global _engine
    if _engine is not None:
        return _engine

    with _engine_lock:
        if _engine is None:
            url = _build_db_url()
            options = _engine_options(url)
            log.info("Creating DB engine dialect=%s options=%s", url.split(":", 1)[0], options)
            _engine = create_engine(url, **options)
    return _engine


def get_db_conn() -> Connection:
    """A new connection from the shared engine; close it (or use ``with``)."""
    return get_engine().connect()


def dispose_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None


def reflect_table(engine: Engine, table: str) -> Table:
    """Load ``table`` or ``schema.table`` from the live database so a Grid can wrap it."""
    schema, _, name = table.rpartition(".")
    try:
        return Table(name, MetaData(), schema=schema or None, autoload_with=engine)
    except NoSuchTableError:
        raise ValueError(f"Table not found: {table!r}") from None
