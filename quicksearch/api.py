# quicksearch/api.py
from __future__ import annotations

import logging
from typing import Dict

from flask import Blueprint, abort, current_app, jsonify, request
from sqlalchemy.engine import Engine

from . import db
from .config_loader import QuickSearchConfig
from .grid import Grid

log = logging.getLogger(__name__)

# Register from the app factory:
#   from quicksearch.api import bp as grids_bp
#   app.register_blueprint(grids_bp)
bp = Blueprint("grids", __name__, url_prefix="/api")


def _grids() -> Dict[str, Grid]:
    return current_app.extensions.setdefault("grids", {})


def _get_grid(name: str) -> Grid:
    grid = _grids().get(name)
    if grid is None:
        abort(404, description=f"Unknown grid {name!r}")
    return grid


def _get_engine() -> Engine:
    engine = current_app.extensions.get("engine")
    if engine is None:
        engine = db.get_engine()
        current_app.extensions["engine"] = engine
    return engine


def _quick_search_config() -> QuickSearchConfig:
    cfg = current_app.extensions.get("quicksearch_config")
    if cfg is None:
        cfg = QuickSearchConfig()
        current_app.extensions["quicksearch_config"] = cfg
    return cfg


@bp.get("/grids")
def list_grids():
    """List every registered grid with its quick search setup."""
    return jsonify(ok=True, data=[grid.describe() for grid in _grids().values()])


@bp.get("/grids/<name>")
def describe_grid(name: str):
    return jsonify(ok=True, data=_get_grid(name).describe())


@bp.get("/grids/<name>/rows")
def grid_rows(name: str):
    """
    GET /api/grids/<name>/rows?__search__=age:>=18 name:%jo%

    The search string is read from the configured search key. Rows come back
    as { "ok": true, "data": [...] }; database errors as { "ok": false, "error": "..." }.
    """
    grid = _get_grid(name)
    try:
        engine = _get_engine()
        query = grid.model(engine)
        grid.apply_quick_search(request.args, query, _quick_search_config())
        with engine.connect() as conn:
            rows = query.fetch_all(conn)
        return jsonify(ok=True, data=rows)
    except Exception as e:
        log.exception("grid_rows: error while searching grid %s", name)
        return jsonify(ok=False, error=str(e)), 400
