from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from sqlalchemy import text
from sqlalchemy.engine import Engine

from . import db
from .api import bp as bp_grids
from .config_loader import initialize_app_config
from .errors import register_error_handlers
from .grid import Grid
from .logging_setup import start_log

log = logging.getLogger(__name__)


def create_app(
    grids: Optional[Iterable[Grid]] = None,
    engine: Optional[Engine] = None,
    configure_logging: bool = False,
) -> Flask:
    """Instantiate and configure the Flask application serving the given grids."""
    if configure_logging:
        start_log(app_name="quicksearch", level=logging.DEBUG if os.getenv("FLASK_ENV") == "development" else None)

    app = Flask(__name__)

    # The UI may be served from another origin during development.
    CORS(app)

    qs_config = initialize_app_config(app)

    registry = {}
    for grid in grids or ():
        if grid.name in registry:
            raise ValueError(f"Duplicate grid name {grid.name!r}")
        grid.config = qs_config
        registry[grid.name] = grid
    app.extensions["grids"] = registry
    if engine is not None:
        app.extensions["engine"] = engine

    app.register_blueprint(bp_grids)

    @app.get("/api/health")
    def health():
        """Quick database reachability probe."""
        bound = app.extensions.get("engine") or db.get_engine()
        with bound.connect() as conn:
            conn.execute(text("select 1"))
        return jsonify(ok=True)

    register_error_handlers(app)
    log.info("Quick search app ready with grids: %s", ", ".join(registry) or "(none)")
    return app
