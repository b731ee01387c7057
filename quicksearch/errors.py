# quicksearch/errors.py
from __future__ import annotations

from flask import Flask, jsonify, request
from flask.signals import got_request_exception
from werkzeug.exceptions import HTTPException

# app.logger propagates to the root logger configured by start_log(), so these
# records land in the same files as the module loggers.


def _http_error_body(e: HTTPException) -> dict:
    return {
        "ok": False,
        "error": e.name,
        "code": e.code,
        "description": e.description,
        "path": request.path,
        "method": request.method,
    }


def register_error_handlers(app: Flask) -> None:
    """JSON error bodies for every failure the grid API can produce."""
    _log_request_exceptions(app)

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        app.logger.warning("HTTP %s on %s %s: %s", e.code, request.method, request.path, e.description)
        return jsonify(_http_error_body(e)), e.code

    @app.errorhandler(Exception)
    def unhandled_error(e: Exception):
        app.logger.exception("Unhandled exception on %s %s", request.method, request.path)
        return jsonify(ok=False, error="Internal Server Error"), 500


def _log_request_exceptions(app: Flask) -> None:
    def on_exception(sender, exception, **extra):
        app.logger.error("Request raised %r", exception)

    # weak=False keeps the local receiver alive for the app's lifetime
    got_request_exception.connect(on_exception, app, weak=False)
