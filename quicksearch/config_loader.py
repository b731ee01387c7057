# quicksearch/config_loader.py
from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

log = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR = REPO_ROOT / "config"
CONFIG_PATH = CONFIG_DIR / "quicksearch.json"

DEFAULT_SEARCH_KEY = "__search__"
_SEARCH_KEY_CONFIG_KEY = "search_key"
_SEARCH_KEY_ENV = "QUICKSEARCH_SEARCH_KEY"
_CONFIG_PATH_ENV = "QUICKSEARCH_CONFIG"


class QuickSearchConfig:
    """Settings shared by every quick search apply pass."""

    def __init__(self, search_key: str = DEFAULT_SEARCH_KEY) -> None:
        self.search_key = search_key

    @property
    def search_key(self) -> str:
        """Request parameter holding the raw search string."""
        return self._search_key

    @search_key.setter
    def search_key(self, key: str) -> None:
        if not isinstance(key, str) or not key.strip():
            raise ValueError("The search key must be a non-empty string.")
        self._search_key = key.strip()

    def __repr__(self) -> str:
        return f"QuickSearchConfig(search_key={self._search_key!r})"


def _read_json_file(path: Path) -> dict:
    """Read JSON from disk, returning an empty mapping on failure."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        log.debug("No configuration file at %s; using defaults", path)
        return {}
    except Exception:
        log.warning("Could not read %s; falling back to defaults", path, exc_info=True)
        return {}
    if not isinstance(data, dict):
        log.warning("%s does not hold a JSON object; ignoring it", path)
        return {}
    return data


def get_config_path() -> Path:
    override = os.getenv(_CONFIG_PATH_ENV)
    if override and override.strip():
        return Path(override.strip()).expanduser()
    return CONFIG_PATH


def load_app_config() -> dict:
    """Return the raw JSON configuration for quick search."""
    return _read_json_file(get_config_path())


def get_search_key(cfg: Optional[Mapping[str, Any]] = None) -> str:
    """Resolve the search request parameter: config file, then env, then the default."""
    if cfg is None:
        cfg = load_app_config()
    if isinstance(cfg, Mapping):
        raw = cfg.get(_SEARCH_KEY_CONFIG_KEY)
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
    env_value = os.getenv(_SEARCH_KEY_ENV)
    if env_value and env_value.strip():
        return env_value.strip()
    return DEFAULT_SEARCH_KEY


def load_quick_search_config(cfg: Optional[Mapping[str, Any]] = None) -> QuickSearchConfig:
    return QuickSearchConfig(search_key=get_search_key(cfg))


def initialize_app_config(app: Any) -> QuickSearchConfig:
    """Populate a Flask app instance with values derived from the configuration file."""
    cfg = load_app_config()
    if isinstance(cfg, Mapping):
        app.config.update(cfg)
    qs_config = load_quick_search_config(cfg)
    app.config["QUICKSEARCH_SEARCH_KEY"] = qs_config.search_key
    app.extensions["quicksearch_config"] = qs_config
    log.info("Quick search parameter key: %s", qs_config.search_key)
    return qs_config
