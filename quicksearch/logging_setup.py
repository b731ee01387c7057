# quicksearch/logging_setup.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_LOG_DIR = REPO_ROOT / "var" / "logs"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(process)d] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class DateSizeRotatingFileHandler(RotatingFileHandler):
    """
    Size-triggered rotation that never renames old files: each rollover starts
    ``<prefix>-<YYYYmmdd-HHMMSS-mmm>.log`` next to the previous ones.
    """

    def __init__(self, directory: Path, prefix: str = "quicksearch", max_bytes: int = 1_000_000):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        super().__init__(
            self._stamped_path(),
            maxBytes=max_bytes,
            backupCount=0,
            encoding="utf-8",
            errors="replace",
        )

    def _stamped_path(self) -> str:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")[:-3]
        return os.fspath(self.directory / f"{self.prefix}-{stamp}.log")

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None
        self.baseFilename = self._stamped_path()
        self.mode = "a"
        self.stream = self._open()


def _coerce_level(level: Optional[str | int]) -> int:
    if isinstance(level, int):
        return level
    name = level if isinstance(level, str) else os.getenv("LOG_LEVEL", "INFO")
    return getattr(logging, name.upper(), logging.INFO)


def _resolve_log_dir(log_dir: Optional[str | Path]) -> Path:
    if log_dir is None:
        log_dir = os.getenv("QUICKSEARCH_LOG_DIR") or DEFAULT_LOG_DIR
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def start_log(
    *,
    app_name: str = "quicksearch",
    log_dir: Optional[str | Path] = None,
    level: Optional[str | int] = None,
    to_console: bool = True,
    max_bytes: int = 1_000_000,
) -> logging.Logger:
    """
    Point the root logger at a timestamped log file (and optionally stderr).

    Every ``logging.getLogger(__name__)`` in the package, the query compiler
    included, propagates here. ``log_dir`` falls back to QUICKSEARCH_LOG_DIR and
    then <repo>/var/logs; ``level`` falls back to LOG_LEVEL and then INFO.
    Handlers from an earlier call are detached first.
    """
    directory = _resolve_log_dir(log_dir)

    root = logging.getLogger()
    root.setLevel(_coerce_level(level))
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = [
        DateSizeRotatingFileHandler(directory=directory, prefix=app_name, max_bytes=max_bytes)
    ]
    if to_console:
        handlers.append(logging.StreamHandler())
    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)

    root.info("Logging started app=%s dir=%s level=%s", app_name, directory, logging.getLevelName(root.level))
    return root
