from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import os


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

_configured = False


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    level = os.getenv("ORCH_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
    )
    # livereload serves through tornado, which logs every static request
    logging.getLogger("tornado.access").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    _ensure_base_logger()
    return logging.getLogger(name)


def tool_logger(tool: str) -> logging.Logger:
    """Logger tagged with an external tool name, e.g. `tools.hugo`."""
    return get_logger(f"tools.{tool}")


def attach_file_handler(log_file: Path, name: str = "") -> None:
    """Mirror records of logger `name` (root by default) into a rotating file."""
    logger = get_logger(name)
    target = str(Path(log_file).resolve())
    # Do not duplicate handlers if already set
    if any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == target
        for h in logger.handlers
    ):
        return
    Path(target).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(target, maxBytes=1_000_000, backupCount=3)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
