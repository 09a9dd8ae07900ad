"""
Logging configuration.

Logs go to stderr: stdout carries the MCP stdio channel and the CLI action
trail. An optional file handler mirrors everything to a log file.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    (Re)configure the root logger.

    Args:
        level: Level name; defaults to AUTOTESTX_LOG_LEVEL or INFO
        log_file: Extra file destination; defaults to AUTOTESTX_LOG_FILE
    """
    level = (level or os.getenv("AUTOTESTX_LOG_LEVEL", "INFO")).upper()
    log_file = log_file or os.getenv("AUTOTESTX_LOG_FILE") or None

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    # httpx logs every oracle request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
