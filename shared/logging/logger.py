"""
Relay logging.

Every relay component logs through get_logger(). Records go to the
console and to one file per process run under RELAY_LOG_DIR, named
after the component group ("relay" for shared code, "discord" for the
gateway service).
"""

import logging
import os
from datetime import datetime
from pathlib import Path

DEFAULT_LOG_DIR = "logs"
LOG_DIR_ENV = "RELAY_LOG_DIR"
LOG_LEVEL_ENV = "RELAY_LOG_LEVEL"

RELAY_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_LOGGERS = {}
_RUN_STAMP = datetime.now().strftime("%Y%m%d-%H%M%S")


def _resolve_log_dir() -> Path:
    log_dir = Path(os.getenv(LOG_DIR_ENV) or DEFAULT_LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _console_level() -> int:
    level = logging.getLevelName((os.getenv(LOG_LEVEL_ENV) or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(
    name: str,
    *,
    runtime: str = "relay",
) -> logging.Logger:
    """
    Named relay logger, created once per (runtime, name).

    The console shows RELAY_LOG_LEVEL and above (INFO by default); the
    run file under RELAY_LOG_DIR keeps DEBUG. All loggers of one runtime
    share the file <runtime>-<process start>.log.
    """
    cache_key = f"{runtime}:{name}"
    if cache_key in _LOGGERS:
        return _LOGGERS[cache_key]

    logger = logging.getLogger(cache_key)
    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(RELAY_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(_console_level())
    console.setFormatter(formatter)
    logger.addHandler(console)

    logfile = _resolve_log_dir() / f"{runtime}-{_RUN_STAMP}.log"
    file_handler = logging.FileHandler(logfile, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.propagate = False
    _LOGGERS[cache_key] = logger

    return logger
