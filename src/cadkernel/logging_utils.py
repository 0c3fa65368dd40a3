"""
Logging helpers.

The kernel is a library, so it never configures logging on import. Host
applications call :func:`setup_logging` once if they want kernel messages on
a stream or in a log file.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Optional

ENV_LOG_LEVEL = "CADKERNEL_LOG_LEVEL"
LOGGER_NAME = "cadkernel"

_LOG_ONCE_KEYS: set[str] = set()
_LOG_ONCE_LOCK = threading.Lock()


def _parse_log_level(level: str | int) -> int:
    if isinstance(level, int):
        return int(level)
    value = str(level).strip().upper()
    if not value:
        return logging.INFO
    resolved = getattr(logging, value, logging.INFO)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    *,
    log_level: str | int = "INFO",
    log_dir: Optional[str | Path] = None,
    filename: str = "cadkernel.log",
) -> Optional[Path]:
    """
    Attach a handler to the ``cadkernel`` logger.

    Without ``log_dir`` messages go to stderr and ``None`` is returned.
    With ``log_dir`` a UTF-8 file handler is used and its path returned.
    This is idempotent: a second call reuses the handler installed first.
    """
    logger = logging.getLogger(LOGGER_NAME)

    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
        if isinstance(handler, logging.StreamHandler):
            return None

    level = _parse_log_level(os.environ.get(ENV_LOG_LEVEL) or log_level)
    logger.setLevel(level)

    fmt = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    log_path: Optional[Path] = None
    if log_dir is not None:
        resolved_dir = Path(log_dir)
        resolved_dir.mkdir(parents=True, exist_ok=True)
        log_path = resolved_dir / filename
        handler: logging.Handler = logging.FileHandler(str(log_path), encoding="utf-8")
    else:
        handler = logging.StreamHandler()

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
    logger.addHandler(handler)

    logger.info("Logging initialized: %s (level=%s)",
                log_path if log_path is not None else "stderr",
                logging.getLevelName(level))
    return log_path


def log_once(
    logger: logging.Logger,
    key: str,
    level: int,
    msg: str,
    *args,
    exc_info: bool | BaseException | None = None,
) -> bool:
    """
    Logs at most once per process for the given key.

    Used for numerical fallbacks that would otherwise repeat for every
    frame of every sweep.
    """
    k = str(key)
    with _LOG_ONCE_LOCK:
        if k in _LOG_ONCE_KEYS:
            return False
        _LOG_ONCE_KEYS.add(k)

    logger.log(level, msg, *args, exc_info=exc_info)
    return True
