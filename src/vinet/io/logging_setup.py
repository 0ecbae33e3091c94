"""Logging bootstrap for vinet.

The TUI owns the terminal while it runs, so everything at the configured
level goes to a per-run rotating file and only warnings reach stderr.

// [LAW:single-enforcer] Handlers are attached to the "vinet" logger here and nowhere else.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "vinet"
DEFAULT_LOG_DIR = "~/.local/share/vinet/logs"

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
STREAM_FORMAT = "[%(name)s] %(levelname)s %(message)s"
MAX_BYTES = 20 * 1024 * 1024
BACKUP_COUNT = 5

# Libraries whose INFO chatter would drown the capture log.
QUIET_LOGGERS = ("aiohttp", "asyncio")


@dataclass(frozen=True)
class LoggingRuntime:
    level_name: str
    level: int
    file_path: str


_RUNTIME: LoggingRuntime | None = None


def _parse_level(raw: str | None) -> tuple[str, int]:
    level = logging.getLevelName((raw or "INFO").strip().upper())
    if not isinstance(level, int):
        level = logging.INFO
    return logging.getLevelName(level), level


def _log_file() -> str:
    explicit = os.environ.get("VINET_LOG_FILE")
    if explicit:
        return explicit
    directory = Path(os.environ.get("VINET_LOG_DIR") or DEFAULT_LOG_DIR).expanduser()
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return str(directory / f"vinet-{stamp}-{os.getpid()}.log")


def _handlers(level: int, file_path: str) -> list[logging.Handler]:
    to_file = RotatingFileHandler(file_path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
    to_file.setLevel(level)
    to_file.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))

    to_stderr = logging.StreamHandler()
    to_stderr.setLevel(max(level, logging.WARNING))
    to_stderr.setFormatter(logging.Formatter(STREAM_FORMAT))
    return [to_file, to_stderr]


def configure(level: str | None = None) -> LoggingRuntime:
    """Wire the vinet logger once; later calls return the first runtime.

    level overrides VINET_LOG_LEVEL. VINET_LOG_FILE names the file exactly,
    otherwise a fresh file is created under VINET_LOG_DIR.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level_name, level_no = _parse_level(level or os.environ.get("VINET_LOG_LEVEL"))
    file_path = _log_file()
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level_no)
    logger.propagate = False
    logger.handlers[:] = _handlers(level_no, file_path)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _RUNTIME = LoggingRuntime(level_name, level_no, file_path)
    return _RUNTIME


def get_runtime() -> LoggingRuntime | None:
    return _RUNTIME
