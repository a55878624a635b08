"""Logging setup shared by the CLI commands and the API server.

Everything lands in one rotating ``lyricpad.log``; the console handler is only
installed for ``lyricpad serve`` so pad and suggestion output on stdout stays
clean. uvicorn is started with ``log_config=None``, so its loggers are wired
to the root handlers here instead of uvicorn's own dict config.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..services.settings import Settings

__all__ = ["setup_logging", "logging_level", "resolve_log_dir", "get_log_path", "LOG_DIR_ENV"]

LOG_DIR_ENV = "LYRICPAD_LOG_DIR"
LOG_FILE_NAME = "lyricpad.log"
_DEFAULT_LOG_DIR = Path.home() / ".lyricpad" / "logs"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_CHATTY_CLIENT_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "httpcore", "openai")
_SERVER_LOGGERS: tuple[str, ...] = ("uvicorn", "uvicorn.error", "uvicorn.access")
# Marks handlers installed here so a reconfigure only replaces its own.
_HANDLER_TAG = "_lyricpad_handler"

_LOG_PATH: Path | None = None


def logging_level(settings: "Settings | None" = None, *, debug: bool = False) -> int:
    """DEBUG when ``--debug`` or ``settings.debug_logging`` asks for it, else INFO."""

    if debug or (settings is not None and settings.debug_logging):
        return logging.DEBUG
    return logging.INFO


def resolve_log_dir(log_dir: Path | str | None = None) -> Path:
    return Path(log_dir or os.environ.get(LOG_DIR_ENV) or _DEFAULT_LOG_DIR).expanduser()


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = False,
    serving: bool = False,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install the LyricPad handlers on the root logger and return the log file path.

    A second call is a no-op unless ``force`` is set, in which case the handlers
    from the previous call are swapped out. Handlers owned by anything else
    (pytest's capture handler, for instance) are left alone.
    """

    global _LOG_PATH
    if _LOG_PATH is not None and not force:
        return _LOG_PATH

    log_path = resolve_log_dir(log_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    root = logging.getLogger()
    _remove_own_handlers(root)

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    _install(root, file_handler, formatter)
    if console:
        _install(root, logging.StreamHandler(), formatter)
    root.setLevel(level)

    logging.captureWarnings(True)
    _quiet_client_loggers(level)
    _route_server_loggers(level, access_log=serving)

    _LOG_PATH = log_path
    return log_path


def get_log_path() -> Path | None:
    """Return the log file of the active configuration, if any."""

    return _LOG_PATH


def _install(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setFormatter(formatter)
    setattr(handler, _HANDLER_TAG, True)
    root.addHandler(handler)


def _remove_own_handlers(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()


def _quiet_client_loggers(level: int) -> None:
    # Request-level chatter from the model and lyrics clients only shows up above INFO.
    quiet_level = max(level, logging.WARNING)
    for name in _CHATTY_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


def _route_server_loggers(level: int, *, access_log: bool) -> None:
    for name in _SERVER_LOGGERS:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
    logging.getLogger("uvicorn").setLevel(level)
    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO if access_log else logging.WARNING)
