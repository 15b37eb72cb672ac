"""Logging setup for bubbletalk processes and CLI helpers."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["CODEC_LOGGER_NAME", "get_log_path", "resolve_level", "setup_logging"]

CODEC_LOGGER_NAME = "bubbletalk.codec"
_DEFAULT_LOG_DIR = Path.home() / ".bubbletalk" / "logs"
_LOG_FILE_NAME = "bubbletalk.log"
_QUIET_LOGGERS: tuple[str, ...] = ("asyncio", "openai")
_LOG_PATH: Path | None = None


def resolve_level(value: str | int | None, default: int = logging.INFO) -> int:
    """Map ``"debug"``/``"20"``/``logging.DEBUG`` style values to a level."""

    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else default


def setup_logging(
    level: str | int | None = None,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    file: bool = True,
    codec_debug: bool = False,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path | None:
    """Configure root logging; returns the log file path when file logging is on.

    ``level`` falls back to ``BUBBLETALK_LOG_LEVEL``. ``codec_debug`` lowers
    only the codec loggers to DEBUG so scanner/encoder decisions show up
    without flooding the rest of the output.
    """

    global _LOG_PATH
    root = logging.getLogger()
    if root.handlers and not force:
        return _LOG_PATH

    resolved = resolve_level(level if level is not None else os.environ.get("BUBBLETALK_LOG_LEVEL"))
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []
    log_path: Path | None = None
    if file:
        target_dir = Path(log_dir or os.environ.get("BUBBLETALK_LOG_DIR") or _DEFAULT_LOG_DIR).expanduser()
        target_dir.mkdir(parents=True, exist_ok=True)
        log_path = target_dir / _LOG_FILE_NAME
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        )
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=resolved, handlers=handlers, force=True)
    logging.captureWarnings(True)
    quiet_level = max(logging.WARNING, resolved)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
    logging.getLogger(CODEC_LOGGER_NAME).setLevel(logging.DEBUG if codec_debug else logging.NOTSET)

    _LOG_PATH = log_path
    return log_path


def get_log_path() -> Path | None:
    """Return the currently configured log file if available."""

    return _LOG_PATH
