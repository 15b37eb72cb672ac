"""Tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from bubbletalk.utils import logging as logging_utils


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    codec_level = logging.getLogger(logging_utils.CODEC_LOGGER_NAME).level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger(logging_utils.CODEC_LOGGER_NAME).setLevel(codec_level)
    logging.captureWarnings(False)


def test_resolve_level_accepts_names_and_numbers() -> None:
    assert logging_utils.resolve_level("debug") == logging.DEBUG
    assert logging_utils.resolve_level("30") == logging.WARNING
    assert logging_utils.resolve_level(None, logging.ERROR) == logging.ERROR
    assert logging_utils.resolve_level("nonsense") == logging.INFO


def test_setup_logging_writes_to_log_dir(tmp_path: Path, restore_root_logger: None) -> None:
    log_path = logging_utils.setup_logging("info", log_dir=tmp_path, console=False, force=True)

    assert log_path == tmp_path / "bubbletalk.log"
    assert logging_utils.get_log_path() == log_path
    logging.getLogger("bubbletalk.test").info("hello log")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello log" in log_path.read_text(encoding="utf-8")


def test_codec_debug_lowers_only_codec_logger(tmp_path: Path, restore_root_logger: None) -> None:
    logging_utils.setup_logging("warning", file=False, console=True, codec_debug=True, force=True)

    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("bubbletalk.codec").level == logging.DEBUG
    assert logging.getLogger("openai").level == logging.WARNING


def test_env_level_is_used_when_level_is_omitted(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, restore_root_logger: None
) -> None:
    monkeypatch.setenv("BUBBLETALK_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("BUBBLETALK_LOG_DIR", str(tmp_path / "logs"))

    log_path = logging_utils.setup_logging(console=False, force=True)

    assert logging.getLogger().level == logging.ERROR
    assert log_path == tmp_path / "logs" / "bubbletalk.log"
