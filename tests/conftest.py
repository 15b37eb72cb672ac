"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from bubbletalk.chat.message_model import Attachment, Sticker
from bubbletalk.chat.stickers import StickerLibrary
from bubbletalk.services import telemetry


@pytest.fixture
def heart_sticker() -> Sticker:
    return Sticker(id="heart", data=b"\x89PNG-heart", description="sending love")


@pytest.fixture
def sticker_library(heart_sticker: Sticker) -> StickerLibrary:
    return StickerLibrary([heart_sticker, Sticker(id="wave", data=b"\x89PNG-wave", description="waving hello")])


@pytest.fixture
def image() -> Attachment:
    return Attachment(data=b"\x89PNG-photo", mime_type="image/png")


@pytest.fixture(autouse=True)
def _isolate_telemetry(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(telemetry, "_EVENT_LISTENERS", {})


@pytest.fixture(autouse=True)
def _clear_bubbletalk_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "BUBBLETALK_PROVIDER",
        "BUBBLETALK_MODEL",
        "BUBBLETALK_API_KEY",
        "BUBBLETALK_DIALOGUE_MODE",
        "BUBBLETALK_HISTORY_LIMIT",
        "BUBBLETALK_VISUAL_MEMORY_LIMIT",
        "BUBBLETALK_ENABLE_STICKERS",
        "BUBBLETALK_ENABLE_TRANSFER",
        "BUBBLETALK_TEMPERATURE",
        "BUBBLETALK_LOG_LEVEL",
        "BUBBLETALK_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
