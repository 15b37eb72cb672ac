"""Incremental preview of a streamed model response."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..chat.message_model import Message, Role, Sticker
from ..chat.stickers import StickerDirectory, as_sticker_directory
from .dialogue import DecodeResult, decode, decode_turn
from .mode_splitter import DialogueMode

__all__ = ["StreamingDecoder"]

LOGGER = logging.getLogger(__name__)


class StreamingDecoder:
    """Accumulates streamed deltas and re-decodes the growing prefix.

    Every preview is a full decode of the text received so far, so ids and
    timestamps of the bubbles are stable across previews and match what
    :meth:`finish` returns for the complete text. A preview is recomputed
    only when the accumulated text changed.
    """

    def __init__(
        self,
        base_timestamp: int,
        mode: DialogueMode = "normal",
        stickers: StickerDirectory | Iterable[Sticker] | None = None,
        *,
        role: Role = Role.MODEL,
    ) -> None:
        self.base_timestamp = int(base_timestamp)
        self.mode = mode
        self.role = Role(role)
        self._stickers = as_sticker_directory(stickers)
        self._chunks: list[str] = []
        self._text = ""
        self._preview: list[Message] = []
        self._preview_text: str | None = None
        self._finished = False

    @property
    def text(self) -> str:
        return self._text

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, delta: str | None) -> list[Message]:
        """Append ``delta`` and return the preview for the accumulated text."""

        if self._finished:
            raise RuntimeError("StreamingDecoder already finished")
        if delta:
            self._chunks.append(delta)
            self._text = "".join(self._chunks)
        return self.preview()

    def preview(self) -> list[Message]:
        if self._preview_text != self._text:
            self._preview = decode(
                self._text,
                self.base_timestamp,
                self.mode,
                stickers=self._stickers,
                role=self.role,
            )
            self._preview_text = self._text
        return list(self._preview)

    def finish(self, history: Sequence[Message] = ()) -> DecodeResult:
        """Decode the complete text and apply its transfer signals to ``history``."""

        self._finished = True
        result = decode_turn(
            self._text,
            self.base_timestamp,
            self.mode,
            stickers=self._stickers,
            history=history,
            role=self.role,
        )
        LOGGER.debug(
            "Stream finished: %d chars -> %d messages (%d transfer transitions)",
            len(self._text),
            len(result.messages),
            len(result.transitions),
        )
        return result
