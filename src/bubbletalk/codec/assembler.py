"""Message assembly for a single model or user turn."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..chat.message_model import Attachment, Message, MessageMetadata, Role, Sticker, TransferStatus
from ..chat.stickers import StickerDirectory, as_sticker_directory
from .mode_splitter import Draft

__all__ = ["MessageAssembler", "STICKER_EXPIRED_CAPTION", "batch_message_id"]

LOGGER = logging.getLogger(__name__)

STICKER_EXPIRED_CAPTION = "[Sticker expired]"


def batch_message_id(base_timestamp: int, index: int) -> str:
    """Return the deterministic id of the ``index``-th message in a batch."""

    return f"{base_timestamp}_{index}"


class MessageAssembler:
    """Turns drafts and tokens from one turn into ordered :class:`Message` rows.

    Every produced message gets ``timestamp = base_timestamp + k + 1`` where
    ``k`` counts messages already produced in the batch, and an id derived
    from ``(base_timestamp, k)``. Re-running the same batch yields the same
    ids.
    """

    def __init__(
        self,
        base_timestamp: int,
        role: Role = Role.MODEL,
        *,
        stickers: StickerDirectory | Iterable[Sticker] | None = None,
    ) -> None:
        self._base = int(base_timestamp)
        self._role = Role(role)
        self._stickers = as_sticker_directory(stickers)
        self._messages: list[Message] = []
        self.degraded = False

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def add_sticker(self, sticker_id: str) -> Message:
        sticker = self._stickers.get(sticker_id)
        if sticker is None:
            LOGGER.debug("Sticker %s is not in the directory; using placeholder caption", sticker_id)
            return self._emit(STICKER_EXPIRED_CAPTION)
        return self.add_sticker_image(sticker)

    def add_sticker_image(self, sticker: Sticker) -> Message:
        return self._emit(
            "",
            attachments=[sticker.to_attachment()],
            metadata=MessageMetadata(is_sticker=True, sticker_description=sticker.description),
        )

    def add_transfer(self, amount: float) -> Message:
        return self._emit(
            "",
            metadata=MessageMetadata(transfer_amount=float(amount), transfer_status=TransferStatus.PENDING),
        )

    def add_drafts(self, drafts: Sequence[Draft]) -> list[Message]:
        produced: list[Message] = []
        for draft in drafts:
            if not draft.text:
                continue
            metadata = MessageMetadata(is_action=True) if draft.is_action else None
            produced.append(self._emit(draft.text, metadata=metadata))
        return produced

    def add_text(self, text: str, *, attachments: Sequence[Attachment] = ()) -> Message:
        return self._emit(text, attachments=list(attachments))

    def finish(self, source_text: str = "") -> list[Message]:
        """Return the batch, falling back to the raw text if nothing survived."""

        fallback = (source_text or "").strip()
        if not self._messages and fallback:
            self.degraded = True
            self._emit(fallback)
        return list(self._messages)

    def _emit(
        self,
        content: str,
        *,
        attachments: list[Attachment] | None = None,
        metadata: MessageMetadata | None = None,
    ) -> Message:
        index = len(self._messages)
        message = Message(
            id=batch_message_id(self._base, index),
            role=self._role,
            content=content,
            timestamp=self._base + index + 1,
            attachments=attachments or [],
            metadata=metadata,
        )
        self._messages.append(message)
        return message
