"""Projection of the stored conversation into a provider request.

Truncation happens in a fixed order:

1. system-role messages are dropped (they are UI notices);
2. when ``history_limit`` is positive only the last ``history_limit`` of the
   remaining messages are kept;
3. only the last ``visual_memory_limit`` kept messages send real image
   bytes. Attachments on older messages become an archival placeholder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, NamedTuple, Sequence

from ..chat.message_model import Message, Role, Sticker, TransferStatus
from ..chat.stickers import StickerDirectory, as_sticker_directory
from ..services.settings import ChatConfig
from .prompts import compose_system_instruction
from .provider_shapes import (
    ImagePart,
    PayloadShape,
    ProviderTurn,
    TextPart,
    to_chat_messages,
    to_parts_contents,
)

__all__ = [
    "EncodedRequest",
    "HistoryWindow",
    "archive_placeholder",
    "encode",
    "encode_message",
    "format_amount",
    "render_message_text",
    "select_history",
]

LOGGER = logging.getLogger(__name__)

_STATUS_LABELS = {
    TransferStatus.PENDING: "Pending",
    TransferStatus.ACCEPTED: "Accepted",
    TransferStatus.REFUNDED: "Refunded",
}
_SAY_TAG = "<say>"
_ACTION_TAG = "<action>"


class EncodedRequest(NamedTuple):
    """Composed system instruction plus the replayed turns."""

    system_instruction: str
    messages: List[ProviderTurn]

    def to_payload(self, shape: PayloadShape = "parts") -> Dict[str, Any]:
        if shape == "chat":
            return {"messages": to_chat_messages(self.messages, self.system_instruction)}
        return {"systemInstruction": self.system_instruction, "contents": to_parts_contents(self.messages)}


@dataclass(slots=True, frozen=True)
class HistoryWindow:
    """Messages that will be replayed and where the visual window begins."""

    messages: tuple[Message, ...]
    visual_start: int

    def keeps_images(self, index: int) -> bool:
        return index >= self.visual_start


def select_history(messages: Sequence[Message], config: ChatConfig) -> HistoryWindow:
    retained = [message for message in messages if message.role != Role.SYSTEM]
    limit = config.history_limit
    if limit > 0:
        retained = retained[-limit:]
    visual_start = max(0, len(retained) - config.visual_memory_limit)
    return HistoryWindow(messages=tuple(retained), visual_start=visual_start)


def archive_placeholder(role: Role) -> str:
    """Text that stands in for an image whose bytes were not sent."""

    return f"[System: {Role(role).label} previously sent an image here. Image data archived to save context window.]"


def format_amount(amount: float) -> str:
    value = float(amount)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def render_message_text(message: Message, *, novel: bool) -> str:
    """Return the text a message is replayed as, before attachments."""

    label = Role(message.role).label
    if message.is_sticker:
        description = (message.metadata.sticker_description if message.metadata else None) or "unknown"
        return f"[{label} sent a sticker: {description}]"
    status = message.transfer_status
    if status is not None and message.metadata is not None:
        amount = format_amount(message.metadata.transfer_amount or 0)
        return f"[{label} sent a transfer of {amount}. Status: {_STATUS_LABELS[status]}]"

    text = message.content or ""
    if not text:
        return ""
    if novel:
        if text.lstrip().lower().startswith(_ACTION_TAG if message.is_action else _SAY_TAG):
            return text
        return f"<action>{text}</action>" if message.is_action else f"<say>{text}</say>"
    if message.is_action:
        return f"({text})"
    return text


def encode_message(message: Message, *, novel: bool, keep_images: bool) -> ProviderTurn:
    turn = ProviderTurn(role=Role(message.role), source_id=message.id)
    text = render_message_text(message, novel=novel)
    if text:
        turn.parts.append(TextPart(text))
    if message.is_sticker or message.is_transfer:
        return turn
    for attachment in message.attachments:
        if attachment.kind != "image":
            continue
        if keep_images:
            turn.parts.append(ImagePart(attachment))
        else:
            turn.parts.append(TextPart(archive_placeholder(message.role)))
    return turn


def encode(
    messages: Sequence[Message],
    config: ChatConfig,
    stickers: StickerDirectory | Iterable[Sticker] | None = None,
) -> EncodedRequest:
    """Build the system instruction and provider turns for the next request."""

    directory = as_sticker_directory(stickers)
    window = select_history(messages, config)
    turns = [
        encode_message(message, novel=config.is_novel, keep_images=window.keeps_images(index))
        for index, message in enumerate(window.messages)
    ]
    system_instruction = compose_system_instruction(config, directory)
    LOGGER.debug(
        "Encoded %d/%d messages (visual window starts at %d)",
        len(turns),
        len(messages),
        window.visual_start,
    )
    return EncodedRequest(system_instruction=system_instruction, messages=turns)
