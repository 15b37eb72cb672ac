"""Decode model/user text into chat bubbles and encode history back out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..chat.message_model import Attachment, Message, Role, Sticker
from ..chat.stickers import StickerDirectory, StickerLibrary, as_sticker_directory
from ..services import telemetry
from ..services.settings import ChatConfig
from .assembler import MessageAssembler
from .history_encoder import EncodedRequest, encode
from .mode_splitter import DialogueMode, Draft, split_normal, split_segment
from .tag_scanner import ROLE_ARTIFACT_RE, StickerToken, TextSpan, TransferToken, scan, strip_control_signals
from .tokens import TokenEstimate, estimate_tokens
from .transfers import TransferTransition, resolve_transfer_signals

__all__ = [
    "DecodeResult",
    "DialogueCodec",
    "decode",
    "decode_turn",
    "decode_user_turn",
    "encode",
    "estimate_tokens",
    "user_sticker_message",
    "user_transfer_message",
]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class DecodeResult:
    """Messages produced by one turn plus the transfer side effects."""

    messages: list[Message]
    history: list[Message] = field(default_factory=list)
    transitions: list[TransferTransition] = field(default_factory=list)
    degraded: bool = False


def decode(
    raw_text: str,
    base_timestamp: int,
    mode: DialogueMode = "normal",
    *,
    stickers: StickerDirectory | Iterable[Sticker] | None = None,
    role: Role = Role.MODEL,
) -> list[Message]:
    """Turn one raw model response into ordered chat messages."""

    return _decode(raw_text, base_timestamp, mode, stickers=stickers, role=role)[0]


def decode_turn(
    raw_text: str,
    base_timestamp: int,
    mode: DialogueMode = "normal",
    *,
    stickers: StickerDirectory | Iterable[Sticker] | None = None,
    history: Sequence[Message] = (),
    role: Role = Role.MODEL,
) -> DecodeResult:
    """Decode a turn and apply its accept/reject signals to ``history``."""

    messages, signals, degraded = _decode(raw_text, base_timestamp, mode, stickers=stickers, role=role)
    updated, transitions = resolve_transfer_signals(history, signals, Role(role).counterpart)
    return DecodeResult(messages=messages, history=updated, transitions=transitions, degraded=degraded)


def decode_user_turn(
    text: str,
    base_timestamp: int,
    mode: DialogueMode = "normal",
    *,
    attachments: Sequence[Attachment] = (),
) -> list[Message]:
    """Split what the user typed; messages with attachments stay whole."""

    assembler = MessageAssembler(base_timestamp, Role.USER)
    trimmed = (text or "").strip()
    if attachments:
        assembler.add_text(trimmed, attachments=attachments)
        return assembler.finish()
    if mode == "novel":
        drafts = [Draft(trimmed)] if trimmed else []
    else:
        drafts = split_normal(trimmed)
    assembler.add_drafts(drafts)
    return assembler.finish(trimmed)


def user_sticker_message(sticker: Sticker, base_timestamp: int) -> Message:
    """Message for a sticker the user picked from the panel."""

    return MessageAssembler(base_timestamp, Role.USER).add_sticker_image(sticker)


def user_transfer_message(amount: float, base_timestamp: int) -> Message:
    """Pending transfer the user sends to the model."""

    if amount <= 0:
        raise ValueError(f"Transfer amount must be positive, got {amount!r}")
    return MessageAssembler(base_timestamp, Role.USER).add_transfer(amount)


def _decode(
    raw_text: str,
    base_timestamp: int,
    mode: DialogueMode,
    *,
    stickers: StickerDirectory | Iterable[Sticker] | None,
    role: Role,
):
    result = scan(raw_text)
    assembler = MessageAssembler(base_timestamp, role, stickers=stickers)
    for segment in result.segments:
        if isinstance(segment, StickerToken):
            assembler.add_sticker(segment.sticker_id)
        elif isinstance(segment, TransferToken):
            assembler.add_transfer(segment.amount)
        elif isinstance(segment, TextSpan):
            assembler.add_drafts(split_segment(segment.text, mode))
    # Role labels and transfer signals are never content, even in the fallback.
    messages = assembler.finish(ROLE_ARTIFACT_RE.sub("", strip_control_signals(raw_text)))
    return messages, result.signals, assembler.degraded


class DialogueCodec:
    """Caller-side facade binding a config and sticker directory.

    Unlike the module functions it reports parse degradation and transfer
    transitions through logging and :mod:`bubbletalk.services.telemetry`.
    """

    def __init__(
        self,
        config: ChatConfig | None = None,
        stickers: StickerDirectory | Iterable[Sticker] | None = None,
    ) -> None:
        self.config = config or ChatConfig()
        self.stickers: StickerDirectory = as_sticker_directory(stickers) if stickers is not None else StickerLibrary()

    def decode_turn(
        self,
        raw_text: str,
        base_timestamp: int,
        *,
        history: Sequence[Message] = (),
        role: Role = Role.MODEL,
    ) -> DecodeResult:
        mode = self.config.dialogue_mode
        result = decode_turn(
            raw_text,
            base_timestamp,
            mode,
            stickers=self.stickers,
            history=history,
            role=role,
        )
        if result.degraded:
            LOGGER.warning(
                "Dialogue parse degraded at %s (mode=%s); kept %d chars verbatim",
                base_timestamp,
                mode,
                len(result.messages[0].content) if result.messages else 0,
            )
            telemetry.emit(
                telemetry.PARSE_DEGRADED_EVENT,
                {
                    "base_timestamp": base_timestamp,
                    "mode": mode,
                    "role": Role(role).value,
                    "chars": len(raw_text or ""),
                },
            )
        for transition in result.transitions:
            telemetry.emit(telemetry.TRANSFER_TRANSITION_EVENT, transition.as_payload())
        return result

    def decode_user_turn(
        self,
        text: str,
        base_timestamp: int,
        *,
        attachments: Sequence[Attachment] = (),
    ) -> list[Message]:
        return decode_user_turn(text, base_timestamp, self.config.dialogue_mode, attachments=attachments)

    def encode(self, messages: Sequence[Message]) -> EncodedRequest:
        return encode(messages, self.config, self.stickers)

    def estimate_tokens(self, messages: Sequence[Message]) -> TokenEstimate:
        return estimate_tokens(messages, self.config, self.stickers)
