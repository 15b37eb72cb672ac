"""Local token estimation for provider requests."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..chat.message_model import Message, Sticker
from ..chat.stickers import StickerDirectory
from ..services.settings import ChatConfig
from .history_encoder import EncodedRequest, encode
from .provider_shapes import ImagePart, TextPart

__all__ = [
    "CHARS_PER_TOKEN",
    "IMAGE_TOKEN_COST",
    "TokenEstimate",
    "count_text_tokens",
    "estimate_request_tokens",
    "estimate_tokens",
    "is_cjk",
]

# Average non-CJK characters per token.
CHARS_PER_TOKEN = 4
# Flat cost charged per image sent with real bytes.
IMAGE_TOKEN_COST = 258

_CJK_RANGES: tuple[tuple[int, int], ...] = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x20000, 0x2A6DF),
)


@dataclass(slots=True, frozen=True)
class TokenEstimate:
    """Estimated request cost split by where the tokens come from."""

    total: int
    system: int
    history: int
    images: int

    def as_payload(self) -> dict[str, int]:
        return {
            "total": self.total,
            "system": self.system,
            "history": self.history,
            "images": self.images,
        }


def is_cjk(char: str) -> bool:
    code = ord(char)
    return any(start <= code <= end for start, end in _CJK_RANGES)


def count_text_tokens(text: str) -> int:
    """One token per CJK code point plus one per four other characters."""

    if not text:
        return 0
    cjk = sum(1 for char in text if is_cjk(char))
    other = len(text) - cjk
    return cjk + math.ceil(other / CHARS_PER_TOKEN)


def estimate_request_tokens(request: EncodedRequest) -> TokenEstimate:
    system = count_text_tokens(request.system_instruction)
    history = 0
    images = 0
    for turn in request.messages:
        for part in turn.parts:
            if isinstance(part, TextPart):
                history += count_text_tokens(part.text)
            elif isinstance(part, ImagePart):
                images += IMAGE_TOKEN_COST
    return TokenEstimate(total=system + history + images, system=system, history=history, images=images)


def estimate_tokens(
    messages: Sequence[Message],
    config: ChatConfig,
    stickers: StickerDirectory | Iterable[Sticker] | None = None,
) -> TokenEstimate:
    """Estimate what :func:`encode` would send for the same inputs."""

    return estimate_request_tokens(encode(messages, config, stickers))
