"""Inline control token scanning for raw model text.

The scanner recognises the fixed token vocabulary emitted by the model:

- ``<STICKER:ID>`` and ``<TRANSFER:AMOUNT>`` become standalone segments.
- ``<ACCEPT_TRANSFER>`` / ``<REJECT_TRANSFER>`` are removed from the text and
  reported as transfer signals.
- ``[User ...]`` style role labels that sit alone on a line are dropped.

Everything else, including malformed tokens, stays in plain-text spans. The
scan is a pure function of its input so it can be re-run on every streamed
prefix.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Union

__all__ = [
    "ROLE_ARTIFACT_RE",
    "SIGNAL_RE",
    "TOKEN_RE",
    "ScanResult",
    "StickerToken",
    "TextSpan",
    "TransferSignal",
    "TransferToken",
    "scan",
    "strip_control_signals",
]

ROLE_ARTIFACT_RE = re.compile(r"^[ \t]*\[(?:User|Assistant|System)[^\n]*\][ \t]*$", re.MULTILINE)
SIGNAL_RE = re.compile(r"<(?P<kind>ACCEPT|REJECT)_TRANSFER>")
TOKEN_RE = re.compile(
    r"<STICKER:(?P<sticker>[^>]+)>|<TRANSFER:(?P<amount>\d+(?:\.\d+)?)>"
)

SignalKind = Literal["accept", "reject"]


@dataclass(slots=True, frozen=True)
class TextSpan:
    text: str


@dataclass(slots=True, frozen=True)
class StickerToken:
    sticker_id: str
    raw: str


@dataclass(slots=True, frozen=True)
class TransferToken:
    amount: float
    raw: str


@dataclass(slots=True, frozen=True)
class TransferSignal:
    """An accept/reject control token found in the text."""

    kind: SignalKind
    offset: int


Segment = Union[TextSpan, StickerToken, TransferToken]


@dataclass(slots=True, frozen=True)
class ScanResult:
    """Ordered segments plus the transfer signals removed from the text."""

    segments: tuple[Segment, ...]
    signals: tuple[TransferSignal, ...]
    cleaned_text: str

    @property
    def is_empty(self) -> bool:
        return not self.segments


def strip_control_signals(text: str) -> str:
    """Return ``text`` without accept/reject tokens."""

    return SIGNAL_RE.sub("", text or "")


def scan(text: str) -> ScanResult:
    """Split ``text`` into plain-text spans and sticker/transfer tokens."""

    raw = text or ""
    signals = tuple(
        TransferSignal(kind="accept" if match.group("kind") == "ACCEPT" else "reject", offset=match.start())
        for match in SIGNAL_RE.finditer(raw)
    )
    cleaned = ROLE_ARTIFACT_RE.sub("", raw)
    cleaned = SIGNAL_RE.sub("", cleaned).strip()

    segments: list[Segment] = []
    cursor = 0
    for match in TOKEN_RE.finditer(cleaned):
        _append_text(segments, cleaned[cursor : match.start()])
        sticker_id = match.group("sticker")
        if sticker_id is not None:
            segments.append(StickerToken(sticker_id=sticker_id.strip(), raw=match.group(0)))
        else:
            segments.append(TransferToken(amount=float(match.group("amount")), raw=match.group(0)))
        cursor = match.end()
    _append_text(segments, cleaned[cursor:])
    return ScanResult(segments=tuple(segments), signals=signals, cleaned_text=cleaned)


def _append_text(segments: list[Segment], chunk: str) -> None:
    stripped = chunk.strip()
    if stripped:
        segments.append(TextSpan(text=stripped))
