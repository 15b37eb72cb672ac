"""Speech/narration segmentation for plain-text spans."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

__all__ = [
    "DialogueMode",
    "Draft",
    "NOVEL_TAG_RE",
    "split_normal",
    "split_novel",
    "split_segment",
]

DialogueMode = Literal["normal", "novel"]

_OPEN_BRACKETS = "(（"
_CLOSE_BRACKETS = ")）"
_BRACKETS = _OPEN_BRACKETS + _CLOSE_BRACKETS

_CLOSE_THEN_OPEN_RE = re.compile(r"([)）])\s*([(（])")
_CLOSE_THEN_TEXT_RE = re.compile(r"([)）])(?=[^(（\r\n])")
_TEXT_THEN_OPEN_RE = re.compile(r"([^)）\r\n])(?=[(（])")

# A tag closes at its matching end tag, at the next "<", or at end of text.
NOVEL_TAG_RE = re.compile(r"<(action|say)>(.*?)(?:</\1>|(?=<)|\Z)", re.IGNORECASE | re.DOTALL)


@dataclass(slots=True, frozen=True)
class Draft:
    """A single speech or narration line awaiting message assembly."""

    text: str
    is_action: bool = False


def split_segment(text: str, mode: DialogueMode = "normal") -> list[Draft]:
    """Split ``text`` using the grammar selected by ``mode``."""

    if mode == "novel":
        return split_novel(text)
    return split_normal(text)


def split_normal(text: str) -> list[Draft]:
    """Bracket heuristic: one line per bracketed aside or run of speech."""

    drafts: list[Draft] = []
    for raw_line in (text or "").splitlines():
        if not _is_flat(raw_line):
            # Nested or unbalanced brackets stay one line of speech.
            if raw_line.strip():
                drafts.append(Draft(text=raw_line.strip()))
            continue
        processed = _CLOSE_THEN_OPEN_RE.sub(r"\1\n\2", raw_line)
        processed = _CLOSE_THEN_TEXT_RE.sub(r"\1\n", processed)
        processed = _TEXT_THEN_OPEN_RE.sub(r"\1\n", processed)
        for line in processed.splitlines():
            trimmed = line.strip()
            if not trimmed:
                continue
            if _is_bracketed_line(trimmed):
                inner = trimmed[1:-1].strip()
                if inner:
                    drafts.append(Draft(text=inner, is_action=True))
                continue
            drafts.append(Draft(text=trimmed))
    return drafts


def split_novel(text: str) -> list[Draft]:
    """Explicit ``<action>``/``<say>`` grammar with lenient closing."""

    source = text or ""
    drafts: list[Draft] = []
    last_index = 0
    for match in NOVEL_TAG_RE.finditer(source):
        _append_untagged(drafts, source[last_index : match.start()])
        content = match.group(2).strip()
        if content:
            drafts.append(Draft(text=content, is_action=match.group(1).lower() == "action"))
        last_index = match.end()
    _append_untagged(drafts, source[last_index:])

    if not drafts and source.strip():
        drafts.append(Draft(text=source.strip()))
    return drafts


def _append_untagged(drafts: list[Draft], chunk: str) -> None:
    stripped = chunk.strip()
    if stripped:
        drafts.append(Draft(text=stripped))


def _is_bracketed_line(line: str) -> bool:
    if len(line) < 2 or line[0] not in _OPEN_BRACKETS or line[-1] not in _CLOSE_BRACKETS:
        return False
    return not any(char in _BRACKETS for char in line[1:-1])


def _is_flat(line: str) -> bool:
    depth = 0
    for char in line:
        if char in _OPEN_BRACKETS:
            depth += 1
            if depth > 1:
                return False
        elif char in _CLOSE_BRACKETS:
            depth -= 1
            if depth < 0:
                return False
    return depth == 0
