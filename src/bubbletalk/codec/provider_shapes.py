"""Provider-facing request shapes.

``parts`` is the Gemini-style ``contents`` list (``role`` + ``parts``).
``chat`` is the OpenAI-style message list (``role`` + string or mixed
content array). Both carry the same text and image content.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Union

from openai.types.chat import ChatCompletionMessageParam

from ..chat.message_model import Attachment, Role

__all__ = [
    "ImagePart",
    "PayloadShape",
    "ProviderTurn",
    "TextPart",
    "to_chat_message",
    "to_chat_messages",
    "to_parts_contents",
    "to_parts_turn",
]

PayloadShape = Literal["parts", "chat"]


@dataclass(slots=True, frozen=True)
class TextPart:
    text: str


@dataclass(slots=True, frozen=True)
class ImagePart:
    attachment: Attachment


Part = Union[TextPart, ImagePart]


@dataclass(slots=True)
class ProviderTurn:
    """One replayed message: a role plus ordered text/image parts."""

    role: Role
    parts: List[Part] = field(default_factory=list)
    source_id: str | None = None

    @property
    def text_parts(self) -> list[TextPart]:
        return [part for part in self.parts if isinstance(part, TextPart)]

    @property
    def image_parts(self) -> list[ImagePart]:
        return [part for part in self.parts if isinstance(part, ImagePart)]


def to_parts_turn(turn: ProviderTurn) -> Dict[str, Any]:
    parts: list[Dict[str, Any]] = []
    for part in turn.parts:
        if isinstance(part, TextPart):
            parts.append({"text": part.text})
        else:
            parts.append(
                {"inlineData": {"mimeType": part.attachment.mime_type, "data": part.attachment.as_base64()}}
            )
    return {"role": "user" if turn.role == Role.USER else "model", "parts": parts}


def to_parts_contents(turns: List[ProviderTurn]) -> List[Dict[str, Any]]:
    return [to_parts_turn(turn) for turn in turns]


def to_chat_message(turn: ProviderTurn) -> ChatCompletionMessageParam:
    content: list[Dict[str, Any]] = []
    for part in turn.parts:
        if isinstance(part, TextPart):
            content.append({"type": "text", "text": part.text})
        else:
            content.append({"type": "image_url", "image_url": {"url": part.attachment.as_data_url()}})
    role = "user" if turn.role == Role.USER else "assistant"
    return {"role": role, "content": _collapse(content)}  # type: ignore[return-value]


def to_chat_messages(turns: List[ProviderTurn], system_instruction: str = "") -> List[ChatCompletionMessageParam]:
    messages: List[ChatCompletionMessageParam] = []
    if system_instruction:
        messages.append({"role": "system", "content": system_instruction})
    messages.extend(to_chat_message(turn) for turn in turns)
    return messages


def _collapse(content: list[Dict[str, Any]]) -> Union[str, list[Dict[str, Any]]]:
    if not content:
        return ""
    if len(content) == 1 and content[0]["type"] == "text":
        return content[0]["text"]
    return content
