"""Chat message, attachment, and sticker data models."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class Role(str, Enum):
    """Author of a chat bubble."""

    USER = "user"
    MODEL = "model"
    SYSTEM = "system"

    @property
    def label(self) -> str:
        """Return the sender label used when the message is replayed as text."""

        return "User" if self is Role.USER else "Assistant"

    @property
    def counterpart(self) -> "Role":
        return Role.MODEL if self is Role.USER else Role.USER


class TransferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REFUNDED = "refunded"

    @property
    def is_terminal(self) -> bool:
        return self is not TransferStatus.PENDING


def encode_bytes(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_bytes(value: Any) -> tuple[bytes, str | None]:
    """Decode base64 or ``data:`` URL payloads, returning ``(bytes, mime)``."""

    if isinstance(value, (bytes, bytearray)):
        return bytes(value), None
    text = str(value or "")
    mime: str | None = None
    if text.startswith("data:") and "," in text:
        header, text = text.split(",", 1)
        mime = header[5:].split(";", 1)[0] or None
    try:
        return base64.b64decode(text, validate=False), mime
    except (binascii.Error, ValueError):
        return b"", mime


@dataclass(slots=True)
class Attachment:
    """Image payload owned by exactly one message."""

    data: bytes
    mime_type: str = "image/png"
    kind: str = "image"

    @property
    def size(self) -> int:
        return len(self.data)

    def as_base64(self) -> str:
        return encode_bytes(self.data)

    def as_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.as_base64()}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "mime_type": self.mime_type, "data": self.as_base64()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Attachment":
        data, url_mime = decode_bytes(payload.get("data"))
        mime = payload.get("mime_type") or payload.get("mimeType") or url_mime or "image/png"
        kind = payload.get("kind") or payload.get("type") or "image"
        return cls(data=data, mime_type=str(mime), kind=str(kind))


@dataclass(slots=True)
class Sticker:
    """Profile-level sticker referenced by id from ``<STICKER:ID>`` tokens."""

    id: str
    data: bytes
    description: str
    mime_type: str = "image/png"

    def to_attachment(self) -> Attachment:
        return Attachment(data=self.data, mime_type=self.mime_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "data": encode_bytes(self.data),
            "description": self.description,
            "mime_type": self.mime_type,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Sticker":
        data, url_mime = decode_bytes(payload.get("data"))
        mime = payload.get("mime_type") or payload.get("mimeType") or url_mime or "image/png"
        return cls(
            id=str(payload.get("id", "")),
            data=data,
            description=str(payload.get("description", "")),
            mime_type=str(mime),
        )


@dataclass(slots=True)
class MessageMetadata:
    """Optional flags describing which kind of bubble a message is.

    A message is a sticker, a transfer, or plain text (optionally narration);
    never more than one of these.
    """

    is_action: bool = False
    is_sticker: bool = False
    sticker_description: Optional[str] = None
    transfer_amount: Optional[float] = None
    transfer_status: Optional[TransferStatus] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_transfer(self) -> bool:
        return self.transfer_amount is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.is_action:
            payload["is_action"] = True
        if self.is_sticker:
            payload["is_sticker"] = True
            payload["sticker_description"] = self.sticker_description
        if self.is_transfer:
            payload["transfer_amount"] = self.transfer_amount
            status = self.transfer_status or TransferStatus.PENDING
            payload["transfer_status"] = status.value
        if self.extra:
            payload["extra"] = dict(self.extra)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "MessageMetadata":
        amount = _first(payload, "transfer_amount", "transferAmount")
        status = _first(payload, "transfer_status", "transferStatus")
        known = {
            "is_action",
            "isAction",
            "is_sticker",
            "isSticker",
            "sticker_description",
            "stickerDescription",
            "transfer_amount",
            "transferAmount",
            "transfer_status",
            "transferStatus",
            "extra",
        }
        extra = dict(payload.get("extra") or {})
        extra.update({key: value for key, value in payload.items() if key not in known})
        return cls(
            is_action=bool(_first(payload, "is_action", "isAction")),
            is_sticker=bool(_first(payload, "is_sticker", "isSticker")),
            sticker_description=_first(payload, "sticker_description", "stickerDescription"),
            transfer_amount=float(amount) if amount is not None else None,
            transfer_status=_parse_status(status) if amount is not None else None,
            extra=extra,
        )


@dataclass(slots=True)
class Message:
    """Represents a single chat bubble.

    ``timestamp`` is the ordering key; rendering order is ascending timestamp.
    """

    id: str
    role: Role
    content: str
    timestamp: int
    attachments: list[Attachment] = field(default_factory=list)
    metadata: Optional[MessageMetadata] = None

    @property
    def is_action(self) -> bool:
        return bool(self.metadata and self.metadata.is_action)

    @property
    def is_sticker(self) -> bool:
        return bool(self.metadata and self.metadata.is_sticker)

    @property
    def is_transfer(self) -> bool:
        return bool(self.metadata and self.metadata.is_transfer)

    @property
    def transfer_status(self) -> TransferStatus | None:
        metadata = self.metadata
        if metadata is None or not metadata.is_transfer:
            return None
        return metadata.transfer_status or TransferStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the message for persistence."""

        payload: Dict[str, Any] = {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp,
        }
        if self.attachments:
            payload["attachments"] = [attachment.to_dict() for attachment in self.attachments]
        if self.metadata is not None:
            payload["metadata"] = self.metadata.to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Message":
        attachments = [
            Attachment.from_dict(item)
            for item in payload.get("attachments") or ()
            if isinstance(item, Mapping)
        ]
        metadata_payload = payload.get("metadata")
        metadata = MessageMetadata.from_dict(metadata_payload) if isinstance(metadata_payload, Mapping) else None
        return cls(
            id=str(payload.get("id", "")),
            role=Role(str(payload.get("role", Role.USER.value))),
            content=str(payload.get("content") or ""),
            timestamp=int(payload.get("timestamp", 0)),
            attachments=attachments,
            metadata=metadata,
        )


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _parse_status(value: Any) -> TransferStatus:
    try:
        return TransferStatus(str(value or TransferStatus.PENDING.value).lower())
    except ValueError:
        return TransferStatus.PENDING


__all__ = [
    "Attachment",
    "Message",
    "MessageMetadata",
    "Role",
    "Sticker",
    "TransferStatus",
    "decode_bytes",
    "encode_bytes",
]
