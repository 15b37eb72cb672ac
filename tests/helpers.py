"""Shared test helpers for building conversations."""

from __future__ import annotations

from bubbletalk.chat.message_model import Attachment, Message, MessageMetadata, Role, TransferStatus


def make_message(
    index: int,
    role: Role = Role.USER,
    content: str | None = None,
    *,
    attachments: list[Attachment] | None = None,
    metadata: MessageMetadata | None = None,
) -> Message:
    """Message ``m<index>`` at timestamp ``index``; text defaults to ``message <index>``."""

    return Message(
        id=f"m{index}",
        role=role,
        content=f"message {index}" if content is None else content,
        timestamp=index,
        attachments=list(attachments or []),
        metadata=metadata,
    )


def transfer_message(
    index: int,
    role: Role,
    amount: float,
    status: TransferStatus = TransferStatus.PENDING,
) -> Message:
    return make_message(
        index,
        role,
        "",
        metadata=MessageMetadata(transfer_amount=amount, transfer_status=status),
    )


def sticker_message(index: int, role: Role, description: str | None, attachment: Attachment | None = None) -> Message:
    return make_message(
        index,
        role,
        "",
        attachments=[attachment] if attachment else None,
        metadata=MessageMetadata(is_sticker=True, sticker_description=description),
    )


def conversation(count: int) -> list[Message]:
    """Alternating user/model messages ``m1..m<count>``."""

    return [make_message(index, Role.USER if index % 2 else Role.MODEL) for index in range(1, count + 1)]
