"""Transfer status lifecycle: ``pending`` moves once to ``accepted`` or ``refunded``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Literal, Sequence

from ..chat.message_model import Message, Role, TransferStatus
from .errors import TransferStateError
from .tag_scanner import TransferSignal

__all__ = [
    "TransferTransition",
    "accept_transfer",
    "refund_transfer",
    "resolve_transfer_signals",
    "transfer_notice",
]

LOGGER = logging.getLogger(__name__)

TransitionSource = Literal["signal", "user_action"]


@dataclass(slots=True, frozen=True)
class TransferTransition:
    message_id: str
    status: TransferStatus
    amount: float
    source: TransitionSource = "signal"

    def as_payload(self) -> dict[str, object]:
        return {
            "message_id": self.message_id,
            "status": self.status.value,
            "amount": self.amount,
            "source": self.source,
        }


def resolve_transfer_signals(
    history: Sequence[Message],
    signals: Sequence[TransferSignal],
    counterpart: Role,
) -> tuple[list[Message], list[TransferTransition]]:
    """Apply accept/reject signals to the counterpart's pending transfers.

    Each signal targets the most recent transfer sent by ``counterpart`` that
    is still pending. Signals without a target are dropped. Returns a new
    history list; ``history`` itself is left untouched.
    """

    updated = list(history)
    transitions: list[TransferTransition] = []
    for signal in signals:
        index = _latest_pending_index(updated, counterpart)
        if index is None:
            LOGGER.debug("Dropping %s transfer signal: no pending transfer from %s", signal.kind, counterpart.value)
            continue
        status = TransferStatus.ACCEPTED if signal.kind == "accept" else TransferStatus.REFUNDED
        updated[index], transition = _transition(updated[index], status, source="signal")
        transitions.append(transition)
    return updated, transitions


def accept_transfer(history: Sequence[Message], message_id: str) -> tuple[list[Message], TransferTransition]:
    """Recipient accepts the transfer ``message_id`` from the UI."""

    return _user_action(history, message_id, TransferStatus.ACCEPTED)


def refund_transfer(history: Sequence[Message], message_id: str) -> tuple[list[Message], TransferTransition]:
    """Recipient refunds the transfer ``message_id`` from the UI."""

    return _user_action(history, message_id, TransferStatus.REFUNDED)


def transfer_notice(transition: TransferTransition, *, peer_name: str, timestamp: int) -> Message:
    """Build the system-role notification shown after a transition.

    A model signal settles the user's transfer; a user action settles the
    peer's transfer.
    """

    verb = "accepted" if transition.status is TransferStatus.ACCEPTED else "refunded"
    if transition.source == "user_action":
        content = f"You {verb} {peer_name}'s transfer"
    else:
        content = f"{peer_name} {verb} your transfer"
    return Message(
        id=f"{transition.message_id}_sys",
        role=Role.SYSTEM,
        content=content,
        timestamp=int(timestamp),
    )


def _user_action(
    history: Sequence[Message], message_id: str, status: TransferStatus
) -> tuple[list[Message], TransferTransition]:
    updated = list(history)
    for index, message in enumerate(updated):
        if message.id != message_id:
            continue
        current = message.transfer_status
        if current is None:
            raise TransferStateError(message_id, "message is not a transfer")
        if current.is_terminal:
            raise TransferStateError(message_id, f"transfer already {current.value}")
        updated[index], transition = _transition(message, status, source="user_action")
        return updated, transition
    raise TransferStateError(message_id, "message not found")


def _latest_pending_index(history: Sequence[Message], sender: Role) -> int | None:
    for index in range(len(history) - 1, -1, -1):
        message = history[index]
        if message.role == sender and message.transfer_status is TransferStatus.PENDING:
            return index
    return None


def _transition(
    message: Message, status: TransferStatus, *, source: TransitionSource
) -> tuple[Message, TransferTransition]:
    metadata = message.metadata
    if metadata is None or metadata.transfer_amount is None:
        raise TransferStateError(message.id, "message is not a transfer")
    updated = replace(message, metadata=replace(metadata, transfer_status=status))
    transition = TransferTransition(
        message_id=message.id,
        status=status,
        amount=metadata.transfer_amount,
        source=source,
    )
    return updated, transition
