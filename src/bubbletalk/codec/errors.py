"""Error types raised by the dialogue codec for caller misuse."""

from __future__ import annotations


class TransferStateError(ValueError):
    """Raised when a transfer transition is requested on an invalid target."""

    def __init__(self, message_id: str, reason: str) -> None:
        super().__init__(f"Cannot update transfer {message_id!r}: {reason}")
        self.message_id = message_id
        self.reason = reason


__all__ = ["TransferStateError"]
