"""Dialogue codec: raw model text to chat bubbles and history back to requests."""

from .dialogue import (
    DecodeResult,
    DialogueCodec,
    decode,
    decode_turn,
    decode_user_turn,
    user_sticker_message,
    user_transfer_message,
)
from .errors import TransferStateError
from .history_encoder import EncodedRequest, encode
from .streaming import StreamingDecoder
from .tokens import TokenEstimate, count_text_tokens, estimate_tokens
from .transfers import TransferTransition, accept_transfer, refund_transfer, transfer_notice

__all__ = [
    "DecodeResult",
    "DialogueCodec",
    "EncodedRequest",
    "StreamingDecoder",
    "TokenEstimate",
    "TransferStateError",
    "TransferTransition",
    "accept_transfer",
    "count_text_tokens",
    "decode",
    "decode_turn",
    "decode_user_turn",
    "encode",
    "estimate_tokens",
    "refund_transfer",
    "transfer_notice",
    "user_sticker_message",
    "user_transfer_message",
]
