"""Tests for the local token estimator."""

from __future__ import annotations

from bubbletalk.chat.message_model import Attachment, Role
from bubbletalk.codec.history_encoder import archive_placeholder
from bubbletalk.codec.tokens import IMAGE_TOKEN_COST, count_text_tokens, estimate_tokens, is_cjk
from bubbletalk.services.settings import ChatConfig

from tests.helpers import make_message


def test_ascii_system_instruction_costs_a_quarter_token_per_char() -> None:
    estimate = estimate_tokens([], ChatConfig(system_instruction="a" * 400))

    assert estimate.total == 100
    assert estimate.as_payload() == {"total": 100, "system": 100, "history": 0, "images": 0}


def test_cjk_characters_cost_one_token_each() -> None:
    assert count_text_tokens("你好") == 2
    assert count_text_tokens("你好abc") == 3
    assert count_text_tokens("") == 0
    assert is_cjk("㐀") and is_cjk("\U00020000")
    assert not is_cjk("あ")


def test_history_uses_rendered_text() -> None:
    messages = [make_message(1, Role.MODEL, "abcd"), make_message(2, Role.SYSTEM, "ignored notice")]

    estimate = estimate_tokens(messages, ChatConfig())

    assert estimate.history == count_text_tokens("abcd")


def test_images_in_window_cost_flat_rate_and_archived_ones_cost_placeholder(image: Attachment) -> None:
    messages = [
        make_message(1, Role.USER, "", attachments=[image]),
        make_message(2, Role.USER, "", attachments=[image]),
    ]

    estimate = estimate_tokens(messages, ChatConfig(visual_memory_limit=1))

    assert estimate.images == IMAGE_TOKEN_COST
    assert estimate.history == count_text_tokens(archive_placeholder(Role.USER))
    assert estimate.total == estimate.system + estimate.history + estimate.images


def test_estimate_respects_history_limit() -> None:
    messages = [make_message(index, Role.USER, "x" * 8) for index in range(1, 11)]

    estimate = estimate_tokens(messages, ChatConfig(history_limit=3))

    assert estimate.history == 6
