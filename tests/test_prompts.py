"""Tests for system instruction composition."""

from __future__ import annotations

from bubbletalk.chat.stickers import StickerLibrary
from bubbletalk.codec import prompts
from bubbletalk.services.settings import ChatConfig


def test_base_instruction_alone_when_nothing_is_enabled() -> None:
    assert prompts.compose_system_instruction(ChatConfig(system_instruction="You are Mika.")) == "You are Mika."


def test_blocks_follow_fixed_order(sticker_library: StickerLibrary) -> None:
    config = ChatConfig(
        system_instruction="Base",
        dialogue_mode="novel",
        enable_stickers=True,
        enable_transfer=True,
    )

    content = prompts.compose_system_instruction(config, sticker_library)

    novel = content.index("[IMMERSIVE/NOVEL DIALOGUE MODE ENABLED]")
    stickers = content.index("[STICKER PROTOCOL ENABLED]")
    transfer = content.index("[TRANSFER PROTOCOL ENABLED]")
    assert content.startswith("Base\n\n")
    assert novel < stickers < transfer


def test_sticker_block_lists_current_stickers(sticker_library: StickerLibrary) -> None:
    block = prompts.sticker_protocol_block(sticker_library)

    assert "- ID: heart, Meaning: sending love" in block
    assert "- ID: wave, Meaning: waving hello" in block
    assert "<STICKER:ID>" in block


def test_sticker_block_skipped_without_stickers() -> None:
    config = ChatConfig(system_instruction="Base", enable_stickers=True)

    assert prompts.sticker_protocol_block([]) == ""
    assert prompts.compose_system_instruction(config, StickerLibrary()) == "Base"


def test_novel_block_names_only_the_two_tags() -> None:
    block = prompts.novel_mode_block()

    assert "<action>" in block and "<say>" in block
    assert "FORBIDDEN TAGS" in block


def test_transfer_block_lists_the_vocabulary() -> None:
    block = prompts.transfer_protocol_block()

    for token in ("<TRANSFER:AMOUNT>", "<ACCEPT_TRANSFER>", "<REJECT_TRANSFER>"):
        assert token in block
