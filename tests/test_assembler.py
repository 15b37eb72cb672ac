"""Tests for batch message assembly."""

from __future__ import annotations

from bubbletalk.chat.message_model import Role, Sticker, TransferStatus
from bubbletalk.chat.stickers import StickerLibrary
from bubbletalk.codec.assembler import STICKER_EXPIRED_CAPTION, MessageAssembler, batch_message_id
from bubbletalk.codec.mode_splitter import Draft


def test_ids_and_timestamps_follow_batch_counter() -> None:
    assembler = MessageAssembler(1_000)

    messages = assembler.add_drafts([Draft("hello"), Draft("waves", is_action=True), Draft("bye")])

    assert [message.id for message in messages] == ["1000_0", "1000_1", "1000_2"]
    assert [message.timestamp for message in messages] == [1001, 1002, 1003]
    assert [message.is_action for message in messages] == [False, True, False]
    assert all(message.role is Role.MODEL for message in messages)
    assert batch_message_id(1_000, 2) == "1000_2"


def test_empty_drafts_are_skipped_without_consuming_an_index() -> None:
    assembler = MessageAssembler(10)

    assembler.add_drafts([Draft(""), Draft("kept")])

    assert [message.id for message in assembler.messages] == ["10_0"]


def test_known_sticker_becomes_image_message(heart_sticker: Sticker) -> None:
    assembler = MessageAssembler(5, stickers=StickerLibrary([heart_sticker]))

    message = assembler.add_sticker("heart")

    assert message.content == ""
    assert message.is_sticker
    assert message.metadata is not None
    assert message.metadata.sticker_description == "sending love"
    assert [attachment.data for attachment in message.attachments] == [heart_sticker.data]


def test_missing_sticker_becomes_expired_caption() -> None:
    assembler = MessageAssembler(5, stickers=[])

    message = assembler.add_sticker("abc123")

    assert message.content == STICKER_EXPIRED_CAPTION
    assert message.attachments == []
    assert not message.is_sticker


def test_transfer_token_starts_pending() -> None:
    message = MessageAssembler(5).add_transfer(50)

    assert message.content == ""
    assert message.metadata is not None
    assert message.metadata.transfer_amount == 50.0
    assert message.transfer_status is TransferStatus.PENDING


def test_finish_falls_back_to_source_text_when_nothing_was_produced() -> None:
    assembler = MessageAssembler(7)

    messages = assembler.finish("  <odd> output  ")

    assert [message.content for message in messages] == ["<odd> output"]
    assert messages[0].id == "7_0"
    assert assembler.degraded


def test_finish_does_not_fall_back_for_blank_text_or_existing_messages() -> None:
    blank = MessageAssembler(7)
    assert blank.finish("   ") == []
    assert not blank.degraded

    busy = MessageAssembler(7)
    busy.add_text("already here")
    assert len(busy.finish("source")) == 1
    assert not busy.degraded


def test_user_role_is_stamped_on_messages(image) -> None:
    message = MessageAssembler(3, Role.USER).add_text("look", attachments=[image])

    assert message.role is Role.USER
    assert message.attachments == [image]
