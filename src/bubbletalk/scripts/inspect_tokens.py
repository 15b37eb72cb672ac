"""CLI helper to inspect the token estimate of a saved conversation."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from ..chat.message_model import Message
from ..chat.stickers import StickerLibrary
from ..codec.history_encoder import encode
from ..codec.tokens import estimate_request_tokens
from ..services.settings import DIALOGUE_MODE_CHOICES, ChatConfig, SettingsStore
from ..utils.logging import setup_logging

LOGGER = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Estimate the request tokens for a saved conversation.")
    parser.add_argument("--conversation", type=Path, required=True, help="JSON file with the conversation.")
    parser.add_argument("--settings", type=Path, help="Optional chat config file to load.")
    parser.add_argument("--mode", choices=DIALOGUE_MODE_CHOICES, help="Override the dialogue mode.")
    parser.add_argument("--history-limit", type=int, help="Override the history limit (0 keeps everything).")
    parser.add_argument("--visual-limit", type=int, help="Override the visual memory limit.")
    parser.add_argument("--show-request", action="store_true", help="Print the provider payload as JSON.")
    parser.add_argument(
        "--shape",
        choices=("parts", "chat"),
        help="Payload shape for --show-request. Defaults to the provider's shape.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log codec decisions to stderr.")
    args = parser.parse_args(argv)

    if args.verbose:
        setup_logging(logging.INFO, file=False, codec_debug=True, force=True)

    try:
        messages, stickers = _load_conversation(args.conversation)
    except (OSError, ValueError) as exc:
        print(f"Unable to read conversation: {exc}", file=sys.stderr)
        return 1

    overrides = {
        "dialogue_mode": args.mode,
        "history_limit": args.history_limit,
        "visual_memory_limit": args.visual_limit,
    }
    config = _build_config(args.settings, overrides)

    request = encode(messages, config, stickers)
    estimate = estimate_request_tokens(request)

    print(f"messages: {len(messages)} (replayed: {len(request.messages)})")
    print(f"mode: {config.dialogue_mode}")
    for key, value in estimate.as_payload().items():
        print(f"{key}: {value}")

    if args.show_request:
        shape = args.shape or config.payload_shape
        payload = _elide_images(request.to_payload(shape))
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def _load_conversation(path: Path) -> tuple[list[Message], StickerLibrary]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        rows, sticker_rows = data, []
    elif isinstance(data, dict):
        rows, sticker_rows = data.get("messages") or [], data.get("stickers") or []
    else:
        raise ValueError("expected a list of messages or an object with 'messages'")
    messages = [Message.from_dict(row) for row in rows if isinstance(row, dict)]
    messages.sort(key=lambda message: message.timestamp)
    return messages, StickerLibrary.from_list(sticker_rows)


def _build_config(settings_path: Path | None, overrides: dict[str, Any]) -> ChatConfig:
    if settings_path is not None:
        return SettingsStore(settings_path).load(overrides=overrides)
    filtered = {key: value for key, value in overrides.items() if value is not None}
    return replace(ChatConfig(), **filtered) if filtered else ChatConfig()


def _elide_images(value: Any) -> Any:
    if isinstance(value, list):
        return [_elide_images(item) for item in value]
    if not isinstance(value, dict):
        return value
    if "inlineData" in value:
        inline = dict(value["inlineData"])
        inline["data"] = f"<{len(inline.get('data', ''))} base64 chars elided>"
        return {**value, "inlineData": inline}
    if value.get("type") == "image_url":
        return {"type": "image_url", "image_url": {"url": "<image data elided>"}}
    return {key: _elide_images(item) for key, item in value.items()}


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
