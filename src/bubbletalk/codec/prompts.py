"""System instruction composition.

The instruction is the user-authored base text followed by one protocol
block per enabled feature, always in the same order: novel grammar, sticker
directory, transfer vocabulary. Later blocks assume the earlier ones have
been read.
"""

from __future__ import annotations

from typing import Iterable

from ..chat.message_model import Sticker
from ..services.settings import ChatConfig

__all__ = [
    "compose_system_instruction",
    "novel_mode_block",
    "sticker_protocol_block",
    "transfer_protocol_block",
]


def compose_system_instruction(config: ChatConfig, stickers: Iterable[Sticker] = ()) -> str:
    """Return the full system instruction for ``config``."""

    instruction = config.system_instruction or ""
    if config.is_novel:
        instruction += "\n\n" + novel_mode_block()
    if config.enable_stickers:
        block = sticker_protocol_block(stickers)
        if block:
            instruction += "\n\n" + block
    if config.enable_transfer:
        instruction += "\n\n" + transfer_protocol_block()
    return instruction


def novel_mode_block() -> str:
    """Grammar rules for the ``<action>``/``<say>`` dialogue mode."""

    return """[IMMERSIVE/NOVEL DIALOGUE MODE ENABLED]
You are writing a visual novel script. Your output is parsed by a strict code engine.

*** CRITICAL FORMATTING RULES ***
1. YOU MUST ONLY USE THESE TWO TAGS:
   <action> ... </action>  --> narration, movements, facial expressions, thoughts, surroundings.
   <say> ... </say>        --> every line of spoken dialogue.

2. FORBIDDEN TAGS:
   - No other tag names (no <smile>, <think>, <look>, <scene>, <emotion>).
   - Tag names are lowercase only (no <Action>, <Say>).
   - No attributes (no <action type="happy">).

3. STRUCTURE:
   - Do not use brackets () or quotation marks "" for speech; the tags replace them.
   - Do not write any text outside the tags. Every word belongs to <action> or <say>.
   - Always close your tags.

CORRECT EXAMPLE:
<action>She pushes the door open and looks around nervously.</action>
<say>Is anyone home?</say>
<action>Silence answers her. She sighs.</action>
<say>I guess I'm alone.</say>

INCORRECT EXAMPLE (NEVER DO THIS):
(Opens door)                 <-- WRONG: brackets.
<smile>Hello</smile>         <-- WRONG: <smile> is not a valid tag.
<say>Hello                   <-- WRONG: unclosed tag.
Hello?                       <-- WRONG: text outside tags."""


def sticker_protocol_block(stickers: Iterable[Sticker]) -> str:
    """Sticker directory listing; empty when no stickers are defined."""

    listing = "\n".join(f"- ID: {sticker.id}, Meaning: {sticker.description}" for sticker in stickers)
    if not listing:
        return ""
    return f"""[STICKER PROTOCOL ENABLED]
You can send sticker images to express emotions or reactions.
Available stickers:
{listing}

STICKER RULES:
1. To send a sticker, output the tag on its own line: <STICKER:ID>
2. Never use Markdown image syntax for stickers. Use only the tag.
3. You may mix text and stickers.
4. Use stickers when the emotion fits, not in every message.
5. Stickers sent by the user appear as "[User sent a sticker: ...]". Treat that as the user sending a picture with that meaning.
6. Your own stickers are recorded as "[Assistant sent a sticker: ...]". Do not confuse them with the user's."""


def transfer_protocol_block() -> str:
    """Transfer/accept/reject tag vocabulary."""

    return """[TRANSFER PROTOCOL ENABLED]
You can send and receive simulated money transfers.
TRANSFER RULES:
1. To send money to the user, output this tag on its own line: <TRANSFER:AMOUNT> (for example <TRANSFER:100>).
2. Transfers from the user appear in the history as "[User sent a transfer of X. Status: ...]".
3. To ACCEPT the user's pending transfer, output this tag on its own line: <ACCEPT_TRANSFER>
4. To REFUND/REJECT it, output this tag on its own line: <REJECT_TRANSFER>
5. Never put other text inside these tags.
6. Only use transfers when they make sense in the roleplay (pocket money, paying for dinner, accepting a gift, refusing a bribe).
7. Never repeat the bracketed history notes (such as "[User sent ...]") in your reply."""
