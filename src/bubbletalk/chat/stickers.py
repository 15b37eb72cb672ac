"""Sticker directory lookups used when decoding and encoding turns."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, Protocol, Sequence, runtime_checkable

from .message_model import Sticker

__all__ = ["StickerDirectory", "StickerLibrary", "as_sticker_directory"]


@runtime_checkable
class StickerDirectory(Protocol):
    """Lookup interface for profile-level stickers."""

    def get(self, sticker_id: str) -> Sticker | None:
        """Return the sticker registered under ``sticker_id`` or ``None``."""
        ...

    def __iter__(self) -> Iterator[Sticker]:
        ...


class StickerLibrary:
    """Ordered in-memory sticker directory keyed by sticker id."""

    def __init__(self, stickers: Iterable[Sticker] = ()) -> None:
        self._stickers: dict[str, Sticker] = {}
        for sticker in stickers:
            self.add(sticker)

    def add(self, sticker: Sticker) -> None:
        self._stickers[sticker.id] = sticker

    def remove(self, sticker_id: str) -> Sticker | None:
        return self._stickers.pop(sticker_id, None)

    def get(self, sticker_id: str) -> Sticker | None:
        return self._stickers.get(sticker_id)

    def __iter__(self) -> Iterator[Sticker]:
        return iter(list(self._stickers.values()))

    def __len__(self) -> int:
        return len(self._stickers)

    def __contains__(self, sticker_id: object) -> bool:
        return sticker_id in self._stickers

    def to_list(self) -> list[dict[str, object]]:
        return [sticker.to_dict() for sticker in self._stickers.values()]

    @classmethod
    def from_list(cls, payload: Sequence[Mapping[str, object]]) -> "StickerLibrary":
        return cls(Sticker.from_dict(item) for item in payload if isinstance(item, Mapping))


def as_sticker_directory(stickers: StickerDirectory | Iterable[Sticker] | None) -> StickerDirectory:
    """Normalize ``None``, sequences, or directories into a directory."""

    if stickers is None:
        return StickerLibrary()
    if isinstance(stickers, Mapping):
        return StickerLibrary(stickers.values())
    if isinstance(stickers, StickerDirectory):
        return stickers
    return StickerLibrary(stickers)
