from __future__ import annotations

from typing import Sequence


class TextBuffer:
    """
    UTF-8 storage for a post text addressed by codepoint offsets.

    Every slice of post text goes through byte_index() so that multi-byte
    characters (emoji, non-Latin scripts) never shift boundaries.
    """

    __slots__ = ("text", "data", "_byte_offsets")

    def __init__(self, text: str) -> None:
        self.text = text
        self.data = text.encode("utf-8")

        offsets: list[int] = [0]
        pos = 0
        for ch in text:
            pos += len(ch.encode("utf-8"))
            offsets.append(pos)
        self._byte_offsets: Sequence[int] = offsets

    def __len__(self) -> int:
        return len(self._byte_offsets) - 1

    def byte_index(self, codepoint_index: int) -> int:
        if codepoint_index < 0 or codepoint_index > len(self):
            raise IndexError(
                f"codepoint index {codepoint_index} out of range 0..{len(self)}"
            )
        return self._byte_offsets[codepoint_index]

    def slice(self, start: int, end: int) -> str:
        if end < start:
            raise IndexError(f"slice end {end} precedes start {start}")
        lo = self.byte_index(start)
        hi = self.byte_index(end)
        return self.data[lo:hi].decode("utf-8")


def resolve(text: str, codepoint_index: int) -> int:
    """Byte offset of a codepoint boundary in the UTF-8 encoding of text."""
    return TextBuffer(text).byte_index(codepoint_index)


def utf16_to_codepoint(text: str, utf16_index: int) -> int | None:
    """
    Convert a UTF-16 code unit offset to a codepoint offset.

    Returns None when the offset is out of range or splits a surrogate pair.
    """
    if utf16_index < 0:
        return None
    units = 0
    for i, ch in enumerate(text):
        if units == utf16_index:
            return i
        if units > utf16_index:
            return None
        units += 2 if ord(ch) > 0xFFFF else 1
    if units == utf16_index:
        return len(text)
    return None
