from __future__ import annotations

from dataclasses import dataclass

PARAGRAPH_SEPARATOR = "\n\n"
LINE_SEPARATOR = "\n"


@dataclass(frozen=True)
class LineRange:
    start: int
    end: int

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and self.start <= index < self.end


@dataclass(frozen=True)
class ParagraphRange:
    start: int
    end: int
    lines: tuple[LineRange, ...]


def _split_ranges(text: str, start: int, end: int, sep: str) -> list[tuple[int, int]]:
    pieces: list[tuple[int, int]] = []
    pos = start
    while True:
        hit = text.find(sep, pos, end)
        if hit < 0:
            pieces.append((pos, end))
            break
        pieces.append((pos, hit))
        pos = hit + len(sep)

    # Trailing separators would leave empty final pieces.
    while len(pieces) > 1 and pieces[-1][0] == pieces[-1][1]:
        pieces.pop()
    return pieces


def segment(text: str) -> list[ParagraphRange]:
    """
    Split text into paragraphs on blank lines, then each paragraph into lines.

    Ranges are codepoint offsets with separators excluded. Empty lines and
    paragraphs in the middle of the text are kept; empty text has no paragraphs.
    """
    if not text:
        return []

    out: list[ParagraphRange] = []
    for p_start, p_end in _split_ranges(text, 0, len(text), PARAGRAPH_SEPARATOR):
        lines = tuple(
            LineRange(l_start, l_end)
            for l_start, l_end in _split_ranges(text, p_start, p_end, LINE_SEPARATOR)
        )
        out.append(ParagraphRange(start=p_start, end=p_end, lines=lines))

    # An odd run of trailing newlines leaves a paragraph of empty lines.
    while len(out) > 1 and all(l.start == l.end for l in out[-1].lines):
        out.pop()
    return out
