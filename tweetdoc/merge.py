from __future__ import annotations

from typing import Iterable, Sequence

from .document import Line, LinkRun, Run, TextRun
from .offsets import TextBuffer
from .post import Entity
from .segment import LineRange, ParagraphRange


def _merge_line(
    buffer: TextBuffer, entities: Sequence[Entity], line: LineRange, cursor: int
) -> tuple[list[Run], int]:
    runs: list[Run] = []

    for entity in entities:
        if entity.start not in line:
            continue
        if entity.start < cursor:
            continue
        if entity.start > cursor:
            runs.append(TextRun(buffer.slice(cursor, entity.start)))
        runs.append(
            LinkRun(
                url=entity.target_url,
                label=entity.display_label,
                kind=entity.kind,
                source=buffer.slice(entity.start, entity.end),
            )
        )
        cursor = entity.end

    if cursor < line.end:
        runs.append(TextRun(buffer.slice(cursor, line.end)))
    return runs, cursor


def merge_line(buffer: TextBuffer, entities: Sequence[Entity], line: LineRange) -> list[Run]:
    """
    Interleave plain text and links for one line.

    `entities` must already be sorted by collect_entities(). Only entities
    starting inside the line are considered. An entity starting before the
    cursor overlaps one already consumed and is skipped, so each codepoint is
    emitted at most once and runs never go backwards.
    """
    runs, _ = _merge_line(buffer, entities, line, line.start)
    return runs


def merge_paragraphs(
    buffer: TextBuffer, entities: Sequence[Entity], paragraphs: Iterable[ParagraphRange]
) -> list[tuple[Line, ...]]:
    """
    Merge every line of the text in order.

    The cursor carries over line and paragraph boundaries: a link whose span
    runs past the end of its line has already consumed the start of the
    following lines, and that text is not emitted again.
    """
    out: list[tuple[Line, ...]] = []
    consumed = 0
    for paragraph in paragraphs:
        lines: list[Line] = []
        for line in paragraph.lines:
            runs, consumed = _merge_line(buffer, entities, line, max(line.start, consumed))
            lines.append(Line(tuple(runs)))
        out.append(tuple(lines))
    return out


def merge_paragraph(
    buffer: TextBuffer, entities: Sequence[Entity], paragraph: ParagraphRange
) -> tuple[Line, ...]:
    return merge_paragraphs(buffer, entities, [paragraph])[0]
