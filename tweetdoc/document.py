from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence, Union

from .post import Author, EntityKind, Media


@dataclass(frozen=True)
class TextRun:
    text: str


@dataclass(frozen=True)
class LinkRun:
    url: str
    label: str
    kind: EntityKind = "link"
    # Literal text of the entity's [start, end) span in the post.
    source: str = ""


@dataclass(frozen=True)
class LineBreak:
    pass


Run = Union[TextRun, LinkRun, LineBreak]

LINE_BREAK = LineBreak()


@dataclass(frozen=True)
class Line:
    runs: tuple[Run, ...] = ()

    def source_text(self) -> str:
        parts: list[str] = []
        for run in self.runs:
            if isinstance(run, TextRun):
                parts.append(run.text)
            elif isinstance(run, LinkRun):
                parts.append(run.source)
        return "".join(parts)


@dataclass(frozen=True)
class Paragraph:
    lines: tuple[Line, ...] = ()

    def runs(self) -> list[Run]:
        """Flatten lines into one run sequence, with a LineBreak between lines."""
        out: list[Run] = []
        for i, line in enumerate(self.lines):
            if i > 0:
                out.append(LINE_BREAK)
            out.extend(line.runs)
        return out


@dataclass(frozen=True)
class RenderedPost:
    post_id: str
    paragraphs: tuple[Paragraph, ...] = ()
    media: tuple[Media, ...] = ()
    quoted: "RenderedPost | None" = None


@dataclass(frozen=True)
class Separator:
    pass


SEPARATOR = Separator()


@dataclass(frozen=True)
class RenderedDocument:
    posts: tuple[RenderedPost, ...] = ()
    author: Author | None = None

    def blocks(self) -> Iterator[RenderedPost | Separator]:
        for i, post in enumerate(self.posts):
            if i > 0:
                yield SEPARATOR
            yield post

    def __len__(self) -> int:
        return len(self.posts)


def assemble(
    posts: Sequence[RenderedPost], *, author: Author | None = None
) -> RenderedDocument:
    """Collect rendered posts into a document; a single post is a one-item document."""
    return RenderedDocument(posts=tuple(posts), author=author)
