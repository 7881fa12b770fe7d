from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

EntityKind = Literal["link", "mention", "hashtag"]
MediaKind = Literal["photo", "video", "other"]
ReferenceKind = Literal["quoted", "replied_to", "retweeted"]


@dataclass(frozen=True)
class Entity:
    """
    An annotation over a half-open codepoint range of a post's text.

    Well-formed entities satisfy 0 <= start < end <= len(text).
    """

    kind: EntityKind
    start: int
    end: int
    target_url: str
    display_label: str


@dataclass(frozen=True)
class Reference:
    kind: ReferenceKind
    target_id: str


@dataclass(frozen=True)
class Media:
    key: str
    kind: MediaKind
    url: str | None = None
    width: int | None = None
    height: int | None = None

    @property
    def is_renderable(self) -> bool:
        return (
            self.kind == "photo"
            and bool(self.url)
            and self.width is not None
            and self.height is not None
        )


@dataclass(frozen=True)
class Author:
    id: str
    username: str

    def profile_url(self, base_url: str = "https://twitter.com") -> str:
        return f"{base_url.rstrip('/')}/{self.username}"


@dataclass(frozen=True)
class Post:
    """An immutable post snapshot as fetched from the API collaborator."""

    id: str
    text: str
    entities: Sequence[Entity] = ()
    attachment_keys: Sequence[str] = ()
    references: Sequence[Reference] = ()
    author_id: str | None = None
    created_at: str | None = None
