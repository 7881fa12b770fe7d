from __future__ import annotations

from typing import Iterable

from .errors import MalformedEntityError
from .post import Entity, Post
from .run_log import EventLogger

# Tie-break for entities sharing a start offset: lower sorts first.
KIND_PRIORITY: dict[str, int] = {
    "link": 0,
    "mention": 1,
    "hashtag": 2,
}


def _sort_key(entity: Entity) -> tuple[int, int]:
    return entity.start, KIND_PRIORITY.get(entity.kind, len(KIND_PRIORITY))


def collect_entities(post: Post) -> list[Entity]:
    """
    Return the post's links, mentions and hashtags as one list.

    Sorted ascending by start; ties broken link > mention > hashtag.
    """
    return sorted(post.entities, key=_sort_key)


def check_entity(entity: Entity, text_length: int) -> None:
    if entity.start < 0 or entity.end > text_length:
        raise MalformedEntityError(
            f"{entity.kind} entity [{entity.start}, {entity.end}) "
            f"outside text of length {text_length}"
        )
    if entity.start >= entity.end:
        raise MalformedEntityError(
            f"{entity.kind} entity [{entity.start}, {entity.end}) is empty or reversed"
        )


def drop_malformed(
    entities: Iterable[Entity],
    text_length: int,
    *,
    post_id: str | None = None,
    logger: EventLogger | None = None,
) -> list[Entity]:
    """
    Keep entities whose range lies inside the text.

    Malformed entities are dropped and logged; their span renders as plain text.
    """
    kept: list[Entity] = []
    for entity in entities:
        try:
            check_entity(entity, text_length)
        except MalformedEntityError as e:
            if logger is not None:
                logger.warning(
                    "entity_malformed",
                    post_id=post_id,
                    kind=entity.kind,
                    start=entity.start,
                    end=entity.end,
                    reason=str(e),
                )
            continue
        kept.append(entity)
    return kept
