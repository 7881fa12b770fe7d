from __future__ import annotations

from typing import Callable, Iterable, Mapping, Sequence

from .document import Paragraph, RenderedDocument, RenderedPost, assemble
from .entities import collect_entities, drop_malformed
from .media import resolve_media
from .merge import merge_paragraphs
from .offsets import TextBuffer
from .post import Author, Media, Post
from .run_log import EventLogger
from .segment import segment

FetchReferencedFn = Callable[[str], "Post | None"]

# Quoted posts are rendered once; their own references are never followed.
MAX_QUOTE_DEPTH = 1


def _index_posts(posts: Iterable[Post]) -> Mapping[str, Post]:
    index: dict[str, Post] = {}
    for p in posts:
        index.setdefault(p.id, p)
    return index


def _render_paragraphs(post: Post, *, logger: EventLogger | None) -> tuple[Paragraph, ...]:
    buffer = TextBuffer(post.text)
    entities = drop_malformed(
        collect_entities(post),
        len(buffer),
        post_id=post.id,
        logger=logger,
    )
    return tuple(
        Paragraph(lines) for lines in merge_paragraphs(buffer, entities, segment(post.text))
    )


def _render(
    post: Post,
    media_pool: Sequence[Media],
    fetch_referenced: FetchReferencedFn,
    *,
    depth: int,
    logger: EventLogger | None,
) -> RenderedPost:
    quoted: RenderedPost | None = None
    if depth < MAX_QUOTE_DEPTH:
        quoted = _embed_quote(
            post,
            media_pool,
            fetch_referenced,
            depth=depth,
            logger=logger,
        )

    return RenderedPost(
        post_id=post.id,
        paragraphs=_render_paragraphs(post, logger=logger),
        media=tuple(
            resolve_media(post.attachment_keys, media_pool, post_id=post.id, logger=logger)
        ),
        quoted=quoted,
    )


def _embed_quote(
    post: Post,
    media_pool: Sequence[Media],
    fetch_referenced: FetchReferencedFn,
    *,
    depth: int,
    logger: EventLogger | None,
) -> RenderedPost | None:
    for ref in post.references:
        if ref.kind != "quoted":
            continue

        target = fetch_referenced(ref.target_id)
        if target is None:
            if logger is not None:
                logger.warning("quote_missing", post_id=post.id, target_id=ref.target_id)
            continue

        return _render(
            target,
            media_pool,
            fetch_referenced,
            depth=depth + 1,
            logger=logger,
        )
    return None


def embed_quote(
    post: Post,
    media_pool: Sequence[Media],
    fetch_referenced: FetchReferencedFn,
    *,
    logger: EventLogger | None = None,
) -> RenderedPost | None:
    """
    Render the first resolvable post that `post` quotes, or None.

    Replies and retweets are ignored. The quoted post shares the parent's media
    pool and is rendered without its own quote, even when the reference graph
    contains a cycle.
    """
    return _embed_quote(post, media_pool, fetch_referenced, depth=0, logger=logger)


def render_post(
    post: Post,
    media_pool: Sequence[Media],
    referenced_posts: Iterable[Post] = (),
    *,
    logger: EventLogger | None = None,
) -> RenderedPost:
    index = _index_posts(referenced_posts)
    return _render(post, media_pool, index.get, depth=0, logger=logger)


def render_timeline(
    posts: Iterable[Post],
    media_pool: Sequence[Media],
    referenced_posts: Iterable[Post] = (),
    *,
    author: Author | None = None,
    logger: EventLogger | None = None,
) -> RenderedDocument:
    index = _index_posts(referenced_posts)
    rendered = [
        _render(p, media_pool, index.get, depth=0, logger=logger) for p in posts
    ]
    return assemble(rendered, author=author)
