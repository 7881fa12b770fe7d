from __future__ import annotations

from typing import Any, Iterable, Mapping
from urllib.parse import quote

from .config_schema import RenderConfig
from .offsets import utf16_to_codepoint
from .post import Author, Entity, EntityKind, Media, MediaKind, Post, Reference, ReferenceKind
from .run_log import EventLogger

_MEDIA_KINDS: dict[str, MediaKind] = {
    "photo": "photo",
    "video": "video",
    "animated_gif": "video",
}

_REFERENCE_KINDS: dict[str, ReferenceKind] = {
    "quoted": "quoted",
    "replied_to": "replied_to",
    "retweeted": "retweeted",
}

_DEFAULT_RENDER = RenderConfig()


def _coerce_str(value: Any) -> str | None:
    if isinstance(value, str):
        s = value.strip()
        return s if s else None
    return None


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, str):
        v = value.strip()
        return v if v else None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _mapping_list(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, Mapping)]


def author_from_api_user(item: Mapping[str, Any]) -> Author | None:
    user_id = _coerce_id(item.get("id"))
    username = _coerce_str(item.get("username"))
    if not user_id or not username:
        return None
    return Author(id=user_id, username=username)


def media_from_api_item(item: Mapping[str, Any]) -> Media | None:
    key = _coerce_str(item.get("media_key"))
    if not key:
        return None

    kind = _MEDIA_KINDS.get((_coerce_str(item.get("type")) or "").casefold(), "other")
    return Media(
        key=key,
        kind=kind,
        url=_coerce_str(item.get("url")),
        width=_coerce_int(item.get("width")),
        height=_coerce_int(item.get("height")),
    )


def _entity_target(
    kind: EntityKind, item: Mapping[str, Any], render: RenderConfig
) -> tuple[str, str] | None:
    if kind == "link":
        url = _coerce_str(item.get("expanded_url")) or _coerce_str(item.get("url"))
        if not url:
            return None
        label = _coerce_str(item.get("display_url")) or url
        return url, label

    if kind == "mention":
        username = _coerce_str(item.get("username"))
        if not username:
            return None
        return f"{render.profile_base_url}/{quote(username)}", f"@{username}"

    tag = _coerce_str(item.get("tag"))
    if not tag:
        return None
    return f"{render.hashtag_base_url}/{quote(tag)}", f"#{tag}"


def _entities_from_api(
    text: str,
    raw: Any,
    *,
    render: RenderConfig,
    post_id: str,
    logger: EventLogger | None,
) -> list[Entity]:
    if not isinstance(raw, Mapping):
        return []

    groups: Iterable[tuple[EntityKind, str]] = (
        ("link", "urls"),
        ("mention", "mentions"),
        ("hashtag", "hashtags"),
    )

    out: list[Entity] = []
    for kind, field in groups:
        for item in _mapping_list(raw.get(field)):
            start = _coerce_int(item.get("start"))
            end = _coerce_int(item.get("end"))
            target = _entity_target(kind, item, render)
            if start is None or end is None or target is None:
                continue

            if render.offset_unit == "utf16":
                cp_start = utf16_to_codepoint(text, start)
                cp_end = utf16_to_codepoint(text, end)
                if cp_start is None or cp_end is None:
                    if logger is not None:
                        logger.warning(
                            "entity_malformed",
                            post_id=post_id,
                            kind=kind,
                            start=start,
                            end=end,
                            reason="utf16 offset outside text or inside a surrogate pair",
                        )
                    continue
                start, end = cp_start, cp_end

            url, label = target
            out.append(
                Entity(kind=kind, start=start, end=end, target_url=url, display_label=label)
            )
    return out


def post_from_api_tweet(
    item: Mapping[str, Any],
    *,
    render: RenderConfig | None = None,
    logger: EventLogger | None = None,
) -> Post | None:
    """
    Best-effort conversion of a v2 tweet object into a Post.

    Entities with unusable targets are skipped; offsets are validated later,
    at render time.
    """
    post_id = _coerce_id(item.get("id"))
    text = item.get("text")
    if not post_id or not isinstance(text, str):
        return None

    render_cfg = render or _DEFAULT_RENDER

    attachments = item.get("attachments")
    media_keys: tuple[str, ...] = ()
    if isinstance(attachments, Mapping) and isinstance(attachments.get("media_keys"), list):
        media_keys = tuple(
            k for k in (_coerce_str(v) for v in attachments["media_keys"]) if k
        )

    references: list[Reference] = []
    for ref in _mapping_list(item.get("referenced_tweets")):
        kind = _REFERENCE_KINDS.get((_coerce_str(ref.get("type")) or "").casefold())
        target_id = _coerce_id(ref.get("id"))
        if kind is None or target_id is None:
            continue
        references.append(Reference(kind=kind, target_id=target_id))

    return Post(
        id=post_id,
        text=text,
        entities=tuple(
            _entities_from_api(
                text,
                item.get("entities"),
                render=render_cfg,
                post_id=post_id,
                logger=logger,
            )
        ),
        attachment_keys=media_keys,
        references=tuple(references),
        author_id=_coerce_id(item.get("author_id")),
        created_at=_coerce_str(item.get("created_at")),
    )


def posts_from_api_payload(
    payload: Mapping[str, Any],
    *,
    render: RenderConfig | None = None,
    logger: EventLogger | None = None,
) -> tuple[list[Post], list[Media]]:
    """Split a v2 response into its posts (`data`) and media (`includes.media`)."""
    data = payload.get("data")
    items = _mapping_list(data if isinstance(data, list) else [data])

    posts: list[Post] = []
    for item in items:
        post = post_from_api_tweet(item, render=render, logger=logger)
        if post is not None:
            posts.append(post)

    includes = payload.get("includes")
    media: list[Media] = []
    if isinstance(includes, Mapping):
        for item in _mapping_list(includes.get("media")):
            m = media_from_api_item(item)
            if m is not None:
                media.append(m)

    return posts, media
