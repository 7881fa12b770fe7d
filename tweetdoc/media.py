from __future__ import annotations

from typing import Iterable, Sequence

from .errors import IncompleteMediaError
from .post import Media
from .run_log import EventLogger


def _missing_fields(media: Media) -> list[str]:
    missing: list[str] = []
    if not media.url:
        missing.append("url")
    if media.width is None:
        missing.append("width")
    if media.height is None:
        missing.append("height")
    return missing


def check_media(media: Media) -> None:
    if media.is_renderable:
        return
    missing = _missing_fields(media)
    if not missing:
        raise IncompleteMediaError(f"media {media.key} is {media.kind}, not a photo")
    raise IncompleteMediaError(f"media {media.key} missing {', '.join(missing)}")


def resolve_media(
    attachment_keys: Iterable[str],
    media_pool: Sequence[Media],
    *,
    post_id: str | None = None,
    logger: EventLogger | None = None,
) -> list[Media]:
    """
    Select the photos a post attaches, in media pool order.

    The pool is shared across every post of a fetch, so lookups are by key
    only. Non-photo media are skipped. Photos lacking url/width/height are
    dropped with a warning; partial metadata never fails a render.
    """
    wanted = {k for k in attachment_keys if k}
    if not wanted:
        return []

    out: list[Media] = []
    seen: set[str] = set()
    for media in media_pool:
        if media.key not in wanted or media.key in seen:
            continue
        seen.add(media.key)

        if media.kind != "photo":
            continue

        try:
            check_media(media)
        except IncompleteMediaError as e:
            if logger is not None:
                logger.warning(
                    "media_incomplete",
                    post_id=post_id,
                    media_key=media.key,
                    missing=_missing_fields(media),
                    reason=str(e),
                )
            continue
        out.append(media)
    return out
