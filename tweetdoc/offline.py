from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from .config_schema import RenderConfig
from .errors import UpstreamNotFound
from .normalize import author_from_api_user, posts_from_api_payload
from .post import Author, Media, Post
from .twitter_client import FetchResult

_OFFLINE_USER: dict[str, Any] = {"id": "12", "username": "jack", "name": "jack"}

_OFFLINE_TIMELINE: dict[str, Any] = {
    "data": [
        {
            "id": "1001",
            "author_id": "12",
            "text": "Hello 👋 @biz\n\nWorld https://t.co/abc #intro",
            "entities": {
                "mentions": [{"start": 8, "end": 12, "username": "biz"}],
                "urls": [
                    {
                        "start": 20,
                        "end": 36,
                        "url": "https://t.co/abc",
                        "expanded_url": "https://example.com/world",
                        "display_url": "example.com/world",
                    }
                ],
                "hashtags": [{"start": 37, "end": 43, "tag": "intro"}],
            },
            "attachments": {"media_keys": ["3_1", "7_2"]},
        },
        {
            "id": "1002",
            "author_id": "12",
            "text": "Worth reading twice\nsee below",
            "referenced_tweets": [{"type": "quoted", "id": "2001"}],
        },
        {
            "id": "1003",
            "author_id": "12",
            "text": "Photo without size",
            "attachments": {"media_keys": ["3_3"]},
            "referenced_tweets": [{"type": "replied_to", "id": "2001"}],
        },
    ],
    "includes": {
        "media": [
            {"media_key": "3_1", "type": "photo", "url": "https://pbs.example.com/1.jpg", "width": 640, "height": 480},
            {"media_key": "7_2", "type": "video", "width": 1280, "height": 720},
            {"media_key": "3_3", "type": "photo", "url": "https://pbs.example.com/3.jpg", "width": 640},
        ]
    },
    "meta": {"result_count": 3},
}

_OFFLINE_REFERENCED: dict[str, Any] = {
    "data": [
        {
            "id": "2001",
            "author_id": "99",
            "text": "Quoted: résumé tips ✨ https://t.co/q",
            "entities": {
                "urls": [
                    {
                        "start": 22,
                        "end": 36,
                        "url": "https://t.co/q",
                        "expanded_url": "https://example.com/tips",
                        "display_url": "example.com/tips",
                    }
                ]
            },
            "attachments": {"media_keys": ["3_9"]},
            # Quotes back into the timeline; never followed when embedded.
            "referenced_tweets": [{"type": "quoted", "id": "1002"}],
        }
    ],
    "includes": {
        "media": [
            {"media_key": "3_9", "type": "photo", "url": "https://pbs.example.com/9.jpg", "width": 300, "height": 300},
        ]
    },
}


@dataclass
class OfflineTwitterClient:
    """
    Network-free stand-in for TwitterClient used by `--offline` runs and tests.

    Serves a fixed timeline for @jack that covers emoji offsets, every entity
    kind, a quote cycle, a video and a photo missing its height.
    """

    render: RenderConfig = field(default_factory=RenderConfig)
    timeline: dict[str, Any] = field(default_factory=lambda: _OFFLINE_TIMELINE)
    referenced: dict[str, Any] = field(default_factory=lambda: _OFFLINE_REFERENCED)

    def fetch_user(self, handle: str) -> Author:
        username = (handle or "").strip().lstrip("@")
        if username.casefold() != _OFFLINE_USER["username"]:
            raise UpstreamNotFound(f"User not found: {username}")
        author = author_from_api_user(_OFFLINE_USER)
        assert author is not None
        return author

    def fetch_posts(self, author: Author, limit: int | None = None) -> FetchResult:
        posts, media = posts_from_api_payload(self.timeline, render=self.render)
        if limit is not None:
            posts = posts[: max(0, int(limit))]
        ref_posts, ref_media = posts_from_api_payload(self.referenced, render=self.render)
        return FetchResult(posts=posts, referenced_posts=ref_posts, media=media + ref_media)

    def fetch_posts_by_ids(self, ids: Sequence[str]) -> tuple[list[Post], list[Media]]:
        posts: list[Post] = []
        media: list[Media] = []
        for payload in (self.timeline, self.referenced):
            p, m = posts_from_api_payload(payload, render=self.render)
            posts.extend(p)
            media.extend(m)

        wanted = set(ids)
        found = [p for p in posts if p.id in wanted]
        if not found:
            raise UpstreamNotFound("Tweet not found")
        return found, media

    def close(self) -> None:
        return None
