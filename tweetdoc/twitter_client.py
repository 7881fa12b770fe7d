from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping, Sequence
from urllib.parse import quote

import httpx

from .config_schema import RenderConfig, TwitterConfig
from .errors import UpstreamAuthError, UpstreamNotFound, UpstreamTransportError
from .normalize import author_from_api_user, posts_from_api_payload
from .post import Author, Media, Post
from .retry import RetryConfig, RetryEvent, SleepFn, call_with_retries
from .run_log import EventLogger
from .twitter_retry import is_retryable_twitter_exception

TWEET_FIELDS = "entities,attachments,referenced_tweets,author_id,created_at"
MEDIA_FIELDS = "media_key,url,type,width,height"
EXPANSIONS = "attachments.media_keys"

# GET /2/tweets accepts at most 100 ids per request.
_MAX_IDS_PER_REQUEST = 100


@dataclass(frozen=True)
class FetchResult:
    posts: list[Post]
    referenced_posts: list[Post]
    media: list[Media]


def user_by_username_url(base_url: str, username: str) -> str:
    return f"{base_url.rstrip('/')}/2/users/by/username/{quote(username)}"


def user_tweets_url(base_url: str, user_id: str, start_time: datetime | None = None) -> str:
    url = f"{base_url.rstrip('/')}/2/users/{quote(str(user_id))}/tweets"
    if start_time is None:
        return url
    ts = start_time.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return f"{url}?start_time={ts.replace('+00:00', 'Z')}"


def _chunked(values: Sequence[str], size: int) -> Iterator[list[str]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")

    batch: list[str] = []
    for item in values:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def _first_error_detail(payload: Mapping[str, Any]) -> str | None:
    errors = payload.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], Mapping):
        detail = errors[0].get("detail") or errors[0].get("title")
        if isinstance(detail, str) and detail.strip():
            return detail.strip()
    return None


class TwitterClient:
    """
    Synchronous Twitter API v2 client for the data the renderer needs.

    Failures surface as UpstreamAuthError, UpstreamNotFound or
    UpstreamTransportError; retryable failures are retried first.
    """

    def __init__(
        self,
        bearer_token: str,
        *,
        config: TwitterConfig | None = None,
        render: RenderConfig | None = None,
        client: httpx.Client | None = None,
        retry: RetryConfig | None = None,
        logger: EventLogger | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self._cfg = config or TwitterConfig()
        self._render = render or RenderConfig()
        self._retry = retry or RetryConfig.from_twitter_config(self._cfg)
        self._logger = logger
        self._sleep_fn = sleep_fn

        headers = {"Authorization": f"Bearer {bearer_token}"}
        if client is not None:
            client.headers.update(headers)
            self._client = client
        else:
            self._client = httpx.Client(headers=headers, timeout=self._cfg.timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "TwitterClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def _on_retry(self, event: RetryEvent) -> None:
        if self._logger is not None:
            self._logger.warning("twitter_retry", **asdict(event))

    def _get_json(self, url: str, *, params: Mapping[str, Any] | None, operation: str) -> dict[str, Any]:
        def _do_get() -> Any:
            resp = self._client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()

        try:
            payload = call_with_retries(
                _do_get,
                cfg=self._retry,
                is_retryable=is_retryable_twitter_exception,
                operation=operation,
                url=url,
                on_retry=self._on_retry,
                sleep_fn=self._sleep_fn,
            )
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            if code in (401, 403):
                raise UpstreamAuthError(f"Twitter API rejected credentials ({operation}): HTTP {code}") from e
            if code == 404:
                raise UpstreamNotFound(f"Twitter API resource not found ({operation})") from e
            raise UpstreamTransportError(f"Twitter API request failed ({operation}): HTTP {code}") from e
        except httpx.HTTPError as e:
            raise UpstreamTransportError(f"Twitter API unreachable ({operation}): {e}") from e
        except ValueError as e:
            raise UpstreamTransportError(f"Twitter API returned invalid JSON ({operation}): {e}") from e

        if not isinstance(payload, dict):
            raise UpstreamTransportError(f"Twitter API returned a non-object payload ({operation})")
        return payload

    def fetch_user(self, handle: str) -> Author:
        username = (handle or "").strip().lstrip("@")
        if not username:
            raise UpstreamNotFound("username must be non-empty")

        url = user_by_username_url(self._cfg.api_base_url, username)
        payload = self._get_json(url, params=None, operation=f"users.by.username:{username}")

        data = payload.get("data")
        author = author_from_api_user(data) if isinstance(data, Mapping) else None
        if author is None:
            detail = _first_error_detail(payload)
            raise UpstreamNotFound(f"User not found: {username}" + (f" ({detail})" if detail else ""))
        return author

    def fetch_posts_by_ids(self, ids: Sequence[str]) -> tuple[list[Post], list[Media]]:
        wanted: list[str] = []
        for raw in ids:
            i = (raw or "").strip()
            if i and i not in wanted:
                wanted.append(i)
        if not wanted:
            return [], []

        posts: list[Post] = []
        media: list[Media] = []
        for batch in _chunked(wanted, _MAX_IDS_PER_REQUEST):
            payload = self._get_json(
                f"{self._cfg.api_base_url}/2/tweets",
                params={
                    "ids": ",".join(batch),
                    "tweet.fields": TWEET_FIELDS,
                    "media.fields": MEDIA_FIELDS,
                    "expansions": EXPANSIONS,
                },
                operation=f"tweets.lookup:{len(batch)}",
            )
            if payload.get("data") is None:
                detail = _first_error_detail(payload)
                raise UpstreamNotFound("Tweet not found" + (f" ({detail})" if detail else ""))

            batch_posts, batch_media = posts_from_api_payload(
                payload, render=self._render, logger=self._logger
            )
            posts.extend(batch_posts)
            media.extend(batch_media)
        return posts, media

    def fetch_posts(self, author: Author, limit: int | None = None) -> FetchResult:
        """
        Fetch the author's most recent posts plus every post they reference.

        Media from both sets land in one pool, looked up by key at render time.
        """
        n = self._cfg.max_results if limit is None else int(limit)
        if n < 1:
            raise ValueError("limit must be >= 1")

        payload = self._get_json(
            user_tweets_url(self._cfg.api_base_url, author.id),
            params={
                "max_results": min(100, max(5, n)),
                "tweet.fields": TWEET_FIELDS,
                "media.fields": MEDIA_FIELDS,
                "expansions": EXPANSIONS,
            },
            operation=f"users.tweets:{author.id}",
        )

        if payload.get("data") is None:
            meta = payload.get("meta")
            if isinstance(meta, Mapping) and meta.get("result_count") == 0:
                return FetchResult(posts=[], referenced_posts=[], media=[])
            raise UpstreamNotFound(f"Tweets not found for @{author.username}")

        posts, media = posts_from_api_payload(payload, render=self._render, logger=self._logger)
        posts = posts[:n]

        referenced_ids = [ref.target_id for p in posts for ref in p.references]
        referenced: list[Post] = []
        if referenced_ids:
            try:
                referenced, ref_media = self.fetch_posts_by_ids(referenced_ids)
            except UpstreamNotFound as e:
                # Referenced posts can be deleted or protected; render without them.
                if self._logger is not None:
                    self._logger.warning("referenced_posts_missing", reason=str(e))
            else:
                media.extend(ref_media)

        return FetchResult(posts=posts, referenced_posts=referenced, media=media)
