from __future__ import annotations

from datetime import datetime, timezone

import httpx


def _retry_after_seconds(response: httpx.Response) -> float | None:
    raw = (response.headers.get("retry-after") or "").strip()
    if raw:
        try:
            return float(raw)
        except ValueError:
            return None

    # Rate-limit responses carry the window reset as a unix timestamp.
    reset = (response.headers.get("x-rate-limit-reset") or "").strip()
    if reset:
        try:
            now = datetime.now(timezone.utc).timestamp()
            return max(0.0, float(reset) - now)
        except ValueError:
            return None
    return None


def is_retryable_twitter_exception(exc: BaseException) -> tuple[bool, float | None, str | None]:
    """
    Twitter API retry policy:
    - connection failures and timeouts
    - HTTP 429 (honouring Retry-After / x-rate-limit-reset)
    - HTTP 500+
    Authentication and not-found responses are final.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        if code == 429:
            return True, _retry_after_seconds(exc.response), "http_429"
        if code >= 500:
            return True, None, f"http_{code}"
        return False, None, f"http_{code}"

    if isinstance(exc, httpx.TransportError):
        return True, None, "network_error"

    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True, None, "network_error"

    return False, None, None
