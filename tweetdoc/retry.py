from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from .config_schema import TwitterConfig

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """
    Backoff policy for one API request.

    max_attempts counts the first try. Delays double from base_delay_seconds up
    to max_delay_seconds, are raised to any server wait hint (capped at
    retry_after_cap_seconds) and jittered by +/- jitter_ratio. A request gives
    up early once the next sleep would push the total past wait_budget_seconds;
    a zero budget or cap means unbounded.
    """

    max_attempts: int = 4
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 20.0
    jitter_ratio: float = 0.25
    retry_after_cap_seconds: float = 60.0
    wait_budget_seconds: float = 0.0
    rng: random.Random = field(default_factory=random.Random, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if not (0.0 <= self.jitter_ratio <= 1.0):
            raise ValueError("jitter_ratio must be between 0 and 1")
        if self.retry_after_cap_seconds < 0 or self.wait_budget_seconds < 0:
            raise ValueError("retry_after_cap_seconds and wait_budget_seconds must be >= 0")

    @classmethod
    def from_twitter_config(cls, cfg: TwitterConfig) -> "RetryConfig":
        return cls(
            max_attempts=cfg.retry_max_attempts,
            base_delay_seconds=cfg.retry_base_delay_seconds,
            max_delay_seconds=cfg.retry_max_delay_seconds,
            wait_budget_seconds=cfg.retry_wait_budget_seconds,
        )

    def server_wait(self, hint: float | None) -> float | None:
        if hint is None or hint < 0:
            return None
        if self.retry_after_cap_seconds > 0:
            return min(float(hint), self.retry_after_cap_seconds)
        return float(hint)

    def delay(self, failure_attempt: int, server_wait: float | None = None) -> float:
        # failure_attempt=1 => base delay.
        backoff = self.base_delay_seconds * (2 ** max(0, failure_attempt - 1))
        delay = min(self.max_delay_seconds, backoff)
        if server_wait is not None:
            delay = max(delay, server_wait)
        if delay > 0 and self.jitter_ratio > 0:
            delay *= self.rng.uniform(1.0 - self.jitter_ratio, 1.0 + self.jitter_ratio)
        return max(0.0, delay)

    def within_budget(self, waited: float, delay: float) -> bool:
        return self.wait_budget_seconds <= 0 or waited + delay <= self.wait_budget_seconds


@dataclass(frozen=True)
class RetryEvent:
    operation: str
    url: str | None
    failure_attempt: int
    next_attempt: int
    max_attempts: int

    delay_seconds: float
    waited_seconds: float
    retry_after_seconds: float | None
    reason: str | None

    error_type: str
    error_message: str


IsRetryableFn = Callable[[BaseException], tuple[bool, float | None, str | None]]
OnRetryFn = Callable[[RetryEvent], None]
SleepFn = Callable[[float], None]


def call_with_retries(
    fn: Callable[[], T],
    *,
    cfg: RetryConfig,
    is_retryable: IsRetryableFn,
    operation: str,
    url: str | None = None,
    on_retry: OnRetryFn | None = None,
    sleep_fn: SleepFn | None = None,
) -> T:
    """
    Call fn() until it succeeds, a failure is not retryable, attempts run out
    or the wait budget would be exceeded. The last failure propagates unchanged.

    is_retryable(exc) returns (retryable, server_wait_seconds, reason).
    """
    op = (operation or "").strip() or "operation"
    sleeper = sleep_fn or time.sleep

    attempt = 1
    waited = 0.0
    while True:
        try:
            return fn()
        except Exception as exc:
            retryable, hint, reason = is_retryable(exc)
            if not retryable or attempt >= cfg.max_attempts:
                raise

            server_wait = cfg.server_wait(hint)
            delay = cfg.delay(attempt, server_wait)
            if not cfg.within_budget(waited, delay):
                raise

            if on_retry is not None:
                on_retry(
                    RetryEvent(
                        operation=op,
                        url=url,
                        failure_attempt=attempt,
                        next_attempt=attempt + 1,
                        max_attempts=cfg.max_attempts,
                        delay_seconds=delay,
                        waited_seconds=waited,
                        retry_after_seconds=server_wait,
                        reason=reason,
                        error_type=type(exc).__name__,
                        error_message=str(exc).strip(),
                    )
                )

            if delay > 0:
                sleeper(delay)
            waited += delay
            attempt += 1
