"""
Retry decisions and backoff delays for payOS requests.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Mapping, Optional, Union

import requests

__all__ = [
    "RetryPolicy",
    "RetryState",
    "RETRYABLE_STATUSES",
]

RETRYABLE_STATUSES = frozenset({408, 429})

INITIAL_RETRY_DELAY_MS = 500.0
MAX_RETRY_DELAY_MS = 10_000.0
MAX_HINT_DELAY_MS = 60_000.0

Outcome = Union[int, BaseException]


@dataclass
class RetryState:
    """Budget and bookkeeping for one logical call."""

    max_retries: int
    correlation_id: str
    retries_remaining: int = field(init=False)
    attempt_count: int = 0

    def __post_init__(self) -> None:
        self.retries_remaining = self.max_retries


def _header(headers: Optional[Mapping[str, Any]], name: str) -> Optional[str]:
    if not headers:
        return None
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, item in headers.items():
            if key.lower() == lowered:
                value = item
                break
    return None if value is None else str(value).strip()


class RetryPolicy:
    """
    Decides whether a failed attempt is retried and how long to wait.

    ``rng`` returns floats in ``[0, 1)`` and ``clock`` returns epoch seconds;
    both are injectable for deterministic tests.
    """

    def __init__(
        self,
        *,
        initial_delay_ms: float = INITIAL_RETRY_DELAY_MS,
        max_delay_ms: float = MAX_RETRY_DELAY_MS,
        rng: Optional[Callable[[], float]] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.initial_delay_ms = initial_delay_ms
        self.max_delay_ms = max_delay_ms
        self._rng = rng or random.random
        self._clock = clock or time.time

    @staticmethod
    def is_retryable(outcome: Outcome) -> bool:
        if isinstance(outcome, BaseException):
            return isinstance(outcome, (requests.Timeout, requests.ConnectionError))
        return outcome in RETRYABLE_STATUSES or outcome >= 500

    def should_retry(self, outcome: Outcome, retries_remaining: int) -> bool:
        """
        ``outcome`` is either an HTTP status code or the transport exception
        raised by the attempt.
        """
        return retries_remaining > 0 and self.is_retryable(outcome)

    def _hinted_delay_ms(self, headers: Optional[Mapping[str, Any]]) -> Optional[float]:
        retry_after = _header(headers, "retry-after")
        if retry_after:
            delay = self._parse_retry_after(retry_after)
            if delay is not None and 0 <= delay < MAX_HINT_DELAY_MS:
                return delay

        reset = _header(headers, "x-ratelimit-reset")
        if reset:
            try:
                delay = float(reset) * 1000 - self._clock() * 1000
            except ValueError:
                delay = None
            if delay is not None and 0 <= delay < MAX_HINT_DELAY_MS:
                return delay
        return None

    def _parse_retry_after(self, value: str) -> Optional[float]:
        try:
            return float(value) * 1000
        except ValueError:
            pass
        try:
            moment = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if moment is None:
            return None
        return (moment.timestamp() - self._clock()) * 1000

    def next_delay_ms(
        self,
        headers: Optional[Mapping[str, Any]],
        max_retries: int,
        retries_remaining: int,
    ) -> float:
        """
        Milliseconds to wait before the next attempt.

        A ``Retry-After`` or ``x-ratelimit-reset`` hint under one minute wins;
        otherwise exponential backoff from 500ms capped at 10s, scaled by a
        jitter factor in ``(0.75, 1.0]``.
        """
        delay = self._hinted_delay_ms(headers)
        if delay is None:
            attempts_so_far = max(0, max_retries - retries_remaining)
            backoff = min(self.initial_delay_ms * (2 ** attempts_so_far), self.max_delay_ms)
            jitter = 1 - self._rng() * 0.25
            delay = backoff * jitter
        return max(0.0, delay)
