# buildkite/retry.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, TypeVar

from jobsworth.errors import BuildkiteAPIError

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    How hard to try a Buildkite call before giving up.

    Statuses in `break_on` mean the call is misconfigured (bad token,
    wrong job id) rather than unlucky, so they are never retried.
    """
    maximum: int = 10
    interval: float = 1.0
    break_on: FrozenSet[int] = frozenset({401, 404})
    sleep: Callable[[float], None] = time.sleep


def with_retries(
    fn: Callable[[], T],
    policy: RetryPolicy,
    *,
    on_retry: Optional[Callable[[int, BuildkiteAPIError], None]] = None,
) -> T:
    """
    Call fn until it succeeds, at most policy.maximum times.

    Only BuildkiteAPIError is retried; anything else propagates at once.
    """
    attempt = 1
    while True:
        try:
            return fn()
        except BuildkiteAPIError as e:
            if e.status in policy.break_on or attempt >= policy.maximum:
                raise
            if on_retry is not None:
                on_retry(attempt, e)
            policy.sleep(policy.interval)
            attempt += 1
