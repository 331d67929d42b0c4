"""Retry and stale-fallback rules consumed by the resolver and the precacher."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Tuple, Type, TypeVar

from loguru import logger

from slunch.errors import TransientUpstreamError

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-delay retry of transient upstream failures.

    ``max_attempts`` counts the first call, so 3 means two retries.
    """

    max_attempts: int = 1
    delay: float = 0.0
    retry_on: Tuple[Type[BaseException], ...] = (TransientUpstreamError,)

    def run(
        self,
        fn: Callable[[], T],
        label: str = "",
        sleep: Callable[[float], None] = time.sleep,
    ) -> T:
        attempt = 1
        while True:
            try:
                return fn()
            except self.retry_on as e:
                if attempt >= self.max_attempts:
                    raise
                logger.warning(
                    f"{label}: attempt {attempt}/{self.max_attempts} failed ({e}), "
                    f"retrying in {self.delay}s"
                )
                sleep(self.delay)
                attempt += 1


@dataclass(frozen=True)
class FallbackPolicy:
    """When and how far back to serve stale cache after an upstream failure."""

    window_days: int = 7
    fallback_on: Tuple[Type[BaseException], ...] = (TransientUpstreamError,)

    def should_fall_back(self, error: BaseException) -> bool:
        return self.window_days > 0 and isinstance(error, self.fallback_on)

    def window(self, day: date) -> Tuple[date, date]:
        """[oldest, requested) dates to search, requested date excluded."""
        return day - timedelta(days=self.window_days), day


@dataclass(frozen=True)
class ResolverPolicy:
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    fallback: FallbackPolicy = field(default_factory=FallbackPolicy)
