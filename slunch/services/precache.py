from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, List, Optional, Tuple

from loguru import logger

from slunch.errors import NotFoundError
from slunch.services.access_tracker import AccessTracker
from slunch.services.policy import RetryPolicy
from slunch.services.resolver import CacheAsideResolver
from slunch.services.subscriptions import SubscriptionKind, SubscriptionStore
from slunch.utils import Clock, to_ymd

Target = Tuple[str, str]  # (region_code, school_code)


@dataclass
class PrecacheReport:
    successful: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    empty: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            "successful": len(self.successful),
            "skipped": len(self.skipped),
            "empty": len(self.empty),
            "failed": len(self.failed),
        }


class PrecacheScheduler:
    """Warms the meal cache for today and tomorrow ahead of user traffic.

    Targets are the popular schools plus every school someone subscribed to.
    """

    def __init__(
        self,
        resolver: CacheAsideResolver,
        access_tracker: AccessTracker,
        subscriptions: SubscriptionStore,
        retry: RetryPolicy,
        clock: Clock,
        popular_limit: int = 50,
        dispatch_delay: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.resolver = resolver
        self.access_tracker = access_tracker
        self.subscriptions = subscriptions
        self.retry = retry
        self.clock = clock
        self.popular_limit = popular_limit
        self.dispatch_delay = dispatch_delay
        self.sleep = sleep

    def targets(self) -> List[Target]:
        seen = {}
        for stat in self.access_tracker.rank(self.popular_limit):
            seen.setdefault((stat.region_code, stat.school_code), None)
        for target in self.subscriptions.entities(
            [SubscriptionKind.meal, SubscriptionKind.keyword]
        ):
            seen.setdefault(target, None)
        return list(seen)

    def run(self, today: Optional[date] = None) -> PrecacheReport:
        today = today or self.clock().date()
        days = [to_ymd(today), to_ymd(today + timedelta(days=1))]
        targets = self.targets()
        report = PrecacheReport()
        logger.info(f"Precache: {len(targets)} schools for {days[0]} and {days[1]}")

        dispatched = 0
        for region_code, school_code in targets:
            for ymd in days:
                label = f"{region_code}/{school_code}/{ymd}"
                if self.resolver.has_meal(region_code, school_code, ymd):
                    report.skipped.append(label)
                    continue

                if dispatched and self.dispatch_delay:
                    self.sleep(self.dispatch_delay)
                dispatched += 1

                try:
                    self.retry.run(
                        lambda: self.resolver.fetch_meal(region_code, school_code, ymd),
                        label=f"Precache {label}",
                        sleep=self.sleep,
                    )
                    report.successful.append(label)
                except NotFoundError:
                    # 當天沒有供餐
                    report.empty.append(label)
                except Exception as e:
                    logger.error(f"Precache failed for {label}: {e}")
                    report.failed.append(label)

        logger.info(f"Precache completed: {report.summary()}")
        return report
