from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from slunch.constants import Collections
from slunch.db.store import KeyValueStore
from slunch.records import AccessStat
from slunch.utils import Clock


def stat_key(school_code: str, region_code: str) -> str:
    return f"{region_code}_{school_code}"


class AccessTracker:
    """Per-school meal query popularity: how often and how recently.

    ``record_access`` is a read-modify-write on a single key; two concurrent
    touches of the same school may undercount by one, which is acceptable
    for ranking.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock,
        min_count: int = 5,
        window_days: int = 30,
        retention_days: int = 90,
    ):
        self.store = store
        self.clock = clock
        self.min_count = min_count
        self.window_days = window_days
        self.retention_days = retention_days

    def record_access(self, school_code: str, region_code: str) -> None:
        key = stat_key(school_code, region_code)
        try:
            existing = self.store.get(Collections.SCHOOL_ACCESS, key)
            if existing:
                stat = AccessStat.from_dict(existing)
                stat.count += 1
                stat.last_accessed = self.clock()
            else:
                stat = AccessStat(
                    school_code=school_code,
                    region_code=region_code,
                    count=1,
                    last_accessed=self.clock(),
                )
            self.store.put(Collections.SCHOOL_ACCESS, key, stat.to_dict())
        except SQLAlchemyError as e:
            # 統計失敗不影響查詢
            logger.error(f"Failed to track school access for {key}: {e}")

    def get(self, school_code: str, region_code: str) -> Optional[AccessStat]:
        value = self.store.get(Collections.SCHOOL_ACCESS, stat_key(school_code, region_code))
        return AccessStat.from_dict(value) if value else None

    def all_stats(self) -> List[AccessStat]:
        return [
            AccessStat.from_dict(value)
            for _, value in self.store.items(Collections.SCHOOL_ACCESS)
        ]

    def rank(self, limit: int = 20) -> List[AccessStat]:
        """Most requested schools of the trailing window, busiest first."""
        since = self.clock() - timedelta(days=self.window_days)
        candidates = [
            stat
            for stat in self.all_stats()
            if stat.count >= self.min_count and stat.last_accessed > since
        ]
        candidates.sort(key=lambda s: (s.count, s.last_accessed), reverse=True)
        return candidates[:limit]

    def stats(self, limit: int = 100) -> List[AccessStat]:
        """Unfiltered view for the admin endpoint, busiest first."""
        stats = self.all_stats()
        stats.sort(key=lambda s: (s.count, s.last_accessed), reverse=True)
        return stats[:limit]

    def prune(self) -> int:
        """Drop stats not touched within the retention horizon."""
        cutoff = self.clock() - timedelta(days=self.retention_days)
        removed = 0
        for key, value in self.store.items(Collections.SCHOOL_ACCESS):
            last_accessed = datetime.fromisoformat(value["last_accessed"])
            if last_accessed < cutoff:
                self.store.remove(Collections.SCHOOL_ACCESS, key)
                removed += 1
        logger.info(f"Pruned {removed} access records older than {self.retention_days} days")
        return removed
