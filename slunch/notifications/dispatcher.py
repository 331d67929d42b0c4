from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from slunch.errors import DeliveryError, DeliveryInvalidTokenError
from slunch.notifications.fcm import PushSender, mask_token
from slunch.notifications.formatter import (
    PushMessage,
    format_keyword,
    format_meal,
    format_timetable,
    match_keywords,
)
from slunch.records import MealRecord, TimetablePeriod
from slunch.services.resolver import CacheAsideResolver
from slunch.services.subscriptions import SubscriptionKind, SubscriptionStore
from slunch.utils import Clock, to_ymd


class NotificationDispatcher:
    """Per-minute push delivery for meal, keyword and timetable subscriptions.

    Delivery is best-effort: a failed send is not retried until the
    subscription's time comes round again.
    """

    def __init__(
        self,
        subscriptions: SubscriptionStore,
        resolver: CacheAsideResolver,
        sender: Optional[PushSender],
        clock: Clock,
        enabled: bool = True,
    ):
        self.subscriptions = subscriptions
        self.resolver = resolver
        self.sender = sender
        self.clock = clock
        self.enabled = enabled

    def tick(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Run all three passes for the current minute.

        Returns:
            Dict with pass names as keys and count of delivered notifications as values.
        """
        if not self.enabled:
            logger.debug("Notifications are disabled, skipping tick")
            return {}
        if self.sender is None:
            logger.debug("No push sender configured, skipping tick")
            return {}

        now = now or self.clock()
        hhmm = now.strftime("%H:%M")
        today = to_ymd(now.date())

        # 同一分鐘內餐點與關鍵字推播共用一次查詢
        meals = _Memo(lambda key: self.resolver.resolve_meal(key[0], key[1], today))
        results = {
            "meal": self._meal_pass(hhmm, meals),
            "keyword": self._keyword_pass(hhmm, meals),
            "timetable": self._timetable_pass(hhmm, now.isoweekday()),
        }
        if any(results.values()):
            logger.info(f"Notification tick {hhmm}: {results}")
        return results

    def _meal_pass(self, hhmm: str, meals: _Memo) -> int:
        sent = 0
        for sub in self.subscriptions.due(SubscriptionKind.meal, hhmm):
            try:
                record: MealRecord = meals.get((sub.region_code, sub.school_code))
                if not record.foods:
                    continue
                if self._deliver(SubscriptionKind.meal, sub.token, format_meal(record)):
                    sent += 1
            except Exception as e:
                logger.error(f"FCM-meal: failed for {mask_token(sub.token)}: {e}")
        return sent

    def _keyword_pass(self, hhmm: str, meals: _Memo) -> int:
        sent = 0
        for sub in self.subscriptions.due(SubscriptionKind.keyword, hhmm):
            try:
                record: MealRecord = meals.get((sub.region_code, sub.school_code))
                matched = match_keywords(record, sub.keywords)
                if not matched:
                    continue
                message = format_keyword(record, matched)
                if self._deliver(SubscriptionKind.keyword, sub.token, message):
                    sent += 1
            except Exception as e:
                logger.error(f"FCM-keyword: failed for {mask_token(sub.token)}: {e}")
        return sent

    def _timetable_pass(self, hhmm: str, weekday: int) -> int:
        if weekday > 5:
            return 0

        timetables = _Memo(
            lambda key: self.resolver.get_timetable(key[0], key[1], key[2], weekday)
        )
        sent = 0
        for sub in self.subscriptions.due(SubscriptionKind.timetable, hhmm):
            try:
                periods: List[TimetablePeriod] = timetables.get(
                    (sub.school_code, sub.grade, sub.class_num)
                )
                periods = [p for p in periods if p.subject]
                if not periods:
                    continue
                if self._deliver(SubscriptionKind.timetable, sub.token, format_timetable(periods)):
                    sent += 1
            except Exception as e:
                logger.error(f"FCM-timetable: failed for {mask_token(sub.token)}: {e}")
        return sent

    def _deliver(self, kind: SubscriptionKind, token: str, message: PushMessage) -> bool:
        try:
            self.sender.send(token, message.title, message.body)
            return True
        except DeliveryInvalidTokenError as e:
            logger.warning(f"FCM-{kind.value}: invalid token {mask_token(token)}, removing ({e})")
            self.subscriptions.discard(kind, token)
        except DeliveryError as e:
            logger.error(f"FCM-{kind.value}: delivery failed for {mask_token(token)}: {e}")
        return False


class _Memo:
    """Resolve each key once per tick; failures are remembered and re-raised."""

    def __init__(self, resolve: Callable[[Tuple], object]):
        self.resolve = resolve
        self.values: Dict[Tuple, object] = {}
        self.errors: Dict[Tuple, Exception] = {}

    def get(self, key: Tuple):
        if key in self.errors:
            raise self.errors[key]
        if key not in self.values:
            try:
                self.values[key] = self.resolve(key)
            except Exception as e:
                self.errors[key] = e
                raise
        return self.values[key]
