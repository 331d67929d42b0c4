"""Dependency container wiring for the application."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy import Engine

from slunch.config import Settings, get_settings
from slunch.db.database import create_db_engine, create_session_factory
from slunch.db.store import KeyValueStore
from slunch.notifications.dispatcher import NotificationDispatcher
from slunch.notifications.fcm import FcmSender, PushSender
from slunch.services.access_tracker import AccessTracker
from slunch.services.notices import NoticeStore
from slunch.services.policy import FallbackPolicy, ResolverPolicy, RetryPolicy
from slunch.services.precache import PrecacheScheduler
from slunch.services.resolver import CacheAsideResolver
from slunch.services.subscriptions import SubscriptionStore
from slunch.upstream.base import MealProvider, TimetableProvider
from slunch.upstream.comcigan import ComciganClient
from slunch.upstream.neis import NeisClient
from slunch.utils import Clock, make_clock


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    engine: Engine
    clock: Clock
    store: KeyValueStore
    meal_provider: MealProvider
    timetable_provider: TimetableProvider
    sender: Optional[PushSender]
    access_tracker: AccessTracker
    resolver: CacheAsideResolver
    subscriptions: SubscriptionStore
    notices: NoticeStore
    precache: PrecacheScheduler
    dispatcher: NotificationDispatcher

    def close(self) -> None:
        resources = [
            self.meal_provider,
            self.timetable_provider,
            self.precache.resolver.meals,
            self.dispatcher.resolver.meals,
            self.sender,
        ]
        seen = set()
        for resource in resources:
            if resource is None or id(resource) in seen:
                continue
            seen.add(id(resource))
            close = getattr(resource, "close", None)
            if close is not None:
                close()
        self.engine.dispose()
        logger.info("Container resources closed")


def build_container(
    settings: Optional[Settings] = None,
    meal_provider: Optional[MealProvider] = None,
    timetable_provider: Optional[TimetableProvider] = None,
    sender: Optional[PushSender] = None,
    clock: Optional[Clock] = None,
) -> AppContainer:
    """Create the default dependency container.

    Providers, sender and clock may be injected (tests); otherwise the real
    NEIS, Comcigan and FCM clients are built from settings.
    """
    settings = settings or get_settings()
    clock = clock or make_clock(settings.timezone)

    engine = create_db_engine(settings.database_url)
    store = KeyValueStore(create_session_factory(engine))

    if meal_provider is None:
        meal_provider = NeisClient(
            settings.neis_api_key, settings.neis_base_url, timeout=settings.neis_timeout
        )
        # 預先快取使用較短的逾時，避免單一學校拖慢整批
        precache_provider: MealProvider = NeisClient(
            settings.neis_api_key, settings.neis_base_url, timeout=settings.precache_timeout
        )
        # 推播在每分鐘排程內查詢，未命中快取時不可拖過下一次 tick
        notification_provider: MealProvider = NeisClient(
            settings.neis_api_key, settings.neis_base_url, timeout=settings.notification_timeout
        )
    else:
        precache_provider = meal_provider
        notification_provider = meal_provider
    timetable_provider = timetable_provider or ComciganClient(
        settings.comcigan_base_url, timeout=settings.comcigan_timeout
    )
    if sender is None and settings.notification_enabled:
        sender = FcmSender.from_settings(settings)

    access_tracker = AccessTracker(
        store,
        clock,
        min_count=settings.popular_min_count,
        window_days=settings.popular_window_days,
        retention_days=settings.access_retention_days,
    )
    policy = ResolverPolicy(fallback=FallbackPolicy(window_days=settings.stale_fallback_days))
    resolver = CacheAsideResolver(
        store, meal_provider, timetable_provider, access_tracker, policy=policy
    )
    precache_resolver = CacheAsideResolver(
        store, precache_provider, timetable_provider, access_tracker, policy=policy
    )
    notification_resolver = CacheAsideResolver(
        store, notification_provider, timetable_provider, access_tracker, policy=policy
    )
    subscriptions = SubscriptionStore(store)
    notices = NoticeStore(store)

    precache = PrecacheScheduler(
        precache_resolver,
        access_tracker,
        subscriptions,
        retry=RetryPolicy(
            max_attempts=settings.precache_max_attempts,
            delay=settings.precache_retry_delay,
        ),
        clock=clock,
        popular_limit=settings.precache_popular_limit,
        dispatch_delay=settings.precache_dispatch_delay,
    )
    dispatcher = NotificationDispatcher(
        subscriptions,
        notification_resolver,
        sender,
        clock,
        enabled=settings.notification_enabled,
    )

    return AppContainer(
        settings=settings,
        engine=engine,
        clock=clock,
        store=store,
        meal_provider=meal_provider,
        timetable_provider=timetable_provider,
        sender=sender,
        access_tracker=access_tracker,
        resolver=resolver,
        subscriptions=subscriptions,
        notices=notices,
        precache=precache,
        dispatcher=dispatcher,
    )
