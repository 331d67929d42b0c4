from __future__ import annotations

from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from slunch.scheduler.jobs import (
    cleanup_meal_cache,
    prune_access_stats,
    refresh_school_cache,
    run_meal_precache,
    run_notification_tick,
)

if TYPE_CHECKING:
    from slunch.containers import AppContainer


def create_scheduler(container: AppContainer) -> BackgroundScheduler:
    timezone = container.settings.timezone
    scheduler = BackgroundScheduler(
        timezone=timezone,
        job_defaults={"max_instances": 1, "coalesce": True},
    )

    # 每分鐘檢查推播訂閱
    scheduler.add_job(
        run_notification_tick,
        CronTrigger(minute="*", timezone=timezone),
        args=[container],
        id="notification_tick",
        name="Notification Tick",
    )

    # 每日 05:30 預先快取餐點（在上學前）
    scheduler.add_job(
        run_meal_precache,
        CronTrigger(hour=5, minute=30, timezone=timezone),
        args=[container],
        id="meal_precache",
        name="Meal Precache",
    )

    # 每日凌晨 1:00 清理舊餐點快取
    scheduler.add_job(
        cleanup_meal_cache,
        CronTrigger(hour=1, minute=0, timezone=timezone),
        args=[container],
        id="meal_cache_cleanup",
        name="Meal Cache Cleanup",
    )

    # 每週日凌晨 3:00 清空學校搜尋快取
    scheduler.add_job(
        refresh_school_cache,
        CronTrigger(day_of_week="sun", hour=3, minute=0, timezone=timezone),
        args=[container],
        id="school_cache_refresh",
        name="School Cache Refresh",
    )

    # 每週日凌晨 4:00 清理存取統計
    scheduler.add_job(
        prune_access_stats,
        CronTrigger(day_of_week="sun", hour=4, minute=0, timezone=timezone),
        args=[container],
        id="access_stat_prune",
        name="Access Stat Prune",
    )

    logger.info("Scheduler configured with jobs")
    return scheduler


def start_scheduler(container: AppContainer) -> BackgroundScheduler:
    scheduler = create_scheduler(container)
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
