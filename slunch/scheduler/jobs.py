from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from slunch.containers import AppContainer


def run_notification_tick(container: AppContainer):
    """每分鐘推播任務"""
    try:
        container.dispatcher.tick()
    except Exception as e:
        logger.error(f"Notification tick failed: {e}")


def run_meal_precache(container: AppContainer):
    """每日預先快取今明兩天的餐點"""
    logger.info(f"Starting meal precache at {container.clock()}")
    try:
        report = container.precache.run()
        logger.info(f"Meal precache results: {report.summary()}")
    except Exception as e:
        logger.error(f"Meal precache failed: {e}")


def prune_access_stats(container: AppContainer):
    """清理過期的學校存取統計"""
    logger.info("Pruning stale school access statistics")
    try:
        container.access_tracker.prune()
    except Exception as e:
        logger.error(f"Access stat prune failed: {e}")


def cleanup_meal_cache(container: AppContainer):
    """清理超過保留天數的餐點快取"""
    logger.info("Cleaning up old cached meals")
    try:
        container.resolver.prune_meals(
            container.clock().date(), container.settings.meal_cache_retention_days
        )
    except Exception as e:
        logger.error(f"Meal cache cleanup failed: {e}")


def refresh_school_cache(container: AppContainer):
    """清空學校搜尋快取，讓下次查詢重新抓取"""
    logger.info("Clearing school search cache")
    try:
        container.resolver.clear_school_cache()
    except Exception as e:
        logger.error(f"School cache refresh failed: {e}")
