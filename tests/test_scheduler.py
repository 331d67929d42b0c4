from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from apscheduler.triggers.cron import CronTrigger
from fakes import NOW

from slunch.config import Settings
from slunch.scheduler.jobs import (
    cleanup_meal_cache,
    prune_access_stats,
    refresh_school_cache,
    run_meal_precache,
    run_notification_tick,
)
from slunch.scheduler.runner import create_scheduler


@pytest.fixture
def container():
    container = MagicMock()
    container.settings = Settings(meal_cache_retention_days=60)
    container.clock.return_value = NOW
    return container


def _fields(trigger: CronTrigger) -> dict:
    return {f.name: str(f) for f in trigger.fields}


class TestCreateScheduler:
    def test_registers_all_jobs(self, container):
        scheduler = create_scheduler(container)
        ids = {job.id for job in scheduler.get_jobs()}
        assert ids == {
            "notification_tick",
            "meal_precache",
            "meal_cache_cleanup",
            "school_cache_refresh",
            "access_stat_prune",
        }

    def test_tick_runs_every_minute_without_overlap(self, container):
        scheduler = create_scheduler(container)
        job = scheduler.get_job("notification_tick")
        assert _fields(job.trigger)["minute"] == "*"
        assert job.args == (container,)

    def test_precache_before_school(self, container):
        scheduler = create_scheduler(container)
        fields = _fields(scheduler.get_job("meal_precache").trigger)
        assert fields["hour"] == "5"
        assert fields["minute"] == "30"

    def test_weekly_jobs_on_sunday(self, container):
        scheduler = create_scheduler(container)
        assert _fields(scheduler.get_job("school_cache_refresh").trigger)["day_of_week"] == "sun"
        assert _fields(scheduler.get_job("access_stat_prune").trigger)["day_of_week"] == "sun"

    def test_uses_service_timezone(self, container):
        scheduler = create_scheduler(container)
        assert str(scheduler.get_job("meal_precache").trigger.timezone) == "Asia/Seoul"


class TestJobs:
    def test_tick_calls_dispatcher(self, container):
        run_notification_tick(container)
        container.dispatcher.tick.assert_called_once_with()

    def test_precache_logs_summary(self, container):
        container.precache.run.return_value.summary.return_value = "ok"
        with patch("slunch.scheduler.jobs.logger") as mock_logger:
            run_meal_precache(container)
        container.precache.run.assert_called_once()
        assert any("ok" in str(c) for c in mock_logger.info.call_args_list)

    def test_cleanup_uses_retention(self, container):
        cleanup_meal_cache(container)
        container.resolver.prune_meals.assert_called_once_with(date(2025, 3, 10), 60)

    def test_refresh_and_prune(self, container):
        refresh_school_cache(container)
        prune_access_stats(container)
        container.resolver.clear_school_cache.assert_called_once()
        container.access_tracker.prune.assert_called_once()

    @pytest.mark.parametrize(
        "job,attr",
        [
            (run_notification_tick, "dispatcher.tick"),
            (run_meal_precache, "precache.run"),
            (prune_access_stats, "access_tracker.prune"),
            (cleanup_meal_cache, "resolver.prune_meals"),
            (refresh_school_cache, "resolver.clear_school_cache"),
        ],
    )
    def test_job_errors_are_logged_not_raised(self, container, job, attr):
        owner, method = attr.split(".")
        getattr(getattr(container, owner), method).side_effect = RuntimeError("boom")

        with patch("slunch.scheduler.jobs.logger") as mock_logger:
            job(container)

        mock_logger.error.assert_called_once()
        assert "boom" in mock_logger.error.call_args[0][0]
