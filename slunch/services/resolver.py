from __future__ import annotations

import time
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from loguru import logger

from slunch.constants import ERROR_MESSAGES, STALE_TYPE_SUFFIX, Collections
from slunch.db.store import KeyValueStore
from slunch.errors import NotFoundError, ValidationError
from slunch.parser import format_date, merge_schedules, parse_meal
from slunch.records import (
    MealRecord,
    ScheduleItem,
    ScheduleRecord,
    SchoolSearchResult,
    TimetablePeriod,
)
from slunch.services.access_tracker import AccessTracker
from slunch.services.policy import ResolverPolicy
from slunch.upstream.base import MealProvider, TimetableProvider
from slunch.utils import format_date_for_api


def meal_key(region_code: str, school_code: str, day: str) -> str:
    """Cache key for one day; ``day`` is YYYY-MM-DD so keys sort by date."""
    return f"{region_code}_{school_code}_{day}"


def month_prefix(region_code: str, school_code: str, yyyymm: str) -> str:
    return f"{region_code}_{school_code}_{yyyymm[:4]}-{yyyymm[4:6]}"


def project_meal(
    record: MealRecord,
    show_allergy: bool = False,
    show_origin: bool = False,
    show_nutrition: bool = False,
) -> Dict[str, Any]:
    """Shape a full cached record for the caller.

    Hidden fields are left out of the result entirely rather than set to None.
    """
    full = record.to_dict()
    projected: Dict[str, Any] = {
        "date": record.date,
        "meal": full["meal"] if show_allergy else [item.food for item in record.meal],
        "type": record.type,
        "calorie": record.calorie,
    }
    if show_origin:
        projected["origin"] = full["origin"]
    if show_nutrition:
        projected["nutrition"] = full["nutrition"]
    return projected


class CacheAsideResolver:
    """Serves meal, schedule and school data from the store, filling it on a miss."""

    def __init__(
        self,
        store: KeyValueStore,
        meals: MealProvider,
        timetables: TimetableProvider,
        access_tracker: AccessTracker,
        policy: Optional[ResolverPolicy] = None,
    ):
        self.store = store
        self.meals = meals
        self.timetables = timetables
        self.access_tracker = access_tracker
        self.policy = policy or ResolverPolicy()

    # ---- meals -----------------------------------------------------------

    def get_meals(
        self,
        region_code: str,
        school_code: str,
        ymd: str,
        show_allergy: bool = False,
        show_origin: bool = False,
        show_nutrition: bool = False,
        track: bool = True,
    ) -> List[Dict[str, Any]]:
        """Meals for one day (YYYYMMDD) or one month (YYYYMM), projected.

        Raises:
            ValidationError: malformed date.
            NotFoundError: upstream has no meal for the date or month.
            TransientUpstreamError: upstream unreachable and nothing stale to serve.
        """
        if not ymd or not ymd.isdigit() or len(ymd) not in (6, 8):
            raise ValidationError(ERROR_MESSAGES["INVALID_DATE"])

        start = time.monotonic()
        if len(ymd) == 6:
            records = self._resolve_month(region_code, school_code, ymd)
        else:
            records = [self.resolve_meal(region_code, school_code, ymd)]

        if track:
            self.access_tracker.record_access(school_code, region_code)

        logger.debug(
            f"NEIS-MEAL {region_code}/{school_code}/{ymd}: {len(records)} records "
            f"in {(time.monotonic() - start) * 1000:.0f}ms"
        )
        return [
            project_meal(record, show_allergy, show_origin, show_nutrition)
            for record in records
        ]

    def has_meal(self, region_code: str, school_code: str, ymd: str) -> bool:
        return self.store.exists(
            Collections.MEAL, meal_key(region_code, school_code, format_date(ymd))
        )

    def resolve_meal(self, region_code: str, school_code: str, ymd: str) -> MealRecord:
        """Full record for a single day: cache first, then upstream, then stale cache."""
        day = format_date(ymd)
        key = meal_key(region_code, school_code, day)

        cached = self.store.get(Collections.MEAL, key)
        if cached is not None:
            logger.debug(f"NEIS-MEAL cache HIT {key}")
            return MealRecord.from_dict(cached)

        logger.info(f"NEIS-MEAL cache MISS {key}, fetching from NEIS")
        try:
            records = self.fetch_meal(region_code, school_code, ymd)
        except Exception as e:
            if not self.policy.fallback.should_fall_back(e):
                raise
            stale = self._stale_meal(region_code, school_code, day)
            if stale is None:
                logger.error(f"NEIS-MEAL upstream failed for {key}, no stale cache: {e}")
                raise
            logger.warning(
                f"NEIS-MEAL upstream failed for {key}, serving stale {stale.date}: {e}"
            )
            return stale

        for record in records:
            if record.date == day:
                return record
        raise NotFoundError()

    def fetch_meal(self, region_code: str, school_code: str, ymd: str) -> List[MealRecord]:
        """Fetch, parse and persist meals for a day or month. No stale fallback.

        A key that is already stored (another writer got there first, or an
        earlier meal of the same day in this response) is left untouched and
        the stored record is returned in its place.
        """
        rows = self.policy.retry.run(
            lambda: self.meals.get_meals(region_code, school_code, ymd),
            label=f"NEIS meal {region_code}/{school_code}/{ymd}",
        )

        stored: Dict[str, MealRecord] = {}
        for row in rows:
            record = parse_meal(row, school_code, region_code)
            if record.date in stored:
                continue
            key = meal_key(region_code, school_code, record.date)
            if not self.store.put_if_absent(Collections.MEAL, key, record.to_dict()):
                existing = self.store.get(Collections.MEAL, key)
                if existing is not None:
                    record = MealRecord.from_dict(existing)
            stored[record.date] = record

        if not stored:
            raise NotFoundError()
        logger.info(
            f"NEIS-MEAL cached {len(stored)} days for {region_code}/{school_code} ({ymd})"
        )
        return [stored[day] for day in sorted(stored)]

    def _resolve_month(self, region_code: str, school_code: str, yyyymm: str) -> List[MealRecord]:
        prefix = month_prefix(region_code, school_code, yyyymm)
        entries = self.store.prefix(Collections.MEAL, prefix)
        if entries:
            logger.debug(f"NEIS-MEAL monthly cache HIT {prefix} ({len(entries)} days)")
            records = [MealRecord.from_dict(value) for _, value in entries]
            return sorted(records, key=lambda r: r.date)

        # Nothing cached for the month: fetch it whole, never day by day
        logger.info(f"NEIS-MEAL monthly cache MISS {prefix}, fetching from NEIS")
        return self.fetch_meal(region_code, school_code, yyyymm)

    def _stale_meal(self, region_code: str, school_code: str, day: str) -> Optional[MealRecord]:
        oldest, requested = self.policy.fallback.window(date.fromisoformat(day))
        entries = self.store.range(
            Collections.MEAL,
            meal_key(region_code, school_code, oldest.isoformat()),
            meal_key(region_code, school_code, requested.isoformat()),
        )
        if not entries:
            return None

        # Keys sort by date, so the last entry is the closest to the requested day
        record = MealRecord.from_dict(entries[-1][1])
        record.type = f"{record.type}{STALE_TYPE_SUFFIX}"
        return record

    def prune_meals(self, today: date, retention_days: int) -> int:
        """Remove cached meals dated more than ``retention_days`` before today."""
        cutoff = (today - timedelta(days=retention_days)).isoformat()
        removed = 0
        for key, value in self.store.items(Collections.MEAL):
            if (value.get("date") or "") < cutoff:
                self.store.remove(Collections.MEAL, key)
                removed += 1
        logger.info(f"Removed {removed} cached meals older than {cutoff}")
        return removed

    # ---- schedules -------------------------------------------------------

    def get_schedule(
        self,
        region_code: str,
        school_code: str,
        year: str,
        month: str,
        day: Optional[str] = None,
    ) -> List[ScheduleItem]:
        """Academic calendar for a month, or a single day when ``day`` is given."""
        ymd = format_date_for_api(year, month, day)
        key = f"{region_code}_{school_code}_{ymd}"
        cached = self.store.get(Collections.SCHEDULE, key)
        if cached is not None:
            logger.debug(f"NEIS-SCHEDULE cache HIT {key}")
            return ScheduleRecord.from_dict(cached).schedules

        logger.info(f"NEIS-SCHEDULE cache MISS {key}, fetching from NEIS")
        rows = self.policy.retry.run(
            lambda: self.meals.get_schedules(region_code, school_code, ymd),
            label=f"NEIS schedule {region_code}/{school_code}/{ymd}",
        )
        schedules = merge_schedules(rows)
        record = ScheduleRecord(
            schedules=schedules,
            school_code=school_code,
            region_code=region_code,
            date_key=ymd,
        )
        self.store.put_if_absent(Collections.SCHEDULE, key, record.to_dict())
        return schedules

    # ---- schools ---------------------------------------------------------

    def search_schools(self, school_name: str) -> List[SchoolSearchResult]:
        cached = self.store.get(Collections.SCHOOL, school_name)
        if cached:
            logger.debug(f"NEIS-SEARCH cache HIT {school_name} ({len(cached)} schools)")
            schools = [SchoolSearchResult(**item) for item in cached]
            return sorted(schools, key=lambda s: s.school_name)

        logger.info(f"NEIS-SEARCH cache MISS {school_name}, fetching from NEIS")
        schools = self.meals.search_schools(school_name)
        if schools:
            self.store.put(Collections.SCHOOL, school_name, [s.to_dict() for s in schools])
        return schools

    def clear_school_cache(self) -> int:
        return self.store.clear(Collections.SCHOOL)

    # ---- timetables ------------------------------------------------------

    def get_timetable(
        self,
        school_code: int,
        grade: int,
        class_num: int,
        weekday: int,
        next_week: bool = False,
    ) -> List[TimetablePeriod]:
        # Timetables carry same-day change flags, so they are always fetched live
        return self.timetables.get_timetable(school_code, grade, class_num, weekday, next_week)

    def search_timetable_schools(self, school_name: str) -> List[SchoolSearchResult]:
        return self.timetables.search_schools(school_name)

    def get_class_list(self, school_code: int) -> Dict[int, List[int]]:
        return self.timetables.get_class_list(school_code)
