from datetime import date

import pytest
from fakes import meal_row, seed_meal

from slunch.constants import Collections
from slunch.errors import (
    NotFoundError,
    TransientUpstreamError,
    UpstreamError,
    ValidationError,
)
from slunch.records import SchoolSearchResult
from slunch.services.resolver import meal_key

REGION, SCHOOL = "B10", "7010908"


class TestSingleDate:
    def test_cache_hit_skips_upstream(self, resolver, store, meal_provider, tracker):
        seed_meal(store, REGION, SCHOOL, "2025-03-10", ["rice", "soup"])

        meals = resolver.get_meals(REGION, SCHOOL, "20250310")

        assert meals == [
            {"date": "2025-03-10", "meal": ["rice", "soup"], "type": "중식", "calorie": "600"}
        ]
        assert meal_provider.calls == []
        assert tracker.get(SCHOOL, REGION).count == 1

    def test_miss_fetches_and_persists(self, resolver, store, meal_provider):
        meal_provider.meals["20250310"] = [meal_row("20250310", "쌀밥<br/>미역국 (5.6)")]

        first = resolver.get_meals(REGION, SCHOOL, "20250310")
        second = resolver.get_meals(REGION, SCHOOL, "20250310")

        assert first == second
        assert first[0]["meal"] == ["쌀밥", "미역국"]
        assert len(meal_provider.meal_calls()) == 1
        assert store.exists(Collections.MEAL, meal_key(REGION, SCHOOL, "2025-03-10"))

    def test_access_recorded_on_miss_and_hit(self, resolver, meal_provider, tracker):
        meal_provider.meals["20250310"] = [meal_row("20250310", "쌀밥")]
        resolver.get_meals(REGION, SCHOOL, "20250310")
        resolver.get_meals(REGION, SCHOOL, "20250310")
        assert tracker.get(SCHOOL, REGION).count == 2

    def test_untracked_query_leaves_stats_alone(self, resolver, store, tracker):
        seed_meal(store, REGION, SCHOOL, "2025-03-10", ["rice"])
        resolver.get_meals(REGION, SCHOOL, "20250310", track=False)
        assert tracker.get(SCHOOL, REGION) is None

    def test_not_found_does_not_fall_back(self, resolver, store):
        seed_meal(store, REGION, SCHOOL, "2025-03-07", ["old"])
        with pytest.raises(NotFoundError):
            resolver.get_meals(REGION, SCHOOL, "20250310")

    def test_invalid_date(self, resolver):
        with pytest.raises(ValidationError):
            resolver.get_meals(REGION, SCHOOL, "2025031")
        with pytest.raises(ValidationError):
            resolver.get_meals(REGION, SCHOOL, "2025-03")


class TestStaleFallback:
    def test_transient_error_serves_closest_prior_day(self, resolver, store, meal_provider):
        seed_meal(store, REGION, SCHOOL, "2025-03-05", ["older"])
        seed_meal(store, REGION, SCHOOL, "2025-03-07", ["rice", "soup"])
        meal_provider.meals["20250310"] = TransientUpstreamError()

        meals = resolver.get_meals(REGION, SCHOOL, "20250310")

        assert meals[0]["date"] == "2025-03-07"
        assert meals[0]["meal"] == ["rice", "soup"]
        assert meals[0]["type"] == "중식 (이전 데이터)"

    def test_fallback_window_is_seven_days(self, resolver, store, meal_provider):
        seed_meal(store, REGION, SCHOOL, "2025-03-02", ["too old"])
        meal_provider.meals["20250310"] = TransientUpstreamError()
        with pytest.raises(TransientUpstreamError):
            resolver.get_meals(REGION, SCHOOL, "20250310")

    def test_stale_entry_is_not_rewritten(self, resolver, store, meal_provider):
        seed_meal(store, REGION, SCHOOL, "2025-03-07", ["rice"])
        meal_provider.meals["20250310"] = TransientUpstreamError()
        resolver.get_meals(REGION, SCHOOL, "20250310")
        stored = store.get(Collections.MEAL, meal_key(REGION, SCHOOL, "2025-03-07"))
        assert stored["type"] == "중식"
        assert not store.exists(Collections.MEAL, meal_key(REGION, SCHOOL, "2025-03-10"))

    def test_permanent_upstream_error_propagates(self, resolver, store, meal_provider):
        seed_meal(store, REGION, SCHOOL, "2025-03-07", ["rice"])
        meal_provider.meals["20250310"] = UpstreamError("bad key")
        with pytest.raises(UpstreamError) as excinfo:
            resolver.get_meals(REGION, SCHOOL, "20250310")
        assert not isinstance(excinfo.value, TransientUpstreamError)


class TestMonth:
    def test_cached_month_returns_all_sorted(self, resolver, store, meal_provider):
        seed_meal(store, REGION, SCHOOL, "2025-03-05", ["b"])
        seed_meal(store, REGION, SCHOOL, "2025-03-03", ["a"])
        seed_meal(store, REGION, SCHOOL, "2025-04-01", ["next month"])

        meals = resolver.get_meals(REGION, SCHOOL, "202503")

        assert [m["date"] for m in meals] == ["2025-03-03", "2025-03-05"]
        assert meal_provider.calls == []

    def test_empty_month_fetches_once(self, resolver, store, meal_provider):
        meal_provider.meals["202504"] = [
            meal_row("20250402", "b"),
            meal_row("20250401", "a"),
        ]

        meals = resolver.get_meals(REGION, SCHOOL, "202504")

        assert [m["date"] for m in meals] == ["2025-04-01", "2025-04-02"]
        assert meal_provider.meal_calls() == [("meal", REGION, SCHOOL, "202504")]
        assert store.count(Collections.MEAL) == 2


class TestFetchMeal:
    def test_existing_entry_wins(self, resolver, store, meal_provider):
        seed_meal(store, REGION, SCHOOL, "2025-03-10", ["stored"])
        meal_provider.meals["20250310"] = [meal_row("20250310", "fresh")]

        records = resolver.fetch_meal(REGION, SCHOOL, "20250310")

        assert records[0].foods == ["stored"]
        stored = store.get(Collections.MEAL, meal_key(REGION, SCHOOL, "2025-03-10"))
        assert stored["meal"][0]["food"] == "stored"

    def test_one_record_per_date(self, resolver, store, meal_provider):
        meal_provider.meals["20250310"] = [
            meal_row("20250310", "lunch", "중식"),
            meal_row("20250310", "dinner", "석식"),
        ]
        records = resolver.fetch_meal(REGION, SCHOOL, "20250310")
        assert len(records) == 1
        assert records[0].type == "중식"

    def test_empty_upstream_is_not_found(self, resolver, meal_provider):
        meal_provider.meals["20250310"] = []
        with pytest.raises(NotFoundError):
            resolver.fetch_meal(REGION, SCHOOL, "20250310")


class TestProjection:
    def test_flags_shape_output(self, resolver, meal_provider):
        meal_provider.meals["20250310"] = [meal_row("20250310", "미역국 (5.6)")]

        plain = resolver.get_meals(REGION, SCHOOL, "20250310")[0]
        full = resolver.get_meals(
            REGION, SCHOOL, "20250310", show_allergy=True, show_origin=True, show_nutrition=True
        )[0]

        assert plain["meal"] == ["미역국"]
        assert "origin" not in plain
        assert "nutrition" not in plain
        assert full["meal"][0]["allergy"][0] == {"type": "대두", "code": "5"}
        assert full["origin"] == [{"food": "쌀", "origin": "국내산"}]
        assert full["nutrition"][0] == {"type": "탄수화물(g)", "amount": "90.1"}


class TestSchedule:
    def test_cache_aside(self, resolver, meal_provider):
        meal_provider.schedules["202503"] = [
            {"AA_YMD": "20250303", "EVENT_NM": "개학식"},
            {"AA_YMD": "20250308", "EVENT_NM": "토요휴업일"},
        ]

        first = resolver.get_schedule(REGION, SCHOOL, "2025", "3")
        second = resolver.get_schedule(REGION, SCHOOL, "2025", "3")

        assert [item.to_dict() for item in first] == [
            {"schedule": "개학식", "date": {"start": "2025-03-03", "end": "2025-03-03"}}
        ]
        assert [item.to_dict() for item in second] == [item.to_dict() for item in first]
        assert len([c for c in meal_provider.calls if c[0] == "schedule"]) == 1


class TestSchoolSearch:
    def test_results_cached_and_sorted_on_hit(self, resolver, meal_provider):
        meal_provider.schools = [
            SchoolSearchResult("선린중", "2", "서울", "B10"),
            SchoolSearchResult("선린인터넷고", "1", "서울", "B10"),
        ]
        resolver.search_schools("선린")
        cached = resolver.search_schools("선린")

        assert [s.school_name for s in cached] == ["선린인터넷고", "선린중"]
        assert len([c for c in meal_provider.calls if c[0] == "search"]) == 1

    def test_empty_results_not_cached(self, resolver, meal_provider, store):
        assert resolver.search_schools("없는학교") == []
        assert store.count(Collections.SCHOOL) == 0

    def test_clear_school_cache(self, resolver, meal_provider, store):
        meal_provider.schools = [SchoolSearchResult("선린인터넷고", "1", "서울", "B10")]
        resolver.search_schools("선린")
        assert resolver.clear_school_cache() == 1


class TestPruneMeals:
    def test_removes_entries_past_retention(self, resolver, store):
        seed_meal(store, REGION, SCHOOL, "2025-01-01", ["old"])
        seed_meal(store, REGION, SCHOOL, "2025-03-01", ["recent"])

        assert resolver.prune_meals(date(2025, 3, 10), retention_days=60) == 1
        assert store.count(Collections.MEAL) == 1
