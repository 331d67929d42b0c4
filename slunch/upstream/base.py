from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List

from slunch.records import SchoolSearchResult, TimetablePeriod

# Raw NEIS rows are passed through as-is; slunch.parser turns them into records
RawRow = Dict[str, str]


class MealProvider(ABC):
    """Meal, academic schedule and school search source (NEIS).

    Implementations raise ``NotFoundError`` when the provider definitively has
    no data, ``TransientUpstreamError`` on timeouts and connection failures and
    ``UpstreamError`` for anything else.
    """

    @abstractmethod
    def get_meals(self, region_code: str, school_code: str, ymd: str) -> List[RawRow]:
        """取得指定日期（YYYYMMDD）或月份（YYYYMM）的原始餐點資料"""
        ...

    @abstractmethod
    def get_schedules(self, region_code: str, school_code: str, ymd: str) -> List[RawRow]:
        """取得學年行事曆原始資料"""
        ...

    @abstractmethod
    def search_schools(self, school_name: str) -> List[SchoolSearchResult]:
        ...


class TimetableProvider(ABC):
    """Class timetable source (Comcigan)."""

    @abstractmethod
    def search_schools(self, school_name: str) -> List[SchoolSearchResult]:
        ...

    @abstractmethod
    def get_timetable(
        self,
        school_code: int,
        grade: int,
        class_num: int,
        weekday: int,
        next_week: bool = False,
    ) -> List[TimetablePeriod]:
        """One weekday (1=Mon .. 5=Fri) of periods, in period order."""
        ...

    @abstractmethod
    def get_class_list(self, school_code: int) -> Dict[int, List[int]]:
        """Class numbers per grade, grades in ascending order."""
        ...
