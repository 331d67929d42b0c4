from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from slunch.api.deps import get_container
from slunch.constants import ERROR_MESSAGES
from slunch.containers import AppContainer
from slunch.errors import ValidationError
from slunch.utils import validate_required

router = APIRouter(prefix="/comcigan", tags=["comcigan"])

WEEKDAYS = range(1, 6)


def _positive(value: Optional[int], message_key: str) -> int:
    validate_required(value, message_key)
    if value <= 0:
        raise ValidationError(ERROR_MESSAGES[message_key])
    return value


@router.get("/search")
def search_schools(
    school_name: Optional[str] = Query(None, alias="schoolName"),
    container: AppContainer = Depends(get_container),
):
    validate_required(school_name, "SCHOOL_NAME_REQUIRED")
    schools = container.resolver.search_timetable_schools(school_name.strip())
    return [
        {
            "schoolName": school.school_name,
            "schoolCode": int(school.school_code),
            "region": school.region,
        }
        for school in schools
    ]


@router.get("/timetable")
def get_timetable(
    school_code: Optional[int] = Query(None, alias="schoolCode"),
    grade: Optional[int] = Query(None),
    class_num: Optional[int] = Query(None, alias="class"),
    weekday: Optional[int] = Query(None, ge=1, le=5),
    next_week: bool = Query(False, alias="nextweek"),
    container: AppContainer = Depends(get_container),
):
    """One weekday of periods, or the whole week (list per weekday) without ``weekday``."""
    school_code = _positive(school_code, "SCHOOL_CODE_REQUIRED")
    grade = _positive(grade, "GRADE_REQUIRED")
    class_num = _positive(class_num, "CLASS_REQUIRED")

    resolver = container.resolver
    if weekday is not None:
        periods = resolver.get_timetable(school_code, grade, class_num, weekday, next_week)
        return [period.to_dict() for period in periods]

    return [
        [
            period.to_dict()
            for period in resolver.get_timetable(school_code, grade, class_num, day, next_week)
        ]
        for day in WEEKDAYS
    ]


@router.get("/classList")
def get_class_list(
    school_code: Optional[int] = Query(None, alias="schoolCode"),
    container: AppContainer = Depends(get_container),
):
    """학년별 반 목록"""
    school_code = _positive(school_code, "SCHOOL_CODE_REQUIRED")
    class_list = container.resolver.get_class_list(school_code)
    return [{"grade": grade, "classes": classes} for grade, classes in class_list.items()]
