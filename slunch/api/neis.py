from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from slunch.api.deps import get_container
from slunch.containers import AppContainer
from slunch.utils import format_date_for_api, validate_required

router = APIRouter(prefix="/neis", tags=["neis"])


def school_response(school) -> dict:
    return {
        "schoolName": school.school_name,
        "schoolCode": school.school_code,
        "region": school.region,
        "regionCode": school.region_code,
    }


@router.get("/search")
def search_schools(
    school_name: Optional[str] = Query(None, alias="schoolName"),
    container: AppContainer = Depends(get_container),
):
    validate_required(school_name, "SCHOOL_NAME_REQUIRED")
    schools = container.resolver.search_schools(school_name.strip())
    return [school_response(school) for school in schools]


@router.get("/meal")
def get_meal(
    school_code: Optional[str] = Query(None, alias="schoolCode"),
    region_code: Optional[str] = Query(None, alias="regionCode"),
    year: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    day: Optional[str] = Query(None),
    show_allergy: bool = Query(False, alias="showAllergy"),
    show_origin: bool = Query(False, alias="showOrigin"),
    show_nutrition: bool = Query(False, alias="showNutrition"),
    container: AppContainer = Depends(get_container),
):
    validate_required(school_code, "SCHOOL_CODE_REQUIRED")
    validate_required(region_code, "REGION_CODE_REQUIRED")
    ymd = format_date_for_api(year, month, day)
    return container.resolver.get_meals(
        region_code,
        school_code,
        ymd,
        show_allergy=show_allergy,
        show_origin=show_origin,
        show_nutrition=show_nutrition,
    )


@router.get("/schedule")
def get_schedule(
    school_code: Optional[str] = Query(None, alias="schoolCode"),
    region_code: Optional[str] = Query(None, alias="regionCode"),
    year: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    day: Optional[str] = Query(None),
    container: AppContainer = Depends(get_container),
):
    validate_required(school_code, "SCHOOL_CODE_REQUIRED")
    validate_required(region_code, "REGION_CODE_REQUIRED")
    schedules = container.resolver.get_schedule(region_code, school_code, year, month, day)
    return [item.to_dict() for item in schedules]
