"""Pure parsing of upstream text fields into records. No I/O.

NEIS returns multi-valued fields as ``<br/>``-joined text, for example::

    DDISH_NM   = "쌀밥 <br/>쇠고기미역국 (5.6.16)<br/>배추김치 (9)"
    ORPLC_INFO = "쌀 : 국내산<br/>쇠고기(종류) : 국내산(한우)<br/>비고 : "
    NTR_INFO   = "탄수화물(g) : 147.4<br/>단백질(g) : 35.2"
    CAL_INFO   = "812.3 Kcal"
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Tuple

from slunch.constants import (
    ALLERGY_TYPES,
    CALORIE_UNIT,
    ITEM_DELIMITER,
    ORIGIN_REMARKS,
    SATURDAY_HOLIDAY,
)
from slunch.records import (
    Allergy,
    MealItem,
    MealRecord,
    Nutrition,
    Origin,
    ScheduleItem,
)


def split_items(raw: str) -> List[str]:
    """Split a ``<br/>``-joined field, dropping blank segments."""
    if not raw:
        return []
    return [segment.strip() for segment in raw.split(ITEM_DELIMITER) if segment.strip()]


def _split_pair(segment: str, separator: str) -> Tuple[str, str]:
    first, found, second = segment.partition(separator)
    if not found:
        return segment.strip(), ""
    return first.strip(), second.strip()


def allergy_label(code: str) -> str:
    try:
        return ALLERGY_TYPES.get(int(code), "")
    except ValueError:
        return ""


def parse_meal_item(segment: str) -> MealItem:
    food, found, codes = segment.rpartition(" (")
    if not found:
        return MealItem(food=segment.strip(), allergy=[])

    allergies = [
        Allergy(type=allergy_label(code), code=code)
        for code in (c.strip() for c in codes.replace(")", "").split("."))
        if code
    ]
    return MealItem(food=food.strip(), allergy=allergies)


def parse_meal_items(dish_name: str) -> List[MealItem]:
    return [parse_meal_item(segment) for segment in split_items(dish_name)]


def parse_origins(origin_info: str) -> List[Origin]:
    origins = []
    for segment in split_items(origin_info):
        food, origin = _split_pair(segment, ":")
        if food == ORIGIN_REMARKS:
            continue
        origins.append(Origin(food=food, origin=origin))
    return origins


def parse_nutrition(nutrition_info: str) -> List[Nutrition]:
    return [
        Nutrition(type=nutrient, amount=amount)
        for nutrient, amount in (
            _split_pair(segment, ":") for segment in split_items(nutrition_info)
        )
    ]


def parse_calorie(calorie_info: str) -> str:
    return (calorie_info or "").replace(CALORIE_UNIT, "").strip()


def format_date(ymd: str) -> str:
    """YYYYMMDD -> YYYY-MM-DD. Already-dashed dates pass through."""
    ymd = (ymd or "").strip()
    if len(ymd) == 10 and ymd[4] == "-" and ymd[7] == "-":
        return ymd
    return f"{ymd[0:4]}-{ymd[4:6]}-{ymd[6:8]}"


def parse_meal(row: Mapping[str, str], school_code: str, region_code: str) -> MealRecord:
    """Build a full record from one NEIS ``mealServiceDietInfo`` row."""
    return MealRecord(
        date=format_date(row.get("MLSV_YMD") or ""),
        meal=parse_meal_items(row.get("DDISH_NM") or ""),
        type=row.get("MMEAL_SC_NM") or "",
        origin=parse_origins(row.get("ORPLC_INFO") or ""),
        calorie=parse_calorie(row.get("CAL_INFO") or ""),
        nutrition=parse_nutrition(row.get("NTR_INFO") or ""),
        school_code=school_code,
        region_code=region_code,
    )


def merge_schedules(rows: Iterable[Mapping[str, str]]) -> List[ScheduleItem]:
    """Group NEIS ``SchoolSchedule`` rows by day and merge repeated events.

    Events on the same day are joined with ``", "``. Adjacent days carrying an
    identical label collapse into one start/end range. Saturday closures
    (토요휴업일) are not events and are dropped.
    """
    by_date: Dict[str, List[str]] = {}
    for row in rows:
        event = (row.get("EVENT_NM") or "").strip()
        if not event or event == SATURDAY_HOLIDAY:
            continue
        by_date.setdefault(format_date(row.get("AA_YMD") or ""), []).append(event)

    merged: List[ScheduleItem] = []
    for day in sorted(by_date):
        label = ", ".join(by_date[day])
        if merged and merged[-1].schedule == label:
            merged[-1].end = day
        else:
            merged.append(ScheduleItem(schedule=label, start=day, end=day))
    return merged
