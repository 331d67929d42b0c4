from __future__ import annotations

from dataclasses import dataclass
from typing import List

from slunch.constants import MEAL_TEXT_SEPARATOR
from slunch.records import MealRecord, TimetablePeriod


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str


def meal_text(record: MealRecord) -> str:
    return MEAL_TEXT_SEPARATOR.join(record.foods)


def format_meal(record: MealRecord) -> PushMessage:
    return PushMessage(title=f"🍴 오늘의 {record.type}", body=meal_text(record))


def format_keyword(record: MealRecord, matched: List[str]) -> PushMessage:
    return PushMessage(
        title=f"🔔 오늘 급식에 {', '.join(matched)}이(가) 나와요!",
        body=meal_text(record),
    )


def format_timetable(periods: List[TimetablePeriod]) -> PushMessage:
    subjects = [period.subject for period in periods]
    return PushMessage(
        title="📚 오늘의 시간표",
        body=f"{len(subjects)}교시 수업: {', '.join(subjects)}",
    )


def match_keywords(record: MealRecord, keywords: List[str]) -> List[str]:
    """Keywords found in the joined meal text, case-insensitive, in subscription order."""
    text = meal_text(record).casefold()
    return [keyword for keyword in keywords if keyword.casefold() in text]
