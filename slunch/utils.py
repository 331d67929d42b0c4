from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from slunch.constants import ERROR_MESSAGES
from slunch.errors import ValidationError

Clock = Callable[[], datetime]

_TIME = re.compile(r"(\d{1,2}):(\d{1,2})", re.ASCII)
_YEAR = re.compile(r"\d{4}", re.ASCII)
_MONTH_OR_DAY = re.compile(r"\d{1,2}", re.ASCII)
_YMD = re.compile(r"\d{8}", re.ASCII)


def make_clock(timezone: str) -> Clock:
    """Wall clock in the service timezone (notification times are local)."""
    tz = ZoneInfo(timezone)

    def now() -> datetime:
        return datetime.now(tz)

    return now


def validate_required(value: Any, message_key: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(ERROR_MESSAGES[message_key])


def validate_time(value: Optional[str]) -> str:
    """Validate an ``HH:MM`` time of day and return it zero-padded.

    Out-of-range values are rejected, never clamped.
    """
    validate_required(value, "TIME_REQUIRED")
    match = _TIME.fullmatch(value.strip())
    if match is None:
        raise ValidationError(ERROR_MESSAGES["INVALID_TIME_FORMAT"])

    hour, minute = int(match.group(1)), int(match.group(2))
    if not 0 <= hour <= 23:
        raise ValidationError(ERROR_MESSAGES["INVALID_TIME_HOUR"])
    if not 0 <= minute <= 59:
        raise ValidationError(ERROR_MESSAGES["INVALID_TIME_MINUTE"])
    return f"{hour:02d}:{minute:02d}"


def format_date_for_api(year: str, month: str, day: Optional[str] = None) -> str:
    """Build the NEIS date parameter: YYYYMMDD, or YYYYMM when no day is given."""
    validate_required(year, "YEAR_REQUIRED")
    validate_required(month, "MONTH_REQUIRED")
    year, month = str(year).strip(), str(month).strip()
    day = str(day).strip() if day else ""

    if not (_YEAR.fullmatch(year) and _MONTH_OR_DAY.fullmatch(month) and 1 <= int(month) <= 12):
        raise ValidationError(ERROR_MESSAGES["INVALID_DATE"])
    ymd = f"{year}{month.zfill(2)}"
    if not day:
        return ymd

    if not _MONTH_OR_DAY.fullmatch(day):
        raise ValidationError(ERROR_MESSAGES["INVALID_DATE"])
    ymd = f"{ymd}{day.zfill(2)}"
    parse_ymd(ymd)
    return ymd


def parse_ymd(ymd: str) -> date:
    if not isinstance(ymd, str) or not _YMD.fullmatch(ymd):
        raise ValidationError(ERROR_MESSAGES["INVALID_DATE"])
    try:
        return datetime.strptime(ymd, "%Y%m%d").date()
    except (TypeError, ValueError) as e:
        raise ValidationError(ERROR_MESSAGES["INVALID_DATE"]) from e


def to_ymd(day: date) -> str:
    return day.strftime("%Y%m%d")
