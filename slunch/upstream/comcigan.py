"""Comcigan (컴시간알리미) timetable client.

Comcigan has no documented API. The landing page (``/st``) embeds a script
from which the request route, the request prefix and the numeric keys of the
timetable tables are scraped; the timetable itself is JSON padded with NUL
bytes.
"""
from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from loguru import logger

from slunch.constants import ERROR_MESSAGES
from slunch.errors import NotFoundError, TransientUpstreamError, UpstreamError
from slunch.records import SchoolSearchResult, TimetablePeriod
from slunch.upstream.base import TimetableProvider

_ROUTE = re.compile(r"\./(\d+\?\d+l)")
_PREFIX = re.compile(r"'(\d+_)'")
_ORIGINAL_KEY = re.compile(r"원자료=Q자료\(자료(\d+)")
_DAILY_KEY = re.compile(r"일일자료=Q자료\(자료(\d+)")
_TEACHER_KEY = re.compile(r"성명=자료\.자료(\d+)")
_SUBJECT_KEY = re.compile(r"자료\.자료(\d+)\[sb\]")

# Period codes pack teacher and subject as teacher * DIVISOR + subject
DEFAULT_DIVISOR = 100


@dataclass
class _PageKeys:
    route: str
    prefix: str
    original: str
    daily: str
    teacher: str
    subject: str


class ComciganClient(TimetableProvider):
    def __init__(self, base_url: str = "http://comci.net:4082", timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(timeout=timeout, headers={"User-Agent": "Mozilla/5.0"})
        self._keys: Optional[_PageKeys] = None

    def close(self) -> None:
        self.client.close()

    def _get(self, url: str) -> bytes:
        try:
            resp = self.client.get(url)
            resp.raise_for_status()
        except httpx.TransportError as e:
            logger.warning(f"Comcigan transport error: {e!r}")
            raise TransientUpstreamError() from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status >= 500:
                raise TransientUpstreamError() from e
            raise UpstreamError(f"Comcigan HTTP {status}") from e
        return resp.content

    def _page_keys(self) -> _PageKeys:
        if self._keys is not None:
            return self._keys

        source = self._get(f"{self.base_url}/st").decode("euc-kr", errors="ignore")
        try:
            self._keys = _PageKeys(
                route=_ROUTE.search(source).group(1),
                prefix=_PREFIX.search(source).group(1),
                original=_ORIGINAL_KEY.search(source).group(1),
                daily=_DAILY_KEY.search(source).group(1),
                teacher=_TEACHER_KEY.search(source).group(1),
                subject=_SUBJECT_KEY.search(source).group(1),
            )
        except AttributeError as e:
            logger.error("Comcigan page layout changed; could not locate request keys")
            raise UpstreamError("Comcigan page layout changed") from e
        return self._keys

    @staticmethod
    def _decode_json(raw: bytes) -> Dict[str, Any]:
        text = raw.decode("utf-8", errors="ignore").rstrip("\x00").strip()
        try:
            return json.loads(text)
        except ValueError as e:
            raise UpstreamError("Comcigan returned malformed data") from e

    def search_schools(self, school_name: str) -> List[SchoolSearchResult]:
        keys = self._page_keys()
        path = keys.route.split("?")[0]
        query = keys.route.split("?")[1]
        url = f"{self.base_url}/{path}?{query}{quote(school_name.encode('euc-kr'))}"
        data = self._decode_json(self._get(url))
        return [
            SchoolSearchResult(
                school_name=row[2],
                school_code=str(row[3]),
                region=row[1],
                region_code=str(row[0]),
            )
            for row in data.get("학교검색", [])
            if row[3] != 0
        ]

    def _fetch_week(self, school_code: int, next_week: bool) -> Dict[str, Any]:
        keys = self._page_keys()
        week = 2 if next_week else 1
        token = f"{keys.prefix}{school_code}_0_{week}"
        encoded = base64.b64encode(token.encode("utf-8")).decode("ascii")
        path = keys.route.split("?")[0]
        return self._decode_json(self._get(f"{self.base_url}/{path}?{encoded}"))

    def get_timetable(
        self,
        school_code: int,
        grade: int,
        class_num: int,
        weekday: int,
        next_week: bool = False,
    ) -> List[TimetablePeriod]:
        keys = self._page_keys()
        data = self._fetch_week(school_code, next_week)

        teachers = data.get(f"자료{keys.teacher}")
        subjects = data.get(f"자료{keys.subject}")
        if not teachers or not subjects:
            raise NotFoundError(ERROR_MESSAGES["SCHOOL_NOT_FOUND"])

        divisor = int(data.get("분리", DEFAULT_DIVISOR))
        try:
            daily = data[f"자료{keys.daily}"][grade][class_num][weekday]
            original = data[f"자료{keys.original}"][grade][class_num][weekday]
        except (KeyError, IndexError, TypeError) as e:
            raise NotFoundError(ERROR_MESSAGES["TIMETABLE_NOT_FOUND"]) from e

        # Index 0 holds the number of periods for that day
        period_count = daily[0] if daily else 0
        periods = []
        for i in range(1, period_count + 1):
            code = daily[i] if i < len(daily) else 0
            original_code = original[i] if i < len(original) else 0
            subject, teacher = self._resolve(code, divisor, subjects, teachers)
            period = TimetablePeriod(subject=subject, teacher=teacher)
            if code != original_code:
                original_subject, original_teacher = self._resolve(
                    original_code, divisor, subjects, teachers
                )
                period.changed = True
                period.original_subject = original_subject
                period.original_teacher = original_teacher
            periods.append(period)
        return periods

    def get_class_list(self, school_code: int) -> Dict[int, List[int]]:
        keys = self._page_keys()
        data = self._fetch_week(school_code, False)

        daily = data.get(f"자료{keys.daily}")
        if not daily:
            raise NotFoundError(ERROR_MESSAGES["SCHOOL_NOT_FOUND"])

        # 학급수[grade] is the class count; index 0 is unused like the timetable tables
        counts = data.get("학급수")
        if not counts:
            counts = [0] + [max(len(classes) - 1, 0) for classes in daily[1:]]

        class_list = {}
        for grade in range(1, len(counts)):
            count = int(counts[grade] or 0)
            if count > 0:
                class_list[grade] = list(range(1, count + 1))
        return class_list

    @staticmethod
    def _resolve(code: int, divisor: int, subjects: List[str], teachers: List[str]):
        if not code:
            return "", ""
        teacher_index, subject_index = divmod(code, divisor)
        subject = subjects[subject_index] if subject_index < len(subjects) else ""
        teacher = teachers[teacher_index] if teacher_index < len(teachers) else ""
        # Teacher names are masked after two characters
        if len(teacher) > 2:
            teacher = f"{teacher[:2]}*"
        return subject.lstrip("_"), teacher
