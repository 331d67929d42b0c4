from __future__ import annotations

import re
from typing import Any, Dict, List

import httpx
from loguru import logger

from slunch.constants import ELEMENTARY_SCHOOL, NEIS_NO_DATA_CODE, NEIS_OK_CODE
from slunch.errors import NotFoundError, TransientUpstreamError, UpstreamError
from slunch.records import SchoolSearchResult
from slunch.upstream.base import MealProvider, RawRow

MEAL_SERVICE = "mealServiceDietInfo"
SCHEDULE_SERVICE = "SchoolSchedule"
SCHOOL_SERVICE = "schoolInfo"
PAGE_SIZE = 1000

# NEIS server-side failures worth a retry: ERROR-500 (server), ERROR-600/601 (DB)
_TRANSIENT_CODE = re.compile(r"^ERROR-(5|6)\d\d$")
_CODE_PREFIX = re.compile(r"INFO-\d+\s*")


class NeisClient(MealProvider):
    """Client for the NEIS open API (https://open.neis.go.kr)."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://open.neis.go.kr/hub",
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(timeout=timeout)

    def close(self) -> None:
        self.client.close()

    def _request(self, service: str, params: Dict[str, Any]) -> List[RawRow]:
        query = {"Type": "json", "pIndex": 1, "pSize": PAGE_SIZE, **params}
        if self.api_key:
            query["KEY"] = self.api_key

        try:
            resp = self.client.get(f"{self.base_url}/{service}", params=query)
            resp.raise_for_status()
            data = resp.json()
        except httpx.TransportError as e:
            # TimeoutException, ConnectError, ReadError, RemoteProtocolError ...
            logger.warning(f"NEIS {service} transport error: {e!r}")
            raise TransientUpstreamError() from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"NEIS {service} HTTP {status}")
            if status >= 500 or status == 429:
                raise TransientUpstreamError() from e
            raise UpstreamError(f"NEIS HTTP {status}") from e
        except ValueError as e:
            logger.error(f"NEIS {service} returned a non-JSON body")
            raise UpstreamError("NEIS 응답을 해석할 수 없어요.") from e

        return self._extract_rows(service, data)

    def _extract_rows(self, service: str, data: Dict[str, Any]) -> List[RawRow]:
        # No-data and request errors come back as a bare top-level RESULT
        if "RESULT" in data:
            self._raise_for_result(data["RESULT"])
            return []

        body = data.get(service)
        if not body:
            raise UpstreamError(f"NEIS {service}: unexpected response shape")

        rows: List[RawRow] = []
        for section in body:
            for head_item in section.get("head", []):
                if "RESULT" in head_item:
                    self._raise_for_result(head_item["RESULT"])
            rows.extend(section.get("row", []))
        return rows

    @staticmethod
    def _raise_for_result(result: Dict[str, str]) -> None:
        code = result.get("CODE", "")
        message = _CODE_PREFIX.sub("", result.get("MESSAGE", "")).strip()
        if code == NEIS_OK_CODE:
            return
        if code == NEIS_NO_DATA_CODE:
            raise NotFoundError(message or None)
        if _TRANSIENT_CODE.match(code):
            raise TransientUpstreamError()
        raise UpstreamError(message or code)

    def get_meals(self, region_code: str, school_code: str, ymd: str) -> List[RawRow]:
        rows = self._request(
            MEAL_SERVICE,
            {
                "ATPT_OFCDC_SC_CODE": region_code,
                "SD_SCHUL_CODE": school_code,
                "MLSV_YMD": ymd,
            },
        )
        logger.debug(f"NEIS meals {region_code}/{school_code}/{ymd}: {len(rows)} rows")
        return rows

    def get_schedules(self, region_code: str, school_code: str, ymd: str) -> List[RawRow]:
        return self._request(
            SCHEDULE_SERVICE,
            {
                "ATPT_OFCDC_SC_CODE": region_code,
                "SD_SCHUL_CODE": school_code,
                "AA_YMD": ymd,
            },
        )

    def search_schools(self, school_name: str) -> List[SchoolSearchResult]:
        rows = self._request(SCHOOL_SERVICE, {"SCHUL_NM": school_name})
        return [
            SchoolSearchResult(
                school_name=row.get("SCHUL_NM", ""),
                school_code=row.get("SD_SCHUL_CODE", ""),
                region=row.get("ATPT_OFCDC_SC_NM", ""),
                region_code=row.get("ATPT_OFCDC_SC_CODE", ""),
            )
            for row in rows
            if row.get("SCHUL_KND_SC_NM") != ELEMENTARY_SCHOOL
        ]
