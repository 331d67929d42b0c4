"""Typed views over stored JSON.

Records are rebuilt from the store on every read; none of these objects is
shared between components.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class Allergy:
    type: str
    code: str


@dataclass
class MealItem:
    food: str
    allergy: List[Allergy] = field(default_factory=list)


@dataclass
class Origin:
    food: str
    origin: str


@dataclass
class Nutrition:
    type: str
    amount: str


@dataclass
class MealRecord:
    date: str  # YYYY-MM-DD
    meal: List[MealItem] = field(default_factory=list)
    type: str = ""
    origin: List[Origin] = field(default_factory=list)
    calorie: str = ""
    nutrition: List[Nutrition] = field(default_factory=list)
    school_code: str = ""
    region_code: str = ""

    @property
    def foods(self) -> List[str]:
        return [item.food for item in self.meal if item.food]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MealRecord":
        return cls(
            date=data.get("date") or "",
            meal=[
                MealItem(
                    food=item.get("food") or "",
                    allergy=[
                        Allergy(type=a.get("type") or "", code=a.get("code") or "")
                        for a in item.get("allergy") or []
                    ],
                )
                for item in data.get("meal") or []
            ],
            type=data.get("type") or "",
            origin=[
                Origin(food=o.get("food") or "", origin=o.get("origin") or "")
                for o in data.get("origin") or []
            ],
            calorie=data.get("calorie") or "",
            nutrition=[
                Nutrition(type=n.get("type") or "", amount=n.get("amount") or "")
                for n in data.get("nutrition") or []
            ],
            school_code=data.get("school_code") or "",
            region_code=data.get("region_code") or "",
        )


@dataclass
class ScheduleItem:
    schedule: str
    start: str
    end: str

    def to_dict(self) -> Dict[str, Any]:
        return {"schedule": self.schedule, "date": {"start": self.start, "end": self.end}}


@dataclass
class ScheduleRecord:
    schedules: List[ScheduleItem]
    school_code: str
    region_code: str
    date_key: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schedules": [item.to_dict() for item in self.schedules],
            "school_code": self.school_code,
            "region_code": self.region_code,
            "date_key": self.date_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleRecord":
        return cls(
            schedules=[
                ScheduleItem(
                    schedule=item["schedule"],
                    start=item["date"]["start"],
                    end=item["date"]["end"],
                )
                for item in data.get("schedules") or []
            ],
            school_code=data.get("school_code") or "",
            region_code=data.get("region_code") or "",
            date_key=data.get("date_key") or "",
        )


@dataclass
class AccessStat:
    school_code: str
    region_code: str
    count: int
    last_accessed: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "school_code": self.school_code,
            "region_code": self.region_code,
            "count": self.count,
            "last_accessed": self.last_accessed.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessStat":
        return cls(
            school_code=data["school_code"],
            region_code=data["region_code"],
            count=int(data.get("count", 0)),
            last_accessed=datetime.fromisoformat(data["last_accessed"]),
        )


@dataclass
class SchoolSearchResult:
    school_name: str
    school_code: str
    region: str
    region_code: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TimetablePeriod:
    subject: str
    teacher: str
    changed: bool = False
    original_subject: Optional[str] = None
    original_teacher: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "subject": self.subject,
            "teacher": self.teacher,
            "changed": self.changed,
        }
        if self.changed:
            data["originalSubject"] = self.original_subject or ""
            data["originalTeacher"] = self.original_teacher or ""
        return data
