# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the course catalog."""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from core.schemas import CamelModel
from models.course import WEEK_DAYS

_HHMM_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
_DAYS = {d.lower(): d for d in WEEK_DAYS}

DeliveryMode = Literal["Online", "Offline", "Hybrid", "Onsite"]


def _minutes(hhmm: str) -> int:
    h, m = hhmm.split(":")
    return int(h) * 60 + int(m)


class CourseTiming(CamelModel):
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        v = v.strip()
        if not _HHMM_RE.match(v):
            raise ValueError("time must be in HH:MM format")
        h, m = v.split(":")
        return f"{int(h):02d}:{m}"

    @model_validator(mode="after")
    def _ordered(self):
        if _minutes(self.end_time) <= _minutes(self.start_time):
            raise ValueError("end time must be after start time")
        return self


def _normalise_days(v: List[str]) -> List[str]:
    days = []
    for raw in v:
        day = _DAYS.get(str(raw).strip().lower())
        if day is None:
            raise ValueError(f"'{raw}' is not a day of the week")
        if day not in days:
            days.append(day)
    return days


# -- Requests --------------------------------------------------------------


class CourseCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    days: List[str] = Field(min_length=1)
    timing: CourseTiming
    duration: int = Field(ge=1)           # weeks
    price: Decimal = Field(ge=0)
    mode_of_delivery: DeliveryMode
    starting_date: date
    outline: str = ""
    requirements: str = ""
    poster: str = ""

    @field_validator("name")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("days")
    @classmethod
    def _days(cls, v: List[str]) -> List[str]:
        return _normalise_days(v)


class CourseUpdate(CamelModel):
    """Partial update; omitted fields keep their value."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    days: Optional[List[str]] = Field(default=None, min_length=1)
    timing: Optional[CourseTiming] = None
    duration: Optional[int] = Field(default=None, ge=1)
    price: Optional[Decimal] = Field(default=None, ge=0)
    mode_of_delivery: Optional[DeliveryMode] = None
    is_active: Optional[bool] = None
    starting_date: Optional[date] = None
    outline: Optional[str] = None
    requirements: Optional[str] = None
    poster: Optional[str] = None

    @field_validator("days")
    @classmethod
    def _days(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _normalise_days(v) if v is not None else v


# -- Responses -------------------------------------------------------------


class CourseView(CamelModel):
    id: int
    name: str
    days: List[str]
    timing: CourseTiming
    duration: int
    price: float
    mode_of_delivery: str
    starting_date: date
    outline: str = ""
    requirements: str = ""
    poster: str = ""
    is_active: bool = True
    created_by: Optional[int] = None
    students: List[int] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _from_orm(cls, data):
        # The table stores start_time / end_time flat
        if hasattr(data, "start_time"):
            return {
                name: getattr(data, name)
                for name in cls.model_fields
                if name != "timing"
            } | {"timing": {"start_time": data.start_time, "end_time": data.end_time}}
        return data


class CourseResponse(CamelModel):
    message: str
    course: CourseView


class CoursePage(CamelModel):
    courses: List[CourseView]
    total_pages: int
    current_page: int
    total_records: int
    limit: int


class CourseCounts(CamelModel):
    total: int
    active: int
    inactive: int
    by_mode: dict = {}
