# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for attendance."""

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import Field, field_validator

from core.schemas import CamelModel

AttendanceStatus = Literal["present", "absent", "late"]


def _lower(v):
    return v.strip().lower() if isinstance(v, str) else v


class AttendanceRow(CamelModel):
    student_id: int
    status: AttendanceStatus
    remarks: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return _lower(v)

    @field_validator("remarks", mode="before")
    @classmethod
    def _none_is_blank(cls, v):
        return "" if v is None else v


def _unique_students(rows: List[AttendanceRow]) -> List[AttendanceRow]:
    seen = set()
    for row in rows:
        if row.student_id in seen:
            raise ValueError(f"student {row.student_id} appears more than once")
        seen.add(row.student_id)
    return rows


# -- Requests --------------------------------------------------------------


class AttendanceCreate(CamelModel):
    course_id: int
    date: date
    students: List[AttendanceRow] = Field(min_length=1)

    @field_validator("students")
    @classmethod
    def _unique(cls, v):
        return _unique_students(v)


class AttendanceReplace(CamelModel):
    students: List[AttendanceRow] = Field(min_length=1)

    @field_validator("students")
    @classmethod
    def _unique(cls, v):
        return _unique_students(v)


class AttendanceRowUpdate(CamelModel):
    student_id: int
    status: AttendanceStatus
    remarks: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return _lower(v)


# -- Responses -------------------------------------------------------------


class AttendanceRowView(AttendanceRow):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    roll_id: Optional[str] = None


class AttendanceView(CamelModel):
    id: int
    course_id: int
    course_name: Optional[str] = None
    date: date
    students: List[AttendanceRowView] = []
    marked_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AttendanceResponse(CamelModel):
    message: str
    attendance: AttendanceView


class StudentAttendanceEntry(CamelModel):
    attendance_id: int
    date: date
    course_id: int
    course_name: Optional[str] = None
    status: str
    remarks: str = ""


class StatusCounts(CamelModel):
    present: int = 0
    absent: int = 0
    late: int = 0


class CourseStats(CamelModel):
    total_classes: int = 0
    attendance_by_status: StatusCounts = Field(default_factory=StatusCounts)


class AttendanceStats(CamelModel):
    total_classes: int
    total_students: int
    attendance_by_status: StatusCounts
    course_wise_stats: Dict[str, CourseStats] = {}
