# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the student endpoints."""

import re
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from auth.schemas import MIN_PASSWORD_LENGTH
from core.schemas import CamelModel

_CNIC_RE = re.compile(r"^\d{13}$")
_GENDERS = {"male": "male", "female": "female", "other": "other"}

StudentStatus = Literal["Pending", "Enrolled", "Eliminated", "Suspended"]


def _check_cnic(v: str) -> str:
    v = v.strip()
    if not _CNIC_RE.match(v):
        raise ValueError("CNIC must be exactly 13 digits")
    return v


def _check_gender(v: str) -> str:
    try:
        return _GENDERS[v.strip().lower()]
    except KeyError:
        raise ValueError("gender must be male, female or other")


# -- Requests --------------------------------------------------------------


class StudentRegistration(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    cnic: str
    phone_number: str = Field(min_length=1, max_length=32)
    date_of_birth: date
    gender: str
    address: dict = {}
    guardian_name: str = Field(min_length=1)
    guardian_phone: str = Field(min_length=1)
    guardian_relation: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("cnic")
    @classmethod
    def _cnic(cls, v: str) -> str:
        return _check_cnic(v)

    @field_validator("gender")
    @classmethod
    def _gender(cls, v: str) -> str:
        return _check_gender(v)


class StudentUpdate(CamelModel):
    """Every field optional; absent or empty fields keep their stored value."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    cnic: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_relation: Optional[str] = None
    status: Optional[StudentStatus] = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("email")
    @classmethod
    def _lower(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v

    @field_validator("cnic")
    @classmethod
    def _cnic(cls, v: Optional[str]) -> Optional[str]:
        return _check_cnic(v) if v else v

    @field_validator("gender")
    @classmethod
    def _gender(cls, v: Optional[str]) -> Optional[str]:
        return _check_gender(v) if v else v


class StudentLoginRequest(CamelModel):
    email: str
    password: str


class StatusChangeRequest(CamelModel):
    status: StudentStatus


# -- Responses -------------------------------------------------------------


class Enrollment(CamelModel):
    course_id: int
    enrollment_date: Optional[datetime] = None
    status: str = "Active"
    course_name: Optional[str] = None


class StudentView(CamelModel):
    """Sanitized student record; no password hash."""

    id: int
    first_name: str
    last_name: str
    email: str
    cnic: str
    phone_number: str
    date_of_birth: Optional[date] = None
    gender: str
    address: dict = {}
    guardian_name: str
    guardian_phone: str
    guardian_relation: str
    enrolled_courses: List[Enrollment] = []
    enrollment_date: Optional[datetime] = None
    status: str
    profile_picture: str = ""
    roll_id: Optional[str] = None
    created_at: Optional[datetime] = None


class StudentSummary(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    status: str
    roll_id: Optional[str] = None
    enrolled_courses: List[Enrollment] = []


class RegisterStudentResponse(CamelModel):
    message: str
    student: StudentView


class StudentLoginResponse(CamelModel):
    message: str
    token: str
    student: StudentSummary


class StudentMessageResponse(CamelModel):
    message: str
    student: StudentView


class StudentPage(CamelModel):
    students: List[StudentView]
    total_pages: int
    current_page: int
    total_records: int
    limit: int
    sort_field: Optional[str] = None
    sort_order: Optional[str] = None


class StudentCounts(CamelModel):
    total: int
    pending: int
    enrolled: int
    suspended: int
    eliminated: int
