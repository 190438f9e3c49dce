# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Student ORM model."""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Enum, Integer, String

from database import Base, utcnow

STUDENT_STATUSES = ("Pending", "Enrolled", "Eliminated", "Suspended")
ENROLLMENT_STATUSES = ("Active", "Completed", "Dropped")

EMPTY_ADDRESS = {"street": "", "city": "", "state": "", "zipCode": "", "country": ""}


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    cnic = Column(String(13), nullable=False, unique=True, index=True)
    phone_number = Column(String(32), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(16), nullable=False)
    address = Column(JSON, nullable=False, default=lambda: dict(EMPTY_ADDRESS))
    guardian_name = Column(String(200), nullable=False)
    guardian_phone = Column(String(32), nullable=False)
    guardian_relation = Column(String(64), nullable=False)
    # Source of truth for enrollments: [{courseId, enrollmentDate, status}]
    enrolled_courses = Column(JSON, nullable=False, default=lambda: [])
    enrollment_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    status = Column(Enum(*STUDENT_STATUSES, name="student_status"), nullable=False, default="Pending")
    profile_picture = Column(String(1024), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    roll_id = Column(String(6), nullable=True, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def can_access_account(self) -> bool:
        return self.status == "Enrolled"

    def active_course_ids(self) -> list[int]:
        return [
            e["courseId"]
            for e in (self.enrolled_courses or [])
            if e.get("status", "Active") == "Active"
        ]
