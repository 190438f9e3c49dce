# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Attendance ORM model – one row per course per class date."""

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, UniqueConstraint

from database import Base, utcnow

ATTENDANCE_STATUSES = ("present", "absent", "late")


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (UniqueConstraint("course_id", "date", name="uq_attendance_course_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date = Column(Date, nullable=False)
    # [{studentId, status, remarks}]
    students = Column(JSON, nullable=False, default=lambda: [])
    # NULL when recorded by the maintenance office rather than a teacher
    marked_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def row_for(self, student_id: int):
        for row in self.students or []:
            if row.get("studentId") == student_id:
                return row
        return None
