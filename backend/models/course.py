# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Course ORM model."""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text

from database import Base, utcnow

DELIVERY_MODES = ("Online", "Offline", "Hybrid", "Onsite")
WEEK_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    days = Column(JSON, nullable=False, default=lambda: [])
    start_time = Column(String(5), nullable=False)   # HH:MM
    end_time = Column(String(5), nullable=False)     # HH:MM
    duration = Column(Integer, nullable=False)       # weeks
    price = Column(Numeric(10, 2), nullable=False)
    mode_of_delivery = Column(Enum(*DELIVERY_MODES, name="delivery_mode"), nullable=False)
    outline = Column(Text, nullable=False, default="")
    requirements = Column(Text, nullable=False, default="")
    poster = Column(String(1024), nullable=False, default="")
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    starting_date = Column(Date, nullable=False)
    # Derived roster cache; Student.enrolled_courses is authoritative.
    # Rebuilt by services.rosters whenever enrollments change.
    students = Column(JSON, nullable=False, default=lambda: [])
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
