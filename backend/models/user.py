# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""User ORM model – staff and teacher accounts."""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import deferred

from database import Base, utcnow


DEFAULT_NOTIFICATIONS = {"email": True, "system": True}
DEFAULT_PREFERENCES = {"darkMode": False, "language": "en"}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    cnic = Column(String(32), nullable=False, unique=True, index=True)
    phone_number = Column(String(32), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    expertise = Column(JSON, nullable=False, default=lambda: [])
    languages = Column(JSON, nullable=False, default=lambda: [])
    location = Column(JSON, nullable=False, default=lambda: {})    # {city, country}
    qualification = Column(String(255), nullable=True)
    profile_picture = Column(String(1024), nullable=False, default="")
    role = Column(
        Enum("user", "admin", "maintenance_office", "teacher", name="user_role"),
        nullable=False,
        default="user",
    )
    is_verified = Column(Boolean, nullable=False, default=False)

    # AES-GCM encrypted base32 seed.  Deferred: never loaded unless a query
    # asks for it with undefer(User.two_factor_secret).
    two_factor_secret = deferred(Column(Text, nullable=True))
    two_factor_enabled = Column(Boolean, nullable=False, default=False)

    notifications = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_NOTIFICATIONS))
    preferences = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_PREFERENCES))
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
