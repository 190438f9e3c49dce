# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Closed role set carried in session tokens."""

from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    MAINTENANCE_OFFICE = "maintenance_office"
    TEACHER = "teacher"
    STUDENT = "student"


# Roles a row in the ``users`` table may hold
USER_ROLES = {Role.USER, Role.ADMIN, Role.MAINTENANCE_OFFICE, Role.TEACHER}

# Roles anyone may pick for themselves at self-registration
SELF_ASSIGNABLE_ROLES = {Role.USER, Role.TEACHER}
