# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Application error taxonomy.

Services raise these; the handlers registered in ``main.py`` turn them into
``{"message": ..., "error": ...}`` JSON bodies with the matching status.
``cause`` carries the underlying exception text and is only echoed outside
production.

``MailFailed`` exists for the mail adapter contract, but registration never
lets it reach a response: ID card delivery is best-effort.
"""

from typing import Iterable, Optional

from fastapi import status


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, cause: Optional[str] = None):
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(self.message)


# -- 401 -------------------------------------------------------------------


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class InvalidToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


class TokenExpired(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Token expired"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


# -- 403 -------------------------------------------------------------------


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"

    @classmethod
    def for_roles(cls, roles: Iterable[str]) -> "Forbidden":
        return cls(f"Access denied. Required role: {' or '.join(sorted(roles))}")


class AccountInactive(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = (
        "Your account is not active. Please contact the administration for more information."
    )


# -- 4xx input / state -----------------------------------------------------


class DuplicateIdentity(AppError):
    """A unique identifier (email, CNIC, …) is already taken."""

    status_code = status.HTTP_409_CONFLICT

    _LABELS = {"email": "Email", "cnic": "CNIC", "roll_id": "Roll ID", "date": "Attendance date"}

    def __init__(self, field: str, message: Optional[str] = None, cause: Optional[str] = None):
        self.field = field
        label = self._LABELS.get(field, field)
        super().__init__(message or f"{label} already registered", cause)


class MalformedInput(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Malformed input"


class IncorrectPassword(AppError):
    """Re-verification of the current password failed on a sensitive operation."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Password is incorrect"


class InvalidCode(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid verification code"


class InvalidState(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed in the current state"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


# -- upstream collaborators ------------------------------------------------


class UploadFailed(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Error uploading image"


class MailFailed(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to send email"


class InternalError(AppError):
    pass
