# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, EmailStr, Field, field_validator

from core.roles import SELF_ASSIGNABLE_ROLES, Role
from core.schemas import CamelModel

MIN_PASSWORD_LENGTH = 6


# -- Requests --------------------------------------------------------------


class UserRegistration(CamelModel):
    """Validated shape of the multipart user registration form."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    cnic: str = Field(min_length=1, max_length=32)
    phone_number: str = Field(min_length=1, max_length=32)
    date_of_birth: date
    expertise: List[str] = []
    languages: List[str] = []
    location: dict = {}
    qualification: Optional[str] = None
    role: Role = Role.USER

    @field_validator("email")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("first_name", "last_name", "cnic", "phone_number")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("role")
    @classmethod
    def _self_assignable(cls, v: Role) -> Role:
        if v not in SELF_ASSIGNABLE_ROLES:
            raise ValueError(f"role '{v.value}' cannot be self-assigned")
        return v


class LoginRequest(CamelModel):
    email: str
    password: str


class VerifySecondFactorRequest(CamelModel):
    # "tempToken" is what older clients send
    pending_token: str = Field(validation_alias=AliasChoices("pendingToken", "tempToken", "pending_token"))
    code: str

    @field_validator("code", mode="before")
    @classmethod
    def _code_as_text(cls, v):
        return str(v) if v is not None else v


class TwoFactorCodeRequest(CamelModel):
    code: str

    @field_validator("code", mode="before")
    @classmethod
    def _code_as_text(cls, v):
        return str(v) if v is not None else v


class PasswordConfirmation(CamelModel):
    password: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class ChangeRoleRequest(CamelModel):
    role: Role


# -- Responses -------------------------------------------------------------


class UserView(CamelModel):
    """Public profile.  Never includes the password hash or the 2FA secret."""

    id: int
    first_name: str
    last_name: str
    email: str
    cnic: str
    phone_number: str
    date_of_birth: Optional[date] = None
    expertise: List[str] = []
    profile_picture: str = ""
    location: dict = {}
    languages: List[str] = []
    qualification: Optional[str] = None
    role: str
    is_verified: bool = False
    two_factor_enabled: bool = False
    notifications: dict = {}
    preferences: dict = {}
    last_login: Optional[datetime] = None


class RegisterUserResponse(CamelModel):
    message: str
    token: str
    user: UserView


class LoginResponse(CamelModel):
    message: str
    token: Optional[str] = None
    pending_token: Optional[str] = None
    requires_2fa: bool = Field(default=False, serialization_alias="requires2FA")
    user: Optional[UserView] = None


class ProfileResponse(CamelModel):
    message: str
    user: UserView


class TwoFactorSetupResponse(CamelModel):
    message: str
    secret: str
    # data:image/png;base64,... of the provisioning QR code
    enrollment_image: str
