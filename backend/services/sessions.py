# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Login and two-factor flows for user accounts.

Two-factor state per user
-------------------------
    disabled            enabled=False, secret=None
    pending             enabled=False, secret set      (after setup)
    enabled             enabled=True,  secret set      (after a correct code)

``disable`` goes back to *disabled* by clearing both columns in one commit.
*enabled* with no secret cannot be reached.

Login with 2FA enabled never returns a session token directly.  The
password check yields a 5-minute pending token; only ``verify_second_factor``
with that token and a correct code yields the 24-hour session.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from core.errors import (
    IncorrectPassword,
    InvalidCode,
    InvalidCredentials,
    InvalidState,
    InvalidToken,
    NotFound,
)
from core.logger import logger
from core.security import TokenService, decrypt_secret, encrypt_secret, verify_password
from core.totp import TwoFactorManager
from database import utcnow
from models.user import User
from repository import Repository
from services.registration import USER_UNIQUE_FIELDS

# Same message whether the email is unknown or the password is wrong
_LOGIN_FAIL = "Invalid credentials"


@dataclass
class LoginOutcome:
    user: User
    token: Optional[str] = None
    pending_token: Optional[str] = None

    @property
    def requires_second_factor(self) -> bool:
        return self.pending_token is not None


@dataclass(frozen=True)
class TwoFactorEnrollment:
    secret: str
    enrollment_image: str   # data URL of the QR code


class SessionService:
    def __init__(self, db: AsyncSession, tokens: TokenService, two_factor: TwoFactorManager):
        self.db = db
        self.tokens = tokens
        self.two_factor = two_factor
        self.users = Repository(db, User, USER_UNIQUE_FIELDS)

    async def _load(self, user_id: int, with_secret: bool = False) -> User:
        options = (undefer(User.two_factor_secret),) if with_secret else ()
        user = await self.users.find_by_id(user_id, *options)
        if user is None:
            raise NotFound("User not found")
        return user

    async def _start_session(self, user: User) -> str:
        user.last_login = utcnow()
        await self.users.save(user)
        return self.tokens.issue_session(user.id, user.role, user.email)

    # -- login -------------------------------------------------------------

    async def login(self, email: str, password: str) -> LoginOutcome:
        user = await self.users.find_one(email=(email or "").strip().lower())
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("failed login for %s", email)
            raise InvalidCredentials(_LOGIN_FAIL)

        if user.two_factor_enabled:
            pending = self.tokens.issue_pending(user.id, user.role, user.email)
            return LoginOutcome(user=user, pending_token=pending)

        return LoginOutcome(user=user, token=await self._start_session(user))

    async def verify_second_factor(self, pending_token: str, code: str) -> LoginOutcome:
        claims = self.tokens.verify(pending_token)
        if not claims.pending_second_factor:
            raise InvalidToken("Not a two-factor verification token")

        user = await self._load(claims.principal_id, with_secret=True)
        if not user.two_factor_enabled or not user.two_factor_secret:
            raise InvalidState("2FA is not enabled")

        if not self.two_factor.verify_code(decrypt_secret(user.two_factor_secret), code):
            logger.warning("wrong 2FA code at login for user %s", user.id)
            raise InvalidCode()

        return LoginOutcome(user=user, token=await self._start_session(user))

    # -- enrollment --------------------------------------------------------

    async def setup_two_factor(self, user_id: int) -> TwoFactorEnrollment:
        """disabled/pending → pending with a fresh secret."""
        user = await self._load(user_id)
        if user.two_factor_enabled:
            raise InvalidState("2FA is already enabled; disable it before setting it up again")

        enrollment = self.two_factor.generate_secret(user.email)
        user.two_factor_secret = encrypt_secret(enrollment.secret)
        await self.users.save(user)

        image = self.two_factor.render_enrollment_data_url(enrollment.provisioning_uri)
        return TwoFactorEnrollment(secret=enrollment.secret, enrollment_image=image)

    async def enable_two_factor(self, user_id: int, code: str) -> User:
        """pending → enabled, on a correct code."""
        user = await self._load(user_id, with_secret=True)
        if user.two_factor_enabled:
            raise InvalidState("2FA is already enabled")
        if not user.two_factor_secret:
            raise InvalidState("Run 2FA setup first")

        if not self.two_factor.verify_code(decrypt_secret(user.two_factor_secret), code):
            raise InvalidCode()

        user.two_factor_enabled = True
        await self.users.save(user)
        logger.info("2FA enabled for user %s", user.id)
        return user

    async def disable_two_factor(self, user_id: int, password: str) -> User:
        """enabled/pending → disabled; flag and secret cleared together."""
        user = await self._load(user_id, with_secret=True)
        if not user.two_factor_enabled and not user.two_factor_secret:
            raise InvalidState("2FA is not enabled")
        if not verify_password(password, user.password_hash):
            raise IncorrectPassword()

        user.two_factor_enabled = False
        user.two_factor_secret = None
        await self.users.save(user)
        logger.info("2FA disabled for user %s", user.id)
        return user
