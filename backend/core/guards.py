# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Role authorization gate.

One parameterised FastAPI dependency replaces the per-role guards:

    authorize()                               any valid full-session token
    authorize(Role.ADMIN, Role.MAINTENANCE_OFFICE)   role must be one of these
    any_authenticated, require_role(Role.TEACHER)    the two named shapes
    account_holder                            any users-table role (not student)

Order of checks, all before any handler code runs:

1. bearer token present                         else Unauthenticated (401)
2. TokenService.verify                          InvalidToken / TokenExpired (401)
3. not a pending-second-factor token            else InvalidToken (401)
4. role ∈ required roles (if any were given)    else Forbidden (403)

The role comes from the verified token only, never from body or params.  On
success the resolved ``Identity`` is returned to the handler and also put on
``request.state.identity``.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from core.errors import Forbidden, InvalidToken, Unauthenticated
from core.logger import logger
from core.roles import USER_ROLES, Role
from core.security import TokenService, get_token_service

# auto_error=False so a missing header becomes our own Unauthenticated error.
# tokenUrl is only used by the generated OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@dataclass(frozen=True)
class Identity:
    id: int
    role: str
    email: str

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT.value


def authorize(*roles: Role):
    """Build a dependency that admits full-session tokens whose role is in *roles*."""
    required = frozenset(Role(r).value for r in roles)

    async def _gate(
        request: Request,
        token: Optional[str] = Depends(oauth2_scheme),
        tokens: TokenService = Depends(get_token_service),
    ) -> Identity:
        if not token:
            raise Unauthenticated()

        claims = tokens.verify(token)

        if claims.pending_second_factor:
            logger.warning("pending 2FA token presented to %s", request.url.path)
            raise InvalidToken("Two-factor verification required")

        if required and claims.role not in required:
            logger.warning(
                "role %s denied on %s (needs %s)",
                claims.role,
                request.url.path,
                ",".join(sorted(required)),
            )
            raise Forbidden.for_roles(required)

        identity = Identity(id=claims.principal_id, role=claims.role, email=claims.email)
        request.state.identity = identity
        return identity

    return _gate


def require_role(*roles: Role):
    return authorize(*roles)


any_authenticated = authorize()
admin_only = require_role(Role.ADMIN)
maintenance_office_only = require_role(Role.MAINTENANCE_OFFICE)
admin_or_maintenance = require_role(Role.ADMIN, Role.MAINTENANCE_OFFICE)
teacher_only = require_role(Role.TEACHER)
# Rows of the users table; student tokens key into a different table
account_holder = require_role(*USER_ROLES)
