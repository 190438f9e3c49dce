# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
User endpoints: registration, login with optional TOTP, profile, password,
two-factor enrollment, account deletion, role change.

Security notes
--------------
* Login returns the *same* error message whether the email doesn't exist or
  the password is wrong.  This prevents user-enumeration attacks.
* With 2FA enabled, /login only hands out a 5-minute pending token.  The
  gate rejects pending tokens everywhere; only /login/verify-2fa accepts
  one, and only it can turn it into a session.
* change-password, 2fa/disable and account deletion verify the current
  password, so a stolen (but not yet expired) token alone is not enough.
"""

from fastapi import APIRouter, Depends, Request, status

from auth.schemas import (
    ChangePasswordRequest,
    ChangeRoleRequest,
    LoginRequest,
    LoginResponse,
    PasswordConfirmation,
    ProfileResponse,
    RegisterUserResponse,
    TwoFactorCodeRequest,
    TwoFactorSetupResponse,
    UserView,
    VerifySecondFactorRequest,
)
from core.guards import Identity, account_holder, admin_only
from core.schemas import MessageResponse
from dependencies import (
    get_account_service,
    get_registration_service,
    get_session_service,
    read_form,
)
from services.accounts import AccountService
from services.registration import RegistrationService
from services.sessions import LoginOutcome, SessionService

router = APIRouter(prefix="/auth", tags=["auth"])


def _login_response(outcome: LoginOutcome) -> LoginResponse:
    if outcome.requires_second_factor:
        return LoginResponse(
            message="Two-factor verification required",
            pending_token=outcome.pending_token,
            requires_2fa=True,
        )
    return LoginResponse(
        message="Login successful",
        token=outcome.token,
        user=UserView.model_validate(outcome.user),
    )


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=RegisterUserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    registrations: RegistrationService = Depends(get_registration_service),
):
    """
    Multipart registration.  ``expertise``, ``languages`` and ``location``
    arrive as JSON text; ``profilePicture`` is an optional image file.
    """
    fields, image = await read_form(request)
    result = await registrations.register("user", fields, image)
    return RegisterUserResponse(
        message="User registered successfully",
        token=result.token,
        user=UserView.model_validate(result.user),
    )


# ---------------------------------------------------------------------------
# POST /auth/login, POST /auth/login/verify-2fa
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
async def login(body: LoginRequest, sessions: SessionService = Depends(get_session_service)):
    return _login_response(await sessions.login(body.email, body.password))


@router.post("/login/verify-2fa", response_model=LoginResponse, response_model_exclude_none=True)
async def verify_second_factor(
    body: VerifySecondFactorRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """Second login step; takes the pending token in the body, not the header."""
    return _login_response(await sessions.verify_second_factor(body.pending_token, body.code))


# ---------------------------------------------------------------------------
# GET /auth/profile, PUT /auth/profile
# ---------------------------------------------------------------------------


@router.get("/profile", response_model=UserView)
async def get_profile(
    identity: Identity = Depends(account_holder),
    accounts: AccountService = Depends(get_account_service),
):
    return await accounts.get(identity.id)


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    request: Request,
    identity: Identity = Depends(account_holder),
    accounts: AccountService = Depends(get_account_service),
):
    fields, image = await read_form(request)
    user = await accounts.update_profile(identity.id, fields, image)
    return ProfileResponse(message="Profile updated successfully", user=UserView.model_validate(user))


# ---------------------------------------------------------------------------
# PUT /auth/change-password
# ---------------------------------------------------------------------------


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    identity: Identity = Depends(account_holder),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.change_password(identity.id, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")


# ---------------------------------------------------------------------------
# POST /auth/2fa/setup, /2fa/verify, /2fa/disable
# ---------------------------------------------------------------------------


@router.post("/2fa/setup", response_model=TwoFactorSetupResponse)
async def setup_two_factor(
    identity: Identity = Depends(account_holder),
    sessions: SessionService = Depends(get_session_service),
):
    """Generate a fresh secret; 2FA stays off until /2fa/verify succeeds."""
    enrollment = await sessions.setup_two_factor(identity.id)
    return TwoFactorSetupResponse(
        message="Scan the QR code with your authenticator app, then verify a code",
        secret=enrollment.secret,
        enrollment_image=enrollment.enrollment_image,
    )


@router.post("/2fa/verify", response_model=MessageResponse)
async def enable_two_factor(
    body: TwoFactorCodeRequest,
    identity: Identity = Depends(account_holder),
    sessions: SessionService = Depends(get_session_service),
):
    await sessions.enable_two_factor(identity.id, body.code)
    return MessageResponse(message="2FA enabled successfully")


@router.post("/2fa/disable", response_model=MessageResponse)
async def disable_two_factor(
    body: PasswordConfirmation,
    identity: Identity = Depends(account_holder),
    sessions: SessionService = Depends(get_session_service),
):
    await sessions.disable_two_factor(identity.id, body.password)
    return MessageResponse(message="2FA disabled successfully")


# ---------------------------------------------------------------------------
# DELETE /auth/account
# ---------------------------------------------------------------------------


@router.delete("/account", response_model=MessageResponse)
async def delete_account(
    body: PasswordConfirmation,
    identity: Identity = Depends(account_holder),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.delete_account(identity.id, body.password)
    return MessageResponse(message="Account deleted successfully")


# ---------------------------------------------------------------------------
# PUT /auth/users/{user_id}/role   (admin)
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/role", response_model=ProfileResponse)
async def change_role(
    user_id: int,
    body: ChangeRoleRequest,
    identity: Identity = Depends(admin_only),
    accounts: AccountService = Depends(get_account_service),
):
    user = await accounts.change_role(identity.id, user_id, body.role)
    return ProfileResponse(message="Role updated successfully", user=UserView.model_validate(user))
