# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
FastAPI dependency providers that wire the services to their collaborators.

Tests replace the outer adapters (uploader, mailer) through
``app.dependency_overrides[get_uploader]`` / ``[get_mailer]``; everything
below picks the replacement up automatically.
"""

import json
from functools import lru_cache
from typing import Optional, Tuple

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from core.config import settings
from core.errors import MalformedInput
from core.mailer import Mailer, get_mailer
from core.security import TokenService, get_token_service
from core.totp import TwoFactorManager
from core.uploads import ImageUploader, get_uploader
from database import get_db
from services.accounts import AccountService
from services.id_cards import IdCardDispatcher
from services.registration import ImageUpload, RegistrationService
from services.sessions import SessionService

PROFILE_PICTURE_FIELD = "profilePicture"


@lru_cache
def get_two_factor() -> TwoFactorManager:
    return TwoFactorManager(settings.totp_issuer, settings.totp_window_steps)


def get_session_service(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    two_factor: TwoFactorManager = Depends(get_two_factor),
) -> SessionService:
    return SessionService(db, tokens, two_factor)


def get_registration_service(
    db: AsyncSession = Depends(get_db),
    uploader: ImageUploader = Depends(get_uploader),
    tokens: TokenService = Depends(get_token_service),
) -> RegistrationService:
    return RegistrationService(db, uploader, tokens)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    uploader: ImageUploader = Depends(get_uploader),
) -> AccountService:
    return AccountService(db, uploader)


def get_id_card_dispatcher(mailer: Mailer = Depends(get_mailer)) -> IdCardDispatcher:
    return IdCardDispatcher(mailer)


async def read_form(request: Request, file_field: str = PROFILE_PICTURE_FIELD) -> Tuple[dict, Optional[ImageUpload]]:
    """
    Split a multipart (or JSON) body into plain text fields and the optional
    image.  An empty file part counts as no image.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except json.JSONDecodeError:
            raise MalformedInput("Request body is not valid JSON")
        if not isinstance(body, dict):
            raise MalformedInput("Request body must be a JSON object")
        return body, None

    form = await request.form()
    fields = {}
    image = None
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key != file_field:
                continue
            data = await value.read()
            if data:
                image = ImageUpload(data=data, content_type=value.content_type or "")
        else:
            fields[key] = value
    return fields, image
