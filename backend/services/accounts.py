# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Self-service account management for users: profile, password, deletion,
and the admin-only role change.

Password change and account deletion re-verify the current password.
Tokens cannot be revoked, so possession of a token alone must not be enough
for these operations.
"""

from typing import Any, Mapping, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import IncorrectPassword, InvalidState, MalformedInput, NotFound
from core.logger import logger
from core.roles import Role
from core.security import hash_password, verify_password
from core.uploads import ImageUploader
from models.user import User
from repository import Repository
from services.parsing import parse_json_list, parse_json_object
from services.registration import USER_UNIQUE_FIELDS, ImageUpload, ensure_unique

_email = TypeAdapter(EmailStr)

_TEXT_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "phoneNumber": "phone_number",
    "qualification": "qualification",
}


class AccountService:
    def __init__(self, db: AsyncSession, uploader: Optional[ImageUploader] = None):
        self.db = db
        self.uploader = uploader
        self.users = Repository(db, User, USER_UNIQUE_FIELDS)

    async def get(self, user_id: int) -> User:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def update_profile(
        self,
        user_id: int,
        fields: Mapping[str, Any],
        image: Optional[ImageUpload] = None,
    ) -> User:
        """
        Partial update.  Empty or missing fields keep their value;
        ``notifications`` and ``preferences`` are merged key by key.
        """
        user = await self.get(user_id)

        email = (fields.get("email") or "").strip().lower() or user.email
        cnic = (fields.get("cnic") or "").strip() or user.cnic
        if email != user.email:
            try:
                email = _email.validate_python(email)
            except ValidationError:
                raise MalformedInput("Invalid email address")
        if email != user.email or cnic != user.cnic:
            await ensure_unique(self.db, User, email, cnic, exclude_id=user.id)

        if image is not None:
            user.profile_picture = await self.uploader.upload(image.data, image.content_type, folder="user_profiles")

        user.email = email
        user.cnic = cnic
        for form_key, attr in _TEXT_FIELDS.items():
            value = fields.get(form_key)
            if value:
                setattr(user, attr, value.strip())

        if fields.get("location"):
            user.location = parse_json_object(fields["location"], "location", keys=("city", "country"))
        if fields.get("languages"):
            user.languages = parse_json_list(fields["languages"], "languages")
        if fields.get("expertise"):
            user.expertise = parse_json_list(fields["expertise"], "expertise")
        if fields.get("notifications"):
            merged = parse_json_object(fields["notifications"], "notifications")
            user.notifications = {**(user.notifications or {}), **merged}
        if fields.get("preferences"):
            merged = parse_json_object(fields["preferences"], "preferences")
            user.preferences = {**(user.preferences or {}), **merged}

        return await self.users.save(user)

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        user = await self.get(user_id)
        if not verify_password(current_password, user.password_hash):
            raise IncorrectPassword("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        await self.users.save(user)
        logger.info("password changed for user %s", user.id)

    async def delete_account(self, user_id: int, password: str) -> None:
        user = await self.get(user_id)
        if not verify_password(password, user.password_hash):
            raise IncorrectPassword()
        await self.users.delete_by_id(user.id)
        logger.info("user %s deleted their account", user_id)

    async def change_role(self, acting_admin_id: int, user_id: int, role: Role) -> User:
        if user_id == acting_admin_id:
            raise InvalidState("Cannot change your own role")
        if role == Role.STUDENT:
            raise MalformedInput("Students are managed through the student registry")
        user = await self.get(user_id)
        user.role = role.value
        await self.users.save(user)
        logger.info("admin %s set role of user %s to %s", acting_admin_id, user_id, role.value)
        return user
