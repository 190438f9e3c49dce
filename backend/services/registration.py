# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Registration orchestrator for new principals (users and students).

Sequence and failure mode of each step:

1. parse structured form fields      MalformedInput (address: tolerant)
2. email / CNIC uniqueness           DuplicateIdentity naming the field
3. optional image upload             UploadFailed, nothing is created
4. hash the password                 –
5. persist (students start Pending)  DuplicateIdentity on a lost race
6. ID card + email (students only)   best-effort, see services.id_cards
7. return the sanitized view

Step 2 is only an early answer; the unique indexes behind step 5 are what
actually prevents duplicates under concurrent registrations.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from auth.schemas import UserRegistration
from core.errors import DuplicateIdentity, MalformedInput
from core.logger import logger
from core.security import TokenService, hash_password
from core.uploads import ImageUploader
from models.course import Course
from models.student import Student
from models.user import User
from repository import Repository
from services import rosters
from services.parsing import parse_address, parse_id_list, parse_json_list, parse_json_object
from students.schemas import StudentRegistration

USER_UNIQUE_FIELDS = ("email", "cnic")
STUDENT_UNIQUE_FIELDS = ("email", "cnic", "roll_id")

_ROLL_ID_ATTEMPTS = 20


@dataclass(frozen=True)
class ImageUpload:
    data: bytes
    content_type: str


@dataclass
class UserRegistrationResult:
    user: User
    token: str


def validation_message(exc: ValidationError) -> str:
    err = exc.errors()[0]
    where = ".".join(str(p) for p in err.get("loc", ()))
    return f"{where}: {err.get('msg')}" if where else err.get("msg", "Invalid input")


async def ensure_unique(db: AsyncSession, model, email: str, cnic: str, exclude_id: Optional[int] = None) -> None:
    """Raise DuplicateIdentity('email' | 'cnic') if another row holds either value."""
    stmt = select(model).where(or_(model.email == email, model.cnic == cnic))
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    existing = (await db.execute(stmt.limit(1))).scalars().first()
    if existing is not None:
        raise DuplicateIdentity("email" if existing.email == email else "cnic")


async def enrollments_for(db: AsyncSession, course_ids: list[int]) -> list[dict]:
    """Validate course IDs against the catalog and build enrollment entries."""
    if not course_ids:
        return []
    found = (await db.execute(select(Course.id).where(Course.id.in_(course_ids)))).scalars().all()
    if len(set(found)) != len(course_ids):
        raise MalformedInput("One or more selected courses do not exist")
    now = datetime.now(timezone.utc).isoformat()
    return [{"courseId": cid, "enrollmentDate": now, "status": "Active"} for cid in course_ids]


class RegistrationService:
    def __init__(self, db: AsyncSession, uploader: ImageUploader, tokens: TokenService):
        self.db = db
        self.uploader = uploader
        self.tokens = tokens
        self.users = Repository(db, User, USER_UNIQUE_FIELDS)
        self.students = Repository(db, Student, STUDENT_UNIQUE_FIELDS)

    async def register(self, principal_type: str, fields: Mapping[str, Any], image: Optional[ImageUpload] = None):
        if principal_type == "user":
            return await self.register_user(fields, image)
        if principal_type == "student":
            return await self.register_student(fields, image)
        raise ValueError(f"unknown principal type: {principal_type}")

    # -- users -------------------------------------------------------------

    async def register_user(self, fields: Mapping[str, Any], image: Optional[ImageUpload] = None) -> UserRegistrationResult:
        data = dict(fields)
        data["expertise"] = parse_json_list(fields.get("expertise"), "expertise")
        data["languages"] = parse_json_list(fields.get("languages"), "languages")
        data["location"] = parse_json_object(fields.get("location"), "location", keys=("city", "country"))
        if not data.get("role"):
            data.pop("role", None)
        try:
            form = UserRegistration.model_validate(data)
        except ValidationError as exc:
            raise MalformedInput(validation_message(exc))

        await ensure_unique(self.db, User, form.email, form.cnic)

        picture = ""
        if image is not None:
            picture = await self.uploader.upload(image.data, image.content_type, folder="user_profiles")

        user = User(
            first_name=form.first_name,
            last_name=form.last_name,
            email=form.email,
            password_hash=hash_password(form.password),
            cnic=form.cnic,
            phone_number=form.phone_number,
            date_of_birth=form.date_of_birth,
            expertise=form.expertise,
            languages=form.languages,
            location=form.location,
            qualification=form.qualification,
            profile_picture=picture,
            role=form.role.value,
        )
        await self.users.save(user)
        logger.info("user %s registered with role %s", user.id, user.role)

        token = self.tokens.issue_session(user.id, user.role, user.email)
        return UserRegistrationResult(user=user, token=token)

    # -- students ----------------------------------------------------------

    async def register_student(self, fields: Mapping[str, Any], image: Optional[ImageUpload] = None) -> Student:
        data = dict(fields)
        data["address"] = parse_address(fields.get("address"))
        course_ids = parse_id_list(fields.get("enrolledCourses", fields.get("enrolled_courses")), "course selection")
        data.pop("enrolledCourses", None)
        data.pop("enrolled_courses", None)
        try:
            form = StudentRegistration.model_validate(data)
        except ValidationError as exc:
            raise MalformedInput(validation_message(exc))

        enrollments = await enrollments_for(self.db, course_ids)
        await ensure_unique(self.db, Student, form.email, form.cnic)

        picture = ""
        if image is not None:
            picture = await self.uploader.upload(image.data, image.content_type, folder="student_profiles")

        student = Student(
            first_name=form.first_name,
            last_name=form.last_name,
            email=form.email,
            password_hash=hash_password(form.password),
            cnic=form.cnic,
            phone_number=form.phone_number,
            date_of_birth=form.date_of_birth,
            gender=form.gender,
            address=form.address,
            guardian_name=form.guardian_name,
            guardian_phone=form.guardian_phone,
            guardian_relation=form.guardian_relation,
            enrolled_courses=enrollments,
            profile_picture=picture,
            status="Pending",
            roll_id=await self._new_roll_id(),
        )
        await self.students.save(student)
        await rosters.add_student(self.db, student.id, [e["courseId"] for e in enrollments])
        logger.info("student %s registered (roll %s), pending approval", student.id, student.roll_id)
        return student

    async def _new_roll_id(self) -> str:
        # Six digits, 100000-999999.  The unique index still guards the race.
        for _ in range(_ROLL_ID_ATTEMPTS):
            candidate = str(100000 + secrets.randbelow(900000))
            if await self.students.find_one(roll_id=candidate) is None:
                return candidate
        raise DuplicateIdentity("roll_id", "Could not allocate a unique roll ID")
