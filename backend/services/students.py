# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Student registry: login, listings, administrative edits and status changes.

Registration itself lives in ``services.registration``.  Every change to a
student's enrollments is followed by a roster sync (``services.rosters``).
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy import asc, desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import AccountInactive, InvalidCredentials, MalformedInput, NotFound
from core.logger import logger
from core.roles import Role
from core.security import TokenService, verify_password
from core.uploads import ImageUploader
from models.course import Course
from models.student import STUDENT_STATUSES, Student
from repository import Page, Repository
from services import rosters
from services.id_cards import card_from_student
from services.parsing import parse_address, parse_id_list
from services.registration import (
    STUDENT_UNIQUE_FIELDS,
    ImageUpload,
    enrollments_for,
    ensure_unique,
    validation_message,
)
from students.schemas import StudentUpdate

SORTABLE_FIELDS = {
    "createdAt": Student.created_at,
    "firstName": Student.first_name,
    "lastName": Student.last_name,
    "email": Student.email,
    "rollId": Student.roll_id,
    "enrollmentDate": Student.enrollment_date,
}


@dataclass
class StudentLogin:
    student: Student
    token: str


def _search(term: Optional[str]) -> list:
    if not term:
        return []
    like = f"%{term.strip()}%"
    return [
        or_(
            Student.first_name.ilike(like),
            Student.last_name.ilike(like),
            Student.email.ilike(like),
            Student.cnic.ilike(like),
            Student.roll_id.ilike(like),
        )
    ]


async def course_names(db: AsyncSession, course_ids) -> dict:
    ids = list(set(course_ids))
    if not ids:
        return {}
    rows = (await db.execute(select(Course.id, Course.name).where(Course.id.in_(ids)))).all()
    return {cid: name for cid, name in rows}


class StudentService:
    def __init__(self, db: AsyncSession, uploader: Optional[ImageUploader] = None, tokens: Optional[TokenService] = None):
        self.db = db
        self.uploader = uploader
        self.tokens = tokens
        self.students = Repository(db, Student, STUDENT_UNIQUE_FIELDS)

    async def get(self, student_id: int) -> Student:
        student = await self.students.find_by_id(student_id)
        if student is None:
            raise NotFound("Student not found")
        return student

    # -- login -------------------------------------------------------------

    async def login(self, email: str, password: str) -> StudentLogin:
        student = await self.students.find_one(email=(email or "").strip().lower())
        if student is None or not verify_password(password, student.password_hash):
            logger.warning("failed student login for %s", email)
            raise InvalidCredentials("Invalid credentials")
        if not student.is_active or not student.can_access_account():
            raise AccountInactive(f"Your account is {student.status.lower()}. Please contact administration.")
        token = self.tokens.issue_session(student.id, Role.STUDENT.value, student.email)
        return StudentLogin(student=student, token=token)

    # -- listings ----------------------------------------------------------

    async def counts(self) -> dict:
        result = {"total": await self.students.count()}
        for status in STUDENT_STATUSES:
            result[status.lower()] = await self.students.count([Student.status == status])
        return result

    async def count_enrolled(self) -> int:
        return await self.students.count([Student.status == "Enrolled"])

    async def list_students(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        course_id: Optional[int] = None,
        city: Optional[str] = None,
    ) -> Page:
        where = _search(search)
        order_by = [Student.created_at.desc(), Student.id.desc()]
        if course_id is None and not city:
            return await self.students.paginate(where, order_by, page, limit)

        # Enrollments and address live in JSON columns; filter those in Python
        items = await self.students.find(where, order_by)
        if course_id is not None:
            items = [s for s in items if course_id in [e["courseId"] for e in s.enrolled_courses or []]]
        if city:
            wanted = city.strip().lower()
            items = [s for s in items if wanted in ((s.address or {}).get("city") or "").lower()]
        return Page.from_items(items, page, limit)

    async def list_enrolled(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        sort_field: str = "createdAt",
        sort_order: str = "desc",
    ) -> Page:
        column = SORTABLE_FIELDS.get(sort_field)
        if column is None:
            raise MalformedInput(f"Cannot sort by '{sort_field}'")
        direction = asc if sort_order == "asc" else desc
        where = [Student.status == "Enrolled", *_search(search)]
        return await self.students.paginate(where, [direction(column), Student.id], page, limit)

    async def in_course(self, course_id: int) -> list:
        """Enrolled students holding an active enrollment in *course_id*."""
        if await self.db.get(Course, course_id) is None:
            raise NotFound("Course not found")
        enrolled = await self.students.find([Student.status == "Enrolled"], [Student.first_name, Student.last_name])
        return [s for s in enrolled if course_id in s.active_course_ids()]

    # -- edits -------------------------------------------------------------

    async def update(
        self,
        student_id: int,
        fields: Mapping[str, Any],
        image: Optional[ImageUpload] = None,
    ) -> Student:
        student = await self.get(student_id)
        data = {k: v for k, v in fields.items() if k not in ("address", "enrolledCourses", "enrolled_courses", "password")}
        try:
            form = StudentUpdate.model_validate(data)
        except ValidationError as exc:
            raise MalformedInput(validation_message(exc))

        email = form.email or student.email
        cnic = form.cnic or student.cnic
        if email != student.email or cnic != student.cnic:
            await ensure_unique(self.db, Student, email, cnic, exclude_id=student.id)

        before = [e["courseId"] for e in student.enrolled_courses or []]
        raw_courses = fields.get("enrolledCourses", fields.get("enrolled_courses"))
        if raw_courses not in (None, ""):
            course_ids = parse_id_list(raw_courses, "course selection")
            kept = {e["courseId"]: e for e in student.enrolled_courses or []}
            fresh = await enrollments_for(self.db, [cid for cid in course_ids if cid not in kept])
            fresh_by_id = {e["courseId"]: e for e in fresh}
            # Existing enrollments keep their date and status
            student.enrolled_courses = [kept.get(cid) or fresh_by_id[cid] for cid in course_ids]

        if "address" in fields:
            student.address = parse_address(fields.get("address"))

        if image is not None:
            student.profile_picture = await self.uploader.upload(image.data, image.content_type, folder="student_profiles")

        for name, value in form.model_dump(exclude_none=True).items():
            setattr(student, name, value)

        await self.students.save(student)
        after = [e["courseId"] for e in student.enrolled_courses or []]
        await rosters.sync_student(self.db, student.id, before, after)
        logger.info("student %s updated", student.id)
        return student

    async def change_status(self, student_id: int, status: str) -> Student:
        student = await self.get(student_id)
        previous = student.status
        student.status = status
        await self.students.save(student)
        logger.info("student %s status %s -> %s", student.id, previous, status)
        return student

    async def delete(self, student_id: int) -> None:
        student = await self.get(student_id)
        course_ids = [e["courseId"] for e in student.enrolled_courses or []]
        await self.students.delete_by_id(student.id)
        await rosters.remove_student(self.db, student_id, course_ids)
        logger.info("student %s deleted", student_id)

    # -- ID card -----------------------------------------------------------

    async def id_card(self, student: Student):
        ids = [e["courseId"] for e in student.enrolled_courses or []]
        names = await course_names(self.db, ids[:1])
        return card_from_student(student, names.get(ids[0]) if ids else None)
