# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Course catalog endpoints.

Reads are public.  Writes belong to the maintenance office.  ``DELETE
/{id}`` is a soft delete (``is_active = False``); ``DELETE /{id}/permanent``
removes the row and drops the course from every student's enrollments.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFound
from core.guards import Identity, admin_or_maintenance, maintenance_office_only
from core.logger import logger
from core.schemas import MessageResponse
from courses.schemas import CourseCounts, CourseCreate, CoursePage, CourseResponse, CourseUpdate, CourseView
from database import get_db
from models.attendance import Attendance
from models.course import Course
from models.student import Student
from repository import Repository

router = APIRouter(prefix="/courses", tags=["courses"])


async def _get_course(course_id: int, db: AsyncSession) -> Course:
    course = await db.get(Course, course_id)
    if course is None:
        raise NotFound("Course not found")
    return course


# ---------------------------------------------------------------------------
# POST /courses
# ---------------------------------------------------------------------------


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    body: CourseCreate,
    identity: Identity = Depends(maintenance_office_only),
    db: AsyncSession = Depends(get_db),
):
    course = Course(
        name=body.name,
        days=body.days,
        start_time=body.timing.start_time,
        end_time=body.timing.end_time,
        duration=body.duration,
        price=body.price,
        mode_of_delivery=body.mode_of_delivery,
        starting_date=body.starting_date,
        outline=body.outline,
        requirements=body.requirements,
        poster=body.poster,
        created_by=identity.id,
    )
    await Repository(db, Course).save(course)
    logger.info("course %s created by user %s", course.id, identity.id)
    return CourseResponse(message="Course created successfully", course=CourseView.model_validate(course))


# ---------------------------------------------------------------------------
# GET /courses/count
# ---------------------------------------------------------------------------


@router.get("/count", response_model=CourseCounts)
async def count_courses(
    _: Identity = Depends(admin_or_maintenance),
    db: AsyncSession = Depends(get_db),
):
    courses = Repository(db, Course)
    total = await courses.count()
    active = await courses.count([Course.is_active.is_(True)])
    rows = (await db.execute(select(Course.mode_of_delivery, func.count()).group_by(Course.mode_of_delivery))).all()
    return CourseCounts(total=total, active=active, inactive=total - active, by_mode={m: n for m, n in rows})


# ---------------------------------------------------------------------------
# GET /courses   (public)
# ---------------------------------------------------------------------------


@router.get("", response_model=CoursePage)
async def list_courses(
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    mode: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """
    Active courses.  Without ``page`` every active course is returned on a
    single page; with it, ``search`` (name) and ``mode`` filters apply.
    """
    courses = Repository(db, Course)
    where = [Course.is_active.is_(True)]
    order_by = [Course.starting_date.desc(), Course.id.desc()]

    if page is None and not search and not mode:
        items = await courses.find(where, order_by)
        return CoursePage(
            courses=[CourseView.model_validate(c) for c in items],
            total_pages=1 if items else 0,
            current_page=1,
            total_records=len(items),
            limit=len(items),
        )

    if search:
        where.append(Course.name.ilike(f"%{search.strip()}%"))
    if mode:
        where.append(Course.mode_of_delivery == mode)
    result = await courses.paginate(where, order_by, page or 1, limit)
    return CoursePage(
        courses=[CourseView.model_validate(c) for c in result.items],
        total_pages=result.total_pages,
        current_page=result.current_page,
        total_records=result.total_records,
        limit=result.limit,
    )


@router.get("/{course_id}", response_model=CourseView)
async def get_course(course_id: int, db: AsyncSession = Depends(get_db)):
    return CourseView.model_validate(await _get_course(course_id, db))


# ---------------------------------------------------------------------------
# PUT /courses/{id}
# ---------------------------------------------------------------------------


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: int,
    body: CourseUpdate,
    _: Identity = Depends(maintenance_office_only),
    db: AsyncSession = Depends(get_db),
):
    course = await _get_course(course_id, db)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)

    timing = changes.pop("timing", None)
    if timing:
        course.start_time = timing["start_time"]
        course.end_time = timing["end_time"]
    for name, value in changes.items():
        setattr(course, name, value)

    await Repository(db, Course).save(course)
    return CourseResponse(message="Course updated successfully", course=CourseView.model_validate(course))


# ---------------------------------------------------------------------------
# DELETE /courses/{id}, DELETE /courses/{id}/permanent
# ---------------------------------------------------------------------------


@router.delete("/{course_id}", response_model=MessageResponse)
async def deactivate_course(
    course_id: int,
    _: Identity = Depends(maintenance_office_only),
    db: AsyncSession = Depends(get_db),
):
    course = await _get_course(course_id, db)
    course.is_active = False
    await Repository(db, Course).save(course)
    return MessageResponse(message="Course deleted successfully")


@router.delete("/{course_id}/permanent", response_model=MessageResponse)
async def delete_course(
    course_id: int,
    identity: Identity = Depends(maintenance_office_only),
    db: AsyncSession = Depends(get_db),
):
    course = await _get_course(course_id, db)
    # Enrollments are authoritative, so scan them rather than the roster cache
    for student in await Repository(db, Student).find():
        entries = student.enrolled_courses or []
        if any(e["courseId"] == course_id for e in entries):
            student.enrolled_courses = [e for e in entries if e["courseId"] != course_id]
    await db.execute(delete(Attendance).where(Attendance.course_id == course_id))
    await db.delete(course)
    await db.commit()
    logger.info("course %s permanently deleted by user %s", course_id, identity.id)
    return MessageResponse(message="Course permanently deleted")
