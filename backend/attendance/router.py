# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Attendance endpoints.

Who may do what
---------------
* maintenance office: create (``POST /``) and replace rows (``PUT /{id}``)
* teacher: mark (``POST /mark``) and change one row (``PUT /update/{id}``)
* admin / maintenance office: course listings and statistics
* any signed-in principal: per-student history and course rosters;
  a student token only sees its own history
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from attendance.schemas import (
    AttendanceCreate,
    AttendanceReplace,
    AttendanceResponse,
    AttendanceRowUpdate,
    AttendanceStats,
    AttendanceView,
    StudentAttendanceEntry,
)
from core.errors import Forbidden
from core.guards import Identity, admin_or_maintenance, any_authenticated, maintenance_office_only, teacher_only
from database import get_db
from models.attendance import Attendance
from services.attendance import AttendanceService
from services.students import StudentService
from students.schemas import StudentView

router = APIRouter(prefix="/attendance", tags=["attendance"])


def get_attendance_service(db: AsyncSession = Depends(get_db)) -> AttendanceService:
    return AttendanceService(db)


async def _view(service: AttendanceService, record: Attendance) -> AttendanceView:
    [data] = await service.with_student_names([record])
    return AttendanceView.model_validate(data)


def _own_history_only(identity: Identity, student_id: int) -> None:
    if identity.is_student and identity.id != student_id:
        raise Forbidden("Students may only view their own attendance")


# ---------------------------------------------------------------------------
# POST /attendance, POST /attendance/mark
# ---------------------------------------------------------------------------


@router.post("", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def create_attendance(
    body: AttendanceCreate,
    _: Identity = Depends(maintenance_office_only),
    service: AttendanceService = Depends(get_attendance_service),
):
    record = await service.mark(body.course_id, body.date, body.students)
    return AttendanceResponse(message="Attendance marked successfully", attendance=await _view(service, record))


@router.post("/mark", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def mark_attendance(
    body: AttendanceCreate,
    identity: Identity = Depends(teacher_only),
    service: AttendanceService = Depends(get_attendance_service),
):
    record = await service.mark(body.course_id, body.date, body.students, marked_by=identity.id)
    return AttendanceResponse(message="Attendance marked successfully", attendance=await _view(service, record))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("/stats", response_model=AttendanceStats)
async def attendance_stats(
    course_id: Optional[int] = Query(None, alias="courseId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    _: Identity = Depends(admin_or_maintenance),
    service: AttendanceService = Depends(get_attendance_service),
):
    return AttendanceStats.model_validate(await service.stats(course_id, start_date, end_date))


@router.get("/course/{course_id}", response_model=List[AttendanceView])
async def course_attendance(
    course_id: int,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    _: Identity = Depends(admin_or_maintenance),
    service: AttendanceService = Depends(get_attendance_service),
):
    records = await service.for_course(course_id, start_date, end_date)
    return [AttendanceView.model_validate(r) for r in await service.with_student_names(records)]


@router.get("/student/{student_id}", response_model=List[StudentAttendanceEntry])
async def student_attendance(
    student_id: int,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    course_id: Optional[int] = Query(None, alias="courseId"),
    identity: Identity = Depends(any_authenticated),
    service: AttendanceService = Depends(get_attendance_service),
):
    _own_history_only(identity, student_id)
    return await service.for_student(student_id, start_date, end_date, course_id)


@router.get("/roll/{roll_id}", response_model=List[StudentAttendanceEntry])
async def roll_attendance(
    roll_id: str,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    course_id: Optional[int] = Query(None, alias="courseId"),
    identity: Identity = Depends(any_authenticated),
    service: AttendanceService = Depends(get_attendance_service),
    db: AsyncSession = Depends(get_db),
):
    if identity.is_student:
        me = await StudentService(db).get(identity.id)
        if me.roll_id != roll_id:
            raise Forbidden("Students may only view their own attendance")
    return await service.for_roll_id(roll_id, start_date, end_date, course_id)


@router.get("/students/{course_id}", response_model=List[StudentView])
async def course_students(
    course_id: int,
    _: Identity = Depends(any_authenticated),
    db: AsyncSession = Depends(get_db),
):
    """Students to take attendance for: enrolled, with an active enrollment."""
    return await StudentService(db).in_course(course_id)


# ---------------------------------------------------------------------------
# PUT /attendance/{id}, PUT /attendance/update/{id}
# ---------------------------------------------------------------------------


@router.put("/update/{attendance_id}", response_model=AttendanceView)
async def update_attendance_row(
    attendance_id: int,
    body: AttendanceRowUpdate,
    _: Identity = Depends(teacher_only),
    service: AttendanceService = Depends(get_attendance_service),
):
    record = await service.update_row(attendance_id, body.student_id, body.status, body.remarks)
    return await _view(service, record)


@router.put("/{attendance_id}", response_model=AttendanceResponse)
async def replace_attendance(
    attendance_id: int,
    body: AttendanceReplace,
    _: Identity = Depends(maintenance_office_only),
    service: AttendanceService = Depends(get_attendance_service),
):
    record = await service.replace_rows(attendance_id, body.students)
    return AttendanceResponse(message="Attendance updated successfully", attendance=await _view(service, record))
