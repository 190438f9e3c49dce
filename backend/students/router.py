# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Student endpoints – public registration and login, and the administrative
registry (admin or maintenance office).

Registration and ID cards
-------------------------
A successful registration commits the student first and then schedules the
ID card email as a background task.  The task runs after the 201 response
is sent; a render or mail failure there is logged and dropped and can never
change the response.  ``POST /{id}/send-id-card`` re-runs the same delivery
and answers 202 for the same reason.
"""

import io
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from sqlalchemy.ext.asyncio import AsyncSession

from core.guards import Identity, admin_or_maintenance
from core.logger import logger
from core.schemas import MessageResponse
from core.security import TokenService, get_token_service
from core.uploads import ImageUploader, get_uploader
from database import get_db
from dependencies import get_id_card_dispatcher, get_registration_service, read_form
from repository import Page
from services.id_cards import IdCardDispatcher
from services.registration import RegistrationService
from services.students import StudentService, course_names
from students.schemas import (
    RegisterStudentResponse,
    StatusChangeRequest,
    StudentCounts,
    StudentLoginRequest,
    StudentLoginResponse,
    StudentMessageResponse,
    StudentPage,
    StudentSummary,
    StudentView,
)

router = APIRouter(prefix="/students", tags=["students"])


def get_student_service(
    db: AsyncSession = Depends(get_db),
    uploader: ImageUploader = Depends(get_uploader),
    tokens: TokenService = Depends(get_token_service),
) -> StudentService:
    return StudentService(db, uploader, tokens)


async def _id_card_or_none(students: StudentService, student):
    """The card snapshot reads course names; a failure there must not fail the registration."""
    try:
        return await students.id_card(student)
    except Exception:
        logger.exception("ID card snapshot failed for student %s", student.id)
        return None


def _page(page: Page, sort_field: Optional[str] = None, sort_order: Optional[str] = None) -> StudentPage:
    return StudentPage(
        students=[StudentView.model_validate(s) for s in page.items],
        total_pages=page.total_pages,
        current_page=page.current_page,
        total_records=page.total_records,
        limit=page.limit,
        sort_field=sort_field,
        sort_order=sort_order,
    )


# ---------------------------------------------------------------------------
# POST /students/register   (public)
# ---------------------------------------------------------------------------


@router.post("/register", response_model=RegisterStudentResponse, status_code=status.HTTP_201_CREATED)
async def register_student(
    request: Request,
    background: BackgroundTasks,
    registrations: RegistrationService = Depends(get_registration_service),
    students: StudentService = Depends(get_student_service),
    dispatcher: IdCardDispatcher = Depends(get_id_card_dispatcher),
):
    """
    Multipart registration.  ``address`` and ``enrolledCourses`` arrive as
    JSON text; a malformed address is stored as an empty address.
    """
    fields, image = await read_form(request)
    student = await registrations.register("student", fields, image)

    card = await _id_card_or_none(students, student)
    if card is not None:
        background.add_task(dispatcher.deliver, card, True)

    return RegisterStudentResponse(
        message="Student registered successfully. Your account is pending approval.",
        student=StudentView.model_validate(student),
    )


# ---------------------------------------------------------------------------
# POST /students/login   (public)
# ---------------------------------------------------------------------------


@router.post("/login", response_model=StudentLoginResponse)
async def login_student(body: StudentLoginRequest, students: StudentService = Depends(get_student_service)):
    """Only Enrolled students may log in; other statuses get 403."""
    result = await students.login(body.email, body.password)
    return StudentLoginResponse(
        message="Login successful",
        token=result.token,
        student=StudentSummary.model_validate(result.student),
    )


# ---------------------------------------------------------------------------
# Registry reads   (admin / maintenance office)
# ---------------------------------------------------------------------------


@router.get("/count", response_model=StudentCounts)
async def count_students(
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
):
    return StudentCounts(**await students.counts())


@router.get("/enrolled")
async def list_enrolled(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    sort_field: str = Query("createdAt", alias="sortField"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    count: bool = False,
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
):
    """Paginated enrolled students, or just ``{"count": n}`` with ?count=true."""
    if count:
        return {"count": await students.count_enrolled()}
    result = await students.list_enrolled(page, limit, search, sort_field, sort_order)
    return _page(result, sort_field, sort_order).model_dump(by_alias=True, mode="json")


@router.get("", response_model=StudentPage)
async def list_students(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    course_id: Optional[int] = Query(None, alias="courseId"),
    city: Optional[str] = None,
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
):
    return _page(await students.list_students(page, limit, search, course_id, city))


_EXPORT_HEADERS = [
    "Roll ID", "First Name", "Last Name", "Email", "CNIC", "Phone", "Gender",
    "City", "Guardian", "Guardian Phone", "Status", "Courses", "Registered",
]
_EXPORT_COL_WIDTHS = [10, 18, 18, 30, 16, 16, 10, 16, 22, 16, 12, 40, 20]
_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="00CCCC", end_color="00CCCC", fill_type="solid")
_HEADER_ALIGN = Alignment(horizontal="center", vertical="center")
_THIN_BORDER = Border(
    left=Side(style="thin", color="CCCCCC"),
    right=Side(style="thin", color="CCCCCC"),
    top=Side(style="thin", color="CCCCCC"),
    bottom=Side(style="thin", color="CCCCCC"),
)


@router.get("/export")
async def export_students(
    search: Optional[str] = None,
    course_id: Optional[int] = Query(None, alias="courseId"),
    city: Optional[str] = None,
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
    db: AsyncSession = Depends(get_db),
):
    """Export the (optionally filtered) registry as an Excel file."""
    everything = await students.list_students(1, 1_000_000, search, course_id, city)
    rows = everything.items
    names = await course_names(db, [e["courseId"] for s in rows for e in s.enrolled_courses or []])

    wb = Workbook()
    ws = wb.active
    ws.title = "Students"

    ws.append(_EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _HEADER_ALIGN
        cell.border = _THIN_BORDER

    for s in rows:
        ws.append([
            s.roll_id or "",
            s.first_name,
            s.last_name,
            s.email,
            s.cnic,
            s.phone_number,
            s.gender,
            (s.address or {}).get("city", ""),
            s.guardian_name,
            s.guardian_phone,
            s.status,
            ", ".join(names.get(e["courseId"], str(e["courseId"])) for e in s.enrolled_courses or []),
            s.created_at.strftime("%Y-%m-%d %H:%M:%S") if s.created_at else "",
        ])
        row_idx = ws.max_row
        for col_idx in range(1, len(_EXPORT_HEADERS) + 1):
            ws.cell(row=row_idx, column=col_idx).border = _THIN_BORDER

    for col_idx, width in enumerate(_EXPORT_COL_WIDTHS, start=1):
        ws.column_dimensions[chr(64 + col_idx)].width = width

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    wb.close()

    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="students.xlsx"'},
    )


@router.get("/course/{course_id}", response_model=list[StudentView])
async def students_in_course(
    course_id: int,
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
):
    return await students.in_course(course_id)


@router.get("/{student_id}", response_model=StudentView)
async def get_student(
    student_id: int,
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
):
    return await students.get(student_id)


# ---------------------------------------------------------------------------
# Registry writes   (admin / maintenance office)
# ---------------------------------------------------------------------------


@router.put("/{student_id}", response_model=StudentMessageResponse)
async def update_student(
    student_id: int,
    request: Request,
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
):
    fields, image = await read_form(request)
    student = await students.update(student_id, fields, image)
    return StudentMessageResponse(message="Student updated successfully", student=StudentView.model_validate(student))


@router.put("/{student_id}/status", response_model=StudentMessageResponse)
async def change_status(
    student_id: int,
    body: StatusChangeRequest,
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
):
    student = await students.change_status(student_id, body.status)
    return StudentMessageResponse(
        message=f"Student status updated to {student.status}",
        student=StudentView.model_validate(student),
    )


@router.delete("/{student_id}", response_model=MessageResponse)
async def delete_student(
    student_id: int,
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
):
    await students.delete(student_id)
    return MessageResponse(message="Student deleted successfully")


@router.post("/{student_id}/send-id-card", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def send_id_card(
    student_id: int,
    background: BackgroundTasks,
    _: Identity = Depends(admin_or_maintenance),
    students: StudentService = Depends(get_student_service),
    dispatcher: IdCardDispatcher = Depends(get_id_card_dispatcher),
):
    card = await students.id_card(await students.get(student_id))
    background.add_task(dispatcher.deliver, card, False)
    return MessageResponse(message="ID card delivery scheduled")
