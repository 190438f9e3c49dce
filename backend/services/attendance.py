# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Attendance records: one per course per class date, holding a row per
student ``{studentId, status, remarks}``.

A second record for the same course and date is a ``DuplicateIdentity`` on
``date``, both from the early lookup and from the unique constraint.
"""

from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import DuplicateIdentity, MalformedInput, NotFound
from core.logger import logger
from models.attendance import ATTENDANCE_STATUSES, Attendance
from models.course import Course
from models.student import Student
from repository import Repository
from services.students import course_names


def _rows(rows: Iterable) -> List[dict]:
    return [{"studentId": r.student_id, "status": r.status, "remarks": r.remarks or ""} for r in rows]


def _date_range(start: Optional[date], end: Optional[date]) -> list:
    where = []
    if start is not None:
        where.append(Attendance.date >= start)
    if end is not None:
        where.append(Attendance.date <= end)
    return where


class AttendanceService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.records = Repository(db, Attendance, ("date",))

    async def get(self, attendance_id: int) -> Attendance:
        record = await self.records.find_by_id(attendance_id)
        if record is None:
            raise NotFound("Attendance record not found")
        return record

    async def _require_course(self, course_id: int) -> Course:
        course = await self.db.get(Course, course_id)
        if course is None:
            raise NotFound("Course not found")
        return course

    async def _require_students(self, student_ids: List[int]) -> None:
        if not student_ids:
            return
        found = (await self.db.execute(select(Student.id).where(Student.id.in_(student_ids)))).scalars().all()
        missing = sorted(set(student_ids) - set(found))
        if missing:
            raise MalformedInput(f"Unknown student IDs: {', '.join(map(str, missing))}")

    # -- writes ------------------------------------------------------------

    async def mark(self, course_id: int, on: date, rows: Iterable, marked_by: Optional[int] = None) -> Attendance:
        await self._require_course(course_id)
        entries = _rows(rows)
        await self._require_students([e["studentId"] for e in entries])

        if await self.records.find_one(course_id=course_id, date=on) is not None:
            raise DuplicateIdentity("date", "Attendance already marked for this date")

        record = Attendance(course_id=course_id, date=on, students=entries, marked_by=marked_by)
        await self.records.save(record)
        logger.info("attendance %s marked for course %s on %s", record.id, course_id, on.isoformat())
        return record

    async def replace_rows(self, attendance_id: int, rows: Iterable) -> Attendance:
        record = await self.get(attendance_id)
        entries = _rows(rows)
        await self._require_students([e["studentId"] for e in entries])
        record.students = entries
        return await self.records.save(record)

    async def update_row(self, attendance_id: int, student_id: int, status: str, remarks: Optional[str] = None) -> Attendance:
        record = await self.get(attendance_id)
        if record.row_for(student_id) is None:
            raise NotFound("Student attendance record not found")
        rows = []
        for row in record.students or []:
            if row.get("studentId") == student_id:
                row = {**row, "status": status}
                if remarks:
                    row["remarks"] = remarks
            rows.append(row)
        record.students = rows
        return await self.records.save(record)

    # -- reads -------------------------------------------------------------

    async def for_course(self, course_id: int, start: Optional[date] = None, end: Optional[date] = None) -> list:
        await self._require_course(course_id)
        where = [Attendance.course_id == course_id, *_date_range(start, end)]
        return await self.records.find(where, [Attendance.date.desc()])

    async def for_student(
        self,
        student_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        course_id: Optional[int] = None,
    ) -> List[dict]:
        """One entry per class the student has a row in, newest first."""
        where = _date_range(start, end)
        if course_id is not None:
            where.append(Attendance.course_id == course_id)
        # Rows live in a JSON column; match the student in Python
        records = [r for r in await self.records.find(where, [Attendance.date.desc()]) if r.row_for(student_id)]
        names = await course_names(self.db, [r.course_id for r in records])
        entries = []
        for record in records:
            row = record.row_for(student_id)
            entries.append({
                "attendance_id": record.id,
                "date": record.date,
                "course_id": record.course_id,
                "course_name": names.get(record.course_id),
                "status": row["status"],
                "remarks": row.get("remarks", ""),
            })
        return entries

    async def for_roll_id(
        self,
        roll_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        course_id: Optional[int] = None,
    ) -> List[dict]:
        student = await Repository(self.db, Student).find_one(roll_id=roll_id)
        if student is None:
            raise NotFound("Student not found")
        return await self.for_student(student.id, start, end, course_id)

    async def stats(self, course_id: Optional[int] = None, start: Optional[date] = None, end: Optional[date] = None) -> dict:
        where = _date_range(start, end)
        if course_id is not None:
            where.append(Attendance.course_id == course_id)
        records = await self.records.find(where, [Attendance.date])
        names = await course_names(self.db, [r.course_id for r in records])

        def _empty():
            return {s: 0 for s in ATTENDANCE_STATUSES}

        totals = _empty()
        per_course = {}
        for record in records:
            name = names.get(record.course_id, str(record.course_id))
            course = per_course.setdefault(name, {"total_classes": 0, "attendance_by_status": _empty()})
            course["total_classes"] += 1
            for row in record.students or []:
                totals[row["status"]] += 1
                course["attendance_by_status"][row["status"]] += 1

        return {
            "total_classes": len(records),
            "total_students": len({row["studentId"] for r in records for row in r.students or []}),
            "attendance_by_status": totals,
            "course_wise_stats": per_course,
        }

    async def with_student_names(self, records: Iterable[Attendance]) -> List[dict]:
        """Attendance records as dicts whose rows carry the student's name and roll ID."""
        records = list(records)
        ids = {row["studentId"] for r in records for row in r.students or []}
        people = {}
        if ids:
            result = await self.db.execute(
                select(Student.id, Student.first_name, Student.last_name, Student.roll_id).where(Student.id.in_(ids))
            )
            people = {sid: (first, last, roll) for sid, first, last, roll in result.all()}
        names = await course_names(self.db, [r.course_id for r in records])

        out = []
        for record in records:
            rows = []
            for row in record.students or []:
                first, last, roll = people.get(row["studentId"], (None, None, None))
                rows.append({
                    "student_id": row["studentId"],
                    "status": row["status"],
                    "remarks": row.get("remarks", ""),
                    "first_name": first,
                    "last_name": last,
                    "roll_id": roll,
                })
            out.append({
                "id": record.id,
                "course_id": record.course_id,
                "course_name": names.get(record.course_id),
                "date": record.date,
                "students": rows,
                "marked_by": record.marked_by,
                "created_at": record.created_at,
                "updated_at": record.updated_at,
            })
        return out
