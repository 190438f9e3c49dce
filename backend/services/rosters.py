# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Course roster cache maintenance.

``Student.enrolled_courses`` is authoritative.  ``Course.students`` is a
denormalised list of student IDs kept for quick lookups; it is rewritten
here whenever a student's enrollments change.  The two writes are separate
commits, so a crash in between leaves the cache stale until
``rebuild_all`` (bin/reconcile_rosters.py) runs.
"""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.course import Course
from models.student import Student


async def _courses(db: AsyncSession, course_ids: Iterable[int]) -> list:
    ids = list(set(course_ids))
    if not ids:
        return []
    return list((await db.execute(select(Course).where(Course.id.in_(ids)))).scalars().all())


async def add_student(db: AsyncSession, student_id: int, course_ids: Iterable[int]) -> None:
    courses = await _courses(db, course_ids)
    for course in courses:
        if student_id not in (course.students or []):
            # Reassign; in-place mutation of a JSON column is not tracked
            course.students = [*(course.students or []), student_id]
    if courses:
        await db.commit()


async def remove_student(db: AsyncSession, student_id: int, course_ids: Iterable[int]) -> None:
    courses = await _courses(db, course_ids)
    for course in courses:
        course.students = [s for s in (course.students or []) if s != student_id]
    if courses:
        await db.commit()


async def sync_student(db: AsyncSession, student_id: int, before: Iterable[int], after: Iterable[int]) -> None:
    before, after = set(before), set(after)
    await remove_student(db, student_id, before - after)
    await add_student(db, student_id, after - before)


async def rebuild_all(db: AsyncSession) -> int:
    """Recompute every course roster from the student records.  Returns courses changed."""
    rosters: dict[int, list[int]] = {}
    students = (await db.execute(select(Student).order_by(Student.id))).scalars().all()
    for student in students:
        for entry in student.enrolled_courses or []:
            rosters.setdefault(int(entry["courseId"]), []).append(student.id)

    changed = 0
    for course in (await db.execute(select(Course))).scalars().all():
        expected = rosters.get(course.id, [])
        if list(course.students or []) != expected:
            course.students = expected
            changed += 1
    await db.commit()
    return changed
