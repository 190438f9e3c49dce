from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import run
from core.errors import DuplicateIdentity
from core.security import hash_password
from database import SessionLocal
from models.student import Student
from repository import Page, Repository
from services.registration import STUDENT_UNIQUE_FIELDS


def _student(email, cnic):
    return Student(
        first_name="Ali",
        last_name="Raza",
        email=email,
        password_hash=hash_password("whatever-pass"),
        cnic=cnic,
        phone_number="03001112222",
        date_of_birth=date(2003, 1, 1),
        gender="male",
        guardian_name="Raza",
        guardian_phone="03003334444",
        guardian_relation="Father",
    )


def _save_twice(first, second):
    async def _go():
        async with SessionLocal() as db:
            repo = Repository(db, Student, STUDENT_UNIQUE_FIELDS)
            await repo.save(first)
            await repo.save(second)

    run(_go())


def test_unique_index_collision_names_the_cnic():
    with pytest.raises(DuplicateIdentity) as caught:
        _save_twice(_student("one@x.com", "1111111111111"), _student("two@x.com", "1111111111111"))

    assert caught.value.field == "cnic"
    assert caught.value.message == "CNIC already registered"


def test_unique_index_collision_names_the_email():
    with pytest.raises(DuplicateIdentity) as caught:
        _save_twice(_student("same@x.com", "1111111111111"), _student("same@x.com", "2222222222222"))

    assert caught.value.field == "email"


def test_paginate_reports_totals():
    async def _go():
        async with SessionLocal() as db:
            repo = Repository(db, Student)
            for n in range(5):
                await repo.save(_student(f"s{n}@x.com", f"{n:013d}"))
            return await repo.paginate(order_by=[Student.id], page=2, limit=2)

    page = run(_go())

    assert [s.email for s in page.items] == ["s2@x.com", "s3@x.com"]
    assert (page.total_pages, page.current_page, page.total_records) == (3, 2, 5)


def test_page_from_items_clamps_bad_input():
    page = Page.from_items(list(range(7)), page=0, limit=3)

    assert page.items == [0, 1, 2]
    assert page.current_page == 1
    assert page.total_pages == 3


def test_delete_by_id_reports_whether_a_row_existed():
    async def _go():
        async with SessionLocal() as db:
            repo = Repository(db, Student)
            student = await repo.save(_student("gone@x.com", "5555555555555"))
            return await repo.delete_by_id(student.id), await repo.delete_by_id(student.id)

    assert run(_go()) == (True, False)


def _integrity_error(message):
    return IntegrityError("INSERT INTO students ...", {}, Exception(message))


def test_collided_field_ignores_the_duplicated_value():
    repo = Repository(None, Student, STUDENT_UNIQUE_FIELDS)

    mysql = _integrity_error("(1062, \"Duplicate entry 'cnic.lover@x.com' for key 'students.ix_students_email'\")")
    sqlite = _integrity_error("UNIQUE constraint failed: students.roll_id")

    assert repo._collided_field(mysql) == "email"
    assert repo._collided_field(sqlite) == "roll_id"
