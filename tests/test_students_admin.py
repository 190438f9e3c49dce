import io
import json

from openpyxl import load_workbook

from conftest import PASSWORD, auth_as, create_course, load_course, run, student_form
from database import SessionLocal
from models.course import Course
from services import rosters


def _register(client, **overrides):
    resp = client.post("/api/students/register", data=student_form(**overrides))
    assert resp.status_code == 201
    return resp.json()["student"]


def _student_login(client, email="a@x.com"):
    return client.post("/api/students/login", json={"email": email, "password": PASSWORD})


# -- login -----------------------------------------------------------------


def test_pending_student_cannot_log_in(client):
    _register(client)

    resp = _student_login(client)

    assert resp.status_code == 403
    assert resp.json()["message"] == "Your account is pending. Please contact administration."


def test_enrolling_a_student_lets_them_log_in(client):
    student = _register(client)
    admin = auth_as("admin")

    resp = client.put(f"/api/students/{student['id']}/status", json={"status": "Enrolled"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Student status updated to Enrolled"

    login = _student_login(client)
    assert login.status_code == 200
    assert login.json()["token"]
    assert login.json()["student"]["status"] == "Enrolled"


def test_student_login_with_wrong_password(client):
    _register(client)
    resp = client.post("/api/students/login", json={"email": "a@x.com", "password": "not-the-one"})
    assert resp.status_code == 401


def test_unknown_status_is_rejected(client):
    student = _register(client)
    resp = client.put(f"/api/students/{student['id']}/status", json={"status": "Graduated"}, headers=auth_as("admin"))
    assert resp.status_code == 400


# -- listings --------------------------------------------------------------


def test_counts_by_status(client):
    first = _register(client)
    _register(client, email="b@x.com", cnic="2222222222222")
    admin = auth_as("admin")
    client.put(f"/api/students/{first['id']}/status", json={"status": "Enrolled"}, headers=admin)

    counts = client.get("/api/students/count", headers=admin).json()

    assert counts == {"total": 2, "pending": 1, "enrolled": 1, "suspended": 0, "eliminated": 0}


def test_enrolled_listing_and_count_only_mode(client):
    first = _register(client)
    _register(client, email="b@x.com", cnic="2222222222222")
    admin = auth_as("admin")
    client.put(f"/api/students/{first['id']}/status", json={"status": "Enrolled"}, headers=admin)

    listing = client.get("/api/students/enrolled?sortField=email&sortOrder=asc", headers=admin).json()
    assert [s["email"] for s in listing["students"]] == ["a@x.com"]
    assert listing["sortField"] == "email"

    assert client.get("/api/students/enrolled?count=true", headers=admin).json() == {"count": 1}


def test_enrolled_listing_rejects_unknown_sort_field(client):
    resp = client.get("/api/students/enrolled?sortField=passwordHash", headers=auth_as("admin"))
    assert resp.status_code == 400


def test_list_filters_by_search_course_and_city(client):
    course = create_course()
    _register(client, enrolledCourses=json.dumps([course.id]))
    _register(
        client,
        email="b@x.com",
        cnic="2222222222222",
        firstName="Bilal",
        address='{"city": "Karachi"}',
    )
    admin = auth_as("admin")

    assert client.get("/api/students", headers=admin).json()["totalRecords"] == 2
    by_name = client.get("/api/students?search=bilal", headers=admin).json()
    assert [s["email"] for s in by_name["students"]] == ["b@x.com"]
    by_course = client.get(f"/api/students?courseId={course.id}", headers=admin).json()
    assert [s["email"] for s in by_course["students"]] == ["a@x.com"]
    by_city = client.get("/api/students?city=karachi", headers=admin).json()
    assert [s["email"] for s in by_city["students"]] == ["b@x.com"]


def test_students_in_course_only_counts_enrolled_ones(client):
    course = create_course()
    first = _register(client, enrolledCourses=json.dumps([course.id]))
    _register(client, email="b@x.com", cnic="2222222222222", enrolledCourses=json.dumps([course.id]))
    admin = auth_as("admin")
    client.put(f"/api/students/{first['id']}/status", json={"status": "Enrolled"}, headers=admin)

    resp = client.get(f"/api/students/course/{course.id}", headers=admin)

    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()] == [first["id"]]
    assert client.get("/api/students/course/999", headers=admin).status_code == 404


def test_get_missing_student_is_not_found(client):
    resp = client.get("/api/students/404", headers=auth_as("admin"))
    assert resp.status_code == 404
    assert resp.json()["message"] == "Student not found"


# -- edits -----------------------------------------------------------------


def test_update_changes_fields_and_keeps_the_rest(client):
    student = _register(client)

    resp = client.put(
        f"/api/students/{student['id']}",
        json={"firstName": "Aisha", "phoneNumber": ""},
        headers=auth_as("maintenance_office"),
    )

    assert resp.status_code == 200
    updated = resp.json()["student"]
    assert updated["firstName"] == "Aisha"
    assert updated["phoneNumber"] == student["phoneNumber"]


def test_update_to_a_taken_email_is_conflict(client):
    _register(client)
    other = _register(client, email="b@x.com", cnic="2222222222222")

    resp = client.put(f"/api/students/{other['id']}", json={"email": "A@X.com"}, headers=auth_as("admin"))

    assert resp.status_code == 409
    assert resp.json()["message"] == "Email already registered"


def test_update_enrollments_keeps_rosters_in_step(client):
    web = create_course()
    data = create_course("Data Science")
    student = _register(client, enrolledCourses=json.dumps([web.id]))

    resp = client.put(
        f"/api/students/{student['id']}",
        json={"enrolledCourses": [data.id]},
        headers=auth_as("admin"),
    )

    assert resp.status_code == 200
    assert [e["courseId"] for e in resp.json()["student"]["enrolledCourses"]] == [data.id]
    assert load_course(web.id).students == []
    assert load_course(data.id).students == [student["id"]]


def test_delete_student_removes_them_from_rosters(client):
    course = create_course()
    student = _register(client, enrolledCourses=json.dumps([course.id]))
    admin = auth_as("admin")

    assert client.delete(f"/api/students/{student['id']}", headers=admin).status_code == 200

    assert load_course(course.id).students == []
    assert client.get(f"/api/students/{student['id']}", headers=admin).status_code == 404


def test_rebuild_all_repairs_a_stale_roster(client):
    course = create_course()
    student = _register(client, enrolledCourses=json.dumps([course.id]))

    async def _corrupt_then_rebuild():
        async with SessionLocal() as db:
            stale = await db.get(Course, course.id)
            stale.students = [999]
            await db.commit()
            return await rosters.rebuild_all(db)

    assert run(_corrupt_then_rebuild()) == 1
    assert load_course(course.id).students == [student["id"]]


# -- export and ID cards ---------------------------------------------------


def test_export_is_a_readable_workbook(client):
    course = create_course()
    _register(client, enrolledCourses=json.dumps([course.id]))

    resp = client.get("/api/students/export", headers=auth_as("admin"))

    assert resp.status_code == 200
    assert 'filename="students.xlsx"' in resp.headers["content-disposition"]
    sheet = load_workbook(io.BytesIO(resp.content)).active
    header, row = [[c.value for c in r] for r in sheet.iter_rows(max_row=2)]
    assert header[0] == "Roll ID"
    assert row[3] == "a@x.com"
    assert row[11] == "Web Development"


def test_resend_id_card_is_accepted_and_mailed(client, mailer):
    student = _register(client)
    mailer.sent.clear()

    resp = client.post(f"/api/students/{student['id']}/send-id-card", headers=auth_as("admin"))

    assert resp.status_code == 202
    [message] = mailer.sent
    assert message.subject == "Your Student ID Card"
    assert message.attachment.content.startswith(b"%PDF")
