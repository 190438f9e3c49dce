import json

from conftest import PASSWORD, create_course, load_course, load_student, student_form, user_form
from core.security import verify_password
from models.student import EMPTY_ADDRESS

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


# -- students --------------------------------------------------------------


def test_student_registration_starts_pending(client, mailer):
    resp = client.post("/api/students/register", data=student_form())

    assert resp.status_code == 201
    student = resp.json()["student"]
    assert student["email"] == "a@x.com"
    assert student["cnic"] == "1234567890123"
    assert student["status"] == "Pending"
    assert len(student["rollId"]) == 6 and student["rollId"].isdigit()
    assert student["address"]["city"] == "Lahore"
    assert "password" not in student and "passwordHash" not in student


def test_student_password_is_stored_hashed(client):
    resp = client.post("/api/students/register", data=student_form())
    stored = load_student(resp.json()["student"]["id"])

    assert stored.password_hash != PASSWORD
    assert PASSWORD not in stored.password_hash
    assert verify_password(PASSWORD, stored.password_hash)


def test_duplicate_student_email_is_rejected_naming_email(client):
    assert client.post("/api/students/register", data=student_form()).status_code == 201

    resp = client.post("/api/students/register", data=student_form(cnic="9999999999999"))

    assert resp.status_code == 409
    assert resp.json()["message"] == "Email already registered"


def test_duplicate_student_cnic_is_rejected_naming_cnic(client):
    assert client.post("/api/students/register", data=student_form()).status_code == 201

    resp = client.post("/api/students/register", data=student_form(email="b@x.com"))

    assert resp.status_code == 409
    assert resp.json()["message"] == "CNIC already registered"


def test_malformed_address_defaults_to_empty_address(client):
    resp = client.post("/api/students/register", data=student_form(address="{bad json"))

    assert resp.status_code == 201
    assert resp.json()["student"]["address"] == EMPTY_ADDRESS


def test_invalid_cnic_is_malformed_input(client):
    resp = client.post("/api/students/register", data=student_form(cnic="12345"))

    assert resp.status_code == 400
    assert "CNIC" in resp.json()["message"]


def test_enrolled_courses_are_validated_and_added_to_rosters(client):
    course = create_course()

    resp = client.post(
        "/api/students/register",
        data=student_form(enrolledCourses=json.dumps([course.id])),
    )

    assert resp.status_code == 201
    student = resp.json()["student"]
    assert [e["courseId"] for e in student["enrolledCourses"]] == [course.id]
    assert load_course(course.id).students == [student["id"]]


def test_unknown_course_is_malformed_input(client):
    resp = client.post("/api/students/register", data=student_form(enrolledCourses="[4242]"))

    assert resp.status_code == 400
    assert resp.json()["message"] == "One or more selected courses do not exist"


def test_id_card_is_mailed_after_registration(client, mailer):
    resp = client.post("/api/students/register", data=student_form())

    assert resp.status_code == 201
    [message] = mailer.sent
    assert message.to == "a@x.com"
    assert message.attachment.filename == "student_id_card.pdf"
    assert message.attachment.content.startswith(b"%PDF")


def test_mail_failure_does_not_change_the_registration_response(client, mailer):
    mailer.fail = True

    resp = client.post("/api/students/register", data=student_form())

    assert resp.status_code == 201
    assert resp.json()["message"].startswith("Student registered successfully")
    assert resp.json()["student"]["status"] == "Pending"
    assert mailer.sent == []


def test_profile_picture_is_uploaded(client, uploader):
    resp = client.post(
        "/api/students/register",
        data=student_form(),
        files={"profilePicture": ("me.png", PNG, "image/png")},
    )

    assert resp.status_code == 201
    assert resp.json()["student"]["profilePicture"] == "https://images.test/student_profiles/1.png"
    assert uploader.calls == [(len(PNG), "image/png", "student_profiles")]


def test_upload_failure_aborts_registration(client, uploader, mailer):
    uploader.fail = True

    resp = client.post(
        "/api/students/register",
        data=student_form(),
        files={"profilePicture": ("me.png", PNG, "image/png")},
    )

    assert resp.status_code == 502
    assert mailer.sent == []
    # Nothing was persisted, so the same identity can register again
    uploader.fail = False
    assert client.post("/api/students/register", data=student_form()).status_code == 201


# -- users -----------------------------------------------------------------


def test_user_registration_returns_session_token(client):
    resp = client.post("/api/auth/register", data=user_form())

    assert resp.status_code == 201
    body = resp.json()
    assert body["token"]
    assert body["user"]["role"] == "user"
    assert body["user"]["expertise"] == ["Python", "SQL"]
    assert body["user"]["location"] == {"city": "Karachi", "country": "Pakistan"}
    assert "passwordHash" not in body["user"] and "twoFactorSecret" not in body["user"]

    profile = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {body['token']}"})
    assert profile.status_code == 200
    assert profile.json()["email"] == "sara@example.com"


def test_user_registration_with_bad_json_field_is_malformed(client):
    resp = client.post("/api/auth/register", data=user_form(expertise="[not json"))

    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid expertise format"


def test_teacher_role_may_be_self_assigned_but_admin_may_not(client):
    teacher = client.post("/api/auth/register", data=user_form(role="teacher"))
    assert teacher.status_code == 201
    assert teacher.json()["user"]["role"] == "teacher"

    admin = client.post(
        "/api/auth/register",
        data=user_form(role="admin", email="x@example.com", cnic="1111111111111"),
    )
    assert admin.status_code == 400


def test_duplicate_user_email_is_conflict(client):
    assert client.post("/api/auth/register", data=user_form()).status_code == 201

    resp = client.post("/api/auth/register", data=user_form(cnic="2222222222222"))

    assert resp.status_code == 409
    assert resp.json()["message"] == "Email already registered"


def test_id_card_snapshot_failure_does_not_change_the_response(client, mailer, monkeypatch):
    async def _broken_lookup(db, ids):
        raise RuntimeError("course lookup failed")

    monkeypatch.setattr("services.students.course_names", _broken_lookup)

    resp = client.post("/api/students/register", data=student_form())

    assert resp.status_code == 201
    assert resp.json()["student"]["status"] == "Pending"
    assert mailer.sent == []
    assert load_student(resp.json()["student"]["id"]) is not None
