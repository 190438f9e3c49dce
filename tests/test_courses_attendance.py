from conftest import auth_as, bearer, create_course, load_student, student_form

COURSE = {
    "name": "Graphic Design",
    "days": ["tuesday", "Friday", "TUESDAY"],
    "timing": {"startTime": "9:00", "endTime": "11:00"},
    "duration": 6,
    "price": "12000.00",
    "modeOfDelivery": "Onsite",
    "startingDate": "2026-11-15",
}


def _register(client, email="a@x.com", cnic="1234567890123"):
    resp = client.post("/api/students/register", data=student_form(email=email, cnic=cnic))
    assert resp.status_code == 201
    return resp.json()["student"]


# -- courses ---------------------------------------------------------------


def test_course_days_and_times_are_normalised(client):
    resp = client.post("/api/courses", json=COURSE, headers=auth_as("maintenance_office"))

    assert resp.status_code == 201
    course = resp.json()["course"]
    assert course["days"] == ["Tuesday", "Friday"]
    assert course["timing"] == {"startTime": "09:00", "endTime": "11:00"}
    assert course["isActive"] is True


def test_course_end_before_start_is_rejected(client):
    body = {**COURSE, "timing": {"startTime": "14:00", "endTime": "13:30"}}
    resp = client.post("/api/courses", json=body, headers=auth_as("maintenance_office"))
    assert resp.status_code == 400


def test_course_with_bad_day_or_time_is_rejected(client):
    mo = auth_as("maintenance_office")
    assert client.post("/api/courses", json={**COURSE, "days": ["Funday"]}, headers=mo).status_code == 400
    assert client.post(
        "/api/courses", json={**COURSE, "timing": {"startTime": "25:00", "endTime": "26:00"}}, headers=mo
    ).status_code == 400


def test_public_listing_shows_active_courses_only(client):
    create_course("Web Development")
    create_course("Retired", is_active=False)

    resp = client.get("/api/courses")

    assert resp.status_code == 200
    assert [c["name"] for c in resp.json()["courses"]] == ["Web Development"]


def test_listing_with_search_is_paginated(client):
    for n in range(3):
        create_course(f"Python {n}")
    create_course("Cooking")

    body = client.get("/api/courses?search=python&page=1&limit=2").json()

    assert len(body["courses"]) == 2
    assert body["totalRecords"] == 3
    assert body["totalPages"] == 2


def test_update_course_timing(client):
    course = create_course()
    resp = client.put(
        f"/api/courses/{course.id}",
        json={"timing": {"startTime": "13:00", "endTime": "15:00"}, "price": 9000},
        headers=auth_as("maintenance_office"),
    )

    assert resp.status_code == 200
    assert resp.json()["course"]["timing"] == {"startTime": "13:00", "endTime": "15:00"}


def test_soft_delete_hides_the_course_but_keeps_it(client):
    course = create_course()
    mo = auth_as("maintenance_office")

    assert client.delete(f"/api/courses/{course.id}", headers=mo).status_code == 200

    assert client.get("/api/courses").json()["courses"] == []
    assert client.get(f"/api/courses/{course.id}").json()["isActive"] is False


def test_permanent_delete_drops_enrollments_and_attendance(client):
    course = create_course()
    resp = client.post(
        "/api/students/register",
        data=student_form(enrolledCourses=f"[{course.id}]"),
    )
    student = resp.json()["student"]
    mo = auth_as("maintenance_office")
    client.post(
        "/api/attendance",
        json={"courseId": course.id, "date": "2026-11-03", "students": [{"studentId": student["id"], "status": "present"}]},
        headers=mo,
    )

    assert client.delete(f"/api/courses/{course.id}/permanent", headers=mo).status_code == 200

    assert client.get(f"/api/courses/{course.id}").status_code == 404
    assert load_student(student["id"]).enrolled_courses == []


def test_course_counts_by_mode(client):
    create_course("A")
    create_course("B", mode_of_delivery="Online", is_active=False)

    counts = client.get("/api/courses/count", headers=auth_as("admin")).json()

    assert counts["total"] == 2
    assert counts["active"] == 1
    assert counts["inactive"] == 1
    assert counts["byMode"] == {"Onsite": 1, "Online": 1}


# -- attendance ------------------------------------------------------------


def _mark(client, headers, course_id, student_id, on="2026-11-02", status="present", path="/api/attendance/mark"):
    return client.post(
        path,
        json={"courseId": course_id, "date": on, "students": [{"studentId": student_id, "status": status}]},
        headers=headers,
    )


def test_teacher_marks_attendance(client):
    course = create_course()
    student = _register(client)
    teacher = auth_as("teacher")

    resp = _mark(client, teacher, course.id, student["id"], status="Late")

    assert resp.status_code == 201
    record = resp.json()["attendance"]
    assert record["courseName"] == "Web Development"
    [row] = record["students"]
    assert row["status"] == "late"
    assert row["firstName"] == "Ayesha"
    assert record["markedBy"] is not None


def test_second_record_for_the_same_date_is_conflict(client):
    course = create_course()
    student = _register(client)
    teacher = auth_as("teacher")
    assert _mark(client, teacher, course.id, student["id"]).status_code == 201

    resp = _mark(client, teacher, course.id, student["id"], status="absent")

    assert resp.status_code == 409
    assert resp.json()["message"] == "Attendance already marked for this date"


def test_unknown_student_in_attendance_is_malformed(client):
    course = create_course()
    resp = _mark(client, auth_as("teacher"), course.id, 4242)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Unknown student IDs: 4242"


def test_teacher_updates_a_single_row(client):
    course = create_course()
    student = _register(client)
    teacher = auth_as("teacher")
    record = _mark(client, teacher, course.id, student["id"]).json()["attendance"]

    resp = client.put(
        f"/api/attendance/update/{record['id']}",
        json={"studentId": student["id"], "status": "absent", "remarks": "sick"},
        headers=teacher,
    )

    assert resp.status_code == 200
    [row] = resp.json()["students"]
    assert (row["status"], row["remarks"]) == ("absent", "sick")

    missing = client.put(
        f"/api/attendance/update/{record['id']}",
        json={"studentId": 999, "status": "absent"},
        headers=teacher,
    )
    assert missing.status_code == 404


def test_stats_count_rows_by_status(client):
    course = create_course()
    first = _register(client)
    second = _register(client, email="b@x.com", cnic="2222222222222")
    mo = auth_as("maintenance_office")
    client.post(
        "/api/attendance",
        json={
            "courseId": course.id,
            "date": "2026-11-02",
            "students": [
                {"studentId": first["id"], "status": "present"},
                {"studentId": second["id"], "status": "absent"},
            ],
        },
        headers=mo,
    )
    _mark(client, mo, course.id, first["id"], on="2026-11-04", path="/api/attendance")

    stats = client.get("/api/attendance/stats", headers=mo).json()

    assert stats["totalClasses"] == 2
    assert stats["totalStudents"] == 2
    assert stats["attendanceByStatus"] == {"present": 2, "absent": 1, "late": 0}
    assert stats["courseWiseStats"]["Web Development"]["totalClasses"] == 2


def test_student_sees_only_their_own_history(client):
    course = create_course()
    me = _register(client)
    other = _register(client, email="b@x.com", cnic="2222222222222")
    _mark(client, auth_as("teacher"), course.id, me["id"])
    student_token = bearer(me["id"], "student", me["email"])

    own = client.get(f"/api/attendance/student/{me['id']}", headers=student_token)
    assert own.status_code == 200
    [entry] = own.json()
    assert entry["courseName"] == "Web Development"
    assert entry["status"] == "present"

    assert client.get(f"/api/attendance/student/{other['id']}", headers=student_token).status_code == 403
    assert client.get(f"/api/attendance/roll/{other['rollId']}", headers=student_token).status_code == 403
    assert client.get(f"/api/attendance/roll/{me['rollId']}", headers=student_token).status_code == 200


def test_course_attendance_listing(client):
    course = create_course()
    student = _register(client)
    _mark(client, auth_as("teacher"), course.id, student["id"])

    resp = client.get(f"/api/attendance/course/{course.id}", headers=auth_as("admin"))

    assert resp.status_code == 200
    [record] = resp.json()
    assert record["date"] == "2026-11-02"
    assert record["students"][0]["rollId"] == student["rollId"]
