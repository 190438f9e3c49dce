import asyncio
import base64
import os
import tempfile
from datetime import date
from pathlib import Path

import pytest

# Settings are read once at import time, so the environment must be in
# place before anything under backend/ is imported.
_DB_FILE = Path(tempfile.gettempdir()) / f"aaghaaz-test-{os.getpid()}.db"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_FILE.as_posix()}"
os.environ["SECRET_KEY"] = "test-signing-key-0123456789abcdefghijklmnop"
os.environ["MASTER_ENCRYPTION_KEY"] = base64.b64encode(bytes(range(32))).decode()
os.environ["ENVIRONMENT"] = "test"
os.environ["SMTP_HOST"] = ""
os.environ["CLOUDINARY_CLOUD_NAME"] = ""

from fastapi.testclient import TestClient  # noqa: E402

from core.errors import MailFailed, UploadFailed  # noqa: E402
from core.mailer import get_mailer  # noqa: E402
from core.security import get_token_service, hash_password  # noqa: E402
from core.uploads import get_uploader  # noqa: E402
from database import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402
from models.course import Course  # noqa: E402
from models.student import Student  # noqa: E402
from models.user import User  # noqa: E402

PASSWORD = "s3cret-pass"


class StubUploader:
    def __init__(self):
        self.calls = []
        self.fail = False

    async def upload(self, data, mime_type, folder="uploads"):
        self.calls.append((len(data), mime_type, folder))
        if self.fail:
            raise UploadFailed("Failed to upload image", cause="stubbed outage")
        return f"https://images.test/{folder}/{len(self.calls)}.png"


class StubMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, message):
        if self.fail:
            raise MailFailed(cause="stubbed SMTP outage")
        self.sent.append(message)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def schema():
    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def _drop():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    run(_create())
    yield
    run(_drop())


@pytest.fixture
def uploader():
    return StubUploader()


@pytest.fixture
def mailer():
    return StubMailer()


@pytest.fixture
def client(uploader, mailer):
    app.dependency_overrides[get_uploader] = lambda: uploader
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def bearer(principal_id, role, email):
    token = get_token_service().issue_session(principal_id, role, email)
    return {"Authorization": f"Bearer {token}"}


def create_user(role="user", email=None, password=PASSWORD, cnic=None):
    async def _create():
        async with SessionLocal() as db:
            user = User(
                first_name="Test",
                last_name=role.title(),
                email=email or f"{role}@example.com",
                password_hash=hash_password(password),
                cnic=cnic or f"{role}-cnic",
                phone_number="03001234567",
                role=role,
            )
            db.add(user)
            await db.commit()
            return user

    return run(_create())


def auth_as(role, email=None):
    user = create_user(role, email=email)
    return bearer(user.id, user.role, user.email)


def create_course(name="Web Development", **overrides):
    async def _create():
        async with SessionLocal() as db:
            fields = dict(
                name=name,
                days=["Monday", "Wednesday"],
                start_time="10:00",
                end_time="12:00",
                duration=12,
                price=15000,
                mode_of_delivery="Onsite",
                starting_date=date(2026, 11, 1),
            )
            fields.update(overrides)
            course = Course(**fields)
            db.add(course)
            await db.commit()
            return course

    return run(_create())


def load_student(student_id):
    async def _load():
        async with SessionLocal() as db:
            return await db.get(Student, student_id)

    return run(_load())


def load_course(course_id):
    async def _load():
        async with SessionLocal() as db:
            return await db.get(Course, course_id)

    return run(_load())


def student_form(**overrides):
    form = {
        "firstName": "Ayesha",
        "lastName": "Khan",
        "email": "a@x.com",
        "password": PASSWORD,
        "cnic": "1234567890123",
        "phoneNumber": "03001234567",
        "dateOfBirth": "2004-05-17",
        "gender": "female",
        "address": '{"street": "12 Mall Road", "city": "Lahore", "country": "Pakistan"}',
        "guardianName": "Imran Khan",
        "guardianPhone": "03007654321",
        "guardianRelation": "Father",
    }
    form.update(overrides)
    return form


def user_form(**overrides):
    form = {
        "firstName": "Sara",
        "lastName": "Ahmed",
        "email": "sara@example.com",
        "password": PASSWORD,
        "cnic": "3520212345671",
        "phoneNumber": "03211234567",
        "dateOfBirth": "1995-02-01",
        "expertise": '["Python", "SQL"]',
        "languages": '["English", "Urdu"]',
        "location": '{"city": "Karachi", "country": "Pakistan"}',
        "qualification": "MSc Computer Science",
    }
    form.update(overrides)
    return form
