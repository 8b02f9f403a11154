import os
import tempfile

# The application reads its configuration at import time
_TMP_DIR = tempfile.mkdtemp(prefix="cms-api-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["PATH_UPLOADS"] = os.path.join(_TMP_DIR, "uploads")
os.environ["LOG_FILE"] = os.path.join(_TMP_DIR, "test.log")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("EMAIL_ADMIN", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.auth import hash_password  # noqa: E402
from src.database import SessionLocal, engine  # noqa: E402
from src.main import app  # noqa: E402
from src.models import Base, User  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "pw-admin"
STAFF_EMAIL = "staff@example.com"
STAFF_PASSWORD = "pw-staff"


def _create_user(email, password, role, full_name):
    db = SessionLocal()
    try:
        user = User(
            full_name=full_name,
            email=email,
            phone="+254700000000",
            position="Manager",
            role=role,
            password_hash=hash_password(password),
        )
        db.add(user)
        db.commit()
        return user.id
    finally:
        db.close()


@pytest.fixture()
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    return TestClient(app)


@pytest.fixture()
def admin_id(client):
    return _create_user(ADMIN_EMAIL, ADMIN_PASSWORD, "admin", "Ada Admin")


@pytest.fixture()
def staff_id(client):
    return _create_user(STAFF_EMAIL, STAFF_PASSWORD, "staff", "Sam Staff")


def _login(client, email, password):
    r = client.post("/api/auth", data={"email": email, "password": password})
    assert r.status_code == 200, r.json()
    return r.json()["data"]["token"]


@pytest.fixture()
def admin_headers(client, admin_id):
    return {"Authorization": f"Bearer {_login(client, ADMIN_EMAIL, ADMIN_PASSWORD)}"}


@pytest.fixture()
def staff_headers(client, staff_id):
    return {"Authorization": f"Bearer {_login(client, STAFF_EMAIL, STAFF_PASSWORD)}"}
