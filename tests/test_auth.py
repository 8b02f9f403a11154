"""Tests for login, server-side token verification and logout."""
from datetime import datetime, timedelta

from jose import jwt

from src.database import SessionLocal, seed_admin_user
from src.models import User

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD


def _collect_keys(value):
    if isinstance(value, dict):
        keys = set(value)
        for v in value.values():
            keys |= _collect_keys(v)
        return keys
    if isinstance(value, list):
        keys = set()
        for v in value:
            keys |= _collect_keys(v)
        return keys
    return set()


def test_login_returns_token_and_user(client, admin_id):
    r = client.post("/api/auth", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["user"]["_id"] == admin_id
    assert body["data"]["user"]["fullName"] == "Ada Admin"

    claims = jwt.decode(body["data"]["token"], "test-secret", algorithms=["HS256"])
    assert claims["userId"] == admin_id
    assert claims["email"] == ADMIN_EMAIL
    assert claims["role"] == "admin"
    assert claims["fullName"] == "Ada Admin"
    assert claims["exp"] - claims["iat"] == 24 * 60 * 60


def test_login_accepts_json_and_any_email_case(client, admin_id):
    r = client.post("/api/auth", json={"email": "  Admin@Example.COM ", "password": ADMIN_PASSWORD})
    assert r.status_code == 200


def test_wrong_password_and_unknown_email_are_indistinguishable(client, admin_id):
    wrong_password = client.post("/api/auth", data={"email": ADMIN_EMAIL, "password": "nope"})
    unknown_email = client.post("/api/auth", data={"email": "ghost@example.com", "password": "nope"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {
        "success": False,
        "message": "Invalid email or password",
    }


def test_login_requires_email_and_password(client):
    r = client.post("/api/auth", data={"email": ADMIN_EMAIL})
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Email and password are required"}


def test_passwords_are_hashed_and_never_returned(client, admin_headers):
    r = client.post(
        "/api/users",
        data={
            "fullName": "Trainer One",
            "email": "Trainer@Example.com",
            "phone": "+254733000000",
            "position": "Trainer",
            "role": "staff",
            "password": "plain-text-pw",
        },
        headers=admin_headers,
    )
    assert r.status_code == 200
    created = r.json()["data"]
    assert created["email"] == "trainer@example.com"

    db = SessionLocal()
    try:
        stored = db.query(User).filter(User.id == created["_id"]).first().password_hash
    finally:
        db.close()
    assert stored != "plain-text-pw"
    assert stored.startswith("$2")

    responses = [
        r.json(),
        client.get(f"/api/users?id={created['_id']}", headers=admin_headers).json(),
        client.get("/api/users", headers=admin_headers).json(),
        client.put(
            "/api/users", json={"id": created["_id"], "position": "Lead trainer"}, headers=admin_headers
        ).json(),
        client.post("/api/auth", data={"email": "trainer@example.com", "password": "plain-text-pw"}).json(),
    ]
    for body in responses:
        assert body["success"] is True
        keys = _collect_keys(body)
        assert "password" not in keys
        assert "passwordHash" not in keys
        assert "password_hash" not in keys


def test_user_update_keeps_password_unless_supplied(client, admin_headers, admin_id):
    r = client.put("/api/users", json={"id": admin_id, "phone": "+254744000000"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["fullName"] == "Ada Admin"
    assert client.post("/api/auth", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}).status_code == 200

    r = client.put("/api/users", json={"id": admin_id, "password": "changed-pw"}, headers=admin_headers)
    assert r.status_code == 200
    assert client.post("/api/auth", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}).status_code == 401
    assert client.post("/api/auth", data={"email": ADMIN_EMAIL, "password": "changed-pw"}).status_code == 200


def test_duplicate_email_is_rejected(client, admin_headers):
    payload = {
        "fullName": "Copy",
        "email": ADMIN_EMAIL.upper(),
        "phone": "1",
        "position": "x",
        "password": "pw",
    }
    r = client.post("/api/users", json=payload, headers=admin_headers)
    assert r.status_code == 400


def test_current_session(client, admin_headers, admin_id):
    r = client.get("/api/auth", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["user"]["_id"] == admin_id


def test_forged_token_is_rejected(client, admin_id):
    forged = jwt.encode(
        {"userId": admin_id, "role": "admin", "exp": datetime.utcnow() + timedelta(days=365)},
        "not-the-secret",
        algorithm="HS256",
    )
    r = client.post(
        "/api/categories",
        json={"name": "x", "description": "y"},
        headers={"Authorization": f"Bearer {forged}"},
    )
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_expired_token_is_rejected(client, admin_id):
    expired = jwt.encode(
        {"userId": admin_id, "exp": datetime.utcnow() - timedelta(minutes=1)},
        "test-secret",
        algorithm="HS256",
    )
    r = client.get("/api/auth", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401


def test_missing_token_is_rejected(client):
    r = client.get("/api/auth")
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


def test_logout_revokes_token(client, admin_headers):
    r = client.post("/api/auth/logout", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Logged out successfully"}

    r = client.get("/api/auth", headers=admin_headers)
    assert r.status_code == 401
    assert r.json()["message"] == "Session has been revoked"


def test_token_of_deleted_user_is_rejected(client, admin_headers, staff_id):
    r = client.post("/api/auth", data={"email": "staff@example.com", "password": "pw-staff"})
    staff_headers = {"Authorization": f"Bearer {r.json()['data']['token']}"}

    r = client.request("DELETE", "/api/users", json={"id": staff_id}, headers=admin_headers)
    assert r.status_code == 200

    assert client.get("/api/auth", headers=staff_headers).status_code == 401


def test_seeded_admin_can_be_updated(client, monkeypatch):
    monkeypatch.setenv("EMAIL_ADMIN", "Root@Example.com")
    monkeypatch.setenv("PASSWORD_ADMIN", "seed-pw")
    monkeypatch.delenv("PHONE_ADMIN", raising=False)
    seed_admin_user()

    r = client.post("/api/auth", json={"email": "root@example.com", "password": "seed-pw"})
    assert r.status_code == 200
    user = r.json()["data"]["user"]
    assert user["role"] == "admin"
    assert user["phone"]
    headers = {"Authorization": f"Bearer {r.json()['data']['token']}"}

    r = client.put("/api/users", json={"id": user["_id"], "password": "new-pw"}, headers=headers)
    assert r.status_code == 200, r.json()
    assert client.post("/api/auth", json={"email": "root@example.com", "password": "new-pw"}).status_code == 200
