"""End-to-end tests through the HTTP API with TestClient."""
import uuid
from datetime import timedelta

from conftest import T0

UPLOAD_URL = "/api/files/upload"


def _file(name="hello.txt", content=b"hello world", content_type="text/plain"):
    return {"file": (name, content, content_type)}


def _register_and_login(client, name="alice", password="123456789"):
    email = f"{name}@example.com"
    resp = client.post("/api/auth/register", json={"username": name, "email": email, "password": password})
    assert resp.status_code == 200
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    body = resp.json()
    assert body["accessToken"]
    return body["accessToken"]


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Upload scenarios
# ---------------------------------------------------------------------------

def test_upload_public_file(client):
    resp = client.post(UPLOAD_URL, files=_file())
    assert resp.status_code == 201
    body = resp.json()
    assert body["visibility"] == "public"
    assert body["hasPassword"] is False
    assert body["sizeBytes"] == 11
    assert body["originalName"] == "hello.txt"
    assert "passwordHash" not in body


def test_upload_missing_file(client):
    resp = client.post(UPLOAD_URL, data={"password": "123456"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "missing_file"


def test_upload_password_too_short(client):
    resp = client.post(UPLOAD_URL, files=_file(), data={"password": "12345"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "weak_password"


def test_upload_invalid_date_range(client):
    data = {
        "availableFrom": (T0 + timedelta(hours=24)).isoformat(),
        "availableTo": T0.isoformat(),
    }
    resp = client.post(UPLOAD_URL, files=_file(), data=data)
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_date_range"


def test_upload_unparseable_date(client):
    resp = client.post(UPLOAD_URL, files=_file(), data={"availableTo": "tomorrow-ish"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_date"


def test_upload_date_beyond_supported_range(client):
    resp = client.post(UPLOAD_URL, files=_file(), data={"availableTo": "9999-12-31T23:59:59-01:00"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_date"


def test_upload_with_empty_bearer_header(client):
    resp = client.post(UPLOAD_URL, files=_file(), headers={"Authorization": "Bearer"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_credential"


def test_upload_private_without_auth(client):
    resp = client.post(UPLOAD_URL, files=_file(), data={"password": "123456", "isPublic": "false"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "missing_credential"


def test_upload_private_without_password_or_auth(client):
    resp = client.post(UPLOAD_URL, files=_file(), data={"isPublic": "false"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "unauthorized_private_upload"


def test_upload_with_bad_is_public_value(client):
    resp = client.post(UPLOAD_URL, files=_file(), data={"isPublic": "sometimes"})
    assert resp.status_code == 400


def test_register_login_upload_private(client):
    token = _register_and_login(client)

    resp = client.post(
        UPLOAD_URL,
        files=_file("private.txt", b"Dau Minh Khoi"),
        data={"password": "123456", "isPublic": "false"},
        headers=_auth(token),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["visibility"] == "private"
    assert body["ownerId"]

    resp = client.get(f"/api/files/{body['id']}/download", headers=_auth(token))
    assert resp.status_code == 200
    assert resp.content == b"Dau Minh Khoi"


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

def test_register_duplicate_email(client):
    _register_and_login(client, "bob")
    resp = client.post(
        "/api/auth/register",
        json={"username": "bobby", "email": "bob@example.com", "password": "123456789"},
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "duplicate_account"


def test_login_wrong_password(client):
    _register_and_login(client, "carol")
    resp = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_login"


def test_expired_token_rejected(client, clock):
    token = _register_and_login(client, "dave")
    clock.advance(hours=2)
    resp = client.post(UPLOAD_URL, files=_file(), headers=_auth(token))
    assert resp.status_code == 401
    assert resp.json()["code"] == "expired_credential"


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------

def test_file_info_hides_sensitive_fields(client):
    file_id = client.post(UPLOAD_URL, files=_file(), data={"password": "123456"}).json()["id"]
    resp = client.get(f"/api/files/{file_id}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["hasPassword"] is True
    assert "passwordHash" not in body
    assert "ownerId" not in body
    assert "originalName" not in body


def test_download_public_file(client):
    file_id = client.post(UPLOAD_URL, files=_file()).json()["id"]
    resp = client.get(f"/api/files/{file_id}/download")
    assert resp.status_code == 200
    assert resp.content == b"hello world"
    assert resp.headers["content-type"].startswith("text/plain")
    assert "hello.txt" in resp.headers["content-disposition"]


def test_download_password_protected(client):
    file_id = client.post(UPLOAD_URL, files=_file(), data={"password": "123456"}).json()["id"]

    resp = client.get(f"/api/files/{file_id}/download")
    assert resp.status_code == 403
    assert resp.json()["code"] == "insufficient_proof"

    resp = client.get(f"/api/files/{file_id}/download", headers={"X-File-Password": "wrong-one"})
    assert resp.status_code == 403

    resp = client.get(f"/api/files/{file_id}/download", headers={"X-File-Password": "123456"})
    assert resp.status_code == 200

    resp = client.get(f"/api/files/{file_id}/download", params={"password": "123456"})
    assert resp.status_code == 200


def test_download_outside_window_even_for_owner(client, clock):
    token = _register_and_login(client, "erin")
    data = {
        "isPublic": "false",
        "availableFrom": T0.isoformat(),
        "availableTo": (T0 + timedelta(hours=1)).isoformat(),
    }
    file_id = client.post(UPLOAD_URL, files=_file(), data=data, headers=_auth(token)).json()["id"]

    assert client.get(f"/api/files/{file_id}/download", headers=_auth(token)).status_code == 200

    clock.advance(minutes=61)
    fresh_token = client.post(
        "/api/auth/login", json={"email": "erin@example.com", "password": "123456789"}
    ).json()["accessToken"]
    resp = client.get(f"/api/files/{file_id}/download", headers=_auth(fresh_token))
    assert resp.status_code == 403
    assert resp.json()["code"] == "outside_availability_window"


def test_download_unknown_file(client):
    assert client.get(f"/api/files/{uuid.uuid4()}/download").status_code == 404
    assert client.get("/api/files/not-a-uuid").status_code == 404


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
