from __future__ import annotations

import io

from PIL import Image

from farwell.core import config as core_config

PASSWORD = "password123"


def _png() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), "blue").save(buf, format="PNG")
    return buf.getvalue()


PNG = _png()
CSV = b"Name,Department\nAlice,Sales\nBob,Support\n"


def _register(client, email="alice@example.com", name="Alice"):
    return client.post(
        "/api/register",
        json={"name": name, "email": email, "password": PASSWORD, "password_confirmation": PASSWORD},
    )


def _login(client, email="alice@example.com", password=PASSWORD):
    return client.post("/api/login", json={"email": email, "password": password})


def _auth(client, email="alice@example.com"):
    token = _register(client, email=email).json()["activation_token"]
    assert client.get(f"/api/activate/{token}").status_code == 200
    resp = _login(client, email=email)
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def test_health_and_security_headers(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_register_sends_mail_and_activates_once(client, outbox):
    resp = _register(client)
    assert resp.status_code == 201
    token = resp.json()["activation_token"]
    assert len(token) == 60
    assert outbox[0]["to"] == "alice@example.com"
    assert token in outbox[0]["text"]

    first = client.get(f"/api/activate/{token}")
    assert first.status_code == 200
    assert first.json() == {"message": "Account activated successfully."}

    again = client.get(f"/api/activate/{token}")
    assert again.status_code == 404
    assert again.json()["message"] == "This activation token is invalid."


def test_register_validation_errors(client):
    _register(client)
    resp = client.post(
        "/api/register",
        json={"name": "", "email": "ALICE@example.com", "password": "short", "password_confirmation": "other"},
    )
    assert resp.status_code == 422
    errors = resp.json()["errors"]
    assert set(errors) == {"name", "email", "password"}
    assert errors["email"] == ["The email has already been taken."]


def test_register_can_hide_activation_token(client, monkeypatch):
    monkeypatch.setenv("EXPOSE_ACTIVATION_TOKEN", "false")
    core_config.get_settings.cache_clear()
    resp = _register(client)
    assert resp.status_code == 201
    assert resp.json()["activation_token"] is None


def test_login_flow(client):
    token = _register(client).json()["activation_token"]

    unverified = _login(client)
    assert unverified.status_code == 403
    assert unverified.json()["message"] == "Please activate your account."

    client.get(f"/api/activate/{token}")
    assert _login(client, password="wrong-password").status_code == 401
    assert _login(client, email="nobody@example.com").status_code == 401

    resp = _login(client, email="Alice@Example.com")
    assert resp.status_code == 200
    body = resp.json()
    assert body["token"]
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["email_verified_at"] is not None
    assert "password_hash" not in body["user"]
    assert "activation_token" not in body["user"]


def test_login_is_rate_limited(client, monkeypatch):
    monkeypatch.setenv("LOGIN_RATE_LIMIT", "2/60")
    core_config.get_settings.cache_clear()
    assert _login(client).status_code == 401
    assert _login(client).status_code == 401
    blocked = _login(client)
    assert blocked.status_code == 429
    assert "Retry-After" in blocked.headers


def test_user_routes_require_bearer_token(client):
    for resp in (
        client.get("/api/user"),
        client.put("/api/user/update", json={"name": "Mallory"}),
        client.get("/api/employees"),
    ):
        assert resp.status_code == 401
        assert resp.json()["message"] == "Unauthenticated."
    bogus = client.get("/api/user", headers={"Authorization": "Bearer nope"})
    assert bogus.status_code == 401


def test_get_and_update_profile(client):
    headers = _auth(client)
    _register(client, email="bob@example.com", name="Bob")

    me = client.get("/api/user", headers=headers)
    assert me.status_code == 200
    assert me.json()["name"] == "Alice"

    taken = client.put("/api/user/update", json={"email": "bob@example.com"}, headers=headers)
    assert taken.status_code == 422
    assert taken.json()["errors"]["email"] == ["The email has already been taken."]

    resp = client.put("/api/user/update", json={"name": "Alicia"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Profile updated successfully"
    assert resp.json()["user"]["name"] == "Alicia"
    assert resp.json()["user"]["email"] == "alice@example.com"


def test_avatar_upload_is_served_from_storage(client):
    headers = _auth(client)

    missing = client.post("/api/user/upload", headers=headers)
    assert missing.status_code == 422
    assert "profile_picture" in missing.json()["errors"]

    forged = client.post(
        "/api/user/upload",
        files={"profile_picture": ("x.gif", b"GIF89a<script>alert(1)</script>", "image/gif")},
        headers=headers,
    )
    assert forged.status_code == 422
    assert forged.json()["errors"]["profile_picture"][0] == "The profile picture field must be an image."

    resp = client.post(
        "/api/user/upload",
        files={"profile_picture": ("me.png", PNG, "image/png")},
        headers=headers,
    )
    assert resp.status_code == 200
    url = resp.json()["profile_picture"]
    assert url.startswith("/storage/profile_pictures/")
    assert client.get(url).content == PNG
    assert client.get("/api/user", headers=headers).json()["profile_picture"] == url


def test_change_password(client):
    headers = _auth(client)

    invalid = client.post(
        "/api/user/password",
        json={"current_password": PASSWORD, "new_password": "newpass", "new_password_confirmation": "other"},
        headers=headers,
    )
    assert invalid.status_code == 422

    wrong = client.post(
        "/api/user/password",
        json={"current_password": "wrong-one", "new_password": "newpassword1", "new_password_confirmation": "newpassword1"},
        headers=headers,
    )
    assert wrong.status_code == 400
    assert wrong.json() == {"error": "Current password is incorrect"}

    ok = client.post(
        "/api/user/password",
        json={"current_password": PASSWORD, "new_password": "newpassword1", "new_password_confirmation": "newpassword1"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert _login(client).status_code == 401
    assert _login(client, password="newpassword1").status_code == 200


def test_upload_and_list_employees_until_expiry(client, clock):
    headers = _auth(client)
    assert client.get("/api/employees", headers=headers).json() == {"data": []}

    resp = client.post("/api/upload", files={"file": ("staff.csv", CSV, "text/csv")}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "File uploaded and processed successfully!"
    assert body["data"] == [
        {"name": "Alice", "department": "Sales"},
        {"name": "Bob", "department": "Support"},
    ]
    assert client.get("/api/employees", headers=headers).json()["data"] == body["data"]

    clock.advance(601)
    assert client.get("/api/employees", headers=headers).json() == {"data": []}


def test_employee_rows_are_private_to_uploader(client):
    alice = _auth(client)
    bob = _auth(client, email="bob@example.com")
    client.post("/api/upload", files={"file": ("staff.csv", CSV, "text/csv")}, headers=alice)
    assert client.get("/api/employees", headers=bob).json() == {"data": []}


def test_upload_rejects_unsupported_type(client):
    headers = _auth(client)
    resp = client.post("/api/upload", files={"file": ("staff.pdf", b"%PDF-1.4", "application/pdf")}, headers=headers)
    assert resp.status_code == 422
    assert resp.json()["errors"]["file"] == ["The file field must be a file of type: csv, txt, xlsx."]
