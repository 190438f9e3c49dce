from conftest import PASSWORD, auth_as, bearer, create_user, user_form

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _register(client, **overrides):
    body = client.post("/api/auth/register", data=user_form(**overrides)).json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


def test_profile_update_changes_only_given_fields(client):
    user, headers = _register(client)

    resp = client.put(
        "/api/auth/profile",
        json={"firstName": "Sana", "lastName": "", "languages": ["Punjabi"], "notifications": {"sms": True}},
        headers=headers,
    )

    assert resp.status_code == 200
    updated = resp.json()["user"]
    assert updated["firstName"] == "Sana"
    assert updated["lastName"] == user["lastName"]
    assert updated["languages"] == ["Punjabi"]
    assert updated["notifications"]["sms"] is True


def test_profile_picture_upload_goes_to_user_folder(client, uploader):
    _, headers = _register(client)

    resp = client.put(
        "/api/auth/profile",
        data={"qualification": "PhD"},
        files={"profilePicture": ("me.png", PNG, "image/png")},
        headers=headers,
    )

    assert resp.status_code == 200
    assert resp.json()["user"]["profilePicture"].startswith("https://images.test/user_profiles/")
    assert uploader.calls[-1][2] == "user_profiles"


def test_profile_email_change_to_taken_address_is_conflict(client):
    _register(client)
    _, headers = _register(client, email="other@example.com", cnic="9999999999999")

    resp = client.put("/api/auth/profile", json={"email": "SARA@example.com"}, headers=headers)

    assert resp.status_code == 409


def test_profile_email_must_be_valid(client):
    _, headers = _register(client)
    resp = client.put("/api/auth/profile", json={"email": "not-an-email"}, headers=headers)
    assert resp.status_code == 400


def test_change_password_requires_the_current_one(client):
    _, headers = _register(client)

    wrong = client.put(
        "/api/auth/change-password",
        json={"currentPassword": "guess-guess", "newPassword": "brand-new-pass"},
        headers=headers,
    )
    assert wrong.status_code == 400
    assert wrong.json()["message"] == "Current password is incorrect"

    ok = client.put(
        "/api/auth/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "brand-new-pass"},
        headers=headers,
    )
    assert ok.status_code == 200
    login = client.post("/api/auth/login", json={"email": "sara@example.com", "password": "brand-new-pass"})
    assert login.status_code == 200


def test_delete_account_needs_password(client):
    _, headers = _register(client)

    assert client.request("DELETE", "/api/auth/account", json={"password": "nope-nope"}, headers=headers).status_code == 400
    assert client.request("DELETE", "/api/auth/account", json={"password": PASSWORD}, headers=headers).status_code == 200
    assert client.get("/api/auth/profile", headers=headers).status_code == 404


def test_admin_changes_another_users_role(client):
    target = create_user("user", email="target@example.com")

    resp = client.put(f"/api/auth/users/{target.id}/role", json={"role": "teacher"}, headers=auth_as("admin"))

    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "teacher"


def test_role_change_guards(client):
    admin = create_user("admin")
    headers = bearer(admin.id, admin.role, admin.email)
    target = create_user("user", email="target@example.com")

    assert client.put(f"/api/auth/users/{admin.id}/role", json={"role": "user"}, headers=headers).status_code == 400
    assert client.put(f"/api/auth/users/{target.id}/role", json={"role": "student"}, headers=headers).status_code == 400
    assert client.put(f"/api/auth/users/{target.id}/role", json={"role": "wizard"}, headers=headers).status_code == 400
    assert client.put(
        f"/api/auth/users/{admin.id}/role", json={"role": "user"}, headers=auth_as("teacher")
    ).status_code == 403
