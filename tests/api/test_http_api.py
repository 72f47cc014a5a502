def test_login_returns_token_and_user(client):
    res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "alice123"})
    body = res.get_json()
    assert res.status_code == 200
    assert body["status"] == "success"
    assert body["data"]["user"]["email"] == "alice@example.com"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.get_json()["data"]["user"]["department"] == "Engineering"


def test_bad_credentials_are_401(client):
    res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong"})
    assert res.status_code == 401
    assert res.get_json() == {"status": "fail", "message": "Incorrect email or password", "code": "InvalidCredentials"}


def test_missing_token_is_401(client):
    res = client.get("/api/client/leaves")
    assert res.status_code == 401
    assert res.get_json()["code"] == "MissingToken"


def test_garbage_token_is_401(client):
    res = client.get("/api/client/leaves", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.get_json()["code"] == "InvalidToken"


def test_client_on_admin_route_is_403(client, alice, auth_header):
    res = client.get("/api/admin/users", headers=auth_header(alice))
    assert res.status_code == 403
    assert res.get_json()["status"] == "fail"


def test_duplicate_attendance_is_409(client, admin, alice, auth_header):
    payload = {"userId": alice.user_id, "date": "2024-03-01", "status": "present", "checkIn": "09:00"}
    first = client.post("/api/admin/attendance", json=payload, headers=auth_header(admin))
    assert first.status_code == 201
    assert first.get_json()["data"]["attendance"]["checkIn"] == "2024-03-01T09:00:00"

    second = client.post("/api/admin/attendance", json=payload, headers=auth_header(admin))
    assert second.status_code == 409
    assert second.get_json()["code"] == "DuplicateAttendance"

    check = client.get(
        f"/api/admin/attendance/check?userId={alice.user_id}&date=2024-03-01", headers=auth_header(admin)
    )
    assert check.get_json()["data"] == {"exists": True}


def test_batch_attendance_reports_partial_failure(client, admin, alice, bob, auth_header):
    res = client.post(
        "/api/admin/attendance/multiple",
        json={
            "attendanceRecords": [
                {"userId": alice.user_id, "date": "2024-03-01", "status": "present"},
                {"userId": bob.user_id, "date": "2024-03-01", "status": "bogus"},
            ]
        },
        headers=auth_header(admin),
    )
    data = res.get_json()["data"]
    assert res.status_code == 201
    assert len(data["successful"]) == 1
    assert data["failed"][0]["record"]["userId"] == bob.user_id


def test_unknown_record_is_404(client, admin, auth_header):
    res = client.get("/api/admin/tasks/123", headers=auth_header(admin))
    assert res.status_code == 404
    assert res.get_json()["code"] == "NotFound"


def test_leave_flow_over_http(client, admin, alice, auth_header):
    created = client.post(
        "/api/client/leaves",
        json={"type": "sick", "startDate": "2024-05-01", "endDate": "2024-05-02", "reason": "flu"},
        headers=auth_header(alice),
    )
    assert created.status_code == 201
    leave_id = created.get_json()["data"]["leave"]["id"]

    decided = client.patch(f"/api/admin/leaves/{leave_id}", json={"status": "approved"}, headers=auth_header(admin))
    assert decided.get_json()["data"]["leave"]["status"] == "approved"

    again = client.patch(f"/api/admin/leaves/{leave_id}", json={"status": "approved"}, headers=auth_header(admin))
    assert again.status_code == 400
    assert again.get_json()["code"] == "AlreadyDecided"

    listing = client.get("/api/admin/leaves?limit=5", headers=auth_header(admin)).get_json()
    assert listing["total"] == 1
    assert listing["totalPages"] == 1
    assert listing["data"]["leaves"][0]["employee"]["name"] == "Alice"


def test_task_submit_over_http(client, admin, alice, bob, auth_header):
    created = client.post(
        "/api/admin/tasks",
        json={"title": "T", "description": "D", "assignedTo": [alice.user_id], "dueDate": "2024-04-30"},
        headers=auth_header(admin),
    )
    task_id = created.get_json()["data"]["task"]["id"]

    forbidden = client.post(
        f"/api/employee/tasks/{task_id}/submit", json={"description": "x"}, headers=auth_header(bob)
    )
    assert forbidden.status_code == 403

    done = client.post(
        f"/api/employee/tasks/{task_id}/submit", json={"description": "done"}, headers=auth_header(alice)
    )
    assert done.get_json()["data"]["task"]["status"] == "completed"

    mine = client.get("/api/client/tasks", headers=auth_header(alice)).get_json()
    assert mine["results"] == 1


def test_delete_user_returns_204(client, admin, bob, auth_header):
    res = client.delete(f"/api/admin/users/{bob.user_id}", headers=auth_header(admin))
    assert res.status_code == 204
    assert client.get(f"/api/admin/users/{bob.user_id}", headers=auth_header(admin)).status_code == 404


def test_unknown_route_uses_envelope(client):
    res = client.get("/api/nowhere")
    assert res.status_code == 404
    assert res.get_json()["status"] == "fail"


def _create_task(client, admin, auth_header, assignees):
    created = client.post(
        "/api/admin/tasks",
        json={"title": "T", "description": "D", "assignedTo": assignees, "dueDate": "2024-04-30"},
        headers=auth_header(admin),
    )
    return created.get_json()["data"]["task"]["id"]


def test_admin_patch_cannot_complete_task(client, admin, alice, auth_header):
    task_id = _create_task(client, admin, auth_header, [alice.user_id])
    res = client.patch(f"/api/admin/tasks/{task_id}", json={"status": "evaluated"}, headers=auth_header(admin))
    assert res.status_code == 400
    assert res.get_json()["code"] == "InvalidTransition"

    task = client.get(f"/api/admin/tasks/{task_id}", headers=auth_header(admin)).get_json()["data"]["task"]
    assert task["status"] == "pending"


def test_deleting_sole_assignee_is_409(client, admin, alice, auth_header):
    _create_task(client, admin, auth_header, [alice.user_id])
    res = client.delete(f"/api/admin/users/{alice.user_id}", headers=auth_header(admin))
    assert res.status_code == 409
    assert res.get_json()["code"] == "UserInUse"


def test_client_reads_and_edits_own_profile(client, alice, auth_header):
    me = client.get("/api/client/profile", headers=auth_header(alice))
    assert me.status_code == 200
    assert me.get_json()["data"]["user"]["email"] == "alice@example.com"

    res = client.patch(
        "/api/client/profile", json={"company": "Acme", "contactNumber": "555-0100"}, headers=auth_header(alice)
    )
    assert res.status_code == 200
    assert res.get_json()["data"]["user"]["profile"] == {"company": "Acme", "contactNumber": "555-0100"}


def test_client_update_password_over_http(client, alice, auth_header):
    wrong = client.post(
        "/api/client/update-password",
        json={"currentPassword": "nope", "newPassword": "fresh-secret"},
        headers=auth_header(alice),
    )
    assert wrong.status_code == 400
    assert wrong.get_json()["code"] == "WrongPassword"

    ok = client.post(
        "/api/client/update-password",
        json={"currentPassword": "alice123", "newPassword": "fresh-secret"},
        headers=auth_header(alice),
    )
    assert ok.status_code == 200
    token = ok.get_json()["token"]
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 200

    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "fresh-secret"})
    assert login.status_code == 200


def test_admin_patches_user(client, admin, bob, auth_header):
    res = client.patch(
        f"/api/admin/users/{bob.user_id}",
        json={"name": "Robert", "department": "Support", "profile": {"company": "Initech"}},
        headers=auth_header(admin),
    )
    assert res.status_code == 200
    user = res.get_json()["data"]["user"]
    assert (user["name"], user["department"], user["profile"]["company"]) == ("Robert", "Support", "Initech")

    taken = client.patch(
        f"/api/admin/users/{bob.user_id}", json={"email": "alice@example.com"}, headers=auth_header(admin)
    )
    assert taken.status_code == 409


def test_admin_cannot_use_client_profile_routes(client, admin, auth_header):
    assert client.get("/api/client/profile", headers=auth_header(admin)).status_code == 403
