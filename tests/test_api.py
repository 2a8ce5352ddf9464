from models.outbox_message import OutboxMessageModel


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_requests_without_token_are_unauthenticated(client):
    response = client.get("/api/invites")

    assert response.status_code == 401


def test_cc_invite_flow(client, make_profile, auth_headers):
    make_profile("cc", role="CC", scopes=["2CEIT-B"])

    created = client.post(
        "/api/invites",
        json={"invited_email": "rep@example.edu", "role": "CR", "allowed_scopes": ["2CEIT-B"]},
        headers=auth_headers("cc", "cc@example.edu"),
    )
    assert created.status_code == 201
    token = created.json()["token"]

    accepted = client.post(
        "/api/invites/accept",
        json={"token": token},
        headers=auth_headers("rep", "rep@example.edu"),
    )
    assert accepted.status_code == 200
    assert accepted.json() == {"success": True, "role": "CR"}

    me = client.get("/api/auth/me", headers=auth_headers("rep", "rep@example.edu"))
    assert me.json()["profile"]["role"] == "CR"
    assert me.json()["profile"]["allowed_scopes"] == ["2CEIT-B"]

    again = client.post(
        "/api/invites/accept",
        json={"token": token},
        headers=auth_headers("rep", "rep@example.edu"),
    )
    assert again.status_code == 409
    assert again.json()["kind"] == "failed-precondition"


def test_cc_out_of_scope_invite_is_forbidden(client, make_profile, auth_headers):
    make_profile("cc", role="CC", scopes=["2CEIT-B"])

    response = client.post(
        "/api/invites",
        json={"invited_email": "rep@example.edu", "role": "CR", "allowed_scopes": ["3CEIT-A"]},
        headers=auth_headers("cc"),
    )

    assert response.status_code == 403
    assert response.json()["kind"] == "permission-denied"


def test_accept_with_other_email_is_forbidden(client, issue_invite, auth_headers):
    _, token, _ = issue_invite(invited_email="rep@example.edu")

    response = client.post(
        "/api/invites/accept",
        json={"token": token},
        headers=auth_headers("intruder", "intruder@example.edu"),
    )

    assert response.status_code == 403


def test_error_kinds_map_to_status_codes(client, make_profile, auth_headers):
    make_profile("hod", role="HOD")
    headers = auth_headers("hod")

    missing = client.post("/api/invites/accept", json={"token": "nope"}, headers=headers)
    assert missing.status_code == 404
    assert missing.json() == {"kind": "not-found", "detail": "Invite not found"}

    empty = client.post("/api/invites/accept", json={"token": ""}, headers=headers)
    assert empty.status_code == 400
    assert empty.json()["kind"] == "invalid-argument"


def test_revoke_and_list(client, make_profile, auth_headers):
    make_profile("hod", role="HOD")
    headers = auth_headers("hod")
    invite_id = client.post(
        "/api/invites",
        json={"invited_email": "rep@example.edu", "role": "CR"},
        headers=headers,
    ).json()["invite_id"]

    revoked = client.post(f"/api/invites/{invite_id}/revoke", headers=headers)
    listed = client.get("/api/invites", headers=headers)

    assert revoked.json() == {"success": True}
    assert listed.json()["invites"][0]["status"] == "revoked"


def test_elevation_flow(client, make_profile, auth_headers):
    make_profile("student", role="STUDENT")
    make_profile("hod", role="HOD")

    submitted = client.post(
        "/api/elevation-requests",
        json={"name": "Asha", "allowed_scopes": ["2CEIT-B"]},
        headers=auth_headers("student"),
    )
    assert submitted.status_code == 201
    request_id = submitted.json()["request_id"]

    denied = client.post(
        f"/api/elevation-requests/{request_id}/approve", headers=auth_headers("student")
    )
    assert denied.status_code == 403

    approved = client.post(
        f"/api/elevation-requests/{request_id}/approve", headers=auth_headers("hod")
    )
    assert approved.json()["success"] is True
    assert approved.json()["target_id"] == "student"

    audit = client.get(
        "/api/audit-logs", params={"action": "approve_cr"}, headers=auth_headers("hod")
    )
    assert len(audit.json()["events"]) == 1


def test_deactivate_student(client, make_profile, make_student, auth_headers):
    make_profile("hod", role="HOD")
    make_student("stu-1")

    assert client.post(
        "/api/students/stu-1/deactivate", headers=auth_headers("hod")
    ).json() == {"success": True}
    assert client.post(
        "/api/students/missing/deactivate", headers=auth_headers("hod")
    ).status_code == 404


def test_outbox_drain_requires_permission(client, db, make_profile, issue_invite, auth_headers):
    issue_invite()
    make_profile("cc", role="CC")

    denied = client.post("/api/outbox/drain", json={"limit": 10}, headers=auth_headers("cc"))
    assert denied.status_code == 403

    drained = client.post(
        "/api/outbox/drain", json={"limit": 10}, headers=auth_headers("hod-issuer")
    )
    assert drained.status_code == 200
    assert drained.json()["processed"] == 1
    assert drained.json()["results"][0]["status"] == "logged"
    assert db.query(OutboxMessageModel).one().status == "logged"


def test_audit_log_requires_permission(client, make_profile, auth_headers):
    make_profile("cr", role="CR")

    assert client.get("/api/audit-logs", headers=auth_headers("cr")).status_code == 403


def test_register_login_and_session_revocation(client, make_profile, auth_headers):
    make_profile("admin", role="ADMIN")
    registered = client.post(
        "/api/auth/register",
        json={"email": "asha@example.edu", "password": "s3cret-pass", "display_name": "Asha"},
    )
    assert registered.status_code == 200
    uid = registered.json()["user_id"]

    duplicate = client.post(
        "/api/auth/register",
        json={"email": "asha@example.edu", "password": "s3cret-pass"},
    )
    assert duplicate.status_code == 409

    token = client.post(
        "/api/auth/login", json={"email": "asha@example.edu", "password": "s3cret-pass"}
    ).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}
    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["profile"]["role"] == "STUDENT"

    revoked = client.post(
        "/api/auth/revoke-sessions", json={"uid": uid}, headers=auth_headers("admin")
    )
    assert revoked.json() == {"success": True}
    assert client.get("/api/auth/me", headers=headers).status_code == 401

    fresh = client.post(
        "/api/auth/login", json={"email": "asha@example.edu", "password": "s3cret-pass"}
    ).json()["token"]
    assert client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {fresh}"}
    ).status_code == 200


def test_wrong_password_is_unauthenticated(client):
    client.post(
        "/api/auth/register",
        json={"email": "asha@example.edu", "password": "s3cret-pass"},
    )

    response = client.post(
        "/api/auth/login", json={"email": "asha@example.edu", "password": "wrong-pass"}
    )

    assert response.status_code == 401
    assert response.json()["kind"] == "unauthenticated"
