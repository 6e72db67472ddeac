"""Tests for user administration and signup approval."""


def test_admin_creates_user_with_temporary_password(client, db, admin):
    """POST /api/v1/profiles creates the auth user and the profile."""
    response = client.post("/api/v1/profiles", headers=admin["headers"], json={
        "email": "hire@example.com",
        "full_name": "New Hire",
        "role": "worker",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["profile"]["email"] == "hire@example.com"
    assert body["profile"]["role"] == "worker"
    assert len(body["temporary_password"]) >= 12
    assert "hire@example.com" in db.auth.passwords


def test_create_user_duplicate_email(client, admin, worker):
    response = client.post("/api/v1/profiles", headers=admin["headers"], json={
        "email": worker["email"], "full_name": "Again",
    })
    assert response.status_code == 409


def test_create_user_rolls_back_auth_user(client, db, admin):
    """If the profile insert fails the orphaned auth user is removed."""
    db.failing_tables.add("profiles")
    response = client.post("/api/v1/profiles", headers=admin["headers"], json={
        "email": "orphan@example.com", "full_name": "Orphan",
    })
    assert response.status_code == 500
    assert len(db.auth.deleted) == 1


def test_worker_cannot_create_users(client, worker):
    response = client.post("/api/v1/profiles", headers=worker["headers"], json={
        "email": "x@example.com", "full_name": "X",
    })
    assert response.status_code == 403
    assert "profiles:manage" in response.json()["detail"]


def test_list_profiles_search(client, manager, make_user):
    make_user("worker", full_name="Hong Gildong")
    make_user("worker", full_name="Someone Else")
    response = client.get("/api/v1/profiles?search=gildong", headers=manager["headers"])

    assert response.status_code == 200
    names = [p["full_name"] for p in response.json()]
    assert names == ["Hong Gildong"]


def test_worker_reads_only_self(client, worker, manager):
    assert client.get(f"/api/v1/profiles/{worker['id']}", headers=worker["headers"]).status_code == 200
    assert client.get(f"/api/v1/profiles/{manager['id']}", headers=worker["headers"]).status_code == 403


def test_worker_cannot_change_own_role(client, worker):
    response = client.put(f"/api/v1/profiles/{worker['id']}", headers=worker["headers"], json={"role": "admin"})
    assert response.status_code == 403


def test_worker_updates_own_phone(client, worker):
    response = client.put(f"/api/v1/profiles/{worker['id']}", headers=worker["headers"], json={"phone": "010-1234-5678"})
    assert response.status_code == 200
    assert response.json()["phone"] == "010-1234-5678"


def test_admin_cannot_grant_system_admin(client, admin, worker):
    response = client.patch(f"/api/v1/profiles/{worker['id']}/role", headers=admin["headers"], json={"role": "system_admin"})
    assert response.status_code == 403


def test_admin_cannot_deactivate_self(client, admin):
    response = client.delete(f"/api/v1/profiles/{admin['id']}", headers=admin["headers"])
    assert response.status_code == 400


def test_deactivate_closes_site_assignments(client, db, admin, worker, site, assign):
    """Deleting a user is a soft delete that also ends their site assignment."""
    assign(worker, site)
    response = client.delete(f"/api/v1/profiles/{worker['id']}", headers=admin["headers"])

    assert response.status_code == 204
    profile = next(p for p in db.rows("profiles") if p["id"] == worker["id"])
    assert profile["status"] == "inactive"
    assert all(not a["is_active"] for a in db.rows("site_assignments"))


def test_reset_password(client, db, admin, worker):
    response = client.post(f"/api/v1/profiles/{worker['id']}/reset-password", headers=admin["headers"])
    assert response.status_code == 200
    new_password = response.json()["temporary_password"]
    assert db.auth.passwords[worker["email"]][1] == new_password


def test_approve_signup_request(client, db, admin):
    """Approving a signup request creates the account with the requested role."""
    request = db.add(
        "signup_requests",
        full_name="Applicant", email="applicant@example.com",
        requested_role="site_manager", status="pending",
    )
    response = client.post(f"/api/v1/signup-requests/{request['id']}/approve", headers=admin["headers"])

    assert response.status_code == 200
    assert response.json()["email"] == "applicant@example.com"
    profile = next(p for p in db.rows("profiles") if p["email"] == "applicant@example.com")
    assert profile["role"] == "site_manager"
    assert db.rows("signup_requests")[0]["status"] == "approved"

    again = client.post(f"/api/v1/signup-requests/{request['id']}/approve", headers=admin["headers"])
    assert again.status_code == 400


def test_reject_signup_request(client, db, admin):
    request = db.add("signup_requests", full_name="No", email="no@example.com", requested_role="worker", status="pending")
    response = client.post(
        f"/api/v1/signup-requests/{request['id']}/reject",
        headers=admin["headers"], json={"reason": "Unknown company"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["rejection_reason"] == "Unknown company"
