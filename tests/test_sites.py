"""Tests for organizations, sites and site assignments."""


def test_admin_creates_site(client, admin):
    response = client.post("/api/v1/sites", headers=admin["headers"], json={
        "name": "Songpa C Site",
        "address": "45 Olympic-ro",
        "start_date": "2025-02-03",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "active"
    assert body["created_by"] == admin["id"]


def test_site_end_before_start_rejected(client, admin):
    response = client.post("/api/v1/sites", headers=admin["headers"], json={
        "name": "Backwards", "address": "Seoul", "start_date": "2025-05-01", "end_date": "2025-04-01",
    })
    assert response.status_code == 422


def test_worker_cannot_create_site(client, worker):
    response = client.post("/api/v1/sites", headers=worker["headers"], json={
        "name": "Nope", "address": "Seoul", "start_date": "2025-01-01",
    })
    assert response.status_code == 403


def test_worker_lists_only_assigned_sites(client, db, worker, site, assign):
    """Non-admin callers only see the sites they are assigned to."""
    db.add("sites", name="Other Site", address="Busan", status="active")
    assign(worker, site)

    response = client.get("/api/v1/sites", headers=worker["headers"])
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [site["id"]]


def test_customer_manager_sees_all_sites(client, db, customer, site):
    db.add("sites", name="Other Site", address="Busan", status="active")
    response = client.get("/api/v1/sites", headers=customer["headers"])
    assert response.status_code == 200
    assert len(response.json()) == 2


def test_unassigned_worker_cannot_read_site(client, worker, site):
    response = client.get(f"/api/v1/sites/{site['id']}", headers=worker["headers"])
    assert response.status_code == 403


def test_assignment_is_exclusive(client, db, admin, worker, site):
    """Assigning a user to a new site closes their previous active assignment."""
    second = db.add("sites", name="Seocho B Site", address="Seoul", status="active")

    first = client.post(f"/api/v1/sites/{site['id']}/assignments", headers=admin["headers"], json={"user_id": worker["id"]})
    assert first.status_code == 201
    moved = client.post(f"/api/v1/sites/{second['id']}/assignments", headers=admin["headers"], json={"user_id": worker["id"]})
    assert moved.status_code == 201

    active = [a for a in db.rows("site_assignments") if a["user_id"] == worker["id"] and a["is_active"]]
    assert len(active) == 1
    assert active[0]["site_id"] == second["id"]

    current = client.get("/api/v1/sites/me/current", headers=worker["headers"])
    assert current.status_code == 200
    assert current.json()["site"]["name"] == "Seocho B Site"

    history = client.get("/api/v1/sites/me/history", headers=worker["headers"])
    assert len(history.json()) == 2


def test_cannot_assign_to_inactive_site(client, db, admin, worker):
    closed = db.add("sites", name="Done", address="Seoul", status="completed")
    response = client.post(f"/api/v1/sites/{closed['id']}/assignments", headers=admin["headers"], json={"user_id": worker["id"]})
    assert response.status_code == 400


def test_cannot_assign_inactive_user(client, admin, make_user, site):
    retired = make_user("worker", status="inactive")
    response = client.post(f"/api/v1/sites/{site['id']}/assignments", headers=admin["headers"], json={"user_id": retired["id"]})
    assert response.status_code == 400


def test_unassign(client, admin, worker, site, assign):
    assign(worker, site)
    response = client.delete(f"/api/v1/sites/{site['id']}/assignments/{worker['id']}", headers=admin["headers"])
    assert response.status_code == 204
    missing = client.delete(f"/api/v1/sites/{site['id']}/assignments/{worker['id']}", headers=admin["headers"])
    assert missing.status_code == 404


def test_no_current_site(client, worker):
    response = client.get("/api/v1/sites/me/current", headers=worker["headers"])
    assert response.status_code == 404


def test_site_assignments_include_profiles(client, manager, worker, site, assign):
    assign(manager, site, role="site_manager")
    assign(worker, site)
    response = client.get(f"/api/v1/sites/{site['id']}/assignments", headers=manager["headers"])
    assert response.status_code == 200
    names = sorted(a["profile"]["full_name"] for a in response.json())
    assert names == ["Kim Worker", "Lee Manager"]


def test_organization_crud(client, admin, customer):
    created = client.post("/api/v1/organizations", headers=admin["headers"], json={
        "name": "INOPNC Head Office", "type": "head_office",
    })
    assert created.status_code == 201
    org_id = created.json()["id"]

    assert client.get(f"/api/v1/organizations/{org_id}", headers=customer["headers"]).status_code == 200
    assert client.post("/api/v1/organizations", headers=customer["headers"], json={
        "name": "Partner", "type": "branch_office",
    }).status_code == 403

    assert client.delete(f"/api/v1/organizations/{org_id}", headers=admin["headers"]).status_code == 204
    listed = client.get("/api/v1/organizations", headers=admin["headers"]).json()
    assert org_id not in [o["id"] for o in listed]
