"""Tests for the markup document API."""

import pytest


def new_document(client, user, **overrides):
    payload = {
        "title": "Level 3 cracks",
        "original_blueprint_url": "https://files.example.com/blueprints/l3.png",
        "original_blueprint_filename": "l3.png",
        "markup_data": [{"id": "box-1", "type": "box", "x": 10, "y": 10, "width": 40, "height": 40}],
        **overrides,
    }
    return client.post("/api/v1/markup-documents", headers=user["headers"], json=payload)


@pytest.fixture()
def markup(client, worker):
    response = new_document(client, worker)
    assert response.status_code == 201
    return response.json()["data"]


def test_create_counts_markup_and_uses_active_site(client, worker, site, assign):
    assign(worker, site)
    response = new_document(client, worker)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["markup_count"] == 1
    assert body["data"]["site_id"] == site["id"]
    assert body["data"]["created_by_name"] == "Kim Worker"
    assert body["data"]["location"] == "personal"


def test_create_missing_fields_is_400(client, worker):
    response = client.post("/api/v1/markup-documents", headers=worker["headers"], json={"title": "Only a title"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields: original_blueprint_url, original_blueprint_filename"


def test_customer_manager_is_read_only(client, customer):
    assert new_document(client, customer).status_code == 403


def test_list_paginates(client, db, worker):
    for i in range(5):
        new_document(client, worker, title=f"Sheet {i}")

    response = client.get("/api/v1/markup-documents?page=2&limit=2", headers=worker["headers"])

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}


def test_list_limit_bounds(client, worker):
    assert client.get("/api/v1/markup-documents?limit=101", headers=worker["headers"]).status_code == 422
    assert client.get("/api/v1/markup-documents?page=0", headers=worker["headers"]).status_code == 422


def test_personal_list_excludes_others(client, worker, make_user, markup):
    other = make_user("worker")
    new_document(client, other, title="Shared sheet", location="shared")

    personal = client.get("/api/v1/markup-documents", headers=other["headers"]).json()
    assert personal["pagination"]["total"] == 0

    shared = client.get("/api/v1/markup-documents?location=shared", headers=worker["headers"]).json()
    assert [d["title"] for d in shared["data"]] == ["Shared sheet"]


def test_personal_document_hidden_from_others(client, make_user, markup):
    other = make_user("worker")
    response = client.get(f"/api/v1/markup-documents/{markup['id']}", headers=other["headers"])
    assert response.status_code == 404


def test_only_creator_updates(client, worker, make_user):
    shared = new_document(client, worker, location="shared").json()["data"]
    other = make_user("worker")
    denied = client.put(f"/api/v1/markup-documents/{shared['id']}", headers=other["headers"], json={"title": "Mine now"})
    assert denied.status_code == 403

    response = client.put(f"/api/v1/markup-documents/{shared['id']}", headers=worker["headers"], json={"markup_data": []})
    assert response.status_code == 200
    assert response.json()["data"]["markup_count"] == 0


def test_personal_document_writes_hidden_from_others(client, db, make_user, markup):
    """Non-owners get 404 on every write to a personal document, never 403."""
    other = make_user("worker")
    url = f"/api/v1/markup-documents/{markup['id']}"

    assert client.put(url, headers=other["headers"], json={"title": "Mine now"}).status_code == 404
    assert client.delete(url, headers=other["headers"]).status_code == 404
    edits = client.post(f"{url}/edits", headers=other["headers"], json={"operations": [{"op": "select_all"}]})
    assert edits.status_code == 404
    assert db.rows("markup_documents")[0]["title"] == "Level 3 cracks"
    assert db.rows("markup_documents")[0]["is_deleted"] is False


def test_delete_is_soft(client, db, worker, markup):
    response = client.delete(f"/api/v1/markup-documents/{markup['id']}", headers=worker["headers"])
    assert response.status_code == 204
    assert db.rows("markup_documents")[0]["is_deleted"] is True
    assert client.get(f"/api/v1/markup-documents/{markup['id']}", headers=worker["headers"]).status_code == 404


def test_admin_deletes_any(client, admin, markup):
    assert client.delete(f"/api/v1/markup-documents/{markup['id']}", headers=admin["headers"]).status_code == 204


def test_edits_copy_paste_and_save(client, db, worker, markup):
    """Editor operations run against the stored markup and the result is persisted."""
    response = client.post(f"/api/v1/markup-documents/{markup['id']}/edits", headers=worker["headers"], json={
        "operations": [
            {"op": "select", "ids": ["box-1"]},
            {"op": "copy_selected"},
            {"op": "paste"},
            {"op": "add", "object": {"type": "text", "x": 5, "y": 5, "text": "Crack 0.3mm"}},
        ],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["markup_count"] == 3
    assert body["editor"]["can_undo"] is True
    assert body["editor"]["can_redo"] is False
    assert body["editor"]["clipboard"][0]["id"] == "box-1"

    stored = db.rows("markup_documents")[0]["markup_data"]
    pasted = stored[1]
    assert (pasted["x"], pasted["y"]) == (30, 30)
    assert pasted["id"] != "box-1"
    assert stored[2]["type"] == "text"


def test_selection_only_edit_does_not_write(client, db, worker):
    stamped = {
        "id": "box-1", "type": "box", "x": 10, "y": 10, "width": 40, "height": 40,
        "createdAt": "2025-03-01T00:00:00+00:00", "modifiedAt": "2025-03-01T00:00:00+00:00",
    }
    markup = new_document(client, worker, markup_data=[stamped]).json()["data"]
    response = client.post(f"/api/v1/markup-documents/{markup['id']}/edits", headers=worker["headers"], json={
        "operations": [{"op": "select_all"}],
    })
    assert response.status_code == 200
    assert response.json()["editor"]["selected_objects"] == ["box-1"]
    assert "updated_at" not in db.rows("markup_documents")[0]


def test_edit_with_bad_operation(client, worker, markup):
    response = client.post(f"/api/v1/markup-documents/{markup['id']}/edits", headers=worker["headers"], json={
        "operations": [{"op": "add", "object": {"type": "circle", "x": 0, "y": 0}}],
    })
    assert response.status_code == 400


def test_edit_requires_operations(client, worker, markup):
    response = client.post(f"/api/v1/markup-documents/{markup['id']}/edits", headers=worker["headers"], json={"operations": []})
    assert response.status_code == 422
