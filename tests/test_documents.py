"""Tests for document upload, visibility and deletion."""

import pytest

from app.core.file_validation import FileValidator, format_file_size
from app.modules.documents.service import build_storage_path, storage_path_from_url


def upload(client, user, filename="plan.pdf", content=b"%PDF-1.7 test", content_type="application/pdf", **form):
    data = {"title": "Floor plan", **form}
    return client.post(
        "/api/v1/documents",
        headers=user["headers"],
        data=data,
        files={"file": (filename, content, content_type)},
    )


@pytest.fixture()
def document(client, worker):
    response = upload(client, worker)
    assert response.status_code == 201
    return response.json()


class TestFileValidator:
    def test_accepts_pdf(self):
        assert FileValidator.validate("plan.pdf", 1024, "application/pdf", allowed_types=["application/pdf"]) == (True, [])

    def test_collects_every_problem(self):
        ok, errors = FileValidator.validate("bad|name.exe", 0, "application/x-msdownload", allowed_types=["application/pdf"])
        assert not ok
        assert "File is empty" in errors
        assert "File name contains invalid characters" in errors
        assert "Unsupported file type: application/x-msdownload" in errors

    def test_size_limit(self):
        ok, errors = FileValidator.validate("a.pdf", 11 * 1024 * 1024, "application/pdf", max_size=10 * 1024 * 1024)
        assert not ok
        assert errors[0].startswith("File is too large (11 MB)")

    def test_name_too_long(self):
        ok, errors = FileValidator.validate("a" * 252 + ".pdf", 10, "application/pdf")
        assert errors == ["File name is too long (max 255 characters)"]

    def test_format_file_size(self):
        assert format_file_size(0) == "0 Bytes"
        assert format_file_size(1536) == "1.5 KB"


class TestStoragePaths:
    def test_build_storage_path(self):
        path = build_storage_path("user-1", "Plan.PDF")
        owner, name = path.split("/")
        assert owner == "user-1"
        assert name.endswith(".pdf")

    def test_storage_path_from_url(self):
        url = "http://localhost:54321/storage/v1/object/public/documents/user-1/123-abcd.pdf"
        assert storage_path_from_url(url, "documents") == "user-1/123-abcd.pdf"
        assert storage_path_from_url("http://elsewhere/file.pdf", "documents") is None


def test_upload_stores_object_and_row(client, db, worker, document):
    assert document["owner_id"] == worker["id"]
    assert document["file_name"] == "plan.pdf"
    assert document["file_size"] == len(b"%PDF-1.7 test")
    assert document["document_type"] == "personal"
    assert document["file_url"].endswith(document["file_path"])
    assert ("documents", document["file_path"]) in db.storage.objects


def test_upload_rejects_unsupported_type(client, db, worker):
    response = upload(client, worker, filename="tool.exe", content_type="application/x-msdownload")
    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["detail"]
    assert db.storage.objects == {}


def test_upload_rejects_blank_title(client, worker):
    response = upload(client, worker, title="   ")
    assert response.status_code == 400


def test_upload_cleans_up_when_row_insert_fails(client, db, worker):
    """A failed insert leaves no orphaned object in Storage."""
    db.failing_tables.add("documents")
    response = upload(client, worker)
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to create document record"
    assert db.storage.objects == {}


def test_upload_storage_failure(client, db, worker):
    db.storage.fail_uploads = True
    response = upload(client, worker)
    assert response.status_code == 500
    assert db.rows("documents") == []


def test_customer_manager_cannot_upload(client, customer):
    assert upload(client, customer).status_code == 403


def test_list_shows_own_and_public(client, db, worker, make_user):
    other = make_user("worker")
    upload(client, other, title="Private")
    upload(client, other, title="Safety manual", is_public="true")
    upload(client, worker, title="Mine")

    titles = sorted(d["title"] for d in client.get("/api/v1/documents", headers=worker["headers"]).json())
    assert titles == ["Mine", "Safety manual"]

    mine = client.get("/api/v1/documents/me", headers=worker["headers"]).json()
    assert [d["title"] for d in mine] == ["Mine"]


def test_shared_includes_site_documents(client, db, worker, make_user, site, assign):
    assign(worker, site)
    other = make_user("worker")
    upload(client, other, title="Site drawing", site_id=site["id"])
    upload(client, other, title="Elsewhere", site_id="other-site")

    shared = client.get("/api/v1/documents/shared", headers=worker["headers"]).json()
    assert [d["title"] for d in shared] == ["Site drawing"]


def test_private_document_hidden_from_others(client, make_user, document):
    other = make_user("worker")
    response = client.get(f"/api/v1/documents/{document['id']}", headers=other["headers"])
    assert response.status_code == 404


def test_only_owner_updates(client, worker, make_user, document):
    other = make_user("worker")
    denied = client.put(f"/api/v1/documents/{document['id']}", headers=other["headers"], json={"title": "Hijack"})
    assert denied.status_code == 403

    renamed = client.put(f"/api/v1/documents/{document['id']}", headers=worker["headers"], json={"title": "Level 2 plan"})
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Level 2 plan"


def test_delete_is_soft_and_removes_object(client, db, worker, document):
    response = client.delete(f"/api/v1/documents/{document['id']}", headers=worker["headers"])
    assert response.status_code == 204
    assert db.rows("documents")[0]["is_deleted"] is True
    assert db.storage.objects == {}
    assert client.get(f"/api/v1/documents/{document['id']}", headers=worker["headers"]).status_code == 404
