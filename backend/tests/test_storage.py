# Overview: Pytest coverage for the file upload pipeline.

"""
Storage Tests

Every rejected upload must leave nothing on disk and no metadata row.
"""

import io
import os

from stockdesk.models import StoredFile
from stockdesk.services.storage_service import sanitize_filename, file_extension
from conftest import headers_for


def _upload(client, user, data: bytes = b"hello", filename: str = "report.pdf", field: str = "file", **form):
    body = dict(form)
    body[field] = (io.BytesIO(data), filename)
    return client.post(
        "/api/storage",
        data=body,
        headers=headers_for(user),
        content_type="multipart/form-data",
    )


def _files_on_disk(root) -> list:
    if not os.path.isdir(root):
        return []
    return [os.path.join(d, f) for d, _, files in os.walk(root) for f in files]


class TestSanitize:

    def test_unsafe_characters_replaced(self):
        assert sanitize_filename("../../etc/pass wd.txt") == ".._.._etc_pass_wd.txt"

    def test_truncated(self):
        assert len(sanitize_filename("a" * 500 + ".pdf")) == 120

    def test_default_name(self):
        assert sanitize_filename("") == "file"
        assert sanitize_filename(None) == "file"

    def test_extension_capped(self):
        assert file_extension("x." + "b" * 40) == "." + "b" * 15


class TestUpload:

    def test_upload_other(self, app, client, db_session, user_a):
        response = _upload(client, user_a, data=b"%PDF-1.4 hello", filename="my report.pdf", kind="OTHER")

        assert response.status_code == 201
        data = response.json
        assert data["kind"] == "OTHER"
        assert data["original_name"] == "my_report.pdf"
        assert data["file_name"].endswith(".pdf")
        assert data["file_name"] != "my_report.pdf"
        assert data["size_bytes"] == len(b"%PDF-1.4 hello")
        assert data["storage_path"] == f"{user_a.id}/{data['file_name']}"

        path = os.path.join(app.config["STORAGE_ROOT"], str(user_a.id), data["file_name"])
        with open(path, "rb") as fh:
            assert fh.read() == b"%PDF-1.4 hello"

    def test_same_name_twice_does_not_collide(self, client, user_a):
        first = _upload(client, user_a, kind="OTHER").json
        second = _upload(client, user_a, kind="OTHER").json

        assert first["file_name"] != second["file_name"]

    def test_alias_field_name(self, client, user_a):
        response = _upload(client, user_a, field="document", kind="DOCUMENT")
        assert response.status_code == 201

    def test_invalid_kind(self, app, client, user_a):
        response = _upload(client, user_a, kind="PICTURE")

        assert response.status_code == 400
        assert response.json == {"error": "Invalid kind"}
        assert _files_on_disk(app.config["STORAGE_ROOT"]) == []

    def test_invoice_id_with_wrong_kind(self, app, client, db_session, user_a):
        response = _upload(client, user_a, kind="DOCUMENT", invoiceId="1")

        assert response.status_code == 400
        assert response.json == {"error": "invoiceId only allowed for INVOICE kind"}
        assert _files_on_disk(app.config["STORAGE_ROOT"]) == []
        assert db_session.query(StoredFile).count() == 0

    def test_request_id_with_wrong_kind(self, client, user_a):
        response = _upload(client, user_a, kind="INVOICE", requestId="1")

        assert response.status_code == 400
        assert response.json == {"error": "requestId only allowed for REQUEST kind"}

    def test_missing_file(self, client, user_a):
        response = client.post(
            "/api/storage",
            data={"kind": "OTHER"},
            headers=headers_for(user_a),
            content_type="multipart/form-data",
        )

        assert response.status_code == 400
        assert response.json == {"error": "file is required"}

    def test_foreign_request_link(self, app, client, user_a, user_b, product_b):
        request_b = client.post(
            "/api/requests",
            json={"title": "B", "items": [{"product_id": product_b.id, "quantity": 1}]},
            headers=headers_for(user_b),
        ).json

        response = _upload(client, user_a, kind="REQUEST", requestId=str(request_b["id"]))

        assert response.status_code == 404
        assert _files_on_disk(app.config["STORAGE_ROOT"]) == []

    def test_linked_request(self, client, user_a, product_a):
        request_a = client.post(
            "/api/requests",
            json={"title": "A", "items": [{"product_id": product_a.id, "quantity": 1}]},
            headers=headers_for(user_a),
        ).json

        response = _upload(client, user_a, kind="REQUEST", requestId=str(request_a["id"]))

        assert response.status_code == 201
        assert response.json["request_id"] == request_a["id"]

    def test_too_large(self, app, client, user_a):
        app.config["MAX_CONTENT_LENGTH"] = 1024

        response = _upload(client, user_a, data=b"x" * 4096, kind="OTHER")

        assert response.status_code == 413
        assert response.json == {"error": "File too large"}

    def test_requires_session(self, client):
        response = client.post("/api/storage", data={"kind": "OTHER"}, content_type="multipart/form-data")
        assert response.status_code == 401


class TestListDownloadDelete:

    def test_list_requires_kind(self, client, user_a):
        response = client.get("/api/storage", headers=headers_for(user_a))

        assert response.status_code == 400
        assert response.json == {"error": "kind is required"}

    def test_list_by_kind_newest_first(self, client, user_a, user_b):
        first = _upload(client, user_a, kind="OTHER").json
        second = _upload(client, user_a, kind="OTHER").json
        _upload(client, user_a, kind="DOCUMENT")
        _upload(client, user_b, kind="OTHER")

        response = client.get("/api/storage?kind=OTHER", headers=headers_for(user_a))

        assert [f["id"] for f in response.json] == [second["id"], first["id"]]

    def test_download(self, client, user_a):
        stored = _upload(client, user_a, data=b"content", filename="notes.txt", kind="OTHER").json

        response = client.get(f"/api/storage/{stored['id']}", headers=headers_for(user_a))

        assert response.status_code == 200
        assert response.data == b"content"
        assert "notes.txt" in response.headers["Content-Disposition"]
        response.close()

    def test_download_foreign_file(self, client, user_a, user_b):
        stored = _upload(client, user_b, kind="OTHER").json

        response = client.get(f"/api/storage/{stored['id']}", headers=headers_for(user_a))

        assert response.status_code == 404

    def test_download_missing_from_disk(self, app, client, user_a):
        stored = _upload(client, user_a, kind="OTHER").json
        for path in _files_on_disk(app.config["STORAGE_ROOT"]):
            os.remove(path)

        response = client.get(f"/api/storage/{stored['id']}", headers=headers_for(user_a))

        assert response.status_code == 404
        assert response.json == {"error": "File not found"}

    def test_download_id_past_integer_range(self, client, user_a):
        response = client.get("/api/storage/99999999999999999999", headers=headers_for(user_a))

        assert response.status_code == 404

    def test_delete_removes_file(self, app, client, db_session, user_a):
        stored = _upload(client, user_a, kind="OTHER").json

        response = client.delete(f"/api/storage/{stored['id']}", headers=headers_for(user_a))

        assert response.status_code == 204
        assert _files_on_disk(app.config["STORAGE_ROOT"]) == []
        assert db_session.query(StoredFile).count() == 0
