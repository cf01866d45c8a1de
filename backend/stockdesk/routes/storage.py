# Overview: Flask API routes for stored files; handles multipart uploads and downloads.

"""
Storage Routes

Files are always scoped to the session user; asUserId is not honoured here.

Upload (multipart/form-data):
    kind       INVOICE | REQUEST | DOCUMENT | OTHER   (required)
    invoiceId  only with kind INVOICE
    requestId  only with kind REQUEST
    file       the file part ("upload" and "document" are accepted too)
"""

from flask import Blueprint, request, jsonify, g, send_file

from ..decorators import require_auth
from ..services import storage_service


storage_bp = Blueprint("storage", __name__, url_prefix="/api/storage")

FILE_FIELD_NAMES = ("file", "upload", "document")


def _uploaded_file():
    for field in FILE_FIELD_NAMES:
        upload = request.files.get(field)
        if upload is not None:
            return upload
    return None


@storage_bp.get("")
@require_auth
def list_files_route():
    files = storage_service.list_files(
        g.current_user.id,
        request.args.get("kind"),
        invoice_id=request.args.get("invoiceId"),
        request_id=request.args.get("requestId"),
    )
    return jsonify(files)


@storage_bp.post("")
@require_auth
def upload_file_route():
    stored = storage_service.upload_file(
        owner_id=g.current_user.id,
        kind=request.form.get("kind"),
        invoice_id=request.form.get("invoiceId"),
        request_id=request.form.get("requestId"),
        upload=_uploaded_file(),
    )
    return jsonify(stored), 201


@storage_bp.get("/<int:file_id>")
@require_auth
def download_file_route(file_id: int):
    stored, path = storage_service.download_path(g.current_user.id, file_id)
    return send_file(
        path,
        mimetype=stored.mime_type,
        as_attachment=True,
        download_name=stored.original_name,
    )


@storage_bp.delete("/<int:file_id>")
@require_auth
def delete_file_route(file_id: int):
    storage_service.delete_file(g.current_user.id, file_id)
    return "", 204
