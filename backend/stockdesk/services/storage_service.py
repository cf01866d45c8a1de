# Overview: Service-layer operations for file storage; encapsulates upload validation, disk writes and metadata.

"""
Stored Files Service

Upload pipeline (each step is a hard precondition for the next):
1. body size is capped by MAX_CONTENT_LENGTH (Werkzeug answers 413)
2. kind must be one of FILE_KINDS
3. invoice_id only with kind INVOICE, request_id only with kind REQUEST
4. a file part must be present
5. a linked invoice/request must exist AND belong to the uploader
6. the client filename is sanitized for display
7. the bytes are written to <STORAGE_ROOT>/<user_id>/<random hex><ext>
8. metadata is recorded

The on-disk name never contains client input other than a short extension,
so two uploads with the same name cannot collide and "../" cannot escape
the user's directory.

LIMITATION (accepted): if step 8 fails the file stays on disk without a row.
"""

from __future__ import annotations

import os
import re
import uuid

from flask import current_app

from ..extensions import db
from ..models import StoredFile, ProductInvoice, Request, FILE_KINDS
from ..validation import ValidationError, NotFoundError, coerce_integer

MAX_ORIGINAL_NAME_LENGTH = 120
MAX_EXTENSION_LENGTH = 16
DEFAULT_FILE_NAME = "file"
DEFAULT_MIME_TYPE = "application/octet-stream"

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(name: str | None) -> str:
    """Replace anything outside [A-Za-z0-9._-] with "_", cap at 120 chars."""
    safe = _UNSAFE_NAME_CHARS.sub("_", name or "")[:MAX_ORIGINAL_NAME_LENGTH]
    return safe or DEFAULT_FILE_NAME


def file_extension(safe_name: str) -> str:
    return os.path.splitext(safe_name)[1][:MAX_EXTENSION_LENGTH]


def validate_kind(kind) -> str:
    if kind not in FILE_KINDS:
        raise ValidationError("Invalid kind")
    return kind


def _optional_id(value, key: str) -> int | None:
    if value is None or value == "":
        return None
    return coerce_integer(key, value)


def _require_linkage_owned(owner_id: int, invoice_id: int | None, request_id: int | None) -> None:
    if invoice_id is not None:
        found = (
            db.session.query(ProductInvoice.id)
            .filter(ProductInvoice.id == invoice_id, ProductInvoice.user_id == owner_id)
            .first()
        )
        if found is None:
            raise NotFoundError("Invoice not found")

    if request_id is not None:
        found = (
            db.session.query(Request.id)
            .filter(Request.id == request_id, Request.user_id == owner_id)
            .first()
        )
        if found is None:
            raise NotFoundError("Request not found")


def storage_root() -> str:
    return current_app.config["STORAGE_ROOT"]


def absolute_path(stored: StoredFile) -> str:
    return os.path.join(storage_root(), stored.storage_path)


def list_files(owner_id: int, kind, invoice_id=None, request_id=None) -> list[dict]:
    if kind is None or kind == "":
        raise ValidationError("kind is required")
    kind = validate_kind(kind)
    invoice_id = _optional_id(invoice_id, "invoiceId")
    request_id = _optional_id(request_id, "requestId")

    query = db.session.query(StoredFile).filter(
        StoredFile.user_id == owner_id,
        StoredFile.kind == kind,
    )
    if invoice_id is not None:
        query = query.filter(StoredFile.invoice_id == invoice_id)
    if request_id is not None:
        query = query.filter(StoredFile.request_id == request_id)

    files = query.order_by(StoredFile.created_at.desc(), StoredFile.id.desc()).all()
    return [f.to_dict() for f in files]


def upload_file(*, owner_id: int, kind, invoice_id=None, request_id=None, upload=None) -> dict:
    """
    Validate and persist one uploaded file.

    upload is a werkzeug FileStorage (request.files entry).

    Raises:
        ValidationError: bad kind, kind/linkage mismatch, missing file
        NotFoundError: linked invoice/request not owned by owner_id
    """
    kind = validate_kind(kind)
    invoice_id = _optional_id(invoice_id, "invoiceId")
    request_id = _optional_id(request_id, "requestId")

    if invoice_id is not None and kind != "INVOICE":
        raise ValidationError("invoiceId only allowed for INVOICE kind")
    if request_id is not None and kind != "REQUEST":
        raise ValidationError("requestId only allowed for REQUEST kind")

    if upload is None:
        raise ValidationError("file is required")

    _require_linkage_owned(owner_id, invoice_id, request_id)

    original_name = sanitize_filename(upload.filename)
    file_name = f"{uuid.uuid4().hex}{file_extension(original_name)}"

    user_dir = os.path.join(storage_root(), str(owner_id))
    os.makedirs(user_dir, exist_ok=True)
    dest_path = os.path.join(user_dir, file_name)
    upload.save(dest_path)

    stored = StoredFile(
        user_id=owner_id,
        kind=kind,
        original_name=original_name,
        file_name=file_name,
        mime_type=upload.mimetype or DEFAULT_MIME_TYPE,
        size_bytes=os.path.getsize(dest_path),
        storage_path=f"{owner_id}/{file_name}",
        invoice_id=invoice_id,
        request_id=request_id,
    )
    db.session.add(stored)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "Failed to record stored file metadata user_id=%s file=%s (file left on disk)",
            owner_id, dest_path,
        )
        raise

    current_app.logger.info(
        "Stored file id=%s user_id=%s kind=%s size=%s",
        stored.id, owner_id, kind, stored.size_bytes,
    )
    return stored.to_dict()


def get_owned_file(owner_id: int, file_id: int) -> StoredFile:
    stored = db.session.query(StoredFile).filter_by(id=file_id, user_id=owner_id).first()
    if stored is None:
        raise NotFoundError("File not found")
    return stored


def download_path(owner_id: int, file_id: int) -> tuple[StoredFile, str]:
    """Row and on-disk path of an owned file; a row whose bytes are gone is a 404."""
    stored = get_owned_file(owner_id, file_id)
    path = absolute_path(stored)
    if not os.path.isfile(path):
        current_app.logger.warning("Stored file id=%s is missing from disk: %s", file_id, path)
        raise NotFoundError("File not found")
    return stored, path


def delete_file(owner_id: int, file_id: int) -> None:
    stored = get_owned_file(owner_id, file_id)
    path = absolute_path(stored)

    db.session.delete(stored)
    db.session.commit()

    try:
        os.remove(path)
    except FileNotFoundError:
        current_app.logger.warning("Stored file id=%s was already missing from disk: %s", file_id, path)
