from __future__ import annotations

from ..extensions import db
from stockdesk.time_utils import to_utc_z, utcnow

FILE_KINDS = ("INVOICE", "REQUEST", "DOCUMENT", "OTHER")


class StoredFile(db.Model):
    """
    Metadata for an uploaded file kept on local disk.

    original_name is the sanitized client-side name shown to users;
    file_name is the generated on-disk name (random id + extension).
    invoice_id is only set for kind INVOICE, request_id only for kind REQUEST.
    """
    __tablename__ = "stored_files"
    __table_args__ = (
        db.CheckConstraint(
            "kind IN ('INVOICE', 'REQUEST', 'DOCUMENT', 'OTHER')",
            name="ck_stored_files_kind",
        ),
        db.CheckConstraint(
            "invoice_id IS NULL OR kind = 'INVOICE'",
            name="ck_stored_files_invoice_kind",
        ),
        db.CheckConstraint(
            "request_id IS NULL OR kind = 'REQUEST'",
            name="ck_stored_files_request_kind",
        ),
        db.Index("ix_stored_files_user_kind", "user_id", "kind"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = db.Column(db.String(16), nullable=False)

    original_name = db.Column(db.String(120), nullable=False)
    file_name = db.Column(db.String(64), nullable=False, unique=True)
    mime_type = db.Column(db.String(255), nullable=False)
    size_bytes = db.Column(db.Integer, nullable=False)
    storage_path = db.Column(db.String(512), nullable=False)

    invoice_id = db.Column(db.Integer, db.ForeignKey("product_invoices.id", ondelete="SET NULL"), nullable=True)
    request_id = db.Column(db.Integer, db.ForeignKey("requests.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "kind": self.kind,
            "original_name": self.original_name,
            "file_name": self.file_name,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "storage_path": self.storage_path,
            "invoice_id": self.invoice_id,
            "request_id": self.request_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
