from __future__ import annotations

from ..extensions import db
from stockdesk.time_utils import to_utc_z, utcnow

REQUEST_STATUSES = ("DRAFT", "SUBMITTED", "APPROVED", "REJECTED", "FULFILLED")


class Request(db.Model):
    """
    Purchase/replenishment request.

    user_id is the beneficiary (whose scope the request lives in);
    created_by_user_id is whoever submitted it. They differ when an admin
    files a request on behalf of another user.
    """
    __tablename__ = "requests"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('DRAFT', 'SUBMITTED', 'APPROVED', 'REJECTED', 'FULFILLED')",
            name="ck_requests_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="SUBMITTED")
    title = db.Column(db.String(120), nullable=True)
    notes = db.Column(db.String(1000), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", foreign_keys=[user_id])
    created_by = db.relationship("User", foreign_keys=[created_by_user_id])
    items = db.relationship(
        "RequestItem",
        back_populates="request",
        order_by="RequestItem.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    invoices = db.relationship(
        "ProductInvoice",
        back_populates="request",
        order_by="ProductInvoice.issued_at.desc()",
        passive_deletes=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_by_user_id": self.created_by_user_id,
            "status": self.status,
            "title": self.title,
            "notes": self.notes,
            "user": self.user.to_summary() if self.user else None,
            "created_by": self.created_by.to_summary() if self.created_by else None,
            "items": [item.to_dict() for item in self.items],
            "invoices": [inv.to_summary() for inv in self.invoices],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class RequestItem(db.Model):
    """One product line on a request. Quantity is always positive."""
    __tablename__ = "request_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_request_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    # No ON DELETE action: a product that is still on a request cannot be deleted
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    request = db.relationship("Request", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "request_id": self.request_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "notes": self.notes,
            "product": self.product.to_summary() if self.product else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductInvoice(db.Model):
    """
    Supplier invoice recorded against a product.

    When raised from a request, the requester's identity is copied into the
    requested_by_* columns so the invoice still says who asked for the goods
    after the request or the user is gone.
    """
    __tablename__ = "product_invoices"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_product_invoices_quantity_positive"),
        db.CheckConstraint("unit_price >= 0", name="ck_product_invoices_unit_price_nonneg"),
        db.Index("ix_product_invoices_user_product", "user_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    request_id = db.Column(db.Integer, db.ForeignKey("requests.id", ondelete="SET NULL"), nullable=True, index=True)

    invoice_number = db.Column(db.String(64), nullable=False)
    issued_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    notes = db.Column(db.String(1000), nullable=True)

    # Requester snapshot
    requested_by_user_id = db.Column(db.Integer, nullable=True)
    requested_by_name = db.Column(db.String(100), nullable=True)
    requested_by_email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product")
    request = db.relationship("Request", back_populates="invoices")

    @property
    def total(self):
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "request_id": self.request_id,
            "invoice_number": self.invoice_number,
            "issued_at": to_utc_z(self.issued_at),
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "total": str(self.total),
            "notes": self.notes,
            "requested_by": (
                {
                    "id": self.requested_by_user_id,
                    "name": self.requested_by_name,
                    "email": self.requested_by_email,
                }
                if self.requested_by_user_id is not None
                else None
            ),
            "product": self.product.to_summary() if self.product else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "issued_at": to_utc_z(self.issued_at),
            "product_id": self.product_id,
        }
