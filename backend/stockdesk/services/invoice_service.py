# Overview: Service-layer operations for product invoices; encapsulates business logic and database work.

"""
Invoices Service

An invoice records goods received for one product, optionally against the
request that asked for them. Product and request must both be owned by the
invoice owner.

When a request is linked, the requester (the request's creator) is copied
onto the invoice as a snapshot.
"""

from __future__ import annotations

from ..extensions import db
from ..models import ProductInvoice, Product, Request
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_invoice,
    NotFoundError,
)

INVOICE_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "request_id", "invoice_number", "issued_at", "quantity", "unit_price", "notes"},
    required_on_create={"product_id", "invoice_number", "quantity", "unit_price"},
)


def list_invoices(owner_id: int, product_id: int | None = None, request_id: int | None = None) -> list[dict]:
    query = db.session.query(ProductInvoice).filter(ProductInvoice.user_id == owner_id)
    if product_id is not None:
        query = query.filter(ProductInvoice.product_id == product_id)
    if request_id is not None:
        query = query.filter(ProductInvoice.request_id == request_id)

    invoices = query.order_by(ProductInvoice.issued_at.desc(), ProductInvoice.id.desc()).all()
    return [inv.to_dict() for inv in invoices]


def create_invoice(owner_id: int, payload: dict) -> dict:
    """
    Raises:
        ValidationError: bad or missing fields
        NotFoundError: product or request not owned by owner_id
    """
    patch = validate_payload(model=ProductInvoice, payload=payload, policy=INVOICE_POLICY, partial=False)
    enforce_rules_invoice(patch)

    product = (
        db.session.query(Product)
        .filter(Product.id == patch["product_id"], Product.user_id == owner_id)
        .first()
    )
    if product is None:
        raise NotFoundError("Product not found")

    invoice = ProductInvoice(user_id=owner_id, **patch)
    if invoice.issued_at is None:
        invoice.issued_at = utcnow()

    if patch.get("request_id") is not None:
        request_row = (
            db.session.query(Request)
            .filter(Request.id == patch["request_id"], Request.user_id == owner_id)
            .first()
        )
        if request_row is None:
            raise NotFoundError("Request not found")

        requester = request_row.created_by or request_row.user
        if requester is not None:
            invoice.requested_by_user_id = requester.id
            invoice.requested_by_name = requester.name
            invoice.requested_by_email = requester.email

    db.session.add(invoice)
    db.session.commit()
    return invoice.to_dict()
