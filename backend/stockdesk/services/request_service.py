# Overview: Service-layer operations for requests; encapsulates business logic and database work.

"""
Requests Service

A request asks for one or more products to be replenished. It lives in the
beneficiary's scope (user_id) and remembers who submitted it
(created_by_user_id); the two differ when an admin files on someone's behalf.

ATOMICITY: every product on the request must belong to the beneficiary.
All ids are checked before anything is written, and the request row plus
its item rows are committed together. A failed check or write leaves no
Request or RequestItem rows behind.

STATUS LIFECYCLE:
    DRAFT -> SUBMITTED -> APPROVED -> FULFILLED
                      +-> REJECTED
New requests start as SUBMITTED. Transitions are admin-only (enforced by the
route) and must follow ALLOWED_TRANSITIONS.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Request, RequestItem, Product, User, REQUEST_STATUSES
from ..validation import ValidationError, NotFoundError, coerce_integer

MAX_TITLE_LENGTH = 120
MAX_NOTES_LENGTH = 1000
MAX_ITEM_NOTES_LENGTH = 500

ALLOWED_TRANSITIONS = {
    "DRAFT": {"SUBMITTED"},
    "SUBMITTED": {"APPROVED", "REJECTED"},
    "APPROVED": {"FULFILLED"},
    "REJECTED": set(),
    "FULFILLED": set(),
}

_REQUEST_FIELDS = {"title", "notes", "items"}
_ITEM_FIELDS = {"product_id", "quantity", "notes"}


def _optional_text(value, key: str, max_length: int, allow_blank: bool = True) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()
    if not value:
        if not allow_blank:
            raise ValidationError(f"{key} cannot be blank")
        return None
    if len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value


def _validate_items(raw_items) -> list[dict]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        unknown = set(raw) - _ITEM_FIELDS
        if unknown:
            raise ValidationError(f"Field not allowed: items[{index}].{sorted(unknown)[0]}")
        if raw.get("product_id") is None:
            raise ValidationError(f"items[{index}].product_id is required")
        if raw.get("quantity") is None:
            raise ValidationError(f"items[{index}].quantity is required")

        quantity = coerce_integer(f"items[{index}].quantity", raw["quantity"])
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")

        items.append({
            "product_id": coerce_integer(f"items[{index}].product_id", raw["product_id"]),
            "quantity": quantity,
            "notes": _optional_text(raw.get("notes"), f"items[{index}].notes", MAX_ITEM_NOTES_LENGTH),
        })
    return items


def list_requests(owner_id: int) -> list[dict]:
    requests = (
        db.session.query(Request)
        .filter(Request.user_id == owner_id)
        .order_by(Request.created_at.desc(), Request.id.desc())
        .all()
    )
    return [r.to_dict() for r in requests]


def create_request(*, owner_id: int, created_by: User, payload: dict) -> dict:
    """
    Create a SUBMITTED request and its items as one unit.

    Raises:
        ValidationError: malformed body, empty item list
        NotFoundError: any product missing or owned by someone else
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    unknown = set(payload) - _REQUEST_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    title = _optional_text(payload.get("title"), "title", MAX_TITLE_LENGTH, allow_blank=False)
    notes = _optional_text(payload.get("notes"), "notes", MAX_NOTES_LENGTH)
    items = _validate_items(payload.get("items"))

    product_ids = {item["product_id"] for item in items}
    owned_ids = {
        row.id
        for row in db.session.query(Product.id)
        .filter(Product.user_id == owner_id, Product.id.in_(product_ids))
        .all()
    }
    if owned_ids != product_ids:
        current_app.logger.info(
            "Rejected request for owner_id=%s: products not found %s",
            owner_id, sorted(product_ids - owned_ids),
        )
        raise NotFoundError("One or more products were not found")

    request_row = Request(
        user_id=owner_id,
        created_by_user_id=created_by.id,
        status="SUBMITTED",
        title=title,
        notes=notes,
    )
    request_row.items = [RequestItem(**item) for item in items]

    db.session.add(request_row)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return request_row.to_dict()


def get_owned_request(owner_id: int, request_id: int) -> Request:
    request_row = db.session.query(Request).filter_by(id=request_id, user_id=owner_id).first()
    if request_row is None:
        raise NotFoundError("Request not found")
    return request_row


def transition_request(*, owner_id: int, request_id: int, payload: dict) -> dict:
    """
    Move a request to a new status following ALLOWED_TRANSITIONS.

    Raises ValidationError for an unknown status or a disallowed move.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    new_status = payload.get("status")
    if new_status not in REQUEST_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(REQUEST_STATUSES)}")

    request_row = get_owned_request(owner_id, request_id)
    if new_status not in ALLOWED_TRANSITIONS[request_row.status]:
        raise ValidationError(f"Cannot change status from {request_row.status} to {new_status}")

    request_row.status = new_status
    db.session.commit()
    return request_row.to_dict()
