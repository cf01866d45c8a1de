# Overview: Service-layer operations for categories and suppliers; encapsulates business logic and database work.

"""
Categories & Suppliers Service

Both are a name owned by a user, unique per owner. The unique constraint
(user_id, name) is the only duplicate check: an IntegrityError on write is
the conflict signal, so two concurrent creates cannot both succeed.

Update and delete match on id AND owner in a single statement. Zero rows
affected is reported as not found whether the id is wrong or belongs to
someone else.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Supplier
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ConflictError,
    NotFoundError,
)

NAME_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)

_LABELS = {
    Category: "Category",
    Supplier: "Supplier",
}


def _label(model) -> str:
    return _LABELS[model]


def list_entries(model, owner_id: int) -> list[dict]:
    rows = (
        db.session.query(model)
        .filter(model.user_id == owner_id)
        .order_by(model.name.asc(), model.id.asc())
        .all()
    )
    return [row.to_dict() for row in rows]


def create_entry(model, owner_id: int, payload: dict) -> dict:
    patch = validate_payload(model=model, payload=payload, policy=NAME_POLICY, partial=False)

    entry = model(user_id=owner_id, **patch)
    db.session.add(entry)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"{_label(model)} name must be unique per user")

    return entry.to_dict()


def update_entry(model, owner_id: int, entry_id: int, payload: dict) -> dict:
    patch = validate_payload(model=model, payload=payload, policy=NAME_POLICY, partial=False)

    try:
        affected = (
            db.session.query(model)
            .filter(model.id == entry_id, model.user_id == owner_id)
            .update(patch, synchronize_session=False)
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"{_label(model)} name must be unique per user")

    if not affected:
        raise NotFoundError(f"{_label(model)} not found")

    entry = db.session.query(model).filter_by(id=entry_id, user_id=owner_id).first()
    if entry is None:
        raise NotFoundError(f"{_label(model)} not found")
    return entry.to_dict()


def delete_entry(model, owner_id: int, entry_id: int) -> None:
    affected = (
        db.session.query(model)
        .filter(model.id == entry_id, model.user_id == owner_id)
        .delete(synchronize_session=False)
    )
    db.session.commit()

    if not affected:
        raise NotFoundError(f"{_label(model)} not found")
