# backend/stockdesk/services/products_service.py
"""
Products Service

OWNERSHIP: All product operations are scoped to an owner id resolved by the
caller (see scope_service). A product id that exists under another owner
behaves exactly like an id that does not exist.

SKU: unique across all users. create_product pre-checks for a friendlier
message, but the uq_products_sku constraint is what actually decides:
a concurrent insert that slips past the pre-check still ends as a conflict.
"""
from __future__ import annotations
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Category, Supplier
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ConflictError,
    NotFoundError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "price", "quantity", "status", "category_id", "supplier_id"},
    required_on_create={"name", "sku", "price", "quantity"},
)

SKU_CONFLICT_MESSAGE = "SKU must be unique"


def _require_references_owned(patch: dict, owner_id: int) -> None:
    """category_id / supplier_id must point at rows of the same owner."""
    refs = (
        ("category_id", Category, "Category not found"),
        ("supplier_id", Supplier, "Supplier not found"),
    )
    for key, model, message in refs:
        ref_id = patch.get(key)
        if ref_id is None:
            continue
        exists = (
            db.session.query(model.id)
            .filter(model.id == ref_id, model.user_id == owner_id)
            .first()
        )
        if exists is None:
            raise NotFoundError(message)


def list_products(owner_id: int) -> list[dict]:
    products = (
        db.session.query(Product)
        .filter(Product.user_id == owner_id)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return [p.to_dict() for p in products]


def get_product(owner_id: int, product_id: int) -> dict:
    product = db.session.query(Product).filter_by(id=product_id, user_id=owner_id).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product.to_dict()


def create_product(owner_id: int, payload: dict) -> dict:
    """
    Create product using a validated payload.

    Raises:
        ValidationError: bad or missing fields
        NotFoundError: category/supplier not owned by owner_id
        ConflictError: SKU already exists (any owner)
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _require_references_owned(patch, owner_id)

    existing = db.session.query(Product.id).filter(Product.sku == patch["sku"]).first()
    if existing:
        raise ConflictError(SKU_CONFLICT_MESSAGE)

    product = Product(user_id=owner_id, **patch)
    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(SKU_CONFLICT_MESSAGE)

    return product.to_dict()


def update_product(owner_id: int, product_id: int, payload: dict) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    _require_references_owned(patch, owner_id)

    if patch:
        try:
            affected = (
                db.session.query(Product)
                .filter(Product.id == product_id, Product.user_id == owner_id)
                .update(patch, synchronize_session=False)
            )
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(SKU_CONFLICT_MESSAGE)
        if not affected:
            raise NotFoundError("Product not found")

    return get_product(owner_id, product_id)


def delete_product(owner_id: int, product_id: int) -> None:
    try:
        affected = (
            db.session.query(Product)
            .filter(Product.id == product_id, Product.user_id == owner_id)
            .delete(synchronize_session=False)
        )
        db.session.commit()
    except IntegrityError:
        # Still referenced by a request item or an invoice
        db.session.rollback()
        raise ConflictError("Product is referenced by requests or invoices")

    if not affected:
        raise NotFoundError("Product not found")
