# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockdesk/routes/products.py
"""
Product management routes.

OWNERSHIP: Every operation is scoped to the owner resolved from the session
(admins may pass asUserId to act within another user's scope).

PUT and DELETE take the product id either in the path or as "id" in the
JSON body.
"""
from flask import Blueprint, jsonify

from ..services import products_service
from ..services.scope_service import owner_id_for_request
from ..validation import json_payload, pop_record_id
from ..decorators import require_auth


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """List all products of the resolved owner (no pagination)."""
    owner_id = owner_id_for_request()
    return jsonify(products_service.list_products(owner_id))


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    owner_id = owner_id_for_request()
    return jsonify(products_service.get_product(owner_id, product_id))


@products_bp.post("")
@require_auth
def create_product_route():
    """
    Create a new product.

    Body: name, sku, price, quantity (required); status, category_id,
    supplier_id (optional). SKU must be unique across all users.
    """
    payload = json_payload()
    owner_id = owner_id_for_request(payload)

    created = products_service.create_product(owner_id, payload)
    return jsonify(created), 201


@products_bp.put("", defaults={"product_id": None})
@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id):
    payload = json_payload()
    owner_id = owner_id_for_request(payload)
    product_id = pop_record_id(payload, product_id)

    updated = products_service.update_product(owner_id, product_id, payload)
    return jsonify(updated), 200


@products_bp.delete("", defaults={"product_id": None})
@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id):
    payload = json_payload()
    owner_id = owner_id_for_request(payload)
    product_id = pop_record_id(payload, product_id)

    products_service.delete_product(owner_id, product_id)
    return "", 204
