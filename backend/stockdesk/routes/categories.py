# Overview: Flask API routes for category operations; parses input and returns JSON responses.

"""
Category Routes

OWNERSHIP: scoped to the session user; admins may pass asUserId.
Names are unique per owner (409 on duplicate).
PUT and DELETE take the id in the path or as "id" in the JSON body.
"""

from flask import Blueprint, jsonify

from ..decorators import require_auth
from ..models import Category
from ..services import catalog_service
from ..services.scope_service import owner_id_for_request
from ..validation import json_payload, pop_record_id


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    owner_id = owner_id_for_request()
    return jsonify(catalog_service.list_entries(Category, owner_id))


@categories_bp.post("")
@require_auth
def create_category_route():
    """Body: {"name": "..."}"""
    payload = json_payload()
    owner_id = owner_id_for_request(payload)

    created = catalog_service.create_entry(Category, owner_id, payload)
    return jsonify(created), 201


@categories_bp.put("", defaults={"category_id": None})
@categories_bp.put("/<int:category_id>")
@require_auth
def update_category_route(category_id):
    payload = json_payload()
    owner_id = owner_id_for_request(payload)
    category_id = pop_record_id(payload, category_id)

    updated = catalog_service.update_entry(Category, owner_id, category_id, payload)
    return jsonify(updated), 200


@categories_bp.delete("", defaults={"category_id": None})
@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category_route(category_id):
    payload = json_payload()
    owner_id = owner_id_for_request(payload)
    category_id = pop_record_id(payload, category_id)

    catalog_service.delete_entry(Category, owner_id, category_id)
    return "", 204
