# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

"""
Supplier Routes

OWNERSHIP: scoped to the session user; admins may pass asUserId.
Names are unique per owner (409 on duplicate).
PUT and DELETE take the id in the path or as "id" in the JSON body.
"""

from flask import Blueprint, jsonify

from ..decorators import require_auth
from ..models import Supplier
from ..services import catalog_service
from ..services.scope_service import owner_id_for_request
from ..validation import json_payload, pop_record_id


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
def list_suppliers_route():
    owner_id = owner_id_for_request()
    return jsonify(catalog_service.list_entries(Supplier, owner_id))


@suppliers_bp.post("")
@require_auth
def create_supplier_route():
    """Body: {"name": "..."}"""
    payload = json_payload()
    owner_id = owner_id_for_request(payload)

    created = catalog_service.create_entry(Supplier, owner_id, payload)
    return jsonify(created), 201


@suppliers_bp.put("", defaults={"supplier_id": None})
@suppliers_bp.put("/<int:supplier_id>")
@require_auth
def update_supplier_route(supplier_id):
    payload = json_payload()
    owner_id = owner_id_for_request(payload)
    supplier_id = pop_record_id(payload, supplier_id)

    updated = catalog_service.update_entry(Supplier, owner_id, supplier_id, payload)
    return jsonify(updated), 200


@suppliers_bp.delete("", defaults={"supplier_id": None})
@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
def delete_supplier_route(supplier_id):
    payload = json_payload()
    owner_id = owner_id_for_request(payload)
    supplier_id = pop_record_id(payload, supplier_id)

    catalog_service.delete_entry(Supplier, owner_id, supplier_id)
    return "", 204
