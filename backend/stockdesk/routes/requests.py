# Overview: Flask API routes for replenishment requests; parses input and returns JSON responses.

"""
Request Routes

A request and all of its items are created in one transaction: any product
that is missing or belongs to another user fails the whole request (404)
and nothing is stored.

Status changes are ADMIN-only.
"""

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_admin
from ..services import request_service
from ..services.scope_service import owner_id_for_request
from ..validation import json_payload


requests_bp = Blueprint("requests", __name__, url_prefix="/api/requests")


@requests_bp.get("")
@require_auth
def list_requests_route():
    """Newest first, each with its items and linked invoice summaries."""
    owner_id = owner_id_for_request()
    return jsonify(request_service.list_requests(owner_id))


@requests_bp.post("")
@require_auth
def create_request_route():
    """
    Body:
        {
            "title": "Restock",
            "notes": "optional",
            "items": [{"product_id": 1, "quantity": 5, "notes": "optional"}]
        }
    """
    payload = json_payload()
    owner_id = owner_id_for_request(payload)

    created = request_service.create_request(
        owner_id=owner_id,
        created_by=g.current_user,
        payload=payload,
    )
    return jsonify(created), 201


@requests_bp.patch("/<int:request_id>")
@require_auth
@require_admin
def transition_request_route(request_id: int):
    """Body: {"status": "APPROVED"}"""
    payload = json_payload()
    owner_id = owner_id_for_request(payload)

    updated = request_service.transition_request(
        owner_id=owner_id,
        request_id=request_id,
        payload=payload,
    )
    return jsonify(updated), 200
