# Overview: Flask API routes for product invoices; parses input and returns JSON responses.

"""
Invoice Routes

GET supports optional productId / requestId filters in the query string.
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth
from ..services import invoice_service
from ..services.scope_service import owner_id_for_request
from ..validation import json_payload, coerce_integer


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


def _optional_int_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return coerce_integer(name, raw)


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    owner_id = owner_id_for_request()
    invoices = invoice_service.list_invoices(
        owner_id,
        product_id=_optional_int_arg("productId"),
        request_id=_optional_int_arg("requestId"),
    )
    return jsonify(invoices)


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    """
    Body: product_id, invoice_number, quantity, unit_price (required);
    request_id, issued_at (ISO-8601), notes (optional).
    """
    payload = json_payload()
    owner_id = owner_id_for_request(payload)

    created = invoice_service.create_invoice(owner_id, payload)
    return jsonify(created), 201
