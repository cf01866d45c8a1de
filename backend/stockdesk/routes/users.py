# Overview: Flask API routes for user administration; parses input and returns JSON responses.

"""
User Administration Routes (ADMIN only)

An admin can neither delete their own account nor drop their own ADMIN role.
"""

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_admin
from ..models import ROLE_USER
from ..services import user_service
from ..services.auth_service import create_user
from ..validation import json_payload


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_admin
def list_users_route():
    return jsonify(user_service.list_users())


@users_bp.post("")
@require_auth
@require_admin
def create_user_route():
    """Body: {"name", "email", "password", "role" (optional, default USER)}"""
    payload = json_payload()
    user = create_user(
        payload.get("name"),
        payload.get("email"),
        payload.get("password"),
        role=payload.get("role") or ROLE_USER,
    )
    return jsonify(user.to_dict()), 201


@users_bp.patch("/<int:user_id>")
@require_auth
@require_admin
def update_user_route(user_id: int):
    """Body: {"name"?, "role"?}"""
    updated = user_service.update_user(
        acting_user=g.current_user,
        user_id=user_id,
        payload=json_payload(),
    )
    return jsonify(updated), 200


@users_bp.delete("/<int:user_id>")
@require_auth
@require_admin
def delete_user_route(user_id: int):
    user_service.delete_user(acting_user=g.current_user, user_id=user_id)
    return "", 204
