# Overview: Service-layer operations for user administration; encapsulates business logic and database work.

"""
User Administration Service (admin-only surface)

SELF-PROTECTION: an admin cannot delete their own account or move their own
role away from ADMIN here.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User, ROLE_ADMIN
from ..validation import ValidationError, NotFoundError, ConflictError
from .auth_service import validate_name, validate_role

USER_PATCH_FIELDS = {"name", "role"}


def list_users() -> list[dict]:
    users = db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return [u.to_dict() for u in users]


def update_user(*, acting_user: User, user_id: int, payload: dict) -> dict:
    """
    Update name and/or role.

    Raises:
        ValidationError: unknown field, bad value, or self-demotion
        NotFoundError: no such user
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    unknown = set(payload) - USER_PATCH_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    patch = {}
    if "name" in payload:
        patch["name"] = validate_name(payload["name"])
    if "role" in payload:
        patch["role"] = validate_role(payload["role"])

    if user_id == acting_user.id and patch.get("role", ROLE_ADMIN) != ROLE_ADMIN:
        current_app.logger.warning("Admin user_id=%s tried to remove their own admin role", acting_user.id)
        raise ValidationError("You cannot remove your own admin role")

    if patch:
        try:
            affected = (
                db.session.query(User)
                .filter(User.id == user_id)
                .update(patch, synchronize_session=False)
            )
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("User update conflicts with an existing user")
        if not affected:
            raise NotFoundError("User not found")

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    if "role" in patch:
        current_app.logger.info(
            "Admin user_id=%s set role of user_id=%s to %s", acting_user.id, user_id, patch["role"]
        )
    return user.to_dict()


def delete_user(*, acting_user: User, user_id: int) -> None:
    """
    Delete a user and (by cascade) everything they own.

    Raises ValidationError on self-deletion, NotFoundError if absent.
    """
    if user_id == acting_user.id:
        current_app.logger.warning("Admin user_id=%s tried to delete their own account", acting_user.id)
        raise ValidationError("You cannot delete your own account")

    affected = db.session.query(User).filter(User.id == user_id).delete(synchronize_session=False)
    db.session.commit()

    if not affected:
        raise NotFoundError("User not found")

    current_app.logger.info("Admin user_id=%s deleted user_id=%s", acting_user.id, user_id)
