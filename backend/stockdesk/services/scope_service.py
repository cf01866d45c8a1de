"""
Owner Scope Resolution

WHY: Every owned record is read and written through an explicit owner id.
This module is the only place that decides which id that is.

RULE:
- principal is ADMIN and a target user id was supplied -> target user
- anything else                                        -> principal itself

A non-admin passing asUserId is simply scoped to themselves; no error is
raised so the parameter cannot be used to probe for user ids.

USAGE:
    from stockdesk.services.scope_service import owner_id_for_request

    owner_id = owner_id_for_request(payload)
"""

from flask import current_app, g, request

from ..extensions import db
from ..models import User
from ..validation import NotFoundError, coerce_integer

AS_USER_PARAM = "asUserId"


def resolve_owner_id(principal: User, as_user_id=None) -> int:
    """
    Return the effective owner id for principal acting on as_user_id.

    Raises ValidationError for a malformed target id and NotFoundError when
    an admin targets a user that does not exist.
    """
    if as_user_id is None or as_user_id == "" or not principal.is_admin:
        return principal.id

    target_id = coerce_integer(AS_USER_PARAM, as_user_id)
    if target_id == principal.id:
        return principal.id

    if db.session.get(User, target_id) is None:
        raise NotFoundError("User not found")

    current_app.logger.info(
        "Admin user_id=%s acting as user_id=%s on %s %s",
        principal.id, target_id, request.method, request.path,
    )
    return target_id


def owner_id_for_request(payload: dict | None = None) -> int:
    """
    Resolve the owner for the current request.

    asUserId is read from the query string, then from the JSON body (and
    removed from it so the remaining payload can be validated).
    """
    as_user_id = request.args.get(AS_USER_PARAM)
    if payload is not None and AS_USER_PARAM in payload:
        body_value = payload.pop(AS_USER_PARAM)
        if as_user_id is None:
            as_user_id = body_value

    return resolve_owner_id(g.current_user, as_user_id)
