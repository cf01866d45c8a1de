# Overview: Service-layer operations for session; encapsulates token signing and principal lookup.

"""
Session Token Service

WHY: Stateless sessions. The cookie carries a signed JWT whose only claim
of substance is the user id; nothing is stored server-side.

Resolution is always two steps:
1. verify signature + expiry of the token
2. load the User row by id

Role and profile data are never read from the token, so a role change or a
deleted account takes effect on the very next request.

SECURITY FEATURES:
- HS256 signature keyed by SECRET_KEY
- Fixed 1-hour lifetime (AUTH_TOKEN_MAX_AGE), not refreshed on use
- Fails closed: any decode problem resolves to "no session"
"""

from __future__ import annotations

import time

import jwt
from flask import current_app

from ..extensions import db
from ..models import User

ALGORITHM = "HS256"

# Values some clients send when they have no token at all
_EMPTY_TOKENS = {"", "null", "undefined"}


def create_session_token(user_id: int, expires_in: int | None = None) -> str:
    """
    Sign a session token for user_id.

    expires_in defaults to AUTH_TOKEN_MAX_AGE seconds.
    """
    now = int(time.time())
    lifetime = expires_in if expires_in is not None else current_app.config["AUTH_TOKEN_MAX_AGE"]
    payload = {"sub": str(user_id), "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm=ALGORITHM)


def decode_session_token(token: str | None) -> int | None:
    """
    Return the user id carried by a valid token, or None.

    None covers: missing token, bad signature, expired token, and a
    subject that is not an integer id.
    """
    if token is None or token.strip() in _EMPTY_TOKENS:
        return None

    try:
        payload = jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


def resolve_session(cookies) -> User | None:
    """
    Resolve the acting principal from request cookies.

    Returns the freshly loaded User, or None when there is no cookie, the
    token does not verify, or the user no longer exists.
    """
    token = cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    user_id = decode_session_token(token)
    if user_id is None:
        return None

    return db.session.get(User, user_id)
