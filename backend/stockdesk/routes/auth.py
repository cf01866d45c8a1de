# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockdesk/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Session token delivered only as an httpOnly, SameSite=Lax cookie
- Fixed-window rate limiting per client address on login and register
- Self-registration switched off unless ALLOW_REGISTRATION is set
"""

from flask import Blueprint, request, jsonify, current_app, g, make_response

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth, rate_limit, apply_rate_limit
from ..validation import RegistrationClosedError, ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _set_session_cookie(response, token: str) -> None:
    cfg = current_app.config
    response.set_cookie(
        cfg["AUTH_COOKIE_NAME"],
        token,
        max_age=cfg["AUTH_TOKEN_MAX_AGE"],
        path="/",
        httponly=True,
        secure=cfg["AUTH_COOKIE_SECURE"],
        samesite="Lax",
    )


@auth_bp.post("/login")
@rate_limit("login", "LOGIN_RATE_LIMIT")
def login_route():
    """
    Authenticate by email + password and set the session cookie.

    Returns {userId, userName, userEmail, userRole}.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body")

    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = auth_service.authenticate(email, password)
    if user is None:
        current_app.logger.warning("Failed login for email=%s from %s", email, request.remote_addr)
        return jsonify({"error": "Invalid email or password"}), 401

    token = session_service.create_session_token(user.id)

    response = make_response(jsonify({
        "userId": user.id,
        "userName": user.name,
        "userEmail": user.email,
        "userRole": user.role,
    }), 200)
    _set_session_cookie(response, token)

    current_app.logger.info("User id=%s logged in", user.id)
    return response


@auth_bp.post("/logout")
def logout_route():
    """Clear the session cookie. Tokens are stateless, so nothing is revoked server-side."""
    cfg = current_app.config
    response = make_response("", 204)
    response.delete_cookie(
        cfg["AUTH_COOKIE_NAME"],
        path="/",
        httponly=True,
        secure=cfg["AUTH_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response


@auth_bp.post("/register")
def register_route():
    """
    Self-registration.

    Answers 410 unless ALLOW_REGISTRATION is enabled; otherwise creates a
    USER account and returns {id, name, email}.
    """
    if not current_app.config["ALLOW_REGISTRATION"]:
        raise RegistrationClosedError(
            "Registration is disabled. Ask an administrator to create your account."
        )

    apply_rate_limit("register", "REGISTER_RATE_LIMIT")

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body")

    user = auth_service.create_user(data.get("name"), data.get("email"), data.get("password"))
    return jsonify(user.to_summary()), 201


@auth_bp.get("/me")
@require_auth
def me_route():
    """Return the authenticated user."""
    return jsonify(g.current_user.to_dict())
