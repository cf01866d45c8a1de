# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: One place that knows how passwords are hashed and checked, and how
new accounts are created (self-registration, admin API, CLI all call
create_user).

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, default 12)
- Minimum 6 characters
- Email is unique; username is optional, unique, derived from the email
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User, ROLES, ROLE_USER
from ..validation import ValidationError, ConflictError

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 100
MAX_USERNAME_LENGTH = 30

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_USERNAME_STRIP_RE = re.compile(r"[^a-z0-9_\-.]")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str):
        raise PasswordValidationError("password must be a string")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including a
    malformed stored hash).
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email) -> str:
    if not isinstance(email, str) or not _EMAIL_RE.match(email.strip()):
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def validate_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"name exceeds max length {MAX_NAME_LENGTH}")
    return name


def validate_role(role) -> str:
    if role not in ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(ROLES)}")
    return role


def derive_username(email: str) -> str | None:
    """
    Build a unique username from the local part of an email.

    Lowercased, filtered to [a-z0-9_.-], capped at 30 chars; a numeric
    suffix is appended until no other user has it.
    """
    base = _USERNAME_STRIP_RE.sub("", (email.split("@")[0] or "user").lower())[:MAX_USERNAME_LENGTH]
    if not base:
        return None

    candidate = base
    counter = 1
    while db.session.query(User.id).filter_by(username=candidate).first() is not None:
        suffix = str(counter)
        candidate = f"{base[:MAX_USERNAME_LENGTH - len(suffix)]}{suffix}"
        counter += 1
    return candidate


def create_user(name, email, password, role: str = ROLE_USER) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises ValidationError for bad input and ConflictError when the email is
    already registered.
    """
    name = validate_name(name)
    email = normalize_email(email)
    role = validate_role(role)
    password_hash = hash_password(password)

    if db.session.query(User.id).filter_by(email=email).first() is not None:
        raise ConflictError("User already exists")

    user = User(
        name=name,
        email=email,
        username=derive_username(email),
        password_hash=password_hash,
        role=role,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race against a concurrent signup with the same email/username
        db.session.rollback()
        raise ConflictError("User already exists")

    current_app.logger.info("Created user id=%s role=%s", user.id, user.role)
    return user


def authenticate(email, password) -> User | None:
    """
    Return the user when email/password match, else None.

    Unknown email and wrong password are indistinguishable to the caller.
    """
    if not isinstance(email, str) or not isinstance(password, str):
        return None

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if user is None:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user
