# backend/stockdesk/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> list[str]:
    raw = os.environ.get(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key. Signs session tokens.
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockdesk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Public self-registration (POST /api/auth/register) answers 410 unless enabled
    ALLOW_REGISTRATION = _env_flag("ALLOW_REGISTRATION")

    # Cross-origin callers allowed in addition to same-origin requests
    ALLOWED_ORIGINS = _env_list("ALLOWED_ORIGINS")

    # Session cookie
    AUTH_COOKIE_NAME = "session_id"
    AUTH_TOKEN_MAX_AGE = 60 * 60  # 1 hour, fixed
    AUTH_COOKIE_SECURE = _env_flag("AUTH_COOKIE_SECURE", "true")

    # Uploads: per-user subdirectories are created under STORAGE_ROOT
    STORAGE_ROOT = os.environ.get("STORAGE_ROOT", os.path.join(os.getcwd(), "storage"))
    MAX_CONTENT_LENGTH = 25 * 1024 * 1024  # 25 MiB

    # Fixed-window rate limits for the auth endpoints
    RATE_LIMIT_WINDOW_SECONDS = int(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", 10 * 60))
    LOGIN_RATE_LIMIT = int(os.environ.get("LOGIN_RATE_LIMIT", 20))
    REGISTER_RATE_LIMIT = int(os.environ.get("REGISTER_RATE_LIMIT", 10))

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", 12))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
