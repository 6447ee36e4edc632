# backend/portal/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Config:
    # Signing secret for session tokens. No default: create_app refuses to start without it.
    JWT_SECRET = os.environ.get("JWT_SECRET")
    JWT_MIN_SECRET_LENGTH = 32
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRY_HOURS = _env_int("JWT_EXPIRY_HOURS", 2)

    # "production" hides tracebacks from error responses
    PORTAL_ENV = os.environ.get("PORTAL_ENV", "development")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///portal.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Folder tree addressing
    FOLDER_ROOT_PATH = os.environ.get("FOLDER_ROOT_PATH", "/gosl-payroll")
    FOLDER_ROOT_GROUP = os.environ.get("FOLDER_ROOT_GROUP", "gosl-payroll")

    # "strict": a folder with no required permissions is visible only to the super-admin.
    # "open": a folder with no required permissions is visible to every authenticated user.
    FOLDER_EMPTY_PERMISSIONS_POLICY = os.environ.get("FOLDER_EMPTY_PERMISSIONS_POLICY", "strict")

    # Payroll archive generation
    ARCHIVE_ROOT_PATH = os.environ.get("ARCHIVE_ROOT_PATH", "/payroll-archive")
    ARCHIVE_GROUP = os.environ.get("ARCHIVE_GROUP", "PayrollArchive")
    ARCHIVE_REQUIRED_PERMISSIONS = ["payroll_view"]
    # Worker cadence; roughly monthly unless overridden for testing
    ARCHIVE_INTERVAL_SECONDS = _env_int("ARCHIVE_INTERVAL_SECONDS", 30 * 24 * 60 * 60)

    # Uploads
    MAX_UPLOAD_BYTES = _env_int("MAX_FILE_SIZE", 10 * 1024 * 1024)
    MAX_CONTENT_LENGTH = MAX_UPLOAD_BYTES + 1024 * 1024

    # Bootstrap super-admin, consumed once by `flask system init`
    INITIAL_ADMIN_USERNAME = os.environ.get("INITIAL_ADMIN_USERNAME")
    INITIAL_ADMIN_PASSWORD = os.environ.get("INITIAL_ADMIN_PASSWORD")
    INITIAL_ADMIN_EMAIL = os.environ.get("INITIAL_ADMIN_EMAIL")
