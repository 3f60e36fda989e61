# backend/menuforge/config.py
from __future__ import annotations
import os


DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080"


def build_engine_options(database_uri: str, timeout_seconds: float) -> dict:
    """
    Engine options that bound every store call by timeout_seconds.

    SQLite: driver-level busy timeout (seconds).
    Server databases: pool checkout timeout plus a statement timeout.
    A call that runs out of time raises OperationalError, which the
    dispatcher reports as a transient 503.
    """
    if database_uri.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout_seconds}}

    options: dict = {
        "pool_pre_ping": True,
        "pool_timeout": timeout_seconds,
    }
    if database_uri.startswith("postgresql"):
        options["connect_args"] = {
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}"
        }
    return options


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/menuforge.sqlite3 by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///menuforge.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Upper bound for a single store call
    STORE_TIMEOUT_SECONDS = float(os.environ.get("STORE_TIMEOUT_SECONDS", "5"))

    # bcrypt cost factor for account passwords
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    APP_VERSION = os.environ.get("APP_VERSION", "0.1.0")
