# backend/market/config.py
from __future__ import annotations
import os


def _normalize_database_url(url: str) -> str:
    # Hosted Postgres providers still hand out the legacy "postgres://" scheme
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # PostgreSQL in production; SQLite file for local development
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(
        os.environ.get("DATABASE_URL", "sqlite:///market.sqlite3")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Comma separated list; empty means the local dev frontend origins
    CORS_ORIGIN = os.environ.get("CORS_ORIGIN", "")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Listings created without a seller_id are attributed to this user
    DEFAULT_SELLER_ID = int(os.environ.get("DEFAULT_SELLER_ID", "1"))

    # Root of the category subtree ticket listings must live under
    TICKET_ROOT_CATEGORY_ID = int(os.environ.get("TICKET_ROOT_CATEGORY_ID", "3"))

    # Resale price cap as a percentage of the ticket's face value
    ANTI_SCALPING_MAX_PERCENT = int(os.environ.get("ANTI_SCALPING_MAX_PERCENT", "120"))

    # Upper bound on how long a purchase waits for another purchase's row lock
    LOCK_TIMEOUT_MS = int(os.environ.get("LOCK_TIMEOUT_MS", "5000"))

    DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW = int(os.environ.get("DB_MAX_OVERFLOW", "20"))


def build_engine_options(config) -> dict:
    """
    Engine options derived from the database URL.

    PostgreSQL gets a sized pool and a session-level lock_timeout so a blocked
    purchase fails instead of hanging. SQLite gets the same bound as its busy
    timeout (it has no row locks; writers serialize on the database lock).
    """
    uri = config["SQLALCHEMY_DATABASE_URI"]
    lock_timeout_ms = config["LOCK_TIMEOUT_MS"]

    if uri.startswith("postgresql"):
        return {
            "pool_size": config["DB_POOL_SIZE"],
            "max_overflow": config["DB_MAX_OVERFLOW"],
            "pool_pre_ping": True,
            "connect_args": {"options": f"-c lock_timeout={lock_timeout_ms}"},
        }

    if uri.startswith("sqlite"):
        return {"connect_args": {"timeout": lock_timeout_ms / 1000}}

    return {}
