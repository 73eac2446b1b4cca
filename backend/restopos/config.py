# backend/restopos/config.py
from __future__ import annotations
import os


def _split_origins(raw: str) -> set[str]:
    return {o.strip() for o in raw.split(",") if o.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/restopos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///restopos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Congolese francs per US dollar. Kept as a string so Decimal parsing is exact.
    EXCHANGE_RATE = os.environ.get("EXCHANGE_RATE", "2500")

    DEFAULT_LOCALE = os.environ.get("DEFAULT_LOCALE", "fr")

    # Receipt width (characters) when no printer is configured
    DEFAULT_PAPER_WIDTH = int(os.environ.get("DEFAULT_PAPER_WIDTH", "80"))

    # Cookie mirroring the browser-local typography preference
    TYPOGRAPHY_COOKIE = "restaurant_typography"

    CORS_ALLOWED_ORIGINS = _split_origins(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
    ))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    SESSION_ABSOLUTE_HOURS = int(os.environ.get("SESSION_ABSOLUTE_HOURS", "24"))
    SESSION_IDLE_MINUTES = int(os.environ.get("SESSION_IDLE_MINUTES", "120"))

    # bcrypt cost factor; tests lower it
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    DEBUG_SEED_ENABLED = False
