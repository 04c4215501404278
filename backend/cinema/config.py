# backend/cinema/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/cinema.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///cinema.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Seat holds taken during checkout
    SEAT_HOLD_MINUTES = int(os.environ.get("SEAT_HOLD_MINUTES", "15"))

    # When a limited-use discount code consumes one of its uses:
    # "FINALIZE" (only completed sales count) or "APPLY" (every application counts)
    DISCOUNT_USAGE_COUNTED_AT = os.environ.get("DISCOUNT_USAGE_COUNTED_AT", "FINALIZE").upper()

    SESSION_TOKEN_HOURS = int(os.environ.get("SESSION_TOKEN_HOURS", "12"))

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]
