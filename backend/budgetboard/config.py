# backend/budgetboard/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the instance by default; set DATABASE_URL for PostgreSQL
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///budgetboard.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # production | development | testing. Stack traces are only returned in development.
    APP_ENV = os.environ.get("APP_ENV", "production")

    # Signed session tokens
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_IN = os.environ.get("JWT_EXPIRES_IN", "7d")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")

    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "RWF")

    # Daily reminder sweep (overdue tasks, due tomorrow, budget overruns)
    REMINDER_SWEEP_ENABLED = _env_flag("REMINDER_SWEEP_ENABLED", default=False)
    REMINDER_SWEEP_HOUR = int(os.environ.get("REMINDER_SWEEP_HOUR", "8"))
    REMINDER_SWEEP_MINUTE = int(os.environ.get("REMINDER_SWEEP_MINUTE", "0"))
