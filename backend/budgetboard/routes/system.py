# backend/budgetboard/routes/system.py
"""
System health and banner endpoints.

These are unauthenticated and do not touch project data.
"""

from flask import Blueprint, current_app

from budgetboard.time_utils import to_utc_z, utcnow


API_VERSION = "1.0.0"

system_bp = Blueprint("system", __name__)


@system_bp.get("/")
def banner():
    return {
        "message": "Welcome to the BudgetBoard API",
        "health": "/health",
        "version": API_VERSION,
        "environment": current_app.config.get("APP_ENV"),
    }


@system_bp.get("/health")
def health():
    """Liveness probe: {status: "ok", timestamp}."""
    return {"status": "ok", "timestamp": to_utc_z(utcnow())}
