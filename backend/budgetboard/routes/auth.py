# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/budgetboard/routes/auth.py
"""
Authentication API routes

- POST /api/auth/register  -> 201 {token, user}
- POST /api/auth/login     -> 200 {token, user}
- GET  /api/auth/me        -> current user
- PUT  /api/auth/profile   -> updated user
"""

from flask import Blueprint, request, jsonify, g

from ..services import auth_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    data = request.get_json(silent=True) or {}
    user, token = auth_service.register(
        name=data.get("name"),
        email=data.get("email"),
        password=data.get("password"),
    )
    return jsonify({"token": token, "user": user.to_dict()}), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with email + password.

    Unknown email and wrong password both return 401 "Invalid email or password."
    """
    data = request.get_json(silent=True) or {}
    user, token = auth_service.login(data.get("email"), data.get("password"))
    return jsonify({"token": token, "user": user.to_dict()}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify(g.current_user.to_dict()), 200


@auth_bp.put("/profile")
@require_auth
def update_profile_route():
    data = request.get_json(silent=True) or {}
    user = auth_service.update_profile(g.current_user, name=data.get("name"))
    return jsonify(user.to_dict()), 200
