# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Login returns a signed session token plus the user summary. Logout is
stateless (the client drops the token) and only leaves an audit entry.
"""

from flask import Blueprint, jsonify

from ..decorators import current_user, require_auth
from ..errors import ValidationError
from ..services import auth_service
from . import json_body

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/login")
def login_route():
    data = json_body()
    username = data.get("username")
    password = data.get("password")
    if not username or not password:
        raise ValidationError("username and password are required")

    result = auth_service.authenticate(username, password)
    return jsonify(result.to_dict()), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    auth_service.logout(current_user())
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify(current_user().summary()), 200
