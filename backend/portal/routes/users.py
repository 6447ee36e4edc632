# Overview: Flask API routes for user operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import current_user, require_auth, require_permission
from ..services import user_service
from . import json_body

users_bp = Blueprint("users", __name__, url_prefix="/users")


@users_bp.get("")
@require_auth
@require_permission("view_user_manager")
def list_users():
    return jsonify([u.to_dict() for u in user_service.list_users()]), 200


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission("view_user_manager")
def get_user(user_id: int):
    return jsonify(user_service.get_user(user_id).to_dict()), 200


@users_bp.post("")
@require_auth
@require_permission("create_user")
def create_user():
    user = user_service.create_user(current_user(), json_body())
    return jsonify(user.to_dict()), 201


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission("update_user")
def update_user(user_id: int):
    user = user_service.update_user(current_user(), user_id, json_body())
    return jsonify(user.to_dict()), 200


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("delete_user")
def delete_user(user_id: int):
    user_service.delete_user(current_user(), user_id)
    return jsonify({"message": "User deleted"}), 200
