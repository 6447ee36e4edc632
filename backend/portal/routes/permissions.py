# Overview: Flask API routes for permission operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import current_user, require_auth, require_permission
from ..services import permission_service
from . import json_body

permissions_bp = Blueprint("permissions", __name__, url_prefix="/permissions")


@permissions_bp.get("")
@require_auth
@require_permission("view_permissions")
def list_permissions():
    return jsonify([p.to_dict() for p in permission_service.list_permissions()]), 200


@permissions_bp.get("/<int:permission_id>")
@require_auth
@require_permission("view_permissions")
def get_permission(permission_id: int):
    return jsonify(permission_service.get_permission(permission_id).to_dict()), 200


@permissions_bp.post("")
@require_auth
@require_permission("manage_permissions")
def create_permission():
    data = json_body()
    permission = permission_service.create_permission(
        current_user(),
        key=data.get("key"),
        name=data.get("name"),
        description=data.get("description"),
        category=data.get("category"),
    )
    return jsonify(permission.to_dict()), 201


@permissions_bp.put("/<int:permission_id>")
@require_auth
@require_permission("manage_permissions")
def update_permission(permission_id: int):
    permission = permission_service.update_permission(current_user(), permission_id, json_body())
    return jsonify(permission.to_dict()), 200


@permissions_bp.delete("/<int:permission_id>")
@require_auth
@require_permission("manage_permissions")
def delete_permission(permission_id: int):
    result = permission_service.delete_permission(current_user(), permission_id)
    return jsonify({"message": "Permission deleted", **result}), 200
