# Overview: Flask API routes for role operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import current_user, require_auth, require_permission
from ..services import role_service
from . import json_body

roles_bp = Blueprint("roles", __name__, url_prefix="/roles")


@roles_bp.get("")
@require_auth
@require_permission("view_roles")
def list_roles():
    return jsonify([r.to_dict() for r in role_service.list_roles()]), 200


@roles_bp.get("/<int:role_id>")
@require_auth
@require_permission("view_roles")
def get_role(role_id: int):
    return jsonify(role_service.get_role(role_id).to_dict()), 200


@roles_bp.post("")
@require_auth
@require_permission("create_role")
def create_role():
    data = json_body()
    role = role_service.create_role(
        current_user(),
        name=data.get("name"),
        description=data.get("description"),
        permission_ids=data.get("permissions"),
    )
    return jsonify(role.to_dict()), 201


@roles_bp.put("/<int:role_id>")
@require_auth
@require_permission("update_role")
def update_role(role_id: int):
    role = role_service.update_role(current_user(), role_id, json_body())
    return jsonify(role.to_dict()), 200


@roles_bp.delete("/<int:role_id>")
@require_auth
@require_permission("delete_role")
def delete_role(role_id: int):
    role_service.delete_role(current_user(), role_id)
    return jsonify({"message": "Role deleted"}), 200
