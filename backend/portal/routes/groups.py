# Overview: Flask API routes for folder group operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import current_user, require_auth, require_permission
from ..errors import ValidationError
from ..services import group_service
from . import json_body

groups_bp = Blueprint("groups", __name__, url_prefix="/groups")


@groups_bp.get("")
@require_auth
def list_groups():
    return jsonify([g.to_dict() for g in group_service.list_groups()]), 200


@groups_bp.get("/active")
@require_auth
def list_active_groups():
    return jsonify([g.to_dict() for g in group_service.list_groups(active_only=True)]), 200


@groups_bp.get("/stats")
@require_auth
@require_permission("manage_groups")
def group_stats():
    return jsonify(group_service.group_stats()), 200


@groups_bp.get("/by-path")
@require_auth
def get_group_by_path():
    path = request.args.get("path")
    if not path:
        raise ValidationError("path query parameter is required")
    return jsonify(group_service.get_group_by_path(path).to_dict()), 200


@groups_bp.get("/<int:group_id>")
@require_auth
def get_group(group_id: int):
    return jsonify(group_service.get_group(group_id).to_dict()), 200


@groups_bp.post("")
@require_auth
@require_permission("manage_groups")
def create_group():
    group = group_service.create_group(current_user(), json_body())
    return jsonify(group.to_dict()), 201


@groups_bp.put("/<int:group_id>")
@require_auth
@require_permission("manage_groups")
def update_group(group_id: int):
    group = group_service.update_group(current_user(), group_id, json_body())
    return jsonify(group.to_dict()), 200


@groups_bp.delete("/<int:group_id>")
@require_auth
@require_permission("manage_groups")
def delete_group(group_id: int):
    group_service.delete_group(current_user(), group_id)
    return jsonify({"message": "Group deleted"}), 200
