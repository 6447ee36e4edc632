# Overview: Flask API routes for folder operations; parses input and returns JSON responses.

"""
Folder API routes

Read routes (/folders/...) return only folders the caller may see.
Management routes (/folders/manage/...) are the admin surface.
"""

from flask import Blueprint, jsonify, request

from ..decorators import current_user, require_auth, require_permission
from ..errors import ValidationError
from ..services import archive_service, folder_service
from ..services.folder_service import FolderScope
from . import json_body

folders_bp = Blueprint("folders", __name__, url_prefix="/folders")
folder_admin_bp = Blueprint("folder_admin", __name__, url_prefix="/folders/manage")


def _path_arg() -> str:
    path = request.args.get("path")
    if not path:
        raise ValidationError("path query parameter is required")
    return path


@folders_bp.get("/group/<path:group>")
@require_auth
def list_group_folders(group: str):
    folders = folder_service.list_visible_folders(FolderScope.by_group(group), current_user())
    return jsonify([f.to_dict() for f in folders]), 200


@folders_bp.get("/parent")
@require_auth
def list_child_folders():
    folders = folder_service.list_visible_folders(FolderScope.by_parent_path(_path_arg()), current_user())
    return jsonify([f.to_dict() for f in folders]), 200


@folders_bp.get("/by-path")
@require_auth
def get_folder_by_path():
    folder = folder_service.get_visible_folder_by_path(_path_arg(), current_user())
    return jsonify(folder.to_dict()), 200


@folders_bp.get("/active")
@require_auth
def list_active_folders():
    folders = folder_service.list_visible_folders(FolderScope.everything(), current_user())
    return jsonify([f.to_dict() for f in folders]), 200


@folders_bp.post("/generate-archive")
@require_auth
@require_permission("generate_archive_folders")
def generate_archive():
    result = archive_service.generate(current_user())
    return jsonify(result.to_dict()), 200


@folder_admin_bp.get("")
@require_auth
@require_permission("view_all_folders")
def list_all_folders():
    return jsonify([f.to_dict() for f in folder_service.list_all_folders()]), 200


@folder_admin_bp.post("")
@require_auth
@require_permission("create_folder")
def create_folder():
    folder = folder_service.create_folder(current_user(), json_body())
    return jsonify(folder.to_dict()), 201


@folder_admin_bp.put("/reorder")
@require_auth
@require_permission("update_folder")
def reorder_folders():
    result = folder_service.reorder_folders(current_user(), json_body().get("folders"))
    return jsonify(result), 200


@folder_admin_bp.put("/<int:folder_id>")
@require_auth
@require_permission("update_folder")
def update_folder(folder_id: int):
    folder = folder_service.update_folder(current_user(), folder_id, json_body())
    return jsonify(folder.to_dict()), 200


@folder_admin_bp.delete("/<int:folder_id>")
@require_auth
@require_permission("delete_folder")
def delete_folder(folder_id: int):
    folder_service.delete_folder(current_user(), folder_id)
    return jsonify({"message": "Folder deleted"}), 200
