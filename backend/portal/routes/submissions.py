# Overview: Flask API routes for submission operations; parses input and returns JSON responses.

"""
Submission API routes

Every route is ownership-scoped: non-admin callers only reach their own
submissions. Status transitions need review_submissions.
"""

from flask import Blueprint, jsonify, request, send_file

from ..decorators import current_user, require_auth, require_permission
from ..services import submission_service
from ..services.submission_service import SubmissionFilters
from . import json_body, uploaded_file

submissions_bp = Blueprint("submissions", __name__, url_prefix="/submissions")


@submissions_bp.post("")
@require_auth
@require_permission("submit_forms")
def create_submission():
    data = json_body()
    submission = submission_service.create_submission(
        current_user(),
        form_type=data.get("form_type"),
        target_folder_id=data.get("target_folder_id"),
        form_data=data.get("form_data"),
        attachments=data.get("attachments"),
    )
    return jsonify(submission.to_dict()), 201


@submissions_bp.post("/upload")
@require_auth
@require_permission("submit_forms")
def upload_attachment():
    original_name, content_type, data = uploaded_file("file")
    meta = submission_service.upload_attachment(
        current_user(), original_name=original_name, content_type=content_type, data=data
    )
    return jsonify(meta), 201


@submissions_bp.get("")
@require_auth
def list_submissions():
    filters = SubmissionFilters.from_mapping(request.args)
    submissions = submission_service.list_submissions(current_user(), filters)
    return jsonify([s.to_dict(include_history=False) for s in submissions]), 200


@submissions_bp.get("/folder/<int:folder_id>")
@require_auth
def list_folder_submissions(folder_id: int):
    submissions = submission_service.list_by_folder(current_user(), folder_id)
    return jsonify([s.to_dict(include_history=False) for s in submissions]), 200


@submissions_bp.get("/<int:submission_id>")
@require_auth
def get_submission(submission_id: int):
    return jsonify(submission_service.get_submission(current_user(), submission_id).to_dict()), 200


@submissions_bp.put("/<int:submission_id>/status")
@require_auth
@require_permission("review_submissions")
def transition_submission(submission_id: int):
    data = json_body()
    submission = submission_service.transition_submission(
        current_user(),
        submission_id,
        new_status=data.get("status"),
        comments=data.get("comments"),
        new_folder_id=data.get("new_folder_id"),
    )
    return jsonify(submission.to_dict()), 200


@submissions_bp.delete("/<int:submission_id>")
@require_auth
@require_permission("delete_submissions")
def delete_submission(submission_id: int):
    submission_service.delete_submission(current_user(), submission_id)
    return jsonify({"message": "Submission deleted"}), 200


def _send_attachment(submission_id: int, file_id: str, *, as_attachment: bool):
    attachment, stream = submission_service.open_attachment(current_user(), submission_id, file_id)
    return send_file(
        stream,
        mimetype=attachment.mimetype,
        as_attachment=as_attachment,
        download_name=attachment.original_name,
    )


@submissions_bp.get("/<int:submission_id>/files/<file_id>/view")
@require_auth
def view_attachment(submission_id: int, file_id: str):
    return _send_attachment(submission_id, file_id, as_attachment=False)


@submissions_bp.get("/<int:submission_id>/files/<file_id>/download")
@require_auth
def download_attachment(submission_id: int, file_id: str):
    return _send_attachment(submission_id, file_id, as_attachment=True)
