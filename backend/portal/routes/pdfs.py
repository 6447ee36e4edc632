# Overview: Flask API routes for payroll PDF operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, send_file

from ..decorators import current_user, require_auth, require_permission
from ..services import pdf_service
from . import uploaded_file

pdfs_bp = Blueprint("pdfs", __name__, url_prefix="/pdfs")


@pdfs_bp.post("")
@require_auth
@require_permission("upload_payroll_pdfs")
def upload_pdf():
    original_name, content_type, data = uploaded_file("file")
    document = pdf_service.upload_pdf(
        current_user(), original_name=original_name, content_type=content_type, data=data
    )
    return jsonify({"message": "File uploaded successfully", "file": document.to_dict()}), 201


@pdfs_bp.get("")
@require_auth
def list_pdfs():
    return jsonify([d.to_dict() for d in pdf_service.list_pdfs()]), 200


@pdfs_bp.get("/<int:pdf_id>/view")
@require_auth
@require_permission("download_payroll_pdfs")
def view_pdf(pdf_id: int):
    document, stream = pdf_service.open_pdf(pdf_id)
    return send_file(
        stream,
        mimetype=document.content_type,
        as_attachment=False,
        download_name=document.original_name,
    )


@pdfs_bp.delete("/<int:pdf_id>")
@require_auth
@require_permission("delete_payroll_pdfs")
def delete_pdf(pdf_id: int):
    pdf_service.delete_pdf(current_user(), pdf_id)
    return "", 204
