from flask import request

from ..errors import ValidationError


def json_body() -> dict:
    """Request JSON object, {} when absent; anything else is a 400."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def uploaded_file(field: str = "file"):
    """(original_name, content_type, bytes) of a multipart upload."""
    storage = request.files.get(field)
    if storage is None or not storage.filename:
        raise ValidationError("No file uploaded")
    return storage.filename, storage.mimetype, storage.read()
