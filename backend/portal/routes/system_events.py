# Overview: Flask API routes for the system event log; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import system_event_service
from ..validation import parse_int

system_events_bp = Blueprint("system_events", __name__, url_prefix="/system-events")


@system_events_bp.get("")
@require_auth
@require_permission("view_system_events")
def list_system_events():
    page = parse_int(request.args.get("page", "1"), "page")
    limit = parse_int(request.args.get("limit", str(system_event_service.DEFAULT_PAGE_SIZE)), "limit")
    return jsonify(system_event_service.list_events(page=page, page_size=limit)), 200
