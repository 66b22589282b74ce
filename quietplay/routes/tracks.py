"""
📚 Track Routes Blueprint
List, register, edit, delete and reorder library tracks.
"""

import logging

from flask import Blueprint

from ..services.service_manager import get_service
from ..utils.rate_limiting import rate_limit
from .helpers import api_error_handler, request_payload, service_response

tracks_bp = Blueprint("tracks", __name__, url_prefix="/api/tracks")
logger = logging.getLogger(__name__)


@tracks_bp.route("", methods=["GET"])
@api_error_handler
@rate_limit("api_general")
def list_tracks():
    return service_response(get_service("library").list_tracks())


@tracks_bp.route("", methods=["POST"])
@api_error_handler
@rate_limit("config_changes")
def add_track():
    """Register ``{"title", "artist", "filename", "duration_label"}`` for a file on disk."""
    return service_response(get_service("library").add_track(request_payload()), success_status=201)


@tracks_bp.route("/<int:track_id>", methods=["PUT"])
@api_error_handler
@rate_limit("config_changes")
def update_track(track_id: int):
    return service_response(get_service("library").update_track(track_id, request_payload()))


@tracks_bp.route("/<int:track_id>", methods=["DELETE"])
@api_error_handler
@rate_limit("config_changes")
def delete_track(track_id: int):
    return service_response(get_service("library").delete_track(track_id))


@tracks_bp.route("/reorder", methods=["POST"])
@api_error_handler
@rate_limit("config_changes")
def reorder_tracks():
    """Persist a new order: ``{"tracks": [{"id": 3}, {"id": 1}, ...]}``."""
    return service_response(get_service("library").reorder_tracks(request_payload()))
