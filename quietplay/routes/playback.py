"""
▶️ Playback Routes Blueprint
Playback status and user commands (play/pause, next, previous, select, reset).
"""

import logging

from flask import Blueprint

from ..services.service_manager import get_service
from ..utils.rate_limiting import rate_limit
from .helpers import api_error_handler, request_payload, service_response

playback_bp = Blueprint("playback", __name__, url_prefix="/api/playback")
logger = logging.getLogger(__name__)


@playback_bp.route("/status")
@api_error_handler
@rate_limit("status_check")
def playback_status():
    """Current state, limits and derived labels for the dashboard."""
    return service_response(get_service("playback").get_status())


@playback_bp.route("/toggle", methods=["POST"])
@api_error_handler
@rate_limit("playback_control")
def toggle_play_pause():
    return service_response(get_service("playback").toggle_play_pause())


@playback_bp.route("/next", methods=["POST"])
@api_error_handler
@rate_limit("playback_control")
def next_track():
    return service_response(get_service("playback").next_track())


@playback_bp.route("/previous", methods=["POST"])
@api_error_handler
@rate_limit("playback_control")
def previous_track():
    return service_response(get_service("playback").previous_track())


@playback_bp.route("/ended", methods=["POST"])
@api_error_handler
@rate_limit("playback_control")
def track_ended():
    """Called by the audio element when the current file finishes."""
    return service_response(get_service("playback").track_ended())


@playback_bp.route("/select", methods=["POST"])
@api_error_handler
@rate_limit("playback_control")
def select_track():
    return service_response(get_service("playback").select_track(request_payload()))


@playback_bp.route("/reset", methods=["POST"])
@api_error_handler
@rate_limit("playback_control")
def reset_play_time():
    return service_response(get_service("playback").reset_play_time())
