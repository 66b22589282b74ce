"""
⚙️ Settings Routes Blueprint
Read and replace the silence / max-play settings.
"""

from flask import Blueprint

from ..services.service_manager import get_service
from ..utils.rate_limiting import rate_limit
from .helpers import api_error_handler, request_payload, service_response

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.route("", methods=["GET"])
@api_error_handler
@rate_limit("api_general")
def get_settings():
    return service_response(get_service("settings").get_settings())


@settings_bp.route("", methods=["PUT", "POST"])
@api_error_handler
@rate_limit("config_changes")
def update_settings():
    return service_response(get_service("settings").update_settings(request_payload()))
