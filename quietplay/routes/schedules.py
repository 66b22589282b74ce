"""
🗓️ Schedule Routes Blueprint
List, create and delete play/pause schedule entries.
"""

import logging

from flask import Blueprint

from ..services.service_manager import get_service
from ..utils.rate_limiting import rate_limit
from .helpers import api_error_handler, request_payload, service_response

schedules_bp = Blueprint("schedules", __name__, url_prefix="/api/schedules")
logger = logging.getLogger(__name__)


@schedules_bp.route("", methods=["GET"])
@api_error_handler
@rate_limit("api_general")
def list_schedules():
    return service_response(get_service("schedules").list_schedules())


@schedules_bp.route("", methods=["POST"])
@api_error_handler
@rate_limit("config_changes")
def create_schedule():
    """Create an entry from ``time``, ``days`` and ``action``."""
    return service_response(get_service("schedules").create_schedule(request_payload()), success_status=201)


@schedules_bp.route("/<int:schedule_id>", methods=["DELETE"])
@api_error_handler
@rate_limit("config_changes")
def delete_schedule(schedule_id: int):
    return service_response(get_service("schedules").delete_schedule(schedule_id))
