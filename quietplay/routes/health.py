"""
🩺 Health & Status Routes Blueprint
Handles health checks, readiness and service diagnostics.
"""

import logging

from flask import Blueprint, jsonify

from ..config import load_config
from ..core.engine import get_playback_engine
from ..services.service_manager import get_service, get_service_manager
from ..utils.rate_limiting import rate_limit
from ..version import VERSION
from .helpers import api_error_handler, api_response, service_response

health_bp = Blueprint("health", __name__)
logger = logging.getLogger(__name__)


@health_bp.route("/healthz")
def healthz():
    """Basic health check endpoint."""
    return jsonify({"ok": True, "version": str(VERSION)})


@health_bp.route("/readyz")
def readyz():
    """Readiness check endpoint."""
    try:
        _ = load_config()
        return jsonify({"ok": True, "ticker_running": get_playback_engine().is_running()})
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return jsonify({"ok": False, "error": str(e)}), 503


@health_bp.route("/api/services/health")
@api_error_handler
@rate_limit("status_check")
def api_services_health():
    """📊 Get health status of all services."""
    result = get_service_manager().health_check_all()
    if result.success:
        return api_response(True, data={"timestamp": result.timestamp.isoformat(), "health": result.data})
    return api_response(
        False,
        message=result.message or "Health check failed",
        status=500,
        error_code=result.error_code or "services_health_error",
    )


@health_bp.route("/api/system/info")
@api_error_handler
@rate_limit("status_check")
def api_system_info():
    return service_response(get_service("system").get_system_info())
