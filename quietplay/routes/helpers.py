"""
🛠️ Route Helpers
Shared utilities for all route blueprints.
"""

import datetime
import logging
import uuid
from functools import wraps
from typing import Any, Callable, Mapping, Optional

from flask import Response, jsonify, request

from ..services import STORAGE_UNAVAILABLE, ServiceResult

logger = logging.getLogger(__name__)

_SERVER_ERROR_CODES = {"OPERATION_FAILED", "INIT_FAILED", "NOT_INITIALIZED"}


def _iso_timestamp_now() -> str:
    """Return ISO 8601 timestamp in UTC with a trailing Z."""
    now_utc = datetime.datetime.now(tz=datetime.timezone.utc)
    return now_utc.isoformat(timespec="microseconds").replace("+00:00", "Z")


def api_response(
    success: bool,
    *,
    data: Optional[Any] = None,
    message: str = "",
    status: int = 200,
    error_code: Optional[str] = None
) -> Response:
    """Create a standardized API response with consistent envelope.

    Args:
        success: Whether the operation succeeded
        data: Optional response data
        message: Optional message string
        status: HTTP status code (default 200)
        error_code: Optional error code for failures

    Returns:
        Flask Response object with JSON payload
    """
    req_id = str(uuid.uuid4())
    timestamp = _iso_timestamp_now()
    payload = {
        "success": success,
        "timestamp": timestamp,
        "request_id": req_id
    }
    if message:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    if error_code:
        payload["error_code"] = error_code
    resp = jsonify(payload)
    resp.status_code = status
    # Correlation headers
    resp.headers['X-Request-ID'] = req_id
    resp.headers['X-Response-Timestamp'] = timestamp
    return resp


def api_error(
    message: str,
    *,
    status: int = 400,
    error_code: Optional[str] = None,
    data: Optional[Any] = None,
) -> Response:
    """Convenience wrapper for standardized error responses."""
    return api_response(
        False,
        data=data,
        message=message,
        status=status,
        error_code=error_code,
    )


def status_for_error(error_code: Optional[str]) -> int:
    """HTTP status for a failed service result.

    Validation failures carry the offending field name as error code and
    map to 400.
    """
    if error_code == STORAGE_UNAVAILABLE:
        return 503
    if error_code == "not_found":
        return 404
    if not error_code or error_code in _SERVER_ERROR_CODES:
        return 500
    return 400


def service_response(result: ServiceResult, *, success_status: int = 200) -> Response:
    """Translate a ServiceResult into the JSON envelope."""
    if result.success:
        return api_response(True, data=result.data, message=result.message or "", status=success_status)
    return api_error(
        result.message or "Request failed",
        status=status_for_error(result.error_code),
        error_code=result.error_code,
        data=result.data,
    )


def request_payload() -> Mapping[str, Any]:
    """JSON body when present, otherwise the submitted form."""
    if request.is_json:
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}
    return request.form


def api_error_handler(func: Callable) -> Callable:
    """Decorator for consistent API error handling.

    Catches exceptions and returns standardized error responses.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception:
            logger.exception(f"Error in {func.__name__}")
            return api_error(
                "An internal error occurred",
                status=500,
                error_code="unhandled_exception",
            )
    return wrapper
