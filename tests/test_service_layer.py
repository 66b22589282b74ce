#!/usr/bin/env python3
"""
🏗️ Service Layer Test Suite
==========================

Result objects, error mapping and the services behind the HTTP routes.
"""

from quietplay.core.errors import TransientIOError
from quietplay.routes.helpers import status_for_error
from quietplay.services import BaseService, ServiceResult
from quietplay.services.service_manager import get_service
from quietplay.utils.validation import ValidationError


class _DummyService(BaseService):
    def __init__(self):
        super().__init__("dummy")


def test_service_result_to_dict_omits_empty_fields():
    payload = ServiceResult(success=True, data={"a": 1}).to_dict()
    assert payload["success"] is True
    assert payload["data"] == {"a": 1}
    assert "message" not in payload and "error_code" not in payload


def test_uninitialized_service_reports_unhealthy():
    health = _DummyService().health_check()
    assert health.success is False
    assert health.error_code == "NOT_INITIALIZED"


def test_error_helpers_map_to_http_status():
    service = _DummyService()
    validation = service._validation_error(ValidationError("days", "select at least one day"))
    storage = service._storage_error(TransientIOError("save schedule", "disk full"))
    failure = service._handle_error(RuntimeError("boom"), "explode")

    assert (validation.error_code, status_for_error(validation.error_code)) == ("days", 400)
    assert (storage.error_code, status_for_error(storage.error_code)) == ("storage_unavailable", 503)
    assert status_for_error(failure.error_code) == 500
    assert status_for_error("not_found") == 404


def test_service_health(client):
    response = client.get('/api/services/health')
    assert response.status_code == 200

    health = response.get_json()["data"]["health"]
    assert health["total_services"] == 5
    assert health["overall_healthy"] == (health["healthy_services"] == health["total_services"])
    for name in ["system", "library", "playback", "schedules", "settings"]:
        entry = health["services"][name]
        assert "healthy" in entry
        assert "status" in entry


def test_system_info(client):
    response = client.get('/api/system/info')
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["application"]["app"]["app_name"] == "QuietPlay"
    assert data["application"]["ticker_running"] is False


def test_settings_service_replaces_tuple_wholesale(engine):
    service = get_service("settings")
    result = service.update_settings({"silence_duration": "0", "max_play_duration": "1", "fade_enabled": "on"})
    assert result.success
    assert engine.config.max_play_seconds == 60
    assert engine.config.silence_seconds == 0
    assert engine.config.fade_enabled is True


def test_playback_service_select_on_empty_library():
    result = get_service("playback").select_track({"index": 0})
    assert result.success is False
    assert result.error_code == "index"
