"""
🔧 Service Manager - Central Service Coordination
===============================================

Manages all services and provides a unified interface for the Flask application.
"""

import logging
from typing import Any, Dict, Optional

from . import ServiceResult
from .library_service import LibraryService
from .playback_service import PlaybackService
from .schedule_service import ScheduleService
from .settings_service import SettingsService
from .system_service import SystemService


class ServiceManager:
    """Central manager for all application services."""

    def __init__(self):
        self.logger = logging.getLogger("service_manager")

        self.system = SystemService()
        self.library = LibraryService()
        self.playback = PlaybackService()
        self.schedules = ScheduleService()
        self.settings = SettingsService()

        # Playback must come after library: it reads the track count on start
        self.services = {
            "system": self.system,
            "library": self.library,
            "playback": self.playback,
            "schedules": self.schedules,
            "settings": self.settings,
        }

        self._initialize_all()

    def _initialize_all(self) -> None:
        """Initialize all services."""
        self.logger.info("🚀 Initializing service manager...")

        for name, service in self.services.items():
            try:
                result = service.initialize()
                if result.success:
                    self.logger.info(f"✅ {name} service initialized")
                else:
                    self.logger.error(f"❌ {name} service initialization failed: {result.message}")
            except Exception as e:
                self.logger.error(f"💥 {name} service crashed during initialization: {e}")

        self.logger.info("🎯 Service manager initialization completed")

    def get_service(self, name: str) -> Optional[Any]:
        """Get a specific service by name."""
        return self.services.get(name)

    def health_check_all(self) -> ServiceResult:
        """Perform health check on all services."""
        try:
            results = {}
            overall_healthy = True
            degraded_states = {"degraded", "error", "failed", "unhealthy"}

            for name, service in self.services.items():
                health = service.health_check()

                if health.success and isinstance(health.data, dict):
                    status_payload: Dict[str, Any] = health.data
                else:
                    status_payload = {"error": health.message}

                status_value = str(status_payload.get("status", "")).lower() or None
                service_healthy = health.success and status_value not in degraded_states

                results[name] = {
                    "healthy": service_healthy,
                    "status": status_payload
                }
                if not service_healthy:
                    overall_healthy = False

            return ServiceResult(
                success=True,
                data={
                    "overall_healthy": overall_healthy,
                    "services": results,
                    "total_services": len(self.services),
                    "healthy_services": sum(1 for r in results.values() if r["healthy"])
                },
                message="Health check completed for all services"
            )

        except Exception as e:
            self.logger.error(f"Error during health check: {e}")
            return ServiceResult(
                success=False,
                message=f"Health check failed: {str(e)}",
                error_code="HEALTH_CHECK_FAILED"
            )

# Global service manager instance
_service_manager = None

def get_service_manager() -> ServiceManager:
    """Get the global service manager instance."""
    global _service_manager
    if _service_manager is None:
        _service_manager = ServiceManager()
    return _service_manager

def get_service(name: str) -> Optional[Any]:
    """Get a specific service by name."""
    return get_service_manager().get_service(name)
