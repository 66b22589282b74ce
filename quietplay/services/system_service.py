"""
🔧 System Service - Resource and Runtime Monitoring
==================================================

Reports process resources, config/rate-limiter statistics and whether the
playback ticker is alive.
"""

from datetime import datetime
from typing import Any, Dict

import psutil

from . import BaseService, ServiceResult
from ..core.engine import get_playback_engine
from ..utils.rate_limiting import get_rate_limiter
from ..utils.thread_safety import get_config_stats
from ..utils.timezone import get_timezone_name
from ..version import get_version_dict


class SystemService(BaseService):
    """Service for system-wide monitoring."""

    def __init__(self):
        super().__init__("system")
        self.start_time = datetime.now()

    def _get_system_resources(self) -> Dict[str, Any]:
        """Get system resource usage."""
        try:
            memory = psutil.virtual_memory()
            process = psutil.Process()
            process_memory = process.memory_info()

            return {
                "memory": {
                    "total_gb": round(memory.total / (1024**3), 2),
                    "available_gb": round(memory.available / (1024**3), 2),
                    "used_percent": memory.percent
                },
                "cpu": {
                    "count": psutil.cpu_count()
                },
                "process": {
                    "memory_mb": round(process_memory.rss / (1024**2), 1),
                    "threads": process.num_threads(),
                    "pid": process.pid
                }
            }
        except psutil.Error as e:
            self.logger.error(f"Error getting system resources: {e}")
            return {"error": "Unable to retrieve system resources"}

    def _get_application_metrics(self) -> Dict[str, Any]:
        engine = get_playback_engine()
        return {
            "app": get_version_dict(),
            "thread_safety": get_config_stats(),
            "rate_limiting": get_rate_limiter().get_stats(),
            "ticker_running": engine.is_running(),
            "pending_rearms": len(engine.pending_rearms()),
            "timezone": get_timezone_name(),
        }

    def get_system_info(self) -> ServiceResult:
        try:
            return self._success_result(data={
                "uptime_seconds": (datetime.now() - self.start_time).total_seconds(),
                "system": self._get_system_resources(),
                "application": self._get_application_metrics(),
            })
        except Exception as e:
            return self._handle_error(e, "get_system_info")

    def health_check(self) -> ServiceResult:
        base_health = super().health_check()
        if not base_health.success:
            return base_health
        resources = self._get_system_resources()
        return self._success_result(data={
            "service": self.name,
            "status": "degraded" if "error" in resources else "healthy",
            "uptime_seconds": (datetime.now() - self.start_time).total_seconds(),
            "memory_mb": resources.get("process", {}).get("memory_mb"),
        })
