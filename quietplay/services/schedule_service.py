"""
🗓️ Schedule Service - Business Logic for Play/Pause Schedules
============================================================

Creates, lists and deletes schedule entries. Entries persist in the config
file; the playback service hears about every save and reloads the
evaluator, so a deleted entry stops firing and loses its pending re-arm.
"""

from typing import Any, Dict, Mapping

from . import BaseService, ServiceResult
from ..config import load_config
from ..core.engine import get_playback_engine
from ..core.errors import TransientIOError
from ..core.schedule import ScheduleEntry, day_name, next_occurrence
from ..utils.thread_safety import config_transaction
from ..utils.validation import ValidationError, validate_schedule_form


class ScheduleService(BaseService):
    """Service for managing play/pause schedule entries."""

    def __init__(self):
        super().__init__("schedules")

    def _describe(self, entry_dict: Dict[str, Any], now) -> Dict[str, Any]:
        entry = ScheduleEntry.from_dict(entry_dict)
        upcoming = next_occurrence(entry, now) if now is not None else None
        return {
            **entry_dict,
            "day_names": [day_name(day) for day in entry_dict.get("days", [])],
            "next_run": upcoming.isoformat() if upcoming else None,
        }

    def list_schedules(self) -> ServiceResult:
        try:
            config = load_config()
            now = get_playback_engine().now()
            entries = [self._describe(item, now) for item in config.get("schedules", [])]
            entries.sort(key=lambda item: (item["time"], item["id"]))
            return self._success_result(data={"schedules": entries, "total": len(entries)})
        except Exception as e:
            return self._handle_error(e, "list_schedules")

    def create_schedule(self, form_data: Mapping[str, Any]) -> ServiceResult:
        """Validate and persist a new entry; it starts armed."""
        try:
            validated = validate_schedule_form(form_data)
            with config_transaction() as transaction:
                config = transaction.load()
                entry_id = int(config.get("next_schedule_id", 1))
                entry = {"id": entry_id, **validated}
                config.setdefault("schedules", []).append(entry)
                config["next_schedule_id"] = entry_id + 1
                if not transaction.save(config):
                    raise TransientIOError("save schedule", "config file could not be written")

            self.logger.info(
                f"🗓️ Schedule {entry_id} added: {entry['action']} at {entry['time']} "
                f"on {','.join(day_name(d) for d in entry['days'])}"
            )
            return self._success_result(
                data=self._describe(entry, get_playback_engine().now()),
                message="Schedule saved"
            )
        except ValidationError as e:
            return self._validation_error(e)
        except TransientIOError as e:
            return self._storage_error(e)
        except Exception as e:
            return self._handle_error(e, "create_schedule")

    def delete_schedule(self, schedule_id: int) -> ServiceResult:
        try:
            with config_transaction() as transaction:
                config = transaction.load()
                schedules = config.get("schedules", [])
                remaining = [item for item in schedules if int(item.get("id", 0)) != schedule_id]
                if len(remaining) == len(schedules):
                    return self._error_result(f"Schedule {schedule_id} not found", error_code="not_found")
                config["schedules"] = remaining
                if not transaction.save(config):
                    raise TransientIOError("delete schedule", "config file could not be written")

            self.logger.info(f"🗑️ Schedule {schedule_id} deleted")
            return self._success_result(data={"id": schedule_id}, message="Schedule deleted")
        except TransientIOError as e:
            return self._storage_error(e)
        except Exception as e:
            return self._handle_error(e, "delete_schedule")

    def health_check(self) -> ServiceResult:
        if not self._initialized:
            return super().health_check()
        engine = get_playback_engine()
        return self._success_result(data={
            "status": "healthy",
            "service": self.name,
            "entries": len(engine.schedules()),
            "pending_rearms": len(engine.pending_rearms()),
        })
