"""
⚙️ Settings Service - Silence and Max-Play Limits
================================================

Reads and replaces the settings tuple (silence duration, fade, max play
duration). The tuple is always replaced as a whole; the playback engine
picks up the new limits on its next tick.
"""

from typing import Any, Dict, Mapping

from . import BaseService, ServiceResult
from ..config import load_config
from ..core.engine import format_duration_minutes, format_silence
from ..core.errors import TransientIOError
from ..utils.thread_safety import config_transaction
from ..utils.validation import ValidationError, validate_settings_form


def _with_labels(settings: Dict[str, Any]) -> Dict[str, Any]:
    return {
        **settings,
        "silence_label": format_silence(int(settings["silence_duration"])),
        "max_play_label": format_duration_minutes(int(settings["max_play_duration"])),
    }


class SettingsService(BaseService):
    """Service for the playback limits."""

    def __init__(self):
        super().__init__("settings")

    def get_settings(self) -> ServiceResult:
        try:
            return self._success_result(data=_with_labels(load_config()["settings"]))
        except Exception as e:
            return self._handle_error(e, "get_settings")

    def update_settings(self, form_data: Mapping[str, Any]) -> ServiceResult:
        """Validate and store the complete settings tuple."""
        try:
            validated = validate_settings_form(form_data)
            with config_transaction() as transaction:
                config = transaction.load()
                config["settings"] = validated
                if not transaction.save(config):
                    raise TransientIOError("save settings", "config file could not be written")

            self.logger.info(
                "Settings saved: silence=%ss fade=%s max_play=%smin",
                validated["silence_duration"],
                validated["fade_enabled"],
                validated["max_play_duration"],
            )
            return self._success_result(data=_with_labels(validated), message="Settings saved")
        except ValidationError as e:
            return self._validation_error(e)
        except TransientIOError as e:
            return self._storage_error(e)
        except Exception as e:
            return self._handle_error(e, "update_settings")
