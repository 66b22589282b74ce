"""
Centralized configuration management for QuietPlay
Handles environment-specific configs and validation with thread safety
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .config_schema import (QuietPlayConfig, migrate_legacy_config,
                            validate_config_dict)

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages configuration loading and validation"""

    def __init__(self, base_path: Optional[str] = None, config_dir: Optional[str] = None,
                 environment: Optional[str] = None):
        self.base_path = Path(base_path) if base_path else Path(__file__).parent.parent
        env_dir = config_dir or os.getenv("QUIETPLAY_CONFIG_DIR")
        self.config_dir = Path(env_dir) if env_dir else self.base_path / "config"
        self.environment = environment or self._detect_environment()

    def _detect_environment(self) -> str:
        """Explicit environment variable, otherwise development"""
        return os.getenv("QUIETPLAY_ENV") or "development"

    def _read_json(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not load config file {path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def load_config(self, config_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration based on environment

        Args:
            config_name: Specific config file name (without .json)
                        If None, uses environment-based config

        Returns:
            Configuration dictionary
        """
        if config_name is None:
            config_name = self.environment

        config_file = self.config_dir / f"{config_name}.json"
        default_config = self._read_json(self.config_dir / "default_config.json")
        env_config = self._read_json(config_file)

        # Environment overrides default
        config = {**default_config, **env_config}
        config["_runtime"] = {
            "environment": self.environment,
            "config_file": str(config_file),
            "config_dir": str(self.config_dir),
        }
        return self.validate_config(config)

    def validate_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and clean configuration against the pydantic schema.

        A file that fails validation is replaced by defaults so the tick
        pipeline always gets sane limits.
        """
        runtime = config.get("_runtime")
        payload = {k: v for k, v in config.items() if not k.startswith("_")}
        try:
            validated_model, warnings = validate_config_dict(migrate_legacy_config(payload))
            for warning in warnings:
                logger.warning(f"Config validation warning: {warning}")
        except ValueError as e:
            logger.error(f"❌ Configuration schema validation failed: {e}")
            logger.warning("Falling back to default configuration")
            validated_model = QuietPlayConfig(environment=self.environment)

        validated_dict = validated_model.to_dict()
        if runtime is not None:
            validated_dict["_runtime"] = runtime
        return validated_dict

    def save_config(self, config: Dict[str, Any], config_name: Optional[str] = None) -> bool:
        """
        Save configuration to file

        Returns:
            True if saved successfully
        """
        if config_name is None:
            config_name = self.environment

        config_file = self.config_dir / f"{config_name}.json"
        payload = {k: v for k, v in config.items() if not k.startswith("_")}
        try:
            validated_model, _ = validate_config_dict(payload)
        except ValueError as e:
            logger.error(f"Refusing to save invalid configuration: {e}")
            return False

        tmp_file = config_file.with_suffix(".json.tmp")
        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_file, 'w', encoding='utf-8') as f:
                json.dump(validated_model.to_dict(), f, indent=2)
            os.replace(tmp_file, config_file)
            return True
        except OSError as e:
            logger.error(f"Failed to write {config_file}: {e}")
            return False

    def library_path(self, config: Dict[str, Any]) -> Path:
        """Track library file, relative paths resolve against the config dir"""
        raw = str(config.get("library_path") or os.getenv("QUIETPLAY_LIBRARY_PATH") or "")
        if not raw:
            return self.config_dir / "library.json"
        path = Path(raw).expanduser()
        return path if path.is_absolute() else self.config_dir / path

# Global config manager instance
config_manager = ConfigManager()

# Initialize thread-safe config system
from .utils.thread_safety import (initialize_thread_safe_config,  # noqa: E402
                                  load_config_safe, save_config_safe)

initialize_thread_safe_config(config_manager)

# Thread-safe convenience functions
def load_config() -> Dict[str, Any]:
    """Load current environment configuration (THREAD-SAFE)"""
    return load_config_safe()

def save_config(config: Dict[str, Any]) -> bool:
    """Save configuration (THREAD-SAFE)"""
    return save_config_safe(config)
