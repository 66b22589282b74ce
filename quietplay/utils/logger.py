#!/usr/bin/env python3
"""
🔍 Centralized Logging System for QuietPlay
Logs playback, schedule and storage activity to rotating files
Keeps production hosts quiet (warnings + errors only)
Supports structured JSON logging for production observability
"""

import json
import logging
import logging.handlers
import os
import platform
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import psutil

# Environment detection
IS_PRODUCTION = os.getenv('QUIETPLAY_ENV', '').lower() == 'production'
IS_DEV_MODE = '--dev' in sys.argv or os.getenv('QUIETPLAY_DEV') == '1'

ENABLE_JSON_LOGS = os.getenv('QUIETPLAY_JSON_LOGS', '0') == '1'


def _get_app_log_dir() -> Path:
    """Get application log directory path-agnostically"""
    env_log_dir = os.getenv('QUIETPLAY_LOG_DIR')
    if env_log_dir:
        return Path(env_log_dir)
    app_name = os.getenv("QUIETPLAY_APP_NAME", "quietplay")
    return Path.home() / f".{app_name}" / "logs"


# Base defaults depending on environment (before overrides)
if IS_PRODUCTION and not IS_DEV_MODE:
    LOG_LEVEL = logging.WARNING
    ENABLE_FILE_LOGGING = False
    ENABLE_ERROR_LOGS = True
    MAX_LOG_SIZE = 1 * 1024 * 1024
    BACKUP_COUNT = 1
    ENABLE_SYSTEM_INFO = False
    # JSON logs by default in production unless explicitly switched off
    if os.getenv('QUIETPLAY_JSON_LOGS') is None:
        ENABLE_JSON_LOGS = True
else:
    LOG_LEVEL = logging.INFO
    ENABLE_FILE_LOGGING = True
    ENABLE_ERROR_LOGS = True
    MAX_LOG_SIZE = 10 * 1024 * 1024
    BACKUP_COUNT = 5
    ENABLE_SYSTEM_INFO = True

LOG_DIR = _get_app_log_dir()

# ---- Environment overrides (systemd friendly) ----
_env_level = os.getenv('QUIETPLAY_LOG_LEVEL')
if _env_level:
    try:
        LOG_LEVEL = getattr(logging, _env_level.upper())
    except AttributeError:
        pass  # Ignore invalid level

if os.getenv('QUIETPLAY_FORCE_FILE_LOG') == '1':
    ENABLE_FILE_LOGGING = True

if os.getenv('QUIETPLAY_DISABLE_FILE_LOGS') == '1':
    ENABLE_FILE_LOGGING = False
    ENABLE_ERROR_LOGS = False

if os.getenv('QUIETPLAY_SYSTEM_INFO') == '0':
    ENABLE_SYSTEM_INFO = False

try:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
except OSError:
    # Console-only logging if directory is not writable
    ENABLE_FILE_LOGGING = False
    ENABLE_ERROR_LOGS = False

_PLAIN_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | %(message)s'


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, 'no_color', False):
            return super().format(record)

        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']
        original = record.levelname
        record.levelname = f"{color}{original}{reset}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    """Structured JSON formatter for production observability.

    Example output:
        {"timestamp": "2025-11-04T10:30:00.123Z", "level": "INFO",
         "logger": "playback", "message": "Silence period started",
         "silence_seconds": 120}
    """

    _RESERVED = frozenset((
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'message', 'pathname', 'process', 'processName', 'relativeCreated',
        'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
        'taskName', 'no_color'
    ))

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data: Dict[str, Any] = {
            'timestamp': created.isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.levelno >= logging.WARNING:
            log_data['source'] = f"{record.filename}:{record.lineno}"
            log_data['function'] = record.funcName

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Extra fields passed via logger.info("msg", extra={...})
        for key, value in record.__dict__.items():
            if key in self._RESERVED:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data, ensure_ascii=True, sort_keys=True)


def _file_formatter() -> logging.Formatter:
    if ENABLE_JSON_LOGS:
        return JSONFormatter()
    return logging.Formatter(_PLAIN_FORMAT)


def setup_logging() -> logging.Logger:
    """Initialize logging system for the application."""
    return setup_logger("quietplay")

def setup_logger(name: str) -> logging.Logger:
    """
    Sets up a logger with appropriate handlers based on environment

    Args:
        name: Logger name (usually module name)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers if logger already exists
    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(LOG_LEVEL)
    if ENABLE_JSON_LOGS:
        console_handler.setFormatter(JSONFormatter())
    elif IS_PRODUCTION and not IS_DEV_MODE:
        console_handler.setFormatter(logging.Formatter('%(asctime)s | %(levelname)s | %(message)s'))
    else:
        console_handler.setFormatter(ColoredFormatter('%(asctime)s | %(name)s | %(levelname)s | %(message)s'))
    logger.addHandler(console_handler)

    if ENABLE_FILE_LOGGING:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                LOG_DIR / "quietplay.log",
                maxBytes=MAX_LOG_SIZE,
                backupCount=BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setLevel(LOG_LEVEL)
            file_handler.setFormatter(_file_formatter())
            logger.addHandler(file_handler)
        except OSError:
            pass

    # Error-only log file (kept even in production)
    if ENABLE_ERROR_LOGS:
        try:
            error_handler = logging.handlers.RotatingFileHandler(
                LOG_DIR / "quietplay_errors.log",
                maxBytes=MAX_LOG_SIZE,
                backupCount=BACKUP_COUNT,
                encoding='utf-8'
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(_file_formatter())
            logger.addHandler(error_handler)
        except OSError:
            pass

    return logger

def log_startup(module_name: str) -> None:
    """Log startup information for a module.

    Only shows detailed system info in development mode.
    """
    logger = logging.getLogger(module_name)
    logger.info(f"🎵 Starting {module_name}")

    if not ENABLE_SYSTEM_INFO:
        logger.info(f"📂 Logs: {LOG_DIR}")
        return

    try:
        logger.info("=" * 50)
        logger.info("🚀 QuietPlay System Information")
        logger.info("=" * 50)
        logger.info(f"🖥️  Platform: {platform.platform()}")
        logger.info(f"🐍 Python: {platform.python_version()}")
        logger.info(f"💾 Memory: {psutil.virtual_memory().available / (1024**3):.1f}GB available")
        logger.info(f"📂 Log Directory: {LOG_DIR}")
        logger.info("=" * 50)
    except Exception as e:
        logger.warning(f"Could not gather system info: {e}")

def log_shutdown(logger: logging.Logger, component_name: str) -> None:
    """Log component shutdown and flush handlers."""
    logger.info(f"🛑 Shutting down {component_name}")
    for handler in logger.handlers:
        handler.flush()


def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log a message with structured context fields.

    In JSON mode, context fields appear as separate JSON keys. In traditional
    mode, they're appended to the message as key=value pairs.

    Example:
        >>> log_structured(logger, logging.INFO, "Schedule fired",
        ...                schedule_id=3, action="play", time_of_day="09:00")
    """
    if ENABLE_JSON_LOGS:
        logger.log(level, message, extra=context)
    elif context:
        context_str = " ".join(f"{k}={v}" for k, v in context.items())
        logger.log(level, f"{message} | {context_str}")
    else:
        logger.log(level, message)
