"""Shared pytest fixtures for the QuietPlay test suite."""

from __future__ import annotations

import os
import tempfile

# Storage and logging must point somewhere disposable before the app imports
_TEST_CONFIG_DIR = tempfile.mkdtemp(prefix="quietplay-test-")
os.environ["QUIETPLAY_CONFIG_DIR"] = _TEST_CONFIG_DIR
os.environ["QUIETPLAY_ENV"] = "testing"
os.environ.setdefault("QUIETPLAY_TIMEZONE", "UTC")
os.environ.setdefault("QUIETPLAY_DISABLE_FILE_LOGS", "1")
os.environ.setdefault("QUIETPLAY_DISABLE_RATE_LIMIT", "1")

import pytest  # noqa: E402

from quietplay.app import app as flask_app  # noqa: E402
from quietplay.config import save_config  # noqa: E402
from quietplay.core.engine import (get_playback_engine,  # noqa: E402
                                   stop_playback_engine)
from quietplay.services.library_service import get_track_library  # noqa: E402
from quietplay.utils.thread_safety import invalidate_config_cache  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def configure_app() -> None:
    """Put the Flask app into testing mode once for the test session."""
    flask_app.config.update({"TESTING": True})


@pytest.fixture(autouse=True)
def clean_storage():
    """Every test starts from a paused engine, default settings, no schedules and no tracks."""
    # Drop the engine singleton; the playback service rebuilds it on the save below
    stop_playback_engine()
    library = get_track_library()
    if library.path.exists():
        library.path.unlink()
    assert save_config({})
    invalidate_config_cache()
    get_playback_engine().set_track_count(0)
    yield


@pytest.fixture
def client():
    """Provide a fresh Flask test client for each test."""
    with flask_app.test_client() as test_client:
        yield test_client


@pytest.fixture
def library():
    return get_track_library()


@pytest.fixture
def engine():
    return get_playback_engine()
