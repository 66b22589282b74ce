"""
📚 Library Service - Business Logic for the Track List
=====================================================

Lists, registers, edits, deletes and reorders tracks. Every change that alters the
length of the sequence is pushed into the playback engine so the current
index stays inside the list.
"""

import threading
from typing import Any, Dict, Mapping, Optional

from . import BaseService, ServiceResult
from ..config import config_manager, load_config
from ..core.engine import get_playback_engine
from ..core.errors import TransientIOError
from ..core.library import TrackLibrary
from ..utils.validation import (ValidationError, validate_track_create,
                                validate_track_edit, validate_track_order)

_library: Optional[TrackLibrary] = None
_library_lock = threading.Lock()


def get_track_library() -> TrackLibrary:
    """Return the shared library store for the configured library path."""
    global _library
    with _library_lock:
        path = config_manager.library_path(load_config())
        if _library is None or _library.path != path:
            _library = TrackLibrary(path)
        return _library


class LibraryService(BaseService):
    """Service for the ordered track list."""

    def __init__(self):
        super().__init__("library")

    def _payload(self, tracks) -> Dict[str, Any]:
        state = get_playback_engine().state()
        return {
            "tracks": [track.to_dict() for track in tracks],
            "total": len(tracks),
            "current_track_index": state.current_track_index,
        }

    def _sync_engine(self, count: int) -> None:
        get_playback_engine().set_track_count(count)

    def list_tracks(self) -> ServiceResult:
        try:
            tracks = get_track_library().list_tracks()
            return self._success_result(data=self._payload(tracks))
        except TransientIOError as e:
            return self._storage_error(e)
        except Exception as e:
            return self._handle_error(e, "list_tracks")

    def add_track(self, form_data: Mapping[str, Any]) -> ServiceResult:
        """Register a track whose file already sits next to the library."""
        try:
            validated = validate_track_create(form_data)
            library = get_track_library()
            track = library.add_track(**validated)
            self._sync_engine(library.count())
            return self._success_result(data=track.to_dict(), message="Track added")
        except ValidationError as e:
            return self._validation_error(e)
        except TransientIOError as e:
            return self._storage_error(e)
        except Exception as e:
            return self._handle_error(e, "add_track")

    def update_track(self, track_id: int, form_data: Mapping[str, Any]) -> ServiceResult:
        """Change the title and artist of one track."""
        try:
            validated = validate_track_edit(form_data)
            track = get_track_library().update_track(track_id, **validated)
            if track is None:
                return self._error_result(f"Track {track_id} not found", error_code="not_found")
            self.logger.info(f"✏️ Track {track_id} renamed to '{track.title}' by {track.artist}")
            return self._success_result(data=track.to_dict(), message="Track updated")
        except ValidationError as e:
            return self._validation_error(e)
        except TransientIOError as e:
            return self._storage_error(e)
        except Exception as e:
            return self._handle_error(e, "update_track")

    def delete_track(self, track_id: int) -> ServiceResult:
        try:
            library = get_track_library()
            if not library.delete_track(track_id):
                return self._error_result(f"Track {track_id} not found", error_code="not_found")
            tracks = library.list_tracks()
            self._sync_engine(len(tracks))
            return self._success_result(data=self._payload(tracks), message="Track deleted")
        except TransientIOError as e:
            return self._storage_error(e)
        except Exception as e:
            return self._handle_error(e, "delete_track")

    def reorder_tracks(self, payload: Mapping[str, Any]) -> ServiceResult:
        try:
            track_ids = validate_track_order(payload)
            tracks = get_track_library().reorder(track_ids)
            return self._success_result(data=self._payload(tracks), message="Track order saved")
        except ValidationError as e:
            return self._validation_error(e)
        except TransientIOError as e:
            return self._storage_error(e)
        except Exception as e:
            return self._handle_error(e, "reorder_tracks")

    def track_count(self) -> int:
        """Number of tracks on disk; raises TransientIOError when unreadable."""
        return get_track_library().count()

    def health_check(self) -> ServiceResult:
        try:
            library = get_track_library()
            count = library.count()
            return self._success_result(data={
                "status": "healthy",
                "service": self.name,
                "tracks": count,
                "path": str(library.path),
            })
        except TransientIOError as e:
            return self._success_result(data={
                "status": "degraded",
                "service": self.name,
                "error": e.message,
            })
