#!/usr/bin/env python3
"""
📚 Track library storage for QuietPlay

Keeps the ordered track list in a JSON file. The playback core only reads the
sequence length and the current index into it; editing, deleting and
reordering happen here through explicit user commands.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .errors import TransientIOError

logger = logging.getLogger("library")

AUDIO_EXTENSIONS = (".mp3", ".ogg", ".oga", ".wav", ".flac", ".m4a", ".aac", ".opus")


def title_from_filename(filename: str) -> str:
    """``01_morning-raga.mp3`` becomes ``01 morning raga``."""
    stem = Path(filename).stem
    return " ".join(stem.replace("_", " ").replace("-", " ").split()) or stem


@dataclass
class Track:
    id: int
    title: str
    artist: str = "Unknown Artist"
    duration_label: str = "0:00"
    filename: str = ""
    position: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        return cls(
            id=int(data["id"]),
            title=str(data.get("title", "")),
            artist=str(data.get("artist") or "Unknown Artist"),
            duration_label=str(data.get("duration_label", "0:00")),
            filename=str(data.get("filename", "")),
            position=int(data.get("position", 0)),
        )


class TrackLibrary:
    """JSON-file backed track list, safe to share between threads."""

    def __init__(self, path: os.PathLike | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {"tracks": [], "next_id": 1}
        except json.JSONDecodeError as exc:
            raise TransientIOError("read_library", f"corrupted library file {self.path}: {exc}") from exc
        except OSError as exc:
            raise TransientIOError("read_library", str(exc)) from exc
        if not isinstance(data, dict):
            raise TransientIOError("read_library", f"unexpected library format in {self.path}")
        data.setdefault("tracks", [])
        data.setdefault("next_id", 1)
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise TransientIOError("write_library", str(exc)) from exc

    @staticmethod
    def _sorted(tracks: List[Track]) -> List[Track]:
        return sorted(tracks, key=lambda track: (track.position, track.id))

    def list_tracks(self) -> List[Track]:
        with self._lock:
            data = self._read()
        return self._sorted([Track.from_dict(item) for item in data["tracks"]])

    def count(self) -> int:
        return len(self.list_tracks())

    def get_track(self, track_id: int) -> Optional[Track]:
        for track in self.list_tracks():
            if track.id == track_id:
                return track
        return None

    def add_track(self, title: str, artist: str = "Unknown Artist", filename: str = "",
                  duration_label: str = "0:00") -> Track:
        with self._lock:
            data = self._read()
            tracks = [Track.from_dict(item) for item in data["tracks"]]
            position = max((track.position for track in tracks), default=-1) + 1
            track = Track(
                id=int(data["next_id"]),
                title=title,
                artist=artist or "Unknown Artist",
                duration_label=duration_label,
                filename=filename,
                position=position,
            )
            data["tracks"].append(track.to_dict())
            data["next_id"] = track.id + 1
            self._write(data)
        logger.info("🎶 Track added: %s – %s", track.artist, track.title)
        return track

    def update_track(self, track_id: int, *, title: str, artist: str) -> Optional[Track]:
        with self._lock:
            data = self._read()
            for item in data["tracks"]:
                if int(item["id"]) == track_id:
                    item["title"] = title
                    item["artist"] = artist
                    self._write(data)
                    return Track.from_dict(item)
        return None

    def delete_track(self, track_id: int) -> bool:
        with self._lock:
            data = self._read()
            remaining = [item for item in data["tracks"] if int(item["id"]) != track_id]
            if len(remaining) == len(data["tracks"]):
                return False
            data["tracks"] = remaining
            self._write(data)
        logger.info("🗑️ Track %s deleted", track_id)
        return True

    def reorder(self, track_ids: Sequence[int]) -> List[Track]:
        """Assign positions following ``track_ids``; unknown ids are ignored.

        Tracks missing from ``track_ids`` keep their relative order after the
        listed ones.
        """
        with self._lock:
            data = self._read()
            by_id = {int(item["id"]): item for item in data["tracks"]}
            ordered = [by_id[track_id] for track_id in track_ids if track_id in by_id]
            listed = {int(item["id"]) for item in ordered}
            rest = sorted(
                (item for item in data["tracks"] if int(item["id"]) not in listed),
                key=lambda item: (int(item.get("position", 0)), int(item["id"])),
            )
            for position, item in enumerate(ordered + rest):
                item["position"] = position
            data["tracks"] = ordered + rest
            self._write(data)
            return [Track.from_dict(item) for item in data["tracks"]]

    def import_directory(self, directory: os.PathLike | str) -> List[Track]:
        """Register audio files found in ``directory`` that are not listed yet.

        Files are matched by name, so running the import twice adds nothing.
        New tracks are appended in filename order.
        """
        directory = Path(directory)
        try:
            candidates = sorted(
                (entry for entry in directory.iterdir()
                 if entry.is_file() and entry.suffix.lower() in AUDIO_EXTENSIONS),
                key=lambda entry: entry.name.lower(),
            )
        except OSError as exc:
            raise TransientIOError("scan_directory", str(exc)) from exc

        added: List[Track] = []
        with self._lock:
            data = self._read()
            known = {str(item.get("filename", "")) for item in data["tracks"]}
            position = max((int(item.get("position", 0)) for item in data["tracks"]), default=-1) + 1
            for entry in candidates:
                if entry.name in known:
                    continue
                track = Track(
                    id=int(data["next_id"]),
                    title=title_from_filename(entry.name),
                    filename=entry.name,
                    position=position,
                )
                data["tracks"].append(track.to_dict())
                data["next_id"] = track.id + 1
                position += 1
                added.append(track)
            if added:
                self._write(data)
        logger.info("📥 Imported %s new tracks from %s", len(added), directory)
        return added
