"""Track library JSON store."""

from __future__ import annotations

import pytest

from quietplay.core.errors import TransientIOError
from quietplay.core.library import TrackLibrary, title_from_filename


@pytest.fixture
def store(tmp_path):
    return TrackLibrary(tmp_path / "library.json")


def test_missing_file_reads_as_empty(store):
    assert store.list_tracks() == []
    assert store.count() == 0


def test_add_assigns_ids_and_positions(store):
    first = store.add_track("Morning Raga", "Ravi", filename="raga.mp3", duration_label="7:12")
    second = store.add_track("Nocturne", "")

    assert (first.id, first.position) == (1, 0)
    assert (second.id, second.position) == (2, 1)
    assert second.artist == "Unknown Artist"
    assert [t.title for t in store.list_tracks()] == ["Morning Raga", "Nocturne"]


def test_update_and_delete(store):
    track = store.add_track("Untitled")
    updated = store.update_track(track.id, title="Etude", artist="Chopin")
    assert updated.title == "Etude"
    assert store.get_track(track.id).artist == "Chopin"
    assert store.update_track(99, title="x", artist="y") is None

    assert store.delete_track(track.id) is True
    assert store.delete_track(track.id) is False
    assert store.count() == 0


def test_reorder_keeps_unlisted_tracks_after_listed(store):
    ids = [store.add_track(name).id for name in ("a", "b", "c", "d")]
    ordered = store.reorder([ids[2], ids[0], 999])
    assert [t.title for t in ordered] == ["c", "a", "b", "d"]
    assert [t.position for t in store.list_tracks()] == [0, 1, 2, 3]
    assert [t.title for t in store.list_tracks()] == ["c", "a", "b", "d"]


def test_ids_are_not_reused_after_delete(store):
    first = store.add_track("one")
    store.delete_track(first.id)
    assert store.add_track("two").id == 2


def test_corrupted_file_raises_transient_error(store):
    store.path.write_text("{not json", encoding="utf-8")
    with pytest.raises(TransientIOError) as excinfo:
        store.list_tracks()
    assert excinfo.value.operation == "read_library"


def test_unwritable_location_raises_transient_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    store = TrackLibrary(blocker / "library.json")
    with pytest.raises(TransientIOError):
        store.add_track("nowhere")


def test_import_directory_registers_audio_files_once(store, tmp_path):
    music = tmp_path / "music"
    music.mkdir()
    for name in ("02_evening-song.ogg", "01_morning_raga.MP3", "cover.jpg"):
        (music / name).write_bytes(b"")
    (music / "nested.mp3").mkdir()

    added = store.import_directory(music)
    assert [t.filename for t in added] == ["01_morning_raga.MP3", "02_evening-song.ogg"]
    assert added[0].title == "01 morning raga"
    assert [t.position for t in added] == [0, 1]

    (music / "03_night.flac").write_bytes(b"")
    again = store.import_directory(music)
    assert [t.filename for t in again] == ["03_night.flac"]
    assert again[0].position == 2
    assert store.count() == 3


def test_import_missing_directory_is_transient(store, tmp_path):
    with pytest.raises(TransientIOError):
        store.import_directory(tmp_path / "nowhere")


def test_title_from_filename():
    assert title_from_filename("Blue_in-Green.wav") == "Blue in Green"
