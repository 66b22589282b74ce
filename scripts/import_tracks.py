#!/usr/bin/env python3
"""
📥 QuietPlay Track Import
Registers the audio files of a directory in the track library
"""

import argparse
import sys

from quietplay.config import config_manager, load_config
from quietplay.core.errors import TransientIOError
from quietplay.core.library import TrackLibrary


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import audio files into the QuietPlay track library")
    parser.add_argument("directory", help="Directory holding the audio files")
    parser.add_argument(
        "--library",
        help="Library JSON file (default: the configured library path)",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    library_path = args.library or config_manager.library_path(load_config())
    library = TrackLibrary(library_path)

    try:
        added = library.import_directory(args.directory)
    except TransientIOError as exc:
        print(f"❌ Import failed: {exc}")
        return 1

    for track in added:
        print(f"🎶 {track.id:>4}  {track.title}  ({track.filename})")
    print(f"✅ {len(added)} new tracks, {library.count()} in {library.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
