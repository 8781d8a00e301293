"""
Import listening history (and optionally songs) into the SQLite store.

Input files may be CSV or Parquet:
- history: user_id, song_id, listened_at
- songs: id, content_vector (JSON array or list column), optional status
"""

import argparse
import logging
import sys

from behavior_engine import BehaviorEngineError, SQLiteStore
from behavior_engine.frames import events_from_frame, read_table, songs_from_frame

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """Load history and song files into the store."""
    parser = argparse.ArgumentParser(description="Import listening history into the store")
    parser.add_argument("history", type=str, help="Listening history CSV or Parquet file")
    parser.add_argument(
        "--db", type=str, default="data/behavior_engine.db", help="SQLite database file"
    )
    parser.add_argument(
        "--songs", type=str, default=None, help="Optional songs CSV or Parquet file to load first"
    )

    args = parser.parse_args()

    try:
        store = SQLiteStore(args.db)
    except BehaviorEngineError as e:
        logger.error("%s", e)
        sys.exit(1)

    try:
        if args.songs:
            print(f"Loading songs from: {args.songs}")
            songs = songs_from_frame(read_table(args.songs))
            store.add_songs(songs)
            print(f"- Loaded {len(songs):,} songs")

        print(f"Loading listening history from: {args.history}")
        events = events_from_frame(read_table(args.history))
        report = store.import_listening_history(events)
    except (BehaviorEngineError, ValueError, FileNotFoundError) as e:
        logger.error("Import failed: %s", e)
        sys.exit(1)
    finally:
        store.close()

    print("\nImport Summary:")
    print(f"- Received: {report.received:,}")
    print(f"- Created: {report.created:,}")
    print(f"- Duplicates: {report.duplicates:,}")
    print(f"- Skipped (missing fields): {report.skipped:,}")
    print(f"- Processed at: {report.processed_at.isoformat()}")


if __name__ == "__main__":
    main()
