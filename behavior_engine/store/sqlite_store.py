"""
SQLite-backed store for songs and listening history.

Timestamps are stored as naive ISO-8601 text so range queries compare
lexicographically. Aware datetimes are converted to UTC before storing and
naive ones are taken to be UTC already. Unrecognised status values load as
``SongStatus.UNKNOWN``.
"""

import contextlib
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from ..errors import StoreError
from ..models import ImportReport, ListeningEvent, Song, SongStatus, to_naive_utc
from .base import EmbeddingStore

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"


def _to_text(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return to_naive_utc(value).strftime(_TIMESTAMP_FORMAT)


def _from_text(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class SQLiteStore(EmbeddingStore):
    """
    Store backed by a single SQLite database file.

    The connection runs in autocommit mode; ``transaction()`` issues an
    explicit BEGIN and commits or rolls back when the block exits. Calls made
    outside a transaction commit individually.
    """

    def __init__(self, db_path: Union[str, Path] = "data/behavior_engine.db"):
        """
        Open (and create if needed) the database.

        Args:
            db_path: Path to the SQLite file, or ``":memory:"``
        """
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self.conn = sqlite3.connect(self.db_path, isolation_level=None)
        except sqlite3.Error as e:
            raise StoreError(f"Could not open database {self.db_path}: {e}") from e
        self.conn.row_factory = sqlite3.Row
        self._create_schema()

    def _create_schema(self):
        with self._guard("create schema"):
            self.conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS songs (
                    id INTEGER PRIMARY KEY,
                    status TEXT NOT NULL DEFAULT 'ACTIVE',
                    content_vector TEXT,      -- JSON array
                    behavior_vector TEXT,     -- JSON array
                    stored_vector TEXT,       -- JSON array
                    updated_at TEXT
                );

                CREATE TABLE IF NOT EXISTS listening_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER,
                    song_id INTEGER,
                    listened_at TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_history_listened_at
                    ON listening_history(listened_at);
                CREATE UNIQUE INDEX IF NOT EXISTS idx_history_play
                    ON listening_history(user_id, song_id, listened_at);
                """
            )

    @contextlib.contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            raise StoreError(f"Failed to {action}: {e}") from e

    @contextlib.contextmanager
    def transaction(self) -> Iterator["SQLiteStore"]:
        """Run the block in one transaction. Nested calls join the outer one."""
        if self.conn.in_transaction:
            yield self
            return

        with self._guard("begin transaction"):
            self.conn.execute("BEGIN")
        try:
            yield self
        except BaseException:
            with self._guard("roll back transaction"):
                self.conn.rollback()
            raise
        with self._guard("commit transaction"):
            self.conn.commit()

    def find_listening_history_since(self, cutoff: datetime) -> List[ListeningEvent]:
        with self._guard("load listening history"):
            rows = self.conn.execute(
                """
                SELECT user_id, song_id, listened_at
                FROM listening_history
                WHERE listened_at > ?
                ORDER BY user_id, listened_at, song_id, id
                """,
                (_to_text(cutoff),),
            ).fetchall()
        return [
            ListeningEvent(
                user_id=row["user_id"],
                song_id=row["song_id"],
                listened_at=_from_text(row["listened_at"]),
            )
            for row in rows
        ]

    def find_all_songs(self) -> List[Song]:
        with self._guard("load songs"):
            rows = self.conn.execute(
                """
                SELECT id, status, content_vector, behavior_vector, stored_vector
                FROM songs
                ORDER BY id
                """
            ).fetchall()
        return [
            Song(
                id=row["id"],
                status=SongStatus(row["status"]),
                content_vector=row["content_vector"],
                behavior_vector=row["behavior_vector"],
                stored_vector=row["stored_vector"],
            )
            for row in rows
        ]

    def save_all_songs(self, songs: Iterable[Song]) -> None:
        now = _to_text(datetime.now(timezone.utc))
        params = [(song.behavior_vector, song.stored_vector, now, song.id) for song in songs]
        with self.transaction(), self._guard("save songs"):
            self.conn.executemany(
                """
                UPDATE songs
                SET behavior_vector = ?, stored_vector = ?, updated_at = ?
                WHERE id = ?
                """,
                params,
            )
        logger.debug("Saved vectors for %d songs", len(params))

    def add_songs(self, songs: Iterable[Song]) -> None:
        params = [
            (
                song.id,
                SongStatus(song.status).value,
                song.content_vector,
                song.behavior_vector,
                song.stored_vector,
            )
            for song in songs
        ]
        with self.transaction(), self._guard("add songs"):
            self.conn.executemany(
                """
                INSERT OR REPLACE INTO songs
                    (id, status, content_vector, behavior_vector, stored_vector)
                VALUES (?, ?, ?, ?, ?)
                """,
                params,
            )

    def import_listening_history(self, events: Iterable[ListeningEvent]) -> ImportReport:
        received = created = duplicates = skipped = 0
        with self.transaction(), self._guard("import listening history"):
            for event in events:
                received += 1
                if event.user_id is None or event.song_id is None or event.listened_at is None:
                    skipped += 1
                    continue
                cursor = self.conn.execute(
                    """
                    INSERT OR IGNORE INTO listening_history (user_id, song_id, listened_at)
                    VALUES (?, ?, ?)
                    """,
                    (event.user_id, event.song_id, _to_text(event.listened_at)),
                )
                if cursor.rowcount:
                    created += 1
                else:
                    duplicates += 1

        return ImportReport(
            received=received,
            created=created,
            duplicates=duplicates,
            skipped=skipped,
            processed_at=datetime.now(timezone.utc),
        )

    def count_listening_history(self) -> int:
        with self._guard("count listening history"):
            return self.conn.execute("SELECT COUNT(*) FROM listening_history").fetchone()[0]

    def close(self) -> None:
        self.conn.close()
