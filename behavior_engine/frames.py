"""Conversion between tabular files (CSV / Parquet) and engine records."""

from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from .codec import is_blank, parse_vector, serialize_vector
from .models import ListeningEvent, Song, SongStatus

HISTORY_COLUMNS = ["user_id", "song_id", "listened_at"]
SONG_COLUMNS = ["id", "content_vector"]


def read_table(path: Union[str, Path]) -> pd.DataFrame:
    """Read a Parquet or CSV file, chosen by extension."""
    path = Path(path)
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix in (".csv", ".txt"):
        return pd.read_csv(path)
    raise ValueError(f"Unsupported file type: {path.suffix} (expected .parquet or .csv)")


def _require_columns(df: pd.DataFrame, columns: List[str], what: str):
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{what} is missing required columns: {missing}")


def _clean_id(value: Any) -> Optional[Any]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        # Integer ids read back as floats when the column has gaps
        return int(value)
    if isinstance(value, np.integer):
        return int(value)
    return value


def events_from_frame(df: pd.DataFrame) -> List[ListeningEvent]:
    """
    Convert a listening history table into events.

    Unparseable timestamps and missing ids become ``None`` so the importer can
    count them as skipped.
    """
    _require_columns(df, HISTORY_COLUMNS, "Listening history")
    timestamps = pd.to_datetime(df["listened_at"], errors="coerce", format="ISO8601")

    events = []
    for user_id, song_id, listened_at in zip(df["user_id"], df["song_id"], timestamps):
        events.append(
            ListeningEvent(
                user_id=_clean_id(user_id),
                song_id=_clean_id(song_id),
                listened_at=None if pd.isna(listened_at) else listened_at.to_pydatetime(),
            )
        )
    return events


def songs_from_frame(df: pd.DataFrame) -> List[Song]:
    """
    Convert a song table into songs.

    ``content_vector`` may hold JSON strings or list-like values; ``status``
    defaults to ACTIVE when the column is absent.
    """
    _require_columns(df, SONG_COLUMNS, "Song table")
    statuses = df["status"] if "status" in df.columns else [SongStatus.ACTIVE.value] * len(df)

    songs = []
    for song_id, status, vector in zip(df["id"], statuses, df["content_vector"]):
        if isinstance(vector, str):
            content_vector = None if is_blank(vector) else serialize_vector(parse_vector(vector))
        elif vector is None or (np.isscalar(vector) and pd.isna(vector)):
            content_vector = None
        else:
            content_vector = serialize_vector(vector)
        songs.append(
            Song(
                id=_clean_id(song_id),
                status=SongStatus(str(status).upper()),
                content_vector=content_vector,
            )
        )
    return songs


def events_to_frame(events: Iterable[ListeningEvent]) -> pd.DataFrame:
    """Tabular view of events, used for summaries."""
    return pd.DataFrame(
        [(e.user_id, e.song_id, e.listened_at) for e in events], columns=HISTORY_COLUMNS
    )


def songs_to_frame(songs: Iterable[Song]) -> pd.DataFrame:
    """Tabular view of songs with vector lengths instead of vector text."""

    def _length(text: Optional[str]) -> int:
        return 0 if is_blank(text) else len(parse_vector(text))

    return pd.DataFrame(
        [
            {
                "id": song.id,
                "status": SongStatus(song.status).value,
                "content_dim": _length(song.content_vector),
                "has_behavior": not is_blank(song.behavior_vector),
                "stored_dim": _length(song.stored_vector),
            }
            for song in songs
        ],
        columns=["id", "status", "content_dim", "has_behavior", "stored_dim"],
    )
