"""Domain records shared by the loader, graph builder and recomputer."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Hashable, Optional

SongId = Hashable
UserId = Hashable

# song_id -> neighbor song_id -> accumulated edge weight
Adjacency = Dict[SongId, Dict[SongId, float]]


class SongStatus(str, Enum):
    """Publication status of a song. Only ACTIVE songs are recomputed."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING = "PENDING"
    DELETED = "DELETED"
    # Any stored value not listed above
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class ListeningEvent:
    """One play of a song by a user. Any field may be missing in raw history."""

    user_id: Optional[UserId]
    song_id: Optional[SongId]
    listened_at: Optional[datetime]


@dataclass
class Song:
    """
    Song row as seen by the engine.

    Vectors are kept in their stored JSON form. ``content_vector`` is read only;
    the engine writes ``behavior_vector`` and ``stored_vector``, the latter being
    what recommendation queries score against.
    """

    id: SongId
    status: SongStatus = SongStatus.ACTIVE
    content_vector: Optional[str] = None
    behavior_vector: Optional[str] = None
    stored_vector: Optional[str] = None


@dataclass(frozen=True)
class RecomputeReport:
    """Outcome of one recompute run."""

    total_songs_scanned: int
    songs_updated: int
    cutoff: datetime


@dataclass(frozen=True)
class ImportReport:
    """Counters returned by a listening history import."""

    received: int
    created: int
    duplicates: int
    skipped: int
    processed_at: datetime
