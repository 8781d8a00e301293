"""Store contract consumed by the recompute job."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Iterable, List

from ..models import ImportReport, ListeningEvent, Song


class EmbeddingStore(ABC):
    """
    Persistence boundary for listening history and song vectors.

    Implementations raise ``StoreError`` for any failed query or write.
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """
        Scope in which reads and writes commit together.

        Commits when the block exits normally and rolls back when it raises.
        """

    @abstractmethod
    def find_listening_history_since(self, cutoff: datetime) -> List[ListeningEvent]:
        """Return events with ``listened_at`` strictly after ``cutoff``."""

    @abstractmethod
    def find_all_songs(self) -> List[Song]:
        """Return every song regardless of status."""

    @abstractmethod
    def save_all_songs(self, songs: Iterable[Song]) -> None:
        """Write the behavior and stored vectors of ``songs`` in one batch."""

    @abstractmethod
    def add_songs(self, songs: Iterable[Song]) -> None:
        """Insert or replace song rows."""

    @abstractmethod
    def import_listening_history(self, events: Iterable[ListeningEvent]) -> ImportReport:
        """Append listening events, skipping incomplete and duplicate ones."""

    def close(self) -> None:
        """Release any held resources."""
