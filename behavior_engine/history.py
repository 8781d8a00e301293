"""Loading and grouping of recent listening history."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List

from .models import ListeningEvent, UserId, to_naive_utc
from .store.base import EmbeddingStore

logger = logging.getLogger(__name__)


class HistoryLoader:
    """Reads listening events newer than a cutoff from the store."""

    def __init__(self, store: EmbeddingStore):
        self.store = store

    def load_since(self, cutoff: datetime) -> List[ListeningEvent]:
        """
        Fetch events with ``listened_at`` after ``cutoff``.

        The result is neither sorted nor deduplicated. Store failures
        propagate as ``StoreError``.
        """
        events = self.store.find_listening_history_since(cutoff)
        logger.info("Loaded %d listening events since %s", len(events), cutoff)
        return events


def group_by_user(events: Iterable[ListeningEvent]) -> Dict[UserId, List[ListeningEvent]]:
    """
    Group events by user, dropping events without a user or song.

    Users and their events keep the order in which they were encountered.
    Aware timestamps are converted to naive UTC so one user's events always
    compare.
    """
    histories_by_user: Dict[UserId, List[ListeningEvent]] = {}
    for event in events:
        if event.user_id is None or event.song_id is None:
            continue
        if event.listened_at is not None and event.listened_at.tzinfo is not None:
            event = replace(event, listened_at=to_naive_utc(event.listened_at))
        histories_by_user.setdefault(event.user_id, []).append(event)
    return histories_by_user
