"""
Offline recompute of behavior embeddings from recent listening history.

A run loads the lookback window of listening events, builds the co-listen
graph, aggregates a behavior vector for every ACTIVE song with neighbors and
blends it into the song's stored vector. The whole run happens inside one
store transaction, so either every staged song is written or none is.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import numpy as np
from tqdm import tqdm

from .aggregate import aggregate_behavior_vector
from .blend import merge_vectors
from .codec import is_blank, parse_vector, serialize_vector
from .config import RecomputeConfig
from .errors import CodecError, RecomputeInProgressError
from .graph import adjacency_stats, build_adjacency
from .history import HistoryLoader, group_by_user
from .models import RecomputeReport, Song, SongId, SongStatus
from .store.base import EmbeddingStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BehaviorEmbeddingRecomputer:
    """Recomputes behavior and stored vectors for all ACTIVE songs."""

    def __init__(
        self,
        store: EmbeddingStore,
        config: Optional[RecomputeConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            store: Source of listening history and songs, and sink for updates
            config: Run tunables (defaults when omitted)
            clock: Returns the current time; the cutoff is derived from it. Naive
                values are read as UTC, the basis listening history is stored in
        """
        self.store = store
        self.config = config or RecomputeConfig()
        self.clock = clock
        self.history_loader = HistoryLoader(store)
        self._lock = threading.Lock()

    def recompute(self) -> RecomputeReport:
        """
        Run one recompute inside a single store transaction.

        Raises:
            RecomputeInProgressError: if another run on this instance is active
            StoreError: if any query or the final save fails
            CodecError: if a stored content vector is malformed and
                ``skip_malformed_vectors`` is off
        """
        if not self._lock.acquire(blocking=False):
            raise RecomputeInProgressError("A behavior embedding recompute is already running")
        try:
            with self.store.transaction():
                return self._recompute()
        finally:
            self._lock.release()

    def _recompute(self) -> RecomputeReport:
        cutoff = self.clock() - timedelta(days=self.config.lookback_days)
        events = self.history_loader.load_since(cutoff)
        if not events:
            logger.info("No new listening history since %s", cutoff)
            return RecomputeReport(total_songs_scanned=0, songs_updated=0, cutoff=cutoff)

        histories_by_user = group_by_user(events)
        adjacency = build_adjacency(histories_by_user, self.config)
        stats = adjacency_stats(adjacency)
        logger.info(
            "Co-listen graph: %d users, %d songs, %d edges (avg degree %.2f)",
            len(histories_by_user),
            stats["num_nodes"],
            stats["num_edges"],
            stats["avg_degree"],
        )

        songs = self.store.find_all_songs()
        content_vectors = self._parse_content_vectors(songs)

        to_update: List[Song] = []
        updated = 0

        for song in tqdm(songs, desc="Blending vectors", disable=not self.config.show_progress):
            if song.status != SongStatus.ACTIVE:
                continue

            content_vector = content_vectors.get(song.id)
            if content_vector is None or len(content_vector) == 0:
                continue

            neighbors = adjacency.get(song.id)
            if not neighbors:
                continue

            behavior_vector = aggregate_behavior_vector(
                neighbors, content_vectors, len(content_vector)
            )
            if behavior_vector is None:
                continue

            merged_vector = merge_vectors(
                content_vector, behavior_vector, self.config.behavior_weight
            )
            song.behavior_vector = serialize_vector(behavior_vector)
            song.stored_vector = serialize_vector(merged_vector)
            to_update.append(song)
            updated += 1

        if to_update:
            self.store.save_all_songs(to_update)

        logger.info(
            "Behavior embeddings updated for %d / %d songs (lookback %d days)",
            updated,
            len(songs),
            self.config.lookback_days,
        )
        return RecomputeReport(total_songs_scanned=len(songs), songs_updated=updated, cutoff=cutoff)

    def _parse_content_vectors(self, songs: List[Song]) -> Dict[SongId, np.ndarray]:
        content_vectors: Dict[SongId, np.ndarray] = {}
        for song in songs:
            if is_blank(song.content_vector):
                continue
            try:
                content_vectors[song.id] = parse_vector(song.content_vector)
            except CodecError as e:
                if not self.config.skip_malformed_vectors:
                    raise CodecError(f"Song {song.id} has a malformed content vector: {e}") from e
                logger.warning("Skipping song %s with malformed content vector: %s", song.id, e)
        return content_vectors
