"""Behavior Engine - co-listen behavior embeddings blended into song vectors."""

from .aggregate import aggregate_behavior_vector
from .blend import merge_vectors
from .codec import parse_vector, serialize_vector
from .config import RecomputeConfig, SchedulerConfig
from .errors import (
    BehaviorEngineError,
    CodecError,
    ConfigError,
    RecomputeInProgressError,
    StoreError,
)
from .graph import build_adjacency
from .history import HistoryLoader, group_by_user
from .models import ImportReport, ListeningEvent, RecomputeReport, Song, SongStatus
from .recompute import BehaviorEmbeddingRecomputer
from .scheduler import BehaviorEmbeddingScheduler
from .store import EmbeddingStore, SQLiteStore

__version__ = "0.1.0"

__all__ = [
    # Orchestration
    "BehaviorEmbeddingRecomputer",
    "BehaviorEmbeddingScheduler",
    # Pipeline stages
    "HistoryLoader",
    "group_by_user",
    "build_adjacency",
    "aggregate_behavior_vector",
    "merge_vectors",
    "parse_vector",
    "serialize_vector",
    # Configuration
    "RecomputeConfig",
    "SchedulerConfig",
    # Records
    "ListeningEvent",
    "Song",
    "SongStatus",
    "RecomputeReport",
    "ImportReport",
    # Storage
    "EmbeddingStore",
    "SQLiteStore",
    # Errors
    "BehaviorEngineError",
    "CodecError",
    "ConfigError",
    "RecomputeInProgressError",
    "StoreError",
]
