"""Store implementations for the behavior embedding engine."""

from .base import EmbeddingStore
from .sqlite_store import SQLiteStore

__all__ = ["EmbeddingStore", "SQLiteStore"]
