"""Shared fixtures for behavior engine tests."""

from datetime import datetime, timedelta

import pytest

from behavior_engine import BehaviorEmbeddingRecomputer, RecomputeConfig, SQLiteStore

T0 = datetime(2024, 1, 1, 0, 0, 0)


@pytest.fixture
def t0():
    """Reference timestamp used by the end-to-end scenarios."""
    return T0


@pytest.fixture
def store(tmp_path):
    """Empty SQLite store in a temporary directory."""
    sqlite_store = SQLiteStore(tmp_path / "behavior.db")
    yield sqlite_store
    sqlite_store.close()


@pytest.fixture
def make_recomputer():
    """Factory for recomputers with a fixed clock (default t0 + 1h)."""

    def _make(store, now=T0 + timedelta(hours=1), **config_values):
        return BehaviorEmbeddingRecomputer(
            store, RecomputeConfig(**config_values), clock=lambda: now
        )

    return _make
