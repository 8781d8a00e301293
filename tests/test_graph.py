"""Unit tests for co-listen graph construction."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from behavior_engine.config import RecomputeConfig
from behavior_engine.graph import (
    adjacency_stats,
    add_edge,
    build_adjacency,
    edge_weight,
    gap_minutes,
)
from behavior_engine.history import group_by_user
from behavior_engine.models import ListeningEvent

T0 = datetime(2024, 1, 1)


def play(user, song, minutes):
    """Event for ``user`` playing ``song`` ``minutes`` after t0."""
    listened_at = None if minutes is None else T0 + timedelta(minutes=minutes)
    return ListeningEvent(user_id=user, song_id=song, listened_at=listened_at)


class TestGapAndWeight:
    """Test cases for the gap and weight helpers."""

    def test_gap_truncates(self):
        """Test that partial minutes are truncated."""
        assert gap_minutes(T0, T0 + timedelta(minutes=10, seconds=59)) == 10

    def test_gap_is_absolute(self):
        """Test that gap ignores direction."""
        assert gap_minutes(T0 + timedelta(minutes=5, seconds=30), T0) == 5

    def test_weight_kernel(self):
        """Test 1 / (gap + 1) with a floor of 1 on the denominator."""
        assert edge_weight(0) == 1.0
        assert edge_weight(10) == pytest.approx(1 / 11)
        assert edge_weight(60) == pytest.approx(1 / 61)

    def test_add_edge_accumulates(self):
        """Test repeated edges sum their weights."""
        adjacency = {}
        add_edge(adjacency, "A", "B", 0.5)
        add_edge(adjacency, "A", "B", 0.25)

        assert adjacency == {"A": {"B": 0.75}}


class TestBuildAdjacency:
    """Test cases for build_adjacency."""

    def test_two_event_chain(self):
        """Test forward and reverse weights for a single pair ten minutes apart."""
        adjacency = build_adjacency({"U1": [play("U1", "A", 0), play("U1", "B", 10)]})

        assert adjacency["A"]["B"] == pytest.approx(1 / 11)
        assert adjacency["B"]["A"] == pytest.approx(0.75 / 11)

    def test_gap_too_large(self):
        """Test that plays more than 60 minutes apart produce no edge."""
        adjacency = build_adjacency({"U1": [play("U1", "A", 0), play("U1", "B", 61)]})

        assert adjacency == {}

    def test_gap_at_cap_is_kept(self):
        """Test that a gap of exactly 60 minutes still links the songs."""
        adjacency = build_adjacency({"U1": [play("U1", "A", 0), play("U1", "B", 60)]})

        assert adjacency["A"]["B"] == pytest.approx(1 / 61)

    def test_self_repeat(self):
        """Test that consecutive plays of the same song are ignored."""
        adjacency = build_adjacency({"U1": [play("U1", "A", 0), play("U1", "A", 5)]})

        assert adjacency == {}

    def test_unsorted_input(self):
        """Test that events are ordered by timestamp before pairing."""
        adjacency = build_adjacency(
            {"U1": [play("U1", "C", 10), play("U1", "A", 0), play("U1", "B", 5)]}
        )

        assert set(adjacency["A"]) == {"B"}
        assert set(adjacency["B"]) == {"A", "C"}
        assert set(adjacency["C"]) == {"B"}
        assert "C" not in adjacency["A"]

    def test_missing_timestamps_sort_last(self):
        """Test events without timestamps never form edges."""
        adjacency = build_adjacency(
            {"U1": [play("U1", "X", None), play("U1", "A", 0), play("U1", "B", 1)]}
        )

        assert "X" not in adjacency
        assert set(adjacency) == {"A", "B"}

    def test_weights_accumulate_across_users(self):
        """Test the same pair from two users sums."""
        adjacency = build_adjacency(
            {
                "U1": [play("U1", "A", 0), play("U1", "B", 0)],
                "U2": [play("U2", "A", 30), play("U2", "B", 39)],
            }
        )

        assert adjacency["A"]["B"] == pytest.approx(1.0 + 0.1)
        assert adjacency["B"]["A"] == pytest.approx(0.75 * 1.1)

    def test_users_are_not_linked(self):
        """Test plays by different users never form an edge."""
        adjacency = build_adjacency({"U1": [play("U1", "A", 0)], "U2": [play("U2", "B", 1)]})

        assert adjacency == {}

    def test_custom_config(self):
        """Test the gap cap and reverse factor come from the config."""
        config = RecomputeConfig(max_sequence_gap_minutes=5, reverse_edge_factor=0.5)
        adjacency = build_adjacency(
            {"U1": [play("U1", "A", 0), play("U1", "B", 4), play("U1", "C", 10)]}, config
        )

        assert adjacency["B"]["A"] == pytest.approx(0.5 / 5)
        assert "C" not in adjacency

    def test_random_sessions_invariants(self):
        """Test no self loops, positive weights and the session cap on random data."""
        rng = random.Random(42)
        events = [
            play(f"U{rng.randint(0, 5)}", f"S{rng.randint(0, 8)}", rng.randint(0, 600))
            for _ in range(300)
        ]
        by_user = group_by_user(events)
        adjacency = build_adjacency(by_user)

        # Pairs of songs some user played within 60 minutes of each other
        close_pairs = set()
        for histories in by_user.values():
            for a in histories:
                for b in histories:
                    if abs(a.listened_at - b.listened_at) <= timedelta(minutes=60, seconds=59):
                        close_pairs.add((a.song_id, b.song_id))

        assert adjacency
        for source, neighbors in adjacency.items():
            assert source not in neighbors
            for target, weight in neighbors.items():
                assert weight > 0
                assert (source, target) in close_pairs

    def test_order_independent(self):
        """Test that shuffling a user's events does not change the graph."""
        events = [play("U1", f"S{i % 4}", i * 7) for i in range(20)]
        shuffled = events[:]
        random.Random(3).shuffle(shuffled)

        assert build_adjacency({"U1": events}) == build_adjacency({"U1": shuffled})


class TestGroupByUser:
    """Test cases for grouping events."""

    def test_drops_missing_ids(self):
        """Test events without user or song are excluded."""
        grouped = group_by_user(
            [play("U1", "A", 0), play(None, "A", 1), play("U1", None, 2), play("U2", "B", 3)]
        )

        assert list(grouped) == ["U1", "U2"]
        assert [e.song_id for e in grouped["U1"]] == ["A"]

    def test_keeps_missing_timestamp(self):
        """Test timestamps are not filtered at grouping time."""
        grouped = group_by_user([play("U1", "A", None)])

        assert len(grouped["U1"]) == 1

    def test_mixed_naive_and_aware_timestamps(self):
        """Test aware timestamps are converted to naive UTC before building edges."""
        # Five minutes after A, written with a +07:00 offset
        local_time = T0 + timedelta(hours=7, minutes=5)
        aware = local_time.replace(tzinfo=timezone(timedelta(hours=7)))
        events = [play("U1", "A", 0), ListeningEvent("U1", "B", aware)]

        grouped = group_by_user(events)

        assert grouped["U1"][1].listened_at == T0 + timedelta(minutes=5)
        assert build_adjacency(grouped)["A"] == {"B": pytest.approx(1 / 6)}


class TestAdjacencyStats:
    """Test cases for adjacency_stats."""

    def test_stats(self):
        stats = adjacency_stats({"A": {"B": 1.0, "C": 0.5}, "B": {"A": 0.75}})

        assert stats["num_nodes"] == 2
        assert stats["num_edges"] == 3
        assert stats["total_weight"] == pytest.approx(2.25)
        assert stats["avg_degree"] == pytest.approx(1.5)

    def test_stats_empty(self):
        assert adjacency_stats({})["avg_degree"] == 0.0
