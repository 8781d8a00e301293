"""
Co-listen graph built from per-user listening sequences.

Consecutive plays of different songs by the same user within one session
produce a pair of directed edges:
- forward (earlier -> later) with weight 1 / (gap_minutes + 1)
- reverse (later -> earlier) with the forward weight scaled down

Weights accumulate across users and repeated pairs.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional

from .config import RecomputeConfig
from .models import Adjacency, ListeningEvent, SongId, UserId

_ONE_MINUTE = timedelta(minutes=1)


def _sort_key(event: ListeningEvent):
    # Missing timestamps sort last
    return (event.listened_at is None, event.listened_at or datetime.min)


def gap_minutes(earlier: datetime, later: datetime) -> int:
    """Absolute gap between two timestamps in whole minutes, truncated."""
    return abs(later - earlier) // _ONE_MINUTE


def edge_weight(minutes: int) -> float:
    """Decaying weight for a pair of plays ``minutes`` apart."""
    return 1.0 / max(1.0, minutes + 1.0)


def add_edge(adjacency: Adjacency, source: SongId, target: SongId, weight: float) -> None:
    """Add ``weight`` to the edge ``source -> target``, creating it if needed."""
    neighbors = adjacency.setdefault(source, {})
    neighbors[target] = neighbors.get(target, 0.0) + weight


def build_adjacency(
    histories_by_user: Mapping[UserId, List[ListeningEvent]],
    config: Optional[RecomputeConfig] = None,
) -> Adjacency:
    """
    Build the weighted co-listen adjacency.

    Args:
        histories_by_user: Events grouped by user as ``group_by_user`` returns them:
                no null user or song ids, naive UTC timestamps
        config: Gap cap and reverse edge factor (defaults when omitted)

    Returns:
        Mapping song -> neighbor song -> accumulated weight, without self loops
    """
    config = config or RecomputeConfig()
    adjacency: Adjacency = {}

    for histories in histories_by_user.values():
        ordered = sorted(histories, key=_sort_key)

        for current, following in zip(ordered, ordered[1:]):
            if current.song_id is None or following.song_id is None:
                continue
            if current.song_id == following.song_id:
                continue
            if current.listened_at is None or following.listened_at is None:
                continue

            minutes = gap_minutes(current.listened_at, following.listened_at)
            if minutes > config.max_sequence_gap_minutes:
                continue

            weight = edge_weight(minutes)
            add_edge(adjacency, current.song_id, following.song_id, weight)
            add_edge(
                adjacency,
                following.song_id,
                current.song_id,
                weight * config.reverse_edge_factor,
            )

    return adjacency


def adjacency_stats(adjacency: Adjacency) -> Dict[str, float]:
    """Summary counts used for logging."""
    num_edges = sum(len(neighbors) for neighbors in adjacency.values())
    total_weight = sum(sum(neighbors.values()) for neighbors in adjacency.values())
    return {
        "num_nodes": len(adjacency),
        "num_edges": num_edges,
        "total_weight": total_weight,
        "avg_degree": num_edges / len(adjacency) if adjacency else 0.0,
    }
