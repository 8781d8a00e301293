"""Behavior vector from a song's weighted 1-hop neighborhood."""

from typing import Mapping, Optional

import numpy as np

from .models import SongId


def aggregate_behavior_vector(
    neighbors: Mapping[SongId, Optional[float]],
    content_vectors: Mapping[SongId, np.ndarray],
    vector_length: int,
) -> Optional[np.ndarray]:
    """
    Weighted average of the neighbors' content vectors.

    Every neighbor weight counts toward the normalizer, including neighbors
    whose content vector is missing or has the wrong length. Those neighbors
    add nothing to the sum, so sparsely covered neighborhoods yield a shorter
    vector rather than a renormalized one.

    Args:
        neighbors: Neighbor song id -> edge weight
        content_vectors: Song id -> parsed content vector
        vector_length: Length of the target song's content vector

    Returns:
        Behavior vector of ``vector_length``, or None when the total weight is not positive
    """
    total_weight = sum(weight for weight in neighbors.values() if weight is not None)
    if total_weight <= 0.0:
        return None

    aggregate = np.zeros(vector_length, dtype=np.float64)
    for neighbor_id, weight in neighbors.items():
        if weight is None:
            continue
        neighbor_vector = content_vectors.get(neighbor_id)
        if neighbor_vector is None or len(neighbor_vector) != vector_length:
            continue
        aggregate += neighbor_vector * (weight / total_weight)

    return aggregate
