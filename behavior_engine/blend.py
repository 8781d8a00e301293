"""Linear blend of content and behavior vectors."""

from typing import Optional, Sequence

import numpy as np


def merge_vectors(
    content_vector: Sequence[float],
    behavior_vector: Optional[Sequence[float]],
    behavior_weight: float = 0.35,
) -> np.ndarray:
    """
    Blend a behavior vector into a content vector.

    The result always has the content vector's length. Missing behavior
    components count as 0 and extra ones are dropped.
    """
    content = np.asarray(content_vector, dtype=np.float64)
    if behavior_vector is None or len(behavior_vector) == 0:
        return content.copy()

    behavior = np.zeros_like(content)
    overlap = min(len(content), len(behavior_vector))
    behavior[:overlap] = np.asarray(behavior_vector, dtype=np.float64)[:overlap]

    content_weight = 1.0 - behavior_weight
    return content_weight * content + behavior_weight * behavior
