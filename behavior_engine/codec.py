"""Conversion between stored vector strings and numpy arrays."""

import json
import math
import numbers
from typing import Optional, Sequence

import numpy as np

from .errors import CodecError


def is_blank(text: Optional[str]) -> bool:
    """True when no vector is stored."""
    return text is None or not text.strip()


def parse_vector(text: str) -> np.ndarray:
    """
    Decode a stored vector.

    Args:
        text: JSON array of numbers, e.g. ``"[0.1, -0.2, 0.3]"``

    Returns:
        1-D float64 array

    Raises:
        CodecError: if the text is not a flat JSON array of finite numbers
    """
    if text is None:
        raise CodecError("Cannot parse a missing vector")

    try:
        values = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise CodecError(f"Vector is not valid JSON: {e}") from e

    if not isinstance(values, list):
        raise CodecError(f"Vector must be a JSON array, got {type(values).__name__}")

    components = []
    for i, value in enumerate(values):
        # bool is a subclass of int but never a valid component
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise CodecError(f"Vector component {i} is not a number: {value!r}")
        try:
            component = float(value)
        except OverflowError as e:
            raise CodecError(f"Vector component {i} is too large for a float") from e
        if not math.isfinite(component):
            raise CodecError(f"Vector component {i} is not finite: {value!r}")
        components.append(component)

    return np.asarray(components, dtype=np.float64)


def serialize_vector(vector: Sequence[float]) -> str:
    """Encode a vector as a JSON array that ``parse_vector`` reads back exactly."""
    values = [float(v) for v in np.asarray(vector, dtype=np.float64).ravel()]
    for i, value in enumerate(values):
        if not math.isfinite(value):
            raise CodecError(f"Cannot serialize non-finite component {i}: {value!r}")
    return json.dumps(values)
