# MIT License (see LICENSE)
"""
Array conversion helpers.

Vectors are numpy float64 arrays of shape (2,); point sets are arrays of
shape (N, 2).
"""
from __future__ import annotations
import numpy as np


def f64(x) -> np.ndarray:
    """
    Convert any array-like to a float64 numpy array.

    Used throughout the codebase so tuples and lists are accepted for
    positions, velocities and wire points.
    """
    return np.array(x, dtype=np.float64)

