"""
Small 3D vector helpers.

Vectors are plain ``(x, y, z)`` tuples so that nodes and poses stay
hashable and cheap to copy.  The helpers mirror the handful of
operations the path compiler needs; anything heavier (array sampling,
least squares) is done with numpy in :mod:`.geometry`.
"""

from __future__ import annotations

import math
from typing import Tuple

Vec3 = Tuple[float, float, float]

# Lengths below this are treated as zero when normalising.
EPSILON: float = 1e-12


def dot(a: Vec3, b: Vec3) -> float:
    """Compute the dot product of two 3D vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        The scalar dot product ``a·b``.
    """
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Vec3, b: Vec3) -> Vec3:
    """Compute the cross product ``a × b``."""
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def sub(a: Vec3, b: Vec3) -> Vec3:
    """Subtract two 3D vectors (a - b)."""
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def add(a: Vec3, b: Vec3) -> Vec3:
    """Add two 3D vectors."""
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def scale(a: Vec3, s: float) -> Vec3:
    """Scale a 3D vector by ``s``."""
    return (a[0] * s, a[1] * s, a[2] * s)


def length(a: Vec3) -> float:
    """Euclidean length of ``a``."""
    return math.sqrt(dot(a, a))


def distance(a: Vec3, b: Vec3) -> float:
    """Euclidean distance between two points."""
    return length(sub(b, a))


def normalize(a: Vec3) -> Vec3:
    """Return ``a`` scaled to unit length.

    A zero vector has no direction; in that case a vector of NaNs is
    returned so that callers computing angles from it see ``NaN``
    rather than a silently wrong direction.
    """
    n = length(a)
    if n < EPSILON:
        return (math.nan, math.nan, math.nan)
    return (a[0] / n, a[1] / n, a[2] / n)


def lerp(a: Vec3, b: Vec3, alpha: float) -> Vec3:
    """Linearly interpolate between ``a`` and ``b``."""
    return (
        a[0] + (b[0] - a[0]) * alpha,
        a[1] + (b[1] - a[1]) * alpha,
        a[2] + (b[2] - a[2]) * alpha,
    )


def as_vec3(values) -> Vec3:
    """Coerce any 3-element sequence (list, tuple, numpy array) to a ``Vec3``."""
    x, y, z = values
    return (float(x), float(y), float(z))
