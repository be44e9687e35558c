"""
Geometric primitives consumed by the path compiler.

Two pure helpers live here:

- ``intersect(pose_a, pose_b, forward_only)`` – intersection point of
  the forward lines of two oriented waypoints, or ``None`` when the
  lines are parallel, skew or (with ``forward_only``) meet behind one
  of the poses.
- ``bezier_point(p0, p1, p2, t)`` – a point on the quadratic Bezier
  curve defined by three control points.

``sample_bezier`` evaluates the same curve at many parameters at once
using numpy; the node builder uses it to sample smoothed corners.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import numpy as np

from .pose import Pose
from .vectors import Vec3, as_vec3, distance

logger = logging.getLogger(__name__)

# Two forward lines whose closest points are further apart than this
# (relative to the waypoint spacing, with a floor of 1 unit) are
# considered skew and therefore not intersecting.
INTERSECTION_TOLERANCE: float = 1e-6

# Lines whose direction cross product is below this magnitude are
# treated as parallel.
PARALLEL_TOLERANCE: float = 1e-9


def intersect(pose_a: Pose, pose_b: Pose, forward_only: bool = True) -> Optional[Vec3]:
    """Intersect the forward lines of two poses.

    Each pose defines the line ``position + s * forward_vector``.  The
    closest points on both lines are found by least squares; when they
    coincide (within :data:`INTERSECTION_TOLERANCE`) their midpoint is
    the intersection.

    Args:
        pose_a: First oriented waypoint.
        pose_b: Second oriented waypoint.
        forward_only: When True the intersection must lie in front of
            both poses (non-negative ray parameter on each line); points
            reached only by extending a line backwards are rejected.
            The second pose must therefore face back towards the
            corner: a waypoint that already faces onward along the next
            leg (e.g. ``(0,0,0)`` facing ``+X`` then ``(10,0,10)`` facing
            ``+Z``) meets the first ray behind itself, and the node
            builder joins such a pair with a straight segment.

    Returns:
        The intersection point, or ``None`` when there is none.
    """
    p1 = np.asarray(pose_a.position, dtype=float)
    p2 = np.asarray(pose_b.position, dtype=float)
    d1 = np.asarray(pose_a.forward_vector, dtype=float)
    d2 = np.asarray(pose_b.forward_vector, dtype=float)

    if np.linalg.norm(np.cross(d1, d2)) < PARALLEL_TOLERANCE:
        return None

    # Solve p1 + s*d1 = p2 + u*d2 in the least squares sense.
    system = np.column_stack((d1, -d2))
    (s, u), *_ = np.linalg.lstsq(system, p2 - p1, rcond=None)
    c1 = p1 + s * d1
    c2 = p2 + u * d2

    spacing = max(1.0, float(np.linalg.norm(p2 - p1)))
    gap = float(np.linalg.norm(c1 - c2))
    if gap > INTERSECTION_TOLERANCE * spacing:
        logger.debug("intersect: forward lines are skew (gap=%.6g)", gap)
        return None
    if forward_only and (s < 0.0 or u < 0.0):
        return None
    return as_vec3((c1 + c2) / 2.0)


def bezier_point(p0: Vec3, p1: Vec3, p2: Vec3, t: float) -> Vec3:
    """Evaluate the quadratic Bezier curve ``p0 -> p1 -> p2`` at ``t``."""
    a = (1.0 - t) * (1.0 - t)
    b = 2.0 * (1.0 - t) * t
    c = t * t
    return (
        a * p0[0] + b * p1[0] + c * p2[0],
        a * p0[1] + b * p1[1] + c * p2[1],
        a * p0[2] + b * p1[2] + c * p2[2],
    )


def sample_bezier(p0: Vec3, p1: Vec3, p2: Vec3, params: Iterable[float]) -> List[Vec3]:
    """Evaluate the quadratic Bezier curve at every parameter in ``params``.

    Returns:
        One point per parameter, in the order given.
    """
    t = np.asarray(list(params), dtype=float)[:, None]
    ctrl = np.asarray([p0, p1, p2], dtype=float)
    pts = (1.0 - t) ** 2 * ctrl[0] + 2.0 * (1.0 - t) * t * ctrl[1] + t ** 2 * ctrl[2]
    return [as_vec3(row) for row in pts]


def polyline_length(points: Iterable[Vec3]) -> float:
    """Sum of the distances between consecutive points."""
    total = 0.0
    prev: Optional[Vec3] = None
    for p in points:
        if prev is not None:
            total += distance(prev, p)
        prev = p
    return total
