"""
Compilation pipeline for waypoint paths.

Compiling a path runs three stages once, in order:

1. ``build_nodes`` turns the waypoints into node poses.  Pairs of
   waypoints that already point at each other are joined by a straight
   segment; sharper turns whose forward lines intersect are smoothed by
   sampling a quadratic Bezier curve through the intersection point.
   The stage also returns the total path length.
2. ``assign_progress`` annotates every node with its normalised
   cumulative arc length (``progress`` in ``[0, 1]``) and raw cumulative
   length, and finds the smallest progress step between two nodes.
3. ``build_index`` builds the normalised index table: one node index per
   progress bucket of that smallest step, so a query can jump straight
   to the right segment instead of searching the node list.

Each stage returns new immutable records; nothing produced by an
earlier stage is modified afterwards.

Set the ``PATH_DEBUG`` environment variable to log every emitted node.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .errors import DegenerateGeometryError
from .geometry import intersect, sample_bezier
from .pose import Pose, angle_between
from .vectors import distance, length, normalize, sub

logger = logging.getLogger(__name__)

# Turns of at most this many degrees are treated as straight.
ANGLE_OFFSET_DEGREES: float = 2.0
# Nodes emitted per smoothed corner, at curve parameters k / BEZIER_STEPS.
BEZIER_STEPS: int = 10
# Upper bound on the normalised index table.  A path whose shortest
# segment is tiny compared to its total length would otherwise allocate
# an enormous table.
MAX_INDEX_ENTRIES: int = int(os.getenv("EASYPATH_MAX_INDEX_ENTRIES", "5000000"))


@dataclass(frozen=True)
class Node:
    """One point of a compiled path.

    Attributes:
        pose: Position and orientation of the node.
        progress: Cumulative arc length from the start, normalised to ``[0, 1]``.
        length: Raw cumulative arc length from the start.
    """

    pose: Pose
    progress: float
    length: float


@dataclass(frozen=True)
class CurveSegment:
    """Inclusive range of node indices produced by smoothing one corner."""

    start: int
    end: int


@dataclass(frozen=True)
class NodeBuildResult:
    poses: Tuple[Pose, ...]
    length: float
    curve_segments: Tuple[CurveSegment, ...]


def _debug_enabled() -> bool:
    return bool(os.getenv("PATH_DEBUG"))


def build_nodes(waypoints: Sequence[Pose]) -> NodeBuildResult:
    """Convert waypoints into node poses and measure the path.

    For every waypoint except the last the pair ``(current, next)`` is
    classified.  The pair is straight when the direction to ``next`` is
    within :data:`ANGLE_OFFSET_DEGREES` of ``current``'s forward vector,
    when the forward lines of both waypoints do not intersect ahead of
    them, or when the angle is undefined (coincident positions).  A
    straight pair emits a single node at ``current`` looking at
    ``next``.  Otherwise the corner is smoothed with the quadratic
    Bezier ``current -> intersection -> next`` sampled at
    ``0, 0.1, …, 1``; every sample but the last emits a node looking at
    the sample after it, ten nodes per corner, except that the first
    node keeps ``current``'s original pose.  The curve's end point is
    not emitted; it is the node emitted for ``next``.  The last waypoint
    is emitted unchanged as the terminal node.

    The total length adds, for every emitted node, the distance to the
    node that follows it, so it always equals the length of the node
    polyline.

    Args:
        waypoints: Ordered oriented waypoints.

    Returns:
        A :class:`NodeBuildResult` with the node poses, the total length
        and the index ranges of the smoothed corners.
    """
    angle_offset = math.radians(ANGLE_OFFSET_DEGREES)
    params = [k / BEZIER_STEPS for k in range(BEZIER_STEPS + 1)]
    debug = _debug_enabled()

    poses: List[Pose] = []
    segments: List[CurveSegment] = []
    total_length = 0.0
    last = len(waypoints) - 1

    for index, current in enumerate(waypoints):
        if index == last:
            poses.append(current)
            break
        nxt = waypoints[index + 1]

        delta = sub(nxt.position, current.position)
        angle = angle_between(normalize(delta), current.forward_vector)
        intersection = intersect(current, nxt, forward_only=True)

        if math.isnan(angle) or abs(angle) <= angle_offset or intersection is None:
            if debug:
                logger.debug(
                    "build_nodes: pair %d straight (angle=%.4f intersection=%s)",
                    index,
                    angle,
                    intersection,
                )
            total_length += length(delta)
            poses.append(Pose.look_at(current.position, nxt.position))
            continue

        samples = sample_bezier(current.position, intersection, nxt.position, params)
        start = len(poses)
        for k in range(BEZIER_STEPS):
            position = samples[k]
            following = nxt.position if k + 1 == BEZIER_STEPS else samples[k + 1]
            total_length += distance(position, following)
            if k == 0:
                poses.append(current)
            else:
                poses.append(Pose.look_at(position, following))
        segments.append(CurveSegment(start=start, end=len(poses) - 1))
        if debug:
            logger.debug(
                "build_nodes: pair %d smoothed through %s into nodes %d..%d",
                index,
                intersection,
                start,
                len(poses) - 1,
            )

    return NodeBuildResult(
        poses=tuple(poses),
        length=total_length,
        curve_segments=tuple(segments),
    )


def assign_progress(poses: Sequence[Pose], total_length: float) -> Tuple[Tuple[Node, ...], float]:
    """Annotate node poses with normalised and raw cumulative arc length.

    Every step between consecutive nodes contributes
    ``distance / total_length`` to the running progress, which is stored
    on the later node.  The last node's progress is forced to exactly 1.
    A lone node is a terminal node and therefore also has progress 1.

    Returns:
        ``(nodes, min_progress_delta)`` where ``min_progress_delta`` is
        the smallest per-step progress (1 when there are no steps).

    Raises:
        DegenerateGeometryError: If there are no nodes, or two
            consecutive nodes share a position so that a step has zero
            progress.
    """
    count = len(poses)
    if count == 0:
        raise DegenerateGeometryError("a path needs at least one waypoint")
    if count == 1:
        return (Node(pose=poses[0], progress=1.0, length=0.0),), 1.0
    if total_length <= 0.0:
        raise DegenerateGeometryError("path has zero length; waypoints share a single position")

    nodes: List[Node] = [Node(pose=poses[0], progress=0.0, length=0.0)]
    total_progress = 0.0
    running_length = 0.0
    min_progress_delta = 1.0
    for index in range(count - 1):
        step = distance(poses[index].position, poses[index + 1].position)
        progress = step / total_length
        min_progress_delta = min(min_progress_delta, progress)
        total_progress += progress
        running_length += step
        node_progress = 1.0 if index + 1 == count - 1 else min(total_progress, 1.0)
        nodes.append(Node(pose=poses[index + 1], progress=node_progress, length=running_length))

    if min_progress_delta <= 0.0:
        raise DegenerateGeometryError(
            "minimum progress delta must be greater than 0; consecutive waypoints overlap"
        )
    return tuple(nodes), min_progress_delta


def build_index(nodes: Sequence[Node], min_progress_delta: float) -> np.ndarray:
    """Build the normalised index table.

    The table samples progress at ``0, δ, 2δ, …`` (clamped to 1, with 1
    itself always included) where ``δ`` is ``min_progress_delta``.  Entry
    ``i`` holds the index of the last node whose progress does not
    exceed the ``i``-th sample, so
    ``nodes[table[i]].progress <= i*δ < nodes[table[i] + 1].progress``
    holds for every entry but the final one, which points at the last
    node.

    Because ``δ`` is the smallest step between nodes the table always
    resolves the shortest segment, at the cost of size when node spacing
    is very uneven.

    Returns:
        A read-only ``int64`` array of node indices.

    Raises:
        DegenerateGeometryError: If ``δ`` is not positive or the table
            would exceed :data:`MAX_INDEX_ENTRIES`.
    """
    if len(nodes) < 2:
        table = np.zeros(1, dtype=np.int64)
        table.setflags(write=False)
        return table
    if not min_progress_delta > 0.0:
        raise DegenerateGeometryError("minimum progress delta must be greater than 0")

    steps = int(math.floor(1.0 / min_progress_delta)) + 2
    if steps + 1 > MAX_INDEX_ENTRIES:
        raise DegenerateGeometryError(
            f"index table would need {steps + 1} entries (limit {MAX_INDEX_ENTRIES}); "
            "node spacing is too uneven"
        )

    # Repeated addition, exactly as a running total would accumulate it.
    samples = np.concatenate(([0.0], np.cumsum(np.full(steps, min_progress_delta))))
    np.clip(samples, 0.0, 1.0, out=samples)
    reached = np.flatnonzero(samples >= 1.0)
    if reached.size:
        samples = samples[: reached[0] + 1]
    else:
        samples = np.append(samples, 1.0)

    progress = np.fromiter((n.progress for n in nodes), dtype=float, count=len(nodes))
    table = np.searchsorted(progress, samples, side="right") - 1
    table = np.clip(table, 0, len(nodes) - 1).astype(np.int64)
    table.setflags(write=False)
    return table
