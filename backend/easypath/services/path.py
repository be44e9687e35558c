"""
Compiled waypoint paths.

:class:`CompiledPath` owns a copy of the caller's waypoints and, once
:meth:`CompiledPath.compile` has run, the compiled nodes, the total
length and the normalised index table.  Queries map a normalised
progress value (or an absolute distance) to an interpolated pose:

    path = CompiledPath(waypoints).compile()
    pose = path.calculate_pose(0.25)
    pose = path.calculate_pose_by_length(12.0, deviation=1.5)

Compilation is all-or-nothing: either every table is built and the
path becomes queryable, or an exception is raised and the instance
stays uncompiled.  A compiled path is never modified again, so it can
be read from several threads once compilation has finished.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Iterator, Optional, Tuple

import numpy as np

from .errors import NotCompiledError, ZeroLengthError
from .path_builder import (
    CurveSegment,
    Node,
    assign_progress,
    build_index,
    build_nodes,
)
from .pose import Pose

logger = logging.getLogger(__name__)


class CompiledPath:
    """A smoothed, arc-length parameterised path through oriented waypoints."""

    def __init__(self, waypoints: Iterable[Pose]) -> None:
        self._waypoints: Tuple[Pose, ...] = tuple(waypoints)
        self._compiled = False
        self._nodes: Tuple[Node, ...] = ()
        self._length = 0.0
        self._min_progress_delta = 0.0
        self._table: Optional[np.ndarray] = None
        self._curve_segments: Tuple[CurveSegment, ...] = ()

    def __repr__(self) -> str:
        state = f"nodes={len(self._nodes)} length={self._length:.6g}" if self._compiled else "uncompiled"
        return f"<CompiledPath waypoints={len(self._waypoints)} {state}>"

    # ------------------------------------------------------------------
    # Lifecycle

    @property
    def is_compiled(self) -> bool:
        return self._compiled

    def compile(self) -> "CompiledPath":
        """Build nodes, progress and the index table.

        Calling it again on a compiled path does nothing.

        Returns:
            ``self``, so construction and compilation can be chained.

        Raises:
            DegenerateGeometryError: If there are no waypoints or
                consecutive waypoints overlap.
        """
        if self._compiled:
            return self
        built = build_nodes(self._waypoints)
        nodes, min_delta = assign_progress(built.poses, built.length)
        table = build_index(nodes, min_delta)

        self._nodes = nodes
        self._length = built.length
        self._min_progress_delta = min_delta
        self._table = table
        self._curve_segments = built.curve_segments
        self._compiled = True
        logger.debug(
            "Compiled path: waypoints=%d nodes=%d curves=%d length=%.6g index=%d",
            len(self._waypoints),
            len(nodes),
            len(built.curve_segments),
            built.length,
            len(table),
        )
        return self

    def clone(self) -> "CompiledPath":
        """Return an independent copy, compiled if this path is."""
        other = CompiledPath(self._waypoints)
        if self._compiled:
            table = self._table.copy()
            table.setflags(write=False)
            other._nodes = tuple(self._nodes)
            other._length = self._length
            other._min_progress_delta = self._min_progress_delta
            other._table = table
            other._curve_segments = tuple(self._curve_segments)
            other._compiled = True
        return other

    def _require_compiled(self, operation: str) -> None:
        if not self._compiled:
            raise NotCompiledError(f"{operation} requires a compiled path; call compile() first")

    # ------------------------------------------------------------------
    # Accessors

    def get_waypoints(self) -> Tuple[Pose, ...]:
        return self._waypoints

    def get_length(self) -> float:
        self._require_compiled("get_length")
        return self._length

    def get_nodes(self) -> Tuple[Node, ...]:
        self._require_compiled("get_nodes")
        return self._nodes

    def get_index_table(self) -> np.ndarray:
        self._require_compiled("get_index_table")
        return self._table

    def get_curve_segments(self) -> Tuple[CurveSegment, ...]:
        self._require_compiled("get_curve_segments")
        return self._curve_segments

    def get_min_progress_delta(self) -> float:
        self._require_compiled("get_min_progress_delta")
        return self._min_progress_delta

    # ------------------------------------------------------------------
    # Queries

    def locate(self, t: float) -> Tuple[int, float]:
        """Resolve progress ``t`` to a node index and a local segment parameter.

        ``t`` is clamped to ``[0, 1]``.  The index table gives a starting
        node in constant time; a short walk then settles on the node
        whose segment contains ``t``, so the local parameter is always
        within ``[0, 1]``.

        Returns:
            ``(index, local_t)``.  For ``t == 1`` (and for single-node
            paths) the index is the last node and ``local_t`` is 1.
        """
        self._require_compiled("locate")
        t = float(t)
        if math.isnan(t):
            raise ValueError("progress must be a number, got NaN")
        t = min(max(t, 0.0), 1.0)

        nodes = self._nodes
        last = len(nodes) - 1
        if last == 0 or t == 1.0:
            return last, 1.0

        size = len(self._table)
        idx = min(int(math.floor(t * size)), size - 1)
        if idx + 1 == size:
            # t < 1 here, so the final entry (the last node) is not usable.
            idx -= 1
        link = min(int(self._table[idx]), last - 1)

        while link + 1 < last and t >= nodes[link + 1].progress:
            link += 1
        while link > 0 and t < nodes[link].progress:
            link -= 1

        node = nodes[link]
        span = nodes[link + 1].progress - node.progress
        local_t = (t - node.progress) / span
        return link, min(max(local_t, 0.0), 1.0)

    def calculate_pose(self, t: float, deviation: float = 0.0) -> Pose:
        """Pose at normalised progress ``t``.

        Args:
            t: Progress along the path; values outside ``[0, 1]`` are clamped.
            deviation: Signed sideways offset along the pose's right vector.

        Returns:
            The interpolated (and optionally offset) pose.
        """
        link, local_t = self.locate(t)
        node = self._nodes[link]
        if link == len(self._nodes) - 1:
            pose = node.pose
        else:
            pose = node.pose.lerp(self._nodes[link + 1].pose, local_t)
        return pose.offset(deviation)

    def calculate_pose_by_length(self, distance: float, deviation: float = 0.0) -> Pose:
        """Pose at ``distance`` units from the start of the path.

        Raises:
            ZeroLengthError: If the path has zero length.
        """
        self._require_compiled("calculate_pose_by_length")
        if self._length <= 0.0:
            raise ZeroLengthError("cannot query by length on a path of zero length")
        return self.calculate_pose(distance / self._length, deviation)


def walk(path: CompiledPath, step: float, deviation: float = 0.0) -> Iterator[Pose]:
    """Yield poses every ``step`` units of distance along ``path``.

    Starts at distance 0 and always finishes with the pose at the end of
    the path, which makes it convenient for moving an object along the
    path one frame at a time.
    """
    if step <= 0:
        raise ValueError("step must be positive")
    total = path.get_length()
    if total <= 0.0:
        raise ZeroLengthError("cannot walk a path of zero length")
    travelled = 0.0
    while travelled < total:
        yield path.calculate_pose_by_length(travelled, deviation)
        travelled += step
    yield path.calculate_pose(1.0, deviation)
