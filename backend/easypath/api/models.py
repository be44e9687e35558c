"""
Pydantic data models for the easypath API.

These models define the shapes of requests and responses used by the
backend.  Keeping the schemas separate from the path compiler means the
core library stays free of web concerns; the small conversion helpers
at the bottom of this module translate between the two.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..services.path_builder import Node
from ..services.pose import Pose, from_rotation, to_rotation


class Vector3(BaseModel):
    """A 3D point or direction."""

    x: float
    y: float
    z: float


class Quaternion(BaseModel):
    """Unit quaternion orientation; the identity looks down -Z."""

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class PoseModel(BaseModel):
    """Position and orientation."""

    position: Vector3
    orientation: Quaternion = Field(default_factory=Quaternion)


class WaypointModel(BaseModel):
    """One waypoint as supplied by a client.

    The orientation may be given directly or derived from a ``lookAt``
    target.  When neither is present the identity orientation is used.
    """

    position: Vector3 = Field(..., description="Waypoint position")
    orientation: Optional[Quaternion] = Field(
        default=None, description="Waypoint orientation as a unit quaternion"
    )
    lookAt: Optional[Vector3] = Field(
        default=None,
        description="Point the waypoint faces; overrides orientation when given",
    )


class PathCreateRequest(BaseModel):
    """Request body for creating a new path."""

    name: str = Field(default="", description="Optional human readable name")
    waypoints: List[WaypointModel] = Field(
        ..., description="Ordered waypoints the path passes through"
    )
    compile: bool = Field(
        default=True,
        description="Compile the path immediately; uncompiled paths cannot be queried",
    )


class NodeModel(BaseModel):
    """One node of a compiled path."""

    index: int
    pose: PoseModel
    progress: float = Field(..., description="Normalised cumulative arc length in [0, 1]")
    length: float = Field(..., description="Cumulative arc length from the start")


class CurveSegmentModel(BaseModel):
    """Inclusive node index range produced by smoothing one corner."""

    start: int
    end: int


class PathSummary(BaseModel):
    """Short description of a stored path."""

    pathId: str
    name: str
    waypointCount: int
    compiled: bool
    createdAt: Any = None


class PathResponse(BaseModel):
    """Full description of a path."""

    pathId: str = Field(..., description="Unique identifier of the path")
    name: str = ""
    compiled: bool
    length: Optional[float] = Field(default=None, description="Total length once compiled")
    waypoints: List[PoseModel] = Field(default_factory=list)
    nodes: List[NodeModel] = Field(default_factory=list)
    curveSegments: List[CurveSegmentModel] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PoseResponse(BaseModel):
    """Result of a pose query."""

    pathId: str
    progress: float = Field(..., description="Progress the query resolved to (after clamping)")
    deviation: float = 0.0
    pose: PoseModel
    forward: Vector3
    right: Vector3


class MarkerModel(BaseModel):
    """Debug marker placed along a path."""

    label: str
    pose: PoseModel
    size: Vector3
    color: List[int]


class MarkersResponse(BaseModel):
    pathId: str
    count: int
    markers: List[MarkerModel]


# ---------------------------------------------------------------------------
# Conversions between API models and core types


class InvalidWaypointError(ValueError):
    """Raised for waypoints that cannot be turned into a pose."""


def vector_to_model(v) -> Vector3:
    return Vector3(x=v[0], y=v[1], z=v[2])


def pose_to_model(pose: Pose) -> PoseModel:
    w, x, y, z = pose.orientation
    return PoseModel(
        position=vector_to_model(pose.position),
        orientation=Quaternion(w=w, x=x, y=y, z=z),
    )


def waypoint_to_pose(waypoint: WaypointModel) -> Pose:
    """Convert a client waypoint to a :class:`Pose`.

    Raises:
        InvalidWaypointError: If the orientation quaternion has zero
            length or any value is not finite.
    """
    position = (waypoint.position.x, waypoint.position.y, waypoint.position.z)
    if not all(math.isfinite(c) for c in position):
        raise InvalidWaypointError("waypoint position must be finite")
    if waypoint.lookAt is not None:
        target = (waypoint.lookAt.x, waypoint.lookAt.y, waypoint.lookAt.z)
        return Pose.look_at(position, target)
    if waypoint.orientation is None:
        return Pose.from_position(position)
    q = waypoint.orientation
    norm = math.sqrt(q.w * q.w + q.x * q.x + q.y * q.y + q.z * q.z)
    if not math.isfinite(norm) or norm < 1e-12:
        raise InvalidWaypointError("waypoint orientation must be a non-zero quaternion")
    return Pose(position=position, orientation=from_rotation(to_rotation((q.w, q.x, q.y, q.z))))


def node_to_model(index: int, node: Node) -> NodeModel:
    return NodeModel(
        index=index,
        pose=pose_to_model(node.pose),
        progress=node.progress,
        length=node.length,
    )
