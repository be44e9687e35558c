"""
Oriented points in 3D space.

A :class:`Pose` couples a position with an orientation stored as a unit
quaternion ``(w, x, y, z)``.  The orientation follows the usual camera
convention used by the flythrough viewer: the forward (look) direction
is the local ``-Z`` axis, the right direction is local ``+X`` and up is
local ``+Y``.  Waypoints supplied by callers and the nodes of a
compiled path are both poses.

Rotation math is delegated to :class:`scipy.spatial.transform.Rotation`;
note that scipy orders quaternions scalar-last ``(x, y, z, w)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy.spatial.transform import Rotation, Slerp

from .vectors import Vec3, add, as_vec3, cross, dot, length, lerp, normalize, scale, sub

Quat = Tuple[float, float, float, float]

IDENTITY: Quat = (1.0, 0.0, 0.0, 0.0)
WORLD_UP: Vec3 = (0.0, 1.0, 0.0)
# Used in place of WORLD_UP when looking straight up or down.
FALLBACK_UP: Vec3 = (0.0, 0.0, 1.0)


def to_rotation(q: Quat) -> Rotation:
    """Wrap a ``(w, x, y, z)`` quaternion in a scipy ``Rotation``."""
    w, x, y, z = q
    return Rotation.from_quat([x, y, z, w])


def from_rotation(rotation: Rotation) -> Quat:
    """Unwrap a scipy ``Rotation`` into a ``(w, x, y, z)`` quaternion."""
    x, y, z, w = rotation.as_quat()
    return (float(w), float(x), float(y), float(z))


def quat_from_axes(right: Vec3, up: Vec3, back: Vec3) -> Quat:
    """Build a quaternion from the three orthonormal basis columns.

    Args:
        right: World direction of the local ``+X`` axis.
        up: World direction of the local ``+Y`` axis.
        back: World direction of the local ``+Z`` axis (opposite of forward).

    Returns:
        The unit quaternion rotating the local axes onto the given ones.
    """
    matrix = np.column_stack((right, up, back))
    return from_rotation(Rotation.from_matrix(matrix))


def quat_rotate(q: Quat, v: Vec3) -> Vec3:
    """Rotate vector ``v`` by the unit quaternion ``q``."""
    return as_vec3(to_rotation(q).apply(v))


def quat_slerp(q0: Quat, q1: Quat, alpha: float) -> Quat:
    """Spherical linear interpolation along the shortest arc."""
    slerp = Slerp([0.0, 1.0], Rotation.concatenate([to_rotation(q0), to_rotation(q1)]))
    return from_rotation(slerp([alpha])[0])


@dataclass(frozen=True)
class Pose:
    """Immutable position plus orientation.

    Attributes:
        position: World position ``(x, y, z)``.
        orientation: Unit quaternion ``(w, x, y, z)``.
    """

    position: Vec3
    orientation: Quat = IDENTITY

    @classmethod
    def from_position(cls, position: Vec3) -> "Pose":
        """Pose at ``position`` with the identity orientation (looking down ``-Z``)."""
        return cls(position=tuple(float(c) for c in position))  # type: ignore[arg-type]

    @classmethod
    def look_at(cls, position: Vec3, target: Vec3, up: Vec3 = WORLD_UP) -> "Pose":
        """Pose at ``position`` whose forward vector points at ``target``.

        When ``target`` coincides with ``position`` there is no direction
        to look along and the identity orientation is used.  When the
        view direction is parallel to ``up`` the fallback up axis is used
        so that the right vector stays well defined.
        """
        position = tuple(float(c) for c in position)  # type: ignore[assignment]
        forward = normalize(sub(target, position))
        if math.isnan(forward[0]):
            return cls(position=position)
        right = cross(forward, up)
        if length(right) < 1e-9:
            right = cross(forward, FALLBACK_UP)
        right = normalize(right)
        true_up = cross(right, forward)
        return cls.from_axes(position, right, true_up, scale(forward, -1.0))

    @classmethod
    def from_axes(cls, position: Vec3, right: Vec3, up: Vec3, back: Vec3) -> "Pose":
        """Pose at ``position`` whose local axes map onto the given world axes."""
        return cls(position=position, orientation=quat_from_axes(right, up, back))

    @property
    def forward_vector(self) -> Vec3:
        return quat_rotate(self.orientation, (0.0, 0.0, -1.0))

    @property
    def right_vector(self) -> Vec3:
        return quat_rotate(self.orientation, (1.0, 0.0, 0.0))

    @property
    def up_vector(self) -> Vec3:
        return quat_rotate(self.orientation, (0.0, 1.0, 0.0))

    def lerp(self, other: "Pose", alpha: float) -> "Pose":
        """Interpolate towards ``other``.

        Positions are blended linearly and orientations spherically.  The
        end points are returned unchanged so that ``alpha`` of exactly 0
        or 1 reproduces the input poses bit for bit.
        """
        if alpha <= 0.0:
            return self
        if alpha >= 1.0:
            return other
        return Pose(
            position=lerp(self.position, other.position, alpha),
            orientation=quat_slerp(self.orientation, other.orientation, alpha),
        )

    def offset(self, deviation: float) -> "Pose":
        """Translate sideways along the pose's right vector."""
        if deviation == 0:
            return self
        return Pose(
            position=add(self.position, scale(self.right_vector, deviation)),
            orientation=self.orientation,
        )


def angle_between(a: Vec3, b: Vec3) -> float:
    """Angle in radians between two unit vectors.

    Returns ``NaN`` when either vector is not a valid direction (for
    example a normalised zero vector).  The cosine is clamped to
    ``[-1, 1]`` so that rounding on parallel or anti-parallel vectors
    cannot raise from :func:`math.acos`.
    """
    c = dot(a, b)
    if math.isnan(c):
        return math.nan
    return math.acos(max(-1.0, min(1.0, c)))
