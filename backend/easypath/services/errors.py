"""
Errors raised by the path compiler and query engine.

Every failure carries a :class:`PathErrorKind` so that callers (the API
layer in particular) can branch on the kind of failure without string
matching.
"""

from __future__ import annotations

from enum import Enum


class PathErrorKind(str, Enum):
    NOT_COMPILED = "not_compiled"
    DEGENERATE_GEOMETRY = "degenerate_geometry"
    ZERO_LENGTH = "zero_length"


class PathError(Exception):
    """Base class for path failures."""

    kind: PathErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotCompiledError(PathError):
    """A query or accessor was used before ``compile()``."""

    kind = PathErrorKind.NOT_COMPILED


class DegenerateGeometryError(PathError):
    """Waypoints that cannot produce a valid lookup table (duplicates, none at all)."""

    kind = PathErrorKind.DEGENERATE_GEOMETRY


class ZeroLengthError(PathError):
    """A distance query was made on a path whose total length is zero."""

    kind = PathErrorKind.ZERO_LENGTH
