"""
Debug visualisation of compiled paths.

Visualisation places markers along a path through a *display sink*
supplied by the caller.  The sink owns whatever the markers are drawn
with (viewer objects, a scene graph, or just a list for the API) and
has an explicit lifecycle: ``create_marker`` adds one, ``clear``
removes all markers placed so far and ``destroy`` releases the sink.
:class:`MarkerSink` is the in-memory implementation used by the API and
the tests; it can be used as a context manager so the markers are
always released:

    with MarkerSink() as sink:
        visualize(path, sink, step=0.05)
        markers = sink.markers

Nothing here is called while a path compiles.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Protocol, Tuple

from .path import CompiledPath
from .pose import Pose
from .vectors import Vec3

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

DEFAULT_MARKER_SIZE: Vec3 = (0.1, 0.1, 0.1)
DEFAULT_MARKER_COLOR: Color = (163, 162, 165)
DEFAULT_PROGRESS_STEP: float = 0.01


@dataclass(frozen=True)
class Marker:
    """A single debug marker placed along a path."""

    label: str
    pose: Pose
    size: Vec3
    color: Color


class DisplaySink(Protocol):
    def create_marker(self, label: str, pose: Pose, size: Vec3, color: Color) -> None:
        ...

    def clear(self) -> None:
        ...

    def destroy(self) -> None:
        ...


class SinkDestroyedError(RuntimeError):
    """Raised when a destroyed sink is asked to draw."""


class MarkerSink:
    """Display sink that keeps markers in a list."""

    def __init__(self) -> None:
        self._markers: List[Marker] = []
        self._destroyed = False

    def __enter__(self) -> "MarkerSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.destroy()

    @property
    def markers(self) -> Tuple[Marker, ...]:
        return tuple(self._markers)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def create_marker(self, label: str, pose: Pose, size: Vec3, color: Color) -> None:
        if self._destroyed:
            raise SinkDestroyedError("cannot create markers on a destroyed sink")
        self._markers.append(Marker(label=label, pose=pose, size=size, color=color))

    def clear(self) -> None:
        self._markers.clear()

    def destroy(self) -> None:
        self._markers.clear()
        self._destroyed = True


def progress_samples(step: float) -> List[float]:
    """Progress values ``0, step, 2*step, …`` ending with exactly 1."""
    if not step > 0:
        raise ValueError("step must be positive")
    count = int(math.ceil(1.0 / step))
    samples = [min(k * step, 1.0) for k in range(count)]
    samples.append(1.0)
    return samples


def visualize(
    path: CompiledPath,
    sink: DisplaySink,
    size: Vec3 = DEFAULT_MARKER_SIZE,
    color: Color = DEFAULT_MARKER_COLOR,
    step: float = DEFAULT_PROGRESS_STEP,
) -> int:
    """Replace the sink's markers with markers sampled along ``path``.

    Returns:
        The number of markers placed.
    """
    samples = progress_samples(step)
    sink.clear()
    for t in samples:
        sink.create_marker(f"{t:g}", path.calculate_pose(t), size, color)
    logger.debug("visualize: placed %d markers (step=%s)", len(samples), step)
    return len(samples)


def visualize_nodes(
    path: CompiledPath,
    sink: DisplaySink,
    size: Vec3 = DEFAULT_MARKER_SIZE,
    color: Color = DEFAULT_MARKER_COLOR,
) -> int:
    """Replace the sink's markers with one marker per compiled node."""
    nodes = path.get_nodes()
    sink.clear()
    for index, node in enumerate(nodes):
        sink.create_marker(str(index), node.pose, size, color)
    return len(nodes)
