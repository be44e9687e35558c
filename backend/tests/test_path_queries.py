"""
Tests for pose queries on compiled paths.

Covers exact end poses, clamping, monotonic progress along the path,
queries by distance, sideways deviation, the compile lifecycle
(not-compiled errors, idempotent compilation) and clone independence.
"""

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from easypath.services.errors import (  # type: ignore
    NotCompiledError,
    PathErrorKind,
    ZeroLengthError,
)
from easypath.services.path import CompiledPath, walk  # type: ignore
from easypath.services.pose import Pose  # type: ignore
from easypath.services.vectors import distance  # type: ignore


def facing(position, direction) -> Pose:
    target = tuple(p + d for p, d in zip(position, direction))
    return Pose.look_at(position, target)


@pytest.fixture
def straight_path() -> CompiledPath:
    return CompiledPath(
        [
            facing((0.0, 0.0, 0.0), (1.0, 0.0, 0.0)),
            facing((5.0, 0.0, 0.0), (1.0, 0.0, 0.0)),
            facing((10.0, 0.0, 0.0), (1.0, 0.0, 0.0)),
        ]
    ).compile()


@pytest.fixture
def corner_path() -> CompiledPath:
    return CompiledPath(
        [
            facing((0.0, 0.0, 0.0), (1.0, 0.0, 0.0)),
            facing((10.0, 0.0, 10.0), (0.0, 0.0, -1.0)),
            facing((10.0, 0.0, 20.0), (0.0, 0.0, 1.0)),
            facing((30.0, 0.0, 20.0), (1.0, 0.0, 0.0)),
        ]
    ).compile()


def test_end_poses_are_exact(corner_path: CompiledPath) -> None:
    nodes = corner_path.get_nodes()
    assert corner_path.calculate_pose(0.0) == nodes[0].pose
    assert corner_path.calculate_pose(1.0) == nodes[-1].pose


def test_out_of_range_progress_is_clamped(corner_path: CompiledPath) -> None:
    nodes = corner_path.get_nodes()
    assert corner_path.calculate_pose(-0.25) == nodes[0].pose
    assert corner_path.calculate_pose(1.0000001) == nodes[-1].pose
    assert corner_path.calculate_pose(42.0) == nodes[-1].pose


def test_nan_progress_is_rejected(corner_path: CompiledPath) -> None:
    with pytest.raises(ValueError):
        corner_path.calculate_pose(float("nan"))


def test_pose_by_length_on_straight_path(straight_path: CompiledPath) -> None:
    assert straight_path.get_length() == pytest.approx(10.0)
    pose = straight_path.calculate_pose_by_length(5.0)
    assert pose.position == pytest.approx((5.0, 0.0, 0.0))
    pose = straight_path.calculate_pose_by_length(2.5)
    assert pose.position == pytest.approx((2.5, 0.0, 0.0))
    assert pose.forward_vector == pytest.approx((1.0, 0.0, 0.0), abs=1e-12)


def test_progress_is_monotonic_and_matches_query(corner_path: CompiledPath) -> None:
    nodes = corner_path.get_nodes()
    last = len(nodes) - 1
    previous = -1.0
    for i in range(501):
        t = i / 500
        link, local_t = corner_path.locate(t)
        assert 0.0 <= local_t <= 1.0
        if link == last:
            resolved = 1.0
        else:
            span = nodes[link + 1].progress - nodes[link].progress
            resolved = nodes[link].progress + local_t * span
        assert resolved == pytest.approx(t, abs=1e-9)
        assert resolved >= previous
        previous = resolved


def test_querying_a_node_progress_returns_that_node(corner_path: CompiledPath) -> None:
    for node in corner_path.get_nodes():
        pose = corner_path.calculate_pose(node.progress)
        assert pose.position == pytest.approx(node.pose.position, abs=1e-9)


def test_distance_queries_land_at_that_arc_length(corner_path: CompiledPath) -> None:
    nodes = corner_path.get_nodes()
    for target in (1.0, 7.5, 12.0, 20.0, 33.0):
        pose = corner_path.calculate_pose_by_length(target)
        link, _ = corner_path.locate(target / corner_path.get_length())
        start = nodes[link]
        along = start.length + distance(start.pose.position, pose.position)
        assert along == pytest.approx(target, rel=1e-9)


def test_deviation_offsets_to_the_right(straight_path: CompiledPath) -> None:
    pose = straight_path.calculate_pose(0.5, deviation=2.0)
    assert pose.position == pytest.approx((5.0, 0.0, 2.0))
    left = straight_path.calculate_pose_by_length(5.0, deviation=-1.0)
    assert left.position == pytest.approx((5.0, 0.0, -1.0))


def test_queries_require_compilation() -> None:
    path = CompiledPath([facing((0, 0, 0), (1, 0, 0)), facing((1, 0, 0), (1, 0, 0))])
    assert not path.is_compiled
    for call in (
        lambda: path.calculate_pose(0.5),
        lambda: path.calculate_pose_by_length(0.5),
        path.get_length,
        path.get_nodes,
        path.get_index_table,
    ):
        with pytest.raises(NotCompiledError) as excinfo:
            call()
        assert excinfo.value.kind is PathErrorKind.NOT_COMPILED
    # Waypoints are available before compilation.
    assert len(path.get_waypoints()) == 2


def test_compile_is_idempotent(corner_path: CompiledPath) -> None:
    nodes = corner_path.get_nodes()
    table = corner_path.get_index_table()
    before = [corner_path.calculate_pose(i / 20) for i in range(21)]
    assert corner_path.compile() is corner_path
    assert corner_path.get_nodes() is nodes
    assert corner_path.get_index_table() is table
    assert [corner_path.calculate_pose(i / 20) for i in range(21)] == before


def test_waypoints_are_copied_in() -> None:
    waypoints = [facing((0, 0, 0), (1, 0, 0)), facing((3, 0, 0), (1, 0, 0))]
    path = CompiledPath(waypoints)
    waypoints.append(facing((9, 0, 0), (1, 0, 0)))
    assert len(path.compile().get_waypoints()) == 2
    assert path.get_length() == pytest.approx(3.0)


def test_clone_is_independent(corner_path: CompiledPath) -> None:
    copy = corner_path.clone()
    assert copy is not corner_path
    assert copy.is_compiled
    assert copy.get_length() == corner_path.get_length()
    assert copy.get_nodes() == corner_path.get_nodes()
    original_table = corner_path.get_index_table()
    copied_table = copy.get_index_table()
    assert list(copied_table) == list(original_table)
    assert copied_table is not original_table
    assert not copied_table.flags.writeable
    copy.compile()
    assert corner_path.get_index_table() is original_table


def test_clone_of_uncompiled_path_compiles_separately() -> None:
    path = CompiledPath([facing((0, 0, 0), (1, 0, 0)), facing((4, 0, 0), (1, 0, 0))])
    copy = path.clone().compile()
    assert copy.get_length() == pytest.approx(4.0)
    assert not path.is_compiled


def test_single_waypoint_queries() -> None:
    only = facing((1.0, 2.0, 3.0), (0.0, 0.0, 1.0))
    path = CompiledPath([only]).compile()
    for t in (0.0, 0.3, 1.0):
        assert path.calculate_pose(t) == only
    with pytest.raises(ZeroLengthError) as excinfo:
        path.calculate_pose_by_length(1.0)
    assert excinfo.value.kind is PathErrorKind.ZERO_LENGTH


def test_walk_covers_the_whole_path(straight_path: CompiledPath) -> None:
    poses = list(walk(straight_path, 0.5))
    assert len(poses) == 21
    assert poses[0] == straight_path.calculate_pose(0.0)
    assert poses[-1] == straight_path.get_nodes()[-1].pose
    assert poses[4].position == pytest.approx((2.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        next(walk(straight_path, 0.0))
