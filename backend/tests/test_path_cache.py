"""Tests for the compiled path cache and its database fallback."""

import sys
import uuid
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from easypath.services import path_cache  # type: ignore
from easypath.services.path import CompiledPath  # type: ignore
from easypath.services.paths_store import (  # type: ignore
    PathRecord,
    decode_waypoints,
    encode_waypoints,
    get_path_record,
    init_db,
    insert_path_record,
)
from easypath.services.pose import Pose  # type: ignore


WAYPOINTS = [
    Pose.look_at((0.0, 0.0, 0.0), (1.0, 0.0, 0.0)),
    Pose.look_at((6.0, 0.0, 0.0), (7.0, 0.0, 0.0)),
]


@pytest.fixture(autouse=True)
def _fresh_cache():
    init_db()
    path_cache.clear_cache()
    yield
    path_cache.clear_cache()


def _store(compiled: bool) -> str:
    path_id = uuid.uuid4().hex
    insert_path_record(
        PathRecord(
            path_id=path_id,
            waypoints_json=encode_waypoints(WAYPOINTS),
            waypoint_count=len(WAYPOINTS),
            compiled=compiled,
        )
    )
    return path_id


def test_waypoint_json_round_trip_preserves_poses() -> None:
    assert decode_waypoints(encode_waypoints(WAYPOINTS)) == WAYPOINTS


def test_load_path_rebuilds_compiled_path_from_storage() -> None:
    path_id = _store(compiled=True)
    path = path_cache.load_path(path_id)
    assert path is not None
    assert path.is_compiled
    assert path.get_length() == pytest.approx(6.0)
    # The second lookup is served from the cache.
    assert path_cache.load_path(path_id) is path


def test_load_path_keeps_uncompiled_paths_uncompiled() -> None:
    path = path_cache.load_path(_store(compiled=False))
    assert path is not None
    assert not path.is_compiled


def test_load_unknown_path_returns_none() -> None:
    assert path_cache.load_path("missing") is None


def test_least_recently_used_entry_is_evicted(monkeypatch) -> None:
    monkeypatch.setattr(path_cache, "MAX_CACHE_ENTRIES", 2)
    paths = [CompiledPath(WAYPOINTS).compile() for _ in range(3)]
    path_cache.put_path_in_cache("a", paths[0])
    path_cache.put_path_in_cache("b", paths[1])
    # Touch "a" so that "b" becomes the oldest entry.
    assert path_cache.get_path_from_cache("a") is paths[0]
    path_cache.put_path_in_cache("c", paths[2])
    assert path_cache.cache_size() == 2
    assert path_cache.get_path_from_cache("b") is None
    assert path_cache.get_path_from_cache("a") is paths[0]
    path_cache.evict_path("a")
    assert path_cache.get_path_from_cache("a") is None


def test_stored_records_get_a_timezone_aware_timestamp() -> None:
    path_id = _store(compiled=False)
    record = get_path_record(path_id)
    assert record is not None
    assert record.waypoint_count == len(WAYPOINTS)
    assert record.created_at is not None
    assert PathRecord(path_id="x", waypoints_json="[]").created_at.tzinfo is not None
