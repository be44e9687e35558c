"""
Persistent storage of waypoint paths.

A ``PathRecord`` keeps the caller's waypoints (serialised as JSON) and
whether the path has been compiled.  Compiled tables are not stored;
they are cheap to rebuild from the waypoints and live in the in-memory
cache of :mod:`.path_cache`.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlmodel import Field, SQLModel, select

from .db import create_db_and_tables, get_session
from .pose import Pose


class PathRecord(SQLModel, table=True):
    """Database model representing one stored waypoint path."""

    path_id: str = Field(primary_key=True)
    name: str = ""
    waypoints_json: str
    waypoint_count: int = 0
    compiled: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def encode_waypoints(waypoints: Sequence[Pose]) -> str:
    """Serialise poses to the JSON stored in ``PathRecord.waypoints_json``."""
    return json.dumps(
        [
            {"position": list(p.position), "orientation": list(p.orientation)}
            for p in waypoints
        ]
    )


def decode_waypoints(data: str) -> List[Pose]:
    """Inverse of :func:`encode_waypoints`."""
    return [
        Pose(
            position=tuple(float(c) for c in item["position"]),
            orientation=tuple(float(c) for c in item["orientation"]),
        )
        for item in json.loads(data)
    ]


def init_db() -> None:
    """Initialise the database and create tables if they do not exist."""
    create_db_and_tables()


def insert_path_record(record: PathRecord) -> PathRecord:
    """Persist a new ``PathRecord`` and return it refreshed from the database."""
    with get_session() as session:
        session.add(record)
        session.commit()
        session.refresh(record)
        return record


def get_path_record(path_id: str) -> Optional[PathRecord]:
    """Retrieve a ``PathRecord`` by identifier, or ``None``."""
    with get_session() as session:
        return session.get(PathRecord, path_id)


def list_path_records() -> List[PathRecord]:
    """Return all stored paths, oldest first."""
    with get_session() as session:
        statement = select(PathRecord).order_by(PathRecord.created_at)
        return list(session.exec(statement))


def update_path_compiled(path_id: str, compiled: bool = True) -> None:
    """Record whether the stored path has been compiled."""
    with get_session() as session:
        record = session.get(PathRecord, path_id)
        if record is None:
            return
        record.compiled = compiled
        session.add(record)
        session.commit()


def delete_path_record(path_id: str) -> bool:
    """Delete a stored path.

    Returns:
        True if a record was deleted, False if none existed.
    """
    with get_session() as session:
        record = session.get(PathRecord, path_id)
        if record is None:
            return False
        session.delete(record)
        session.commit()
        return True
