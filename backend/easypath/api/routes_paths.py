"""
Routes for path creation, compilation, querying and export.

A path is created from a list of waypoints and, by default, compiled
straight away.  Compiled paths answer pose queries by normalised
progress or by distance, can be cloned, visualised as a list of debug
markers and exported as CSV.  Waypoints are persisted in the database;
compiled paths are served from the in-memory cache in
``services/path_cache.py``.

Errors raised by the path compiler are translated to HTTP status codes:
querying an uncompiled path is a conflict (409) and degenerate or
zero-length geometry is unprocessable (422).
"""

from __future__ import annotations

import csv
import io
import logging
import uuid
from typing import List, NoReturn

from fastapi import APIRouter, HTTPException, Query, Response

from .models import (
    CurveSegmentModel,
    InvalidWaypointError,
    MarkerModel,
    MarkersResponse,
    PathCreateRequest,
    PathResponse,
    PathSummary,
    PoseResponse,
    node_to_model,
    pose_to_model,
    vector_to_model,
    waypoint_to_pose,
)
from ..services.errors import PathError, PathErrorKind
from ..services.path import CompiledPath
from ..services.path_cache import evict_path, load_path, put_path_in_cache
from ..services.paths_store import (
    PathRecord,
    delete_path_record,
    encode_waypoints,
    get_path_record,
    insert_path_record,
    list_path_records,
    update_path_compiled,
)
from ..services.pose import Pose
from ..services.visualize import MarkerSink, visualize, visualize_nodes

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_FOR_KIND = {
    PathErrorKind.NOT_COMPILED: 409,
    PathErrorKind.DEGENERATE_GEOMETRY: 422,
    PathErrorKind.ZERO_LENGTH: 422,
}


def _raise_path_error(exc: PathError) -> NoReturn:
    raise HTTPException(
        status_code=_STATUS_FOR_KIND.get(exc.kind, 400),
        detail={"kind": exc.kind.value, "message": exc.message},
    )


def _get_path_or_404(path_id: str) -> CompiledPath:
    try:
        path = load_path(path_id)
    except PathError as exc:
        _raise_path_error(exc)
    if path is None:
        raise HTTPException(status_code=404, detail="Path not found")
    return path


def _path_response(path_id: str, name: str, path: CompiledPath) -> PathResponse:
    response = PathResponse(
        pathId=path_id,
        name=name,
        compiled=path.is_compiled,
        waypoints=[pose_to_model(p) for p in path.get_waypoints()],
    )
    if path.is_compiled:
        nodes = path.get_nodes()
        response.length = path.get_length()
        response.nodes = [node_to_model(i, n) for i, n in enumerate(nodes)]
        response.curveSegments = [
            CurveSegmentModel(start=s.start, end=s.end) for s in path.get_curve_segments()
        ]
        response.metadata = {
            "nodeCount": len(nodes),
            "indexSize": int(len(path.get_index_table())),
            "minProgressDelta": path.get_min_progress_delta(),
        }
    return response


def _pose_response(path_id: str, progress: float, deviation: float, pose: Pose) -> PoseResponse:
    return PoseResponse(
        pathId=path_id,
        progress=progress,
        deviation=deviation,
        pose=pose_to_model(pose),
        forward=vector_to_model(pose.forward_vector),
        right=vector_to_model(pose.right_vector),
    )


@router.post("/paths", response_model=PathResponse, status_code=201)
async def create_path(body: PathCreateRequest) -> PathResponse:
    """Create a path from waypoints, compiling it unless ``compile`` is false.

    A path that fails to compile is rejected and not stored.
    """
    try:
        waypoints = [waypoint_to_pose(w) for w in body.waypoints]
    except InvalidWaypointError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    path = CompiledPath(waypoints)
    if body.compile:
        try:
            path.compile()
        except PathError as exc:
            logger.info("Rejected path with %d waypoints: %s", len(waypoints), exc.message)
            _raise_path_error(exc)

    path_id = uuid.uuid4().hex
    insert_path_record(
        PathRecord(
            path_id=path_id,
            name=body.name,
            waypoints_json=encode_waypoints(waypoints),
            waypoint_count=len(waypoints),
            compiled=path.is_compiled,
        )
    )
    put_path_in_cache(path_id, path)
    logger.info(
        "Created path %s: waypoints=%d compiled=%s", path_id, len(waypoints), path.is_compiled
    )
    return _path_response(path_id, body.name, path)


@router.get("/paths", response_model=List[PathSummary])
async def list_paths() -> List[PathSummary]:
    """List every stored path."""
    return [
        PathSummary(
            pathId=r.path_id,
            name=r.name,
            waypointCount=r.waypoint_count,
            compiled=r.compiled,
            createdAt=r.created_at,
        )
        for r in list_path_records()
    ]


@router.get("/paths/{path_id}", response_model=PathResponse)
async def get_path(path_id: str) -> PathResponse:
    path = _get_path_or_404(path_id)
    record = get_path_record(path_id)
    return _path_response(path_id, record.name if record else "", path)


@router.post("/paths/{path_id}/compile", response_model=PathResponse)
async def compile_path(path_id: str) -> PathResponse:
    """Compile a stored path.  Compiling an already compiled path is a no-op.

    The path is compiled on a private copy which then replaces the
    cached instance, so concurrent readers never observe a half-built
    path.
    """
    path = _get_path_or_404(path_id)
    if not path.is_compiled:
        try:
            path = path.clone().compile()
        except PathError as exc:
            _raise_path_error(exc)
        update_path_compiled(path_id, True)
        put_path_in_cache(path_id, path)
        logger.info("Compiled path %s", path_id)
    record = get_path_record(path_id)
    return _path_response(path_id, record.name if record else "", path)


@router.post("/paths/{path_id}/clone", response_model=PathResponse, status_code=201)
async def clone_path(path_id: str) -> PathResponse:
    """Store an independent copy of a path under a new identifier."""
    path = _get_path_or_404(path_id)
    source = get_path_record(path_id)
    name = source.name if source else ""
    copy = path.clone()
    new_id = uuid.uuid4().hex
    insert_path_record(
        PathRecord(
            path_id=new_id,
            name=name,
            waypoints_json=encode_waypoints(copy.get_waypoints()),
            waypoint_count=len(copy.get_waypoints()),
            compiled=copy.is_compiled,
        )
    )
    put_path_in_cache(new_id, copy)
    logger.info("Cloned path %s into %s", path_id, new_id)
    return _path_response(new_id, name, copy)


@router.get("/paths/{path_id}/pose", response_model=PoseResponse)
async def get_pose(
    path_id: str,
    t: float = Query(..., description="Normalised progress; clamped to [0, 1]"),
    deviation: float = Query(0.0, description="Sideways offset along the right vector"),
) -> PoseResponse:
    """Return the pose at normalised progress ``t``."""
    path = _get_path_or_404(path_id)
    try:
        pose = path.calculate_pose(t, deviation)
    except PathError as exc:
        _raise_path_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _pose_response(path_id, min(max(t, 0.0), 1.0), deviation, pose)


@router.get("/paths/{path_id}/pose/by-length", response_model=PoseResponse)
async def get_pose_by_length(
    path_id: str,
    distance: float = Query(..., description="Distance from the start of the path"),
    deviation: float = Query(0.0, description="Sideways offset along the right vector"),
) -> PoseResponse:
    """Return the pose ``distance`` units along the path."""
    path = _get_path_or_404(path_id)
    try:
        pose = path.calculate_pose_by_length(distance, deviation)
        progress = min(max(distance / path.get_length(), 0.0), 1.0)
    except PathError as exc:
        _raise_path_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _pose_response(path_id, progress, deviation, pose)


@router.get("/paths/{path_id}/markers", response_model=MarkersResponse)
async def get_markers(
    path_id: str,
    step: float = Query(0.01, gt=0.0, le=1.0, description="Progress step between markers"),
    mode: str = Query("samples", pattern="^(samples|nodes)$", description="'samples' or 'nodes'"),
    size: float = Query(0.1, gt=0.0, description="Edge length of each marker"),
    r: int = Query(163, ge=0, le=255),
    g: int = Query(162, ge=0, le=255),
    b: int = Query(165, ge=0, le=255),
) -> MarkersResponse:
    """Debug markers along the path, sampled by progress or one per node."""
    path = _get_path_or_404(path_id)
    marker_size = (size, size, size)
    color = (r, g, b)
    try:
        with MarkerSink() as sink:
            if mode == "nodes":
                visualize_nodes(path, sink, size=marker_size, color=color)
            else:
                visualize(path, sink, size=marker_size, color=color, step=step)
            markers = [
                MarkerModel(
                    label=m.label,
                    pose=pose_to_model(m.pose),
                    size=vector_to_model(m.size),
                    color=list(m.color),
                )
                for m in sink.markers
            ]
    except PathError as exc:
        _raise_path_error(exc)
    return MarkersResponse(pathId=path_id, count=len(markers), markers=markers)


@router.get("/paths/{path_id}/export")
async def export_path(path_id: str) -> Response:
    """Export the compiled nodes as CSV.

    Columns: ``index,x,y,z,qw,qx,qy,qz,progress,length``.
    """
    path = _get_path_or_404(path_id)
    try:
        nodes = path.get_nodes()
    except PathError as exc:
        _raise_path_error(exc)
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(["index", "x", "y", "z", "qw", "qx", "qy", "qz", "progress", "length"])
    for idx, node in enumerate(nodes):
        x, y, z = node.pose.position
        qw, qx, qy, qz = node.pose.orientation
        writer.writerow(
            [idx]
            + [f"{v:.6f}" for v in (x, y, z, qw, qx, qy, qz)]
            + [f"{node.progress:.9f}", f"{node.length:.6f}"]
        )
    return Response(content=output.getvalue(), media_type="text/csv")


@router.delete("/paths/{path_id}", status_code=204)
async def delete_path(path_id: str) -> Response:
    evict_path(path_id)
    if not delete_path_record(path_id):
        raise HTTPException(status_code=404, detail="Path not found")
    return Response(status_code=204)
