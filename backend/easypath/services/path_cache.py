"""
In-memory cache of compiled paths.

Compiling a path is cheap but not free, and every pose query needs the
compiled tables, so compiled :class:`CompiledPath` objects are kept in
an ``OrderedDict`` with least-recently-used eviction.  When the number
of cached entries exceeds ``MAX_CACHE_ENTRIES`` (environment variable
``EASYPATH_CACHE_ENTRIES``, default 32) the oldest entry is dropped and
rebuilt from the database on its next use.

Paths are always compiled *before* they are published to the cache and
are never compiled in place afterwards; a cached instance is therefore
read-only and safe to query from concurrent requests.

Usage::

    from .path_cache import load_path
    path = load_path(path_id)
    if path is not None:
        pose = path.calculate_pose(0.5)
"""

from __future__ import annotations

import logging
import os
from collections import OrderedDict
from threading import RLock
from typing import Optional

from .path import CompiledPath
from .paths_store import decode_waypoints, get_path_record

logger = logging.getLogger(__name__)

# Underlying storage for the cache.  A reentrant lock protects the
# dictionary to allow safe concurrent access.
_cache: "OrderedDict[str, CompiledPath]" = OrderedDict()
_lock = RLock()
MAX_CACHE_ENTRIES: int = int(os.getenv("EASYPATH_CACHE_ENTRIES", "32"))


def get_path_from_cache(path_id: str) -> Optional[CompiledPath]:
    """Return the cached path for ``path_id`` or ``None``."""
    with _lock:
        path = _cache.get(path_id)
        if path is not None:
            # Move the key to the end to mark it as recently used
            _cache.move_to_end(path_id)
        return path


def put_path_in_cache(path_id: str, path: CompiledPath) -> None:
    """Publish a path, evicting the least recently used entry when full."""
    with _lock:
        _cache[path_id] = path
        _cache.move_to_end(path_id)
        if len(_cache) > MAX_CACHE_ENTRIES:
            evicted, _ = _cache.popitem(last=False)
            logger.debug("path cache full; evicted %s", evicted)


def evict_path(path_id: str) -> None:
    with _lock:
        _cache.pop(path_id, None)


def clear_cache() -> None:
    with _lock:
        _cache.clear()


def cache_size() -> int:
    with _lock:
        return len(_cache)


def load_path(path_id: str) -> Optional[CompiledPath]:
    """Return the path for ``path_id``, rebuilding it from storage on a miss.

    A path stored as compiled is recompiled before it is cached.

    Returns:
        The path, or ``None`` when no such path is stored.

    Raises:
        PathError: If a stored compiled path no longer compiles.
    """
    path = get_path_from_cache(path_id)
    if path is not None:
        return path
    record = get_path_record(path_id)
    if record is None:
        return None
    path = CompiledPath(decode_waypoints(record.waypoints_json))
    if record.compiled:
        path.compile()
    logger.info("Rebuilt path %s from storage (compiled=%s)", path_id, record.compiled)
    put_path_in_cache(path_id, path)
    return path
