"""
Entry point for the easypath service.

Running this script with ``python run.py`` will start the FastAPI
server that compiles waypoint paths and answers pose queries.  The
application defined in ``backend/easypath/main.py`` is imported after
adjusting the Python path to include the backend directory.

``EASYPATH_HOST`` and ``EASYPATH_PORT`` override the bind address.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import uvicorn

logging.basicConfig(
    level=logging.DEBUG if os.getenv("PATH_DEBUG") else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def main() -> None:
    """Run the Uvicorn server hosting the easypath application."""
    # Ensure the backend directory is on sys.path so that ``easypath``
    # can be imported without installing the project.
    backend_dir = Path(__file__).resolve().parent / "backend"
    if str(backend_dir) not in sys.path:
        sys.path.append(str(backend_dir))

    # Import the FastAPI application.  We import inside main() to avoid
    # modifying sys.path at module import time.
    from easypath.main import app  # type: ignore

    host = os.getenv("EASYPATH_HOST", "0.0.0.0")
    port = int(os.getenv("EASYPATH_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
