"""
Main application module for the easypath backend.

This file sets up the FastAPI application, configures CORS so browser
clients (for example a path preview page) can call the API, and exposes
a simple health check endpoint.  The path router is included under the
``/api`` namespace.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes_paths import router as paths_router
from .services.paths_store import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create the SQLite schema before any requests are processed.
    # init_db is idempotent and safe to call on every start.
    init_db()
    yield


def create_app() -> FastAPI:
    """Factory to create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    app = FastAPI(title="easypath", lifespan=lifespan)

    # Allow all origins by default.  In production you should restrict
    # this to the domains that are allowed to access your API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint for monitoring and deployment probes.
    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(paths_router, prefix="/api", tags=["paths"])
    return app


# Create the application instance.  Uvicorn imports this when running
# `uvicorn easypath.main:app` from within the backend directory.
app = create_app()
