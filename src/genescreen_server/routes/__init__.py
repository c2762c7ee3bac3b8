"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from genescreen_server.routes.analysis import router as analysis_router
from genescreen_server.routes.decryption import router as decryption_router
from genescreen_server.routes.screenings import router as screenings_router
from genescreen_server.routes.system import router as system_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(screenings_router, prefix=API_PREFIX)
    app.include_router(decryption_router, prefix=API_PREFIX)
    app.include_router(analysis_router, prefix=API_PREFIX)
    app.include_router(system_router, prefix=API_PREFIX)
