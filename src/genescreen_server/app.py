"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that wires the ledger, FHE runtime, record store and
    coordinators once
  - CORS middleware
  - Global exception handlers (SDK ``ScreeningError`` → mapped status)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``genescreen-server`` console-script entry point.
"""

from __future__ import annotations

import importlib
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from genescreen.config import load_timeouts
from genescreen.decryption import DecryptionCoordinator
from genescreen.errors import ScreeningError
from genescreen.fhe import FheRuntime
from genescreen.gateway import EncryptionGateway
from genescreen.interfaces import FheSdk
from genescreen.notifications import Notifier
from genescreen.store import RecordStore
from genescreen.submission import SubmissionCoordinator

from genescreen_server.config import ServerSettings, load_settings
from genescreen_server.errors import generic_error_handler, screening_error_handler
from genescreen_server.routes import register_routes

logger = logging.getLogger(__name__)


def load_factory(path: str) -> Callable[..., Any]:
    """Resolve a ``module:attr`` dotted path to a callable."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Expected 'module:attr', got {path!r}")
    return getattr(importlib.import_module(module_name), attr)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Build (or take the injected) ledger client and FHE SDK
      2. Resolve the contract address
      3. Build the store, runtime and coordinators; stash them on
         ``app.state`` for dependency injection
      4. Load the initial record set (failures are logged, not fatal)

    Shutdown:
      1. Dispose the database engine's connection pool when the
         development ledger was used
    """
    settings: ServerSettings = app.state.settings

    # --- External collaborators ---
    ledger = app.state.ledger
    uses_sql_ledger = ledger is None
    if ledger is None:
        if settings.auto_create_schema:
            from genescreen_db.engine import create_schema
            await create_schema()
            logger.info("Ledger schema ensured")
        ledger = load_factory(settings.ledger_backend)(settings)
        uses_sql_ledger = settings.ledger_backend.startswith("genescreen_db.")
    sdk: FheSdk | None = app.state.sdk
    if sdk is None and settings.fhe_backend:
        sdk = load_factory(settings.fhe_backend)(settings)
    if sdk is None:
        logger.warning("No FHE backend configured; encryption and decryption are disabled")

    contract_address = settings.contract_address or await ledger.get_address()

    # --- SDK components ---
    notifier = Notifier()
    timeouts = load_timeouts()
    runtime = FheRuntime(sdk, notifier)
    store = RecordStore(ledger, notifier)
    gateway = EncryptionGateway(sdk, runtime, timeout=timeouts.encrypt)

    app.state.notifier = notifier
    app.state.runtime = runtime
    app.state.store = store
    app.state.submission = SubmissionCoordinator(
        gateway, ledger, store, contract_address,
        notifier=notifier, timeouts=timeouts,
    )
    app.state.decryption = DecryptionCoordinator(
        sdk, runtime, ledger, ledger, store, contract_address,
        notifier=notifier, timeouts=timeouts,
    )

    await store.refresh()
    logger.info("Screening services ready (contract=%s)", contract_address)

    yield

    # --- Shutdown ---
    if uses_sql_ledger:
        from genescreen_db.engine import dispose_engine
        await dispose_engine()
        logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(
    settings: ServerSettings | None = None,
    *,
    ledger: Any = None,
    sdk: FheSdk | None = None,
) -> FastAPI:
    """Build and return the configured FastAPI application.

    ``ledger`` (an object implementing ``LedgerReader`` and ``LedgerWriter``)
    and ``sdk`` override the backends named in ``settings``.
    """
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="GeneScreen API Server",
        description="REST API for encrypted genetic screening records",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Read by the lifespan handler
    app.state.settings = settings
    app.state.ledger = ledger
    app.state.sdk = sdk

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ScreeningError, screening_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe. Reports FHE phase and record-store state."""
        runtime: FheRuntime = app.state.runtime
        store: RecordStore = app.state.store
        return {
            "status": "ok" if store.last_error is None else "degraded",
            "fhe": runtime.phase.value,
            "records": len(store.records),
        }

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``genescreen-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
