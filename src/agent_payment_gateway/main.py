"""FastAPI application entry point for the Agent Payment Gateway.

Lifecycle:
    1. Startup: Initialize logging; create tables when STORAGE_BACKEND=database (dev mode).
    2. Running: Serve the REST API at /api/v1/* plus /health and the A2A agent card.
    3. Shutdown: Abandon in-flight tasks, close the Solana RPC client and the database.

Run with:
    uvicorn agent_payment_gateway.main:app --reload --host 0.0.0.0 --port 4100
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from agent_payment_gateway import __version__
from agent_payment_gateway.gateway import Gateway, build_gateway
from agent_payment_gateway.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    gateway: Gateway = app.state.gateway
    settings = gateway.settings

    # 1. Setup structured logging
    setup_logging(
        log_level=settings.app_log_level,
        json_logs=not settings.is_development,
    )
    logger = get_logger(__name__)
    logger.info(
        "app.starting",
        env=settings.app_env,
        network=settings.solana_network,
        storage=settings.storage_backend,
    )

    # 2. Initialize database
    if settings.uses_database:
        from agent_payment_gateway.infrastructure.database.engine import init_db

        await init_db()

    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    # Shutdown
    logger.info("app.shutting_down", running_tasks=gateway.supervisor.running)
    await gateway.aclose()
    if settings.uses_database:
        from agent_payment_gateway.infrastructure.database.engine import close_db

        await close_db()
    logger.info("app.stopped")


def create_app(gateway: Gateway | None = None) -> FastAPI:
    """Application factory - creates and configures the FastAPI app.

    Args:
        gateway: A pre-wired Gateway (tests inject fakes this way). Built
            from settings when omitted.
    """
    gateway = gateway or build_gateway()
    settings = gateway.settings

    app = FastAPI(
        title="Agent Payment Gateway",
        description=(
            "Pay-per-task gateway for AI agents. "
            "Solana payments are verified on-chain before any work runs."
        ),
        version=__version__,
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.gateway = gateway

    # --- Middleware ---
    from agent_payment_gateway.api.middleware import setup_middleware

    setup_middleware(app)

    # --- REST API Routes ---
    from agent_payment_gateway.api.routes.health import router as health_router
    from agent_payment_gateway.api.routes.payments import router as payments_router
    from agent_payment_gateway.api.routes.registry import router as registry_router
    from agent_payment_gateway.api.routes.stats import router as stats_router
    from agent_payment_gateway.api.routes.tasks import router as tasks_router

    app.include_router(health_router)
    app.include_router(registry_router)
    app.include_router(payments_router)
    app.include_router(tasks_router)
    app.include_router(stats_router)

    return app


# The app instance used by Uvicorn
app = create_app()
