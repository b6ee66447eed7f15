"""Functions API: FastAPI application factory.

Serves the backend functions the web client calls (subscription
management, checkout, payment confirmation, webhook, UPI QR) under
``/functions/v1``.
"""

from typing import Optional

from fastapi import FastAPI

from vittas import __version__
from vittas.api.middleware import register_error_handlers
from vittas.api.routers.functions import router as functions_router
from vittas.audit import configure_logging
from vittas.config import get_settings
from vittas.orchestrator import AppComponents


def create_app(components: Optional[AppComponents] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    components:
        Pre-built services. When omitted they are created from settings
        on the first request.
    """
    configure_logging(get_settings().app.log_level)

    app = FastAPI(
        title="Vittas Functions API",
        version=__version__,
    )
    app.router.redirect_slashes = False
    app.state.components = components

    register_error_handlers(app)
    app.include_router(functions_router)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app
