"""API error handling: every failure becomes a 500 ``{"error": message}``.

Domain errors (``VittasError``) are converted by an exception handler.
Anything else is caught by a middleware wrapping the whole app, so a bug
still answers with the same envelope and CORS headers instead of a bare
plain-text 500.

Each failure is logged under the function label derived from the path,
e.g. ``/functions/v1/razorpay-checkout`` logs as ``RAZORPAY-CHECKOUT``.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from vittas.audit import AuditLogger, log_step
from vittas.errors import DependencyError, VittasError


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def function_label(request: Request) -> str:
    """Log label for the function a request was addressed to."""
    name = request.url.path.rstrip("/").rsplit("/", 1)[-1]
    return name.upper() or "API"


def error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": message},
        headers=CORS_HEADERS,
    )


async def _handle_vittas_error(request: Request, exc: VittasError) -> JSONResponse:
    label = function_label(request)
    log_step(
        label,
        f"ERROR in {label.lower()}",
        message=str(exc),
        error_type=type(exc).__name__,
    )
    if isinstance(exc, DependencyError):
        await AuditLogger().log_external_service_error(label, str(exc))
    return error_response(str(exc))


class CatchAllErrorMiddleware(BaseHTTPMiddleware):
    """Converts unhandled exceptions to the standard error envelope."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            label = function_label(request)
            log_step(
                label,
                f"ERROR in {label.lower()}",
                message=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            await AuditLogger().log_error(
                type(exc).__name__,
                str(exc),
                details={"method": request.method, "path": request.url.path},
            )
            return error_response(str(exc))


def register_error_handlers(app: FastAPI) -> None:
    """Attach the exception handler and the catch-all middleware."""
    app.add_exception_handler(VittasError, _handle_vittas_error)  # type: ignore[arg-type]
    app.add_middleware(CatchAllErrorMiddleware)
