"""HTTP functions under ``/functions/v1``.

Each function answers ``OPTIONS`` with an empty 200 and every response
carries the permissive CORS headers. Callers are identified only from the
``Authorization: Bearer`` header; request bodies never carry identity.
"""

from typing import TypeVar

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from vittas.api.deps import get_components
from vittas.api.middleware import CORS_HEADERS
from vittas.api.schemas import (
    CheckoutRequest,
    ManageSubscriptionRequest,
    ManualSubscriptionUpdateRequest,
    UpiQrRequest,
)
from vittas.audit import log_step
from vittas.errors import ConfigurationError, ValidationError
from vittas.models.subscription import AuthenticatedUser
from vittas.orchestrator import AppComponents
from vittas.subscriptions import ACTIVATED_MESSAGE, require_email


router = APIRouter(prefix="/functions/v1", tags=["functions"])

WEBHOOK_CORS_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Headers": f"{CORS_HEADERS['Access-Control-Allow-Headers']}, x-razorpay-signature",
}

BodyT = TypeVar("BodyT", bound=BaseModel)


def _json(content) -> JSONResponse:
    return JSONResponse(content=content, headers=CORS_HEADERS)


def _preflight(headers: dict = CORS_HEADERS) -> Response:
    return Response(status_code=200, headers=headers)


async def _read_body(request: Request, model: type[BodyT]) -> BodyT:
    """Parse the JSON body into ``model``, raising our ValidationError."""
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid request body: {problems}")


async def _authenticate(request: Request, components: AppComponents, function: str) -> AuthenticatedUser:
    if components.auth is None:
        raise ConfigurationError("Supabase is not configured")
    user = await components.auth.authenticate(request.headers.get("authorization"))
    log_step(function, "User authenticated", user_id=str(user.id), email=user.email)
    return user


# -----------------------------------------------------------------------------
# manage-subscription
# -----------------------------------------------------------------------------

@router.options("/manage-subscription")
async def manage_subscription_preflight() -> Response:
    return _preflight()


@router.post("/manage-subscription")
async def manage_subscription(request: Request) -> JSONResponse:
    """Cancel the caller's subscription or report its status."""
    function = "MANAGE-SUBSCRIPTION"
    log_step(function, "Function started")
    components = get_components(request)

    user = await _authenticate(request, components, function)
    body = await _read_body(request, ManageSubscriptionRequest)
    result = await components.subscriptions.handle_action(user, body.action)
    return _json(result)


# -----------------------------------------------------------------------------
# razorpay-checkout
# -----------------------------------------------------------------------------

@router.options("/razorpay-checkout")
async def razorpay_checkout_preflight() -> Response:
    return _preflight()


@router.post("/razorpay-checkout")
async def razorpay_checkout(request: Request) -> JSONResponse:
    """Create a Razorpay order for a plan upgrade."""
    function = "RAZORPAY-CHECKOUT"
    log_step(function, "Function started")
    components = get_components(request)

    user = await _authenticate(request, components, function)
    require_email(user)
    body = await _read_body(request, CheckoutRequest)
    order = await components.checkout.create_order(user, body.plan_type)
    return _json(order.model_dump(by_alias=True))


# -----------------------------------------------------------------------------
# manual-subscription-update
# -----------------------------------------------------------------------------

@router.options("/manual-subscription-update")
async def manual_subscription_update_preflight() -> Response:
    return _preflight()


@router.post("/manual-subscription-update")
async def manual_subscription_update(request: Request) -> JSONResponse:
    """Activate a plan once the client reports a completed payment."""
    function = "MANUAL-SUB-UPDATE"
    log_step(function, "Function started")
    components = get_components(request)

    user = await _authenticate(request, components, function)
    body = await _read_body(request, ManualSubscriptionUpdateRequest)
    result = await components.subscriptions.activate_from_payment(
        user,
        payment_id=body.payment_id,
        order_id=body.order_id,
        plan_type=body.plan_type,
    )
    return _json({
        "success": True,
        "message": ACTIVATED_MESSAGE,
        "data": result.model_dump(mode="json", by_alias=True),
    })


# -----------------------------------------------------------------------------
# razorpay-webhook
# -----------------------------------------------------------------------------

@router.options("/razorpay-webhook")
async def razorpay_webhook_preflight() -> Response:
    return _preflight(WEBHOOK_CORS_HEADERS)


@router.post("/razorpay-webhook")
async def razorpay_webhook(request: Request) -> PlainTextResponse:
    """Apply captured-payment events sent by Razorpay."""
    log_step("RAZORPAY-WEBHOOK", "Webhook received")
    components = get_components(request)

    raw_body = await request.body()
    await components.subscriptions.handle_webhook(
        raw_body,
        signature=request.headers.get("x-razorpay-signature"),
    )
    return PlainTextResponse("OK", headers=WEBHOOK_CORS_HEADERS)


# -----------------------------------------------------------------------------
# generate-upi-qr
# -----------------------------------------------------------------------------

@router.options("/generate-upi-qr")
async def generate_upi_qr_preflight() -> Response:
    return _preflight()


@router.post("/generate-upi-qr")
async def generate_upi_qr(request: Request) -> JSONResponse:
    log_step("GENERATE-UPI-QR", "Function started")
    components = get_components(request)

    body = await _read_body(request, UpiQrRequest)
    qr = components.upi.generate(body.amount, body.plan_type, body.order_id)
    return _json(qr.model_dump(mode="json", by_alias=True))
