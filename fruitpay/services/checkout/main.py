"""Public HTTP surface for checkout.

Thin facade over Stripe: each route reads the JSON body, hands it to
`CheckoutService` with a per-request Stripe provider and returns the shaped
response. Errors are rendered as `{"error": ...}` by one exception handler.
"""

from time import perf_counter
from typing import Any
from uuid import uuid4

import uvicorn
from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware

from fruitpay.common.config import settings
from fruitpay.common.errors import CheckoutError, checkout_error_handler
from fruitpay.common.logging import configure_logging, trace_id_ctx
from fruitpay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
)
from fruitpay.common.startup import log_startup_config
from fruitpay.common.tracing import instrument_app, setup_tracing
from fruitpay.services.checkout.provider import StripeProvider, get_provider
from fruitpay.services.checkout.schemas import (
    AccountSessionCreated,
    CustomerPaymentMethods,
    NoCustomerMessage,
    PaymentIntentCreated,
    PaymentIntentEnvelope,
    PaymentIntentReference,
    PaymentMethodDetached,
    WebhookReceipt,
)
from fruitpay.services.checkout.service import CheckoutService
from fruitpay.services.checkout.webhooks import dispatch_event, verify_event

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings,
    [
        "port",
        "currency",
        "setup_future_usage",
        "expose_error_detail",
        "stripe_secret_key",
        "stripe_webhook_secret",
        "otel_exporter_otlp_endpoint",
    ],
)
app = FastAPI(title="Fruitpay Checkout")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(CheckoutError, checkout_error_handler)
instrument_app(app)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Bind a correlation id and record request count and latency."""

    trace_id = request.headers.get("x-correlation-id") or str(uuid4())
    token = trace_id_ctx.set(trace_id)
    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        response.headers["x-correlation-id"] = trace_id
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()
        trace_id_ctx.reset(token)


async def json_body(request: Request) -> dict[str, Any]:
    """Request body as a dict; anything that is not a JSON object reads as empty."""

    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def get_service(provider: StripeProvider = Depends(get_provider)) -> CheckoutService:
    return CheckoutService(
        provider,
        currency=settings.currency,
        setup_future_usage=settings.setup_future_usage,
    )


@app.get("/")
def alive():
    """Sense check endpoint."""

    return {"Status": "Alive"}


@app.post("/paymentIntent", response_model=PaymentIntentCreated)
async def create_payment_intent(
    body: dict = Depends(json_body),
    service: CheckoutService = Depends(get_service),
):
    """Create a guest payment intent for a basket and return its client secret."""

    return await service.create_payment_intent(body)


@app.post(
    "/paymentMethodCustomer",
    response_model=CustomerPaymentMethods | NoCustomerMessage,
)
async def payment_method_customer(
    body: dict = Depends(json_body),
    service: CheckoutService = Depends(get_service),
):
    """Find a returning customer by e-mail and list their saved payment methods."""

    return await service.customer_payment_methods(body)


@app.post("/paymentIntentUpdateCustomer", response_model=PaymentIntentEnvelope)
async def payment_intent_update_customer(
    body: dict = Depends(json_body),
    service: CheckoutService = Depends(get_service),
):
    """Attach an existing customer to a payment intent."""

    return await service.update_customer(body)


@app.post("/paymentIntentUpdateItems", response_model=PaymentIntentEnvelope)
async def payment_intent_update_items(
    body: dict = Depends(json_body),
    service: CheckoutService = Depends(get_service),
):
    """Reprice a payment intent from a new basket."""

    return await service.update_items(body)


@app.post("/paymentIntentUpdateFutureUsage", response_model=PaymentIntentEnvelope)
async def payment_intent_update_future_usage(
    body: dict = Depends(json_body),
    service: CheckoutService = Depends(get_service),
):
    return await service.update_future_usage(body)


@app.post("/paymentMethodDetach", response_model=PaymentMethodDetached)
async def payment_method_detach(
    body: dict = Depends(json_body),
    service: CheckoutService = Depends(get_service),
):
    return await service.detach_payment_method(body)


@app.post("/paymentIntentAddCustomer", response_model=PaymentIntentReference)
async def payment_intent_add_customer(
    body: dict = Depends(json_body),
    service: CheckoutService = Depends(get_service),
):
    """Create a customer and attach it to an existing payment intent."""

    return await service.add_customer(body)


@app.post("/accountSession", response_model=AccountSessionCreated)
async def account_session(
    body: dict = Depends(json_body),
    service: CheckoutService = Depends(get_service),
):
    """Create an embedded-components session for a connected account."""

    return await service.create_account_session(body)


@app.post("/webhook", response_model=WebhookReceipt)
async def webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
):
    """Verify a Stripe webhook and dispatch it by event type."""

    event = verify_event(await request.body(), stripe_signature, settings.stripe_webhook_secret)
    await dispatch_event(event)
    return WebhookReceipt()


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


def run() -> None:
    """Console entrypoint: serve the app on the configured host and port."""

    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
