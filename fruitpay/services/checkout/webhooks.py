"""Stripe webhook verification and event-type dispatch.

Handlers are acknowledgement stubs: they log the event and nothing else.
"""

from collections.abc import Awaitable, Callable
from typing import Any

import stripe

from fruitpay.common.config import settings
from fruitpay.common.errors import MissingParameters, provider_call
from fruitpay.common.logging import event_id_ctx, logger, payment_intent_id_ctx
from fruitpay.common.metrics import webhook_events_total

EventHandler = Callable[[dict[str, Any]], Awaitable[None]]

HANDLERS: dict[str, EventHandler] = {}


def on_event(*event_types: str):
    """Register a coroutine as the handler for one or more event types."""

    def register(fn: EventHandler) -> EventHandler:
        for event_type in event_types:
            HANDLERS[event_type] = fn
        return fn

    return register


@on_event(
    "payment_intent.created",
    "payment_intent.succeeded",
    "payment_intent.payment_failed",
    "payment_intent.canceled",
)
async def handle_payment_intent(obj: dict[str, Any]) -> None:
    payment_intent_id_ctx.set(obj.get("id") or "")
    logger.info(
        "payment_intent_event status=%s amount=%s customer=%s",
        obj.get("status"),
        obj.get("amount"),
        obj.get("customer"),
    )


@on_event("payment_method.attached", "payment_method.detached")
async def handle_payment_method(obj: dict[str, Any]) -> None:
    logger.info(
        "payment_method_event payment_method_id=%s customer=%s",
        obj.get("id"),
        obj.get("customer"),
    )


@on_event("customer.created")
async def handle_customer(obj: dict[str, Any]) -> None:
    logger.info("customer_event customer_id=%s", obj.get("id"))


def verify_event(payload: bytes, signature: str | None, secret: str) -> dict[str, Any]:
    """Verify the signature header and decode the event body."""

    if not signature:
        raise MissingParameters(["stripe-signature"])
    with provider_call("Webhook verification failed", "webhook"):
        event = stripe.Webhook.construct_event(payload, signature, secret)
        return event.to_dict()


async def dispatch_event(event: dict[str, Any]) -> bool:
    """Route a verified event to its handler; return whether one was registered."""

    event_type = event.get("type", "")
    event_id_ctx.set(event.get("id") or "")
    handler = HANDLERS.get(event_type)
    webhook_events_total.labels(
        service=settings.service_name,
        event_type=event_type,
        handled=str(handler is not None).lower(),
    ).inc()
    if handler is None:
        logger.info("webhook_event_unhandled event_type=%s", event_type)
        return False
    logger.info("webhook_event_received event_type=%s", event_type)
    await handler(event.get("data", {}).get("object", {}))
    return True
