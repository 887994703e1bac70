"""Async wrapper around the Stripe calls the checkout service makes.

The Stripe SDK is synchronous, so every call runs in a worker thread. Returned
Stripe objects are converted to plain dicts so handlers and responses never
depend on SDK object types.
"""

import asyncio
import time
from typing import Any

import stripe

from fruitpay.common.config import settings
from fruitpay.common.metrics import provider_call_duration_seconds, provider_calls_total
from fruitpay.common.tracing import tracer


def build_stripe_client(api_key: str, http_client: stripe.HTTPClient | None = None) -> stripe.StripeClient:
    """Stripe client with SDK network retries disabled (the global default retries twice)."""

    return stripe.StripeClient(api_key, max_network_retries=0, http_client=http_client)


def customer_email_query(email: str) -> str:
    """Search-language clause matching one e-mail exactly."""

    escaped = email.replace("\\", "\\\\").replace('"', '\\"')
    return f'email:"{escaped}"'


class StripeProvider:
    """One instance per request, wrapping its own `StripeClient`."""

    def __init__(self, client: stripe.StripeClient) -> None:
        self.client = client

    async def _call(self, operation: str, fn, *args, **kwargs) -> dict[str, Any]:
        """Run one SDK call off the event loop, recording span and metrics."""

        started = time.perf_counter()
        outcome = "error"
        with tracer.start_as_current_span(f"stripe.{operation}"):
            try:
                result = await asyncio.to_thread(fn, *args, **kwargs)
                outcome = "ok"
                return result.to_dict()
            finally:
                provider_calls_total.labels(
                    service=settings.service_name,
                    operation=operation,
                    outcome=outcome,
                ).inc()
                provider_call_duration_seconds.labels(
                    service=settings.service_name,
                    operation=operation,
                ).observe(max(0.0, time.perf_counter() - started))

    async def create_payment_intent(self, amount: int, currency: str) -> dict[str, Any]:
        return await self._call(
            "payment_intents.create",
            self.client.v1.payment_intents.create,
            params={"amount": amount, "currency": currency},
        )

    async def update_payment_intent(self, payment_intent_id: str, **fields) -> dict[str, Any]:
        return await self._call(
            "payment_intents.update",
            self.client.v1.payment_intents.update,
            payment_intent_id,
            params=fields,
        )

    async def search_customers(self, email: str) -> list[dict[str, Any]]:
        # No local email -> customer id mapping exists, so search instead of retrieve.
        result = await self._call(
            "customers.search",
            self.client.v1.customers.search,
            params={"query": customer_email_query(email)},
        )
        return result.get("data", [])

    async def create_customer(
        self,
        email: str,
        name: str | None = None,
        address: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"email": email}
        if name:
            params["name"] = name
        if address:
            params["address"] = address
        return await self._call("customers.create", self.client.v1.customers.create, params=params)

    async def list_payment_methods(self, customer_id: str) -> list[dict[str, Any]]:
        result = await self._call(
            "payment_methods.list",
            self.client.v1.payment_methods.list,
            params={"customer": customer_id},
        )
        return result.get("data", [])

    async def detach_payment_method(self, payment_method_id: str) -> dict[str, Any]:
        return await self._call(
            "payment_methods.detach",
            self.client.v1.payment_methods.detach,
            payment_method_id,
        )

    async def create_account_session(self, account: str) -> dict[str, Any]:
        return await self._call(
            "account_sessions.create",
            self.client.v1.account_sessions.create,
            params={"account": account, "components": {"payments": {"enabled": True}}},
        )


def get_provider() -> StripeProvider:
    """FastAPI dependency: a fresh Stripe client for each request."""

    return StripeProvider(build_stripe_client(settings.stripe_secret_key))
