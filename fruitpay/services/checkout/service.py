"""Checkout handler logic.

Each operation validates required fields, makes at most two sequential Stripe
calls, checks a post-condition on what Stripe returned and shapes the response
body. Nothing is stored; Stripe owns all durable state.
"""

from typing import Any

from fruitpay.common.errors import MissingParameters, PostConditionFailed, provider_call
from fruitpay.common.logging import logger, payment_intent_id_ctx
from fruitpay.services.checkout.pricing import basket_total
from fruitpay.services.checkout.provider import StripeProvider
from fruitpay.services.checkout.schemas import CustomerAddress, parse_basket

NO_CUSTOMERS_FOUND = "no customers found"
UPDATE_INTENT_FAILED = "Failed to update payment intent"
UPDATE_METHOD_FAILED = "Failed to update payment method"


def require(payload: dict[str, Any], *fields: str) -> None:
    """Raise `MissingParameters` unless every field is present and truthy."""

    missing = [field for field in fields if not payload.get(field)]
    if missing:
        raise MissingParameters(missing)


class CheckoutService:
    """Maps validated request bodies onto Stripe operations."""

    def __init__(
        self,
        provider: StripeProvider,
        currency: str = "gbp",
        setup_future_usage: str = "on_session",
    ) -> None:
        self.provider = provider
        self.currency = currency
        self.setup_future_usage = setup_future_usage

    async def create_payment_intent(self, payload: dict[str, Any]) -> dict[str, Any]:
        require(payload, "fruitBasket")
        with provider_call("Failed to create payment intent", "paymentIntent"):
            amount = basket_total(parse_basket(payload["fruitBasket"]))
            intent = await self.provider.create_payment_intent(amount, self.currency)
            payment_intent_id_ctx.set(intent["id"])
        logger.info("payment_intent_created amount=%s currency=%s", amount, self.currency)
        return {"clientSecret": intent.get("client_secret"), "paymentIntentId": intent["id"]}

    async def customer_payment_methods(self, payload: dict[str, Any]) -> dict[str, Any]:
        require(payload, "email")
        with provider_call("Failed to retrieve payment methods", "paymentMethodCustomer"):
            customers = await self.provider.search_customers(payload["email"])
            # Duplicate e-mails are possible; only an unambiguous match is used.
            if len(customers) != 1:
                if customers:
                    logger.warning("customer_search_ambiguous matches=%s", len(customers))
                return {"message": NO_CUSTOMERS_FOUND}
            customer_id = customers[0]["id"]
            payment_methods = await self.provider.list_payment_methods(customer_id)
        return {"customerId": customer_id, "paymentMethods": payment_methods}

    async def update_customer(self, payload: dict[str, Any]) -> dict[str, Any]:
        require(payload, "paymentIntentId", "customerId")
        payment_intent_id_ctx.set(str(payload["paymentIntentId"]))
        with provider_call(UPDATE_INTENT_FAILED, "paymentIntentUpdateCustomer"):
            intent = await self.provider.update_payment_intent(
                payload["paymentIntentId"], customer=payload["customerId"]
            )
        if not intent.get("customer"):
            raise PostConditionFailed(UPDATE_INTENT_FAILED)
        return {"paymentIntent": intent}

    async def update_items(self, payload: dict[str, Any]) -> dict[str, Any]:
        require(payload, "paymentIntentId", "fruitBasket")
        payment_intent_id_ctx.set(str(payload["paymentIntentId"]))
        with provider_call(UPDATE_INTENT_FAILED, "paymentIntentUpdateItems"):
            amount = basket_total(parse_basket(payload["fruitBasket"]))
            intent = await self.provider.update_payment_intent(
                payload["paymentIntentId"], amount=amount
            )
        if intent.get("amount") != amount:
            logger.warning(
                "payment_intent_amount_mismatch expected=%s actual=%s",
                amount,
                intent.get("amount"),
            )
            raise PostConditionFailed(UPDATE_INTENT_FAILED)
        return {"paymentIntent": intent}

    async def update_future_usage(self, payload: dict[str, Any]) -> dict[str, Any]:
        require(payload, "paymentIntentId")
        payment_intent_id_ctx.set(str(payload["paymentIntentId"]))
        with provider_call(UPDATE_INTENT_FAILED, "paymentIntentUpdateFutureUsage"):
            intent = await self.provider.update_payment_intent(
                payload["paymentIntentId"], setup_future_usage=self.setup_future_usage
            )
        # Saving a method for later only makes sense once a customer is attached.
        if not intent.get("customer"):
            raise PostConditionFailed(UPDATE_INTENT_FAILED)
        return {"paymentIntent": intent}

    async def detach_payment_method(self, payload: dict[str, Any]) -> dict[str, Any]:
        require(payload, "paymentMethodId")
        with provider_call(UPDATE_METHOD_FAILED, "paymentMethodDetach"):
            method = await self.provider.detach_payment_method(payload["paymentMethodId"])
        if not method.get("id") or method.get("customer"):
            raise PostConditionFailed(UPDATE_METHOD_FAILED)
        return {"paymentMethodId": method["id"]}

    async def add_customer(self, payload: dict[str, Any]) -> dict[str, Any]:
        email = payload.get("customerEmail") or payload.get("email")
        require({**payload, "customerEmail": email}, "customerEmail", "paymentIntentId")
        payment_intent_id_ctx.set(str(payload["paymentIntentId"]))
        with provider_call(
            "Failed to add customer and update payment intent", "paymentIntentAddCustomer"
        ):
            details = CustomerAddress.model_validate(payload.get("customerAddress") or {})
            customer = await self.provider.create_customer(
                email, name=details.name, address=details.address
            )
            if not customer.get("id"):
                raise PostConditionFailed("Failed to create customer")
            # A failure past this point leaves the new customer in place.
            intent = await self.provider.update_payment_intent(
                payload["paymentIntentId"], customer=customer["id"]
            )
        if not intent.get("id"):
            raise PostConditionFailed(UPDATE_INTENT_FAILED)
        logger.info("customer_attached customer_id=%s", customer["id"])
        return {"paymentIntentId": intent["id"]}

    async def create_account_session(self, payload: dict[str, Any]) -> dict[str, Any]:
        require(payload, "account")
        with provider_call("Failed to create account session", "accountSession"):
            session = await self.provider.create_account_session(payload["account"])
            return {"clientSecret": session["client_secret"]}
