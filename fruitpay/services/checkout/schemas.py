"""Basket and response schemas for checkout endpoints.

Request bodies are read as plain JSON objects and gated on field presence, so
only the basket items get a model. Field names follow the front end's camelCase.
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class FruitRef(str, Enum):
    """SKUs sold by the storefront."""

    STRAWBERRIES = "strawberries"
    ORANGES = "oranges"
    GRAPES = "grapes"
    APPLES = "apples"


class BasketItem(BaseModel):
    """One basket line; accepts both `reference/unitCost` and the legacy `ref/cost`."""

    model_config = ConfigDict(extra="ignore")

    # Unknown references are not rejected; only quantity and cost are priced.
    reference: FruitRef | str | None = Field(
        default=None, validation_alias=AliasChoices("reference", "ref")
    )
    quantity: int | float
    unit_cost: int | float = Field(validation_alias=AliasChoices("unitCost", "cost"))
    label: str | None = None


class CustomerAddress(BaseModel):
    """Optional name/address block sent with `paymentIntentAddCustomer`."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    address: dict[str, Any] | None = None


class PaymentIntentCreated(BaseModel):
    clientSecret: str | None
    paymentIntentId: str


class CustomerPaymentMethods(BaseModel):
    customerId: str
    paymentMethods: list[dict[str, Any]]


class NoCustomerMessage(BaseModel):
    message: str


class PaymentIntentEnvelope(BaseModel):
    paymentIntent: dict[str, Any]


class PaymentMethodDetached(BaseModel):
    paymentMethodId: str


class PaymentIntentReference(BaseModel):
    paymentIntentId: str


class AccountSessionCreated(BaseModel):
    clientSecret: str


class WebhookReceipt(BaseModel):
    received: bool = True


def parse_basket(raw: Any) -> list[BasketItem]:
    """Build basket items from the request's `fruitBasket` list."""

    if not isinstance(raw, list):
        raise TypeError("fruitBasket must be a list of items")
    return [BasketItem.model_validate(item) for item in raw]
