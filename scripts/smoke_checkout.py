"""Walk a running checkout service through the guest purchase flow.

Creates a payment intent for a random basket, reprices it with a second basket
and looks up a customer by e-mail. Requires Stripe test-mode keys on the
service side.
"""

import argparse
import asyncio
import random
import time
from uuid import uuid4

import httpx

from fruitpay.services.checkout.schemas import FruitRef

UNIT_COSTS = {
    FruitRef.STRAWBERRIES: 250,
    FruitRef.ORANGES: 90,
    FruitRef.GRAPES: 180,
    FruitRef.APPLES: 150,
}


def random_basket() -> list[dict]:
    """Pick one to four fruits with random quantities."""

    fruits = random.sample(list(UNIT_COSTS), k=random.randint(1, len(UNIT_COSTS)))
    return [
        {"reference": fruit.value, "quantity": random.randint(1, 5), "unitCost": UNIT_COSTS[fruit]}
        for fruit in fruits
    ]


async def step(client: httpx.AsyncClient, base_url: str, path: str, payload: dict) -> dict:
    """POST one step, print status and latency, return the JSON body."""

    started = time.perf_counter()
    resp = await client.post(
        f"{base_url}{path}",
        json=payload,
        headers={"x-correlation-id": str(uuid4())},
    )
    latency = (time.perf_counter() - started) * 1000
    print(f"{path} status={resp.status_code} latency_ms={latency:.2f}")
    return resp.json()


async def run(base_url: str, email: str) -> None:
    """Execute the flow once and stop at the first failing step."""

    async with httpx.AsyncClient(timeout=10.0) as client:
        created = await step(client, base_url, "/paymentIntent", {"fruitBasket": random_basket()})
        intent_id = created.get("paymentIntentId")
        if not intent_id:
            raise SystemExit(f"payment intent not created: {created}")

        await step(
            client,
            base_url,
            "/paymentIntentUpdateItems",
            {"paymentIntentId": intent_id, "fruitBasket": random_basket()},
        )
        found = await step(client, base_url, "/paymentMethodCustomer", {"email": email})
        print(f"customer lookup: {found.get('customerId') or found.get('message')}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Smoke-test the checkout flow.")
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--email", default="smoke@example.com")
    args = parser.parse_args()
    asyncio.run(run(args.base_url, args.email))
