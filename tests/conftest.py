"""Shared fixtures: test settings, an in-memory Stripe fake and a TestClient."""

import os

os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from fruitpay.common.config import settings  # noqa: E402
from fruitpay.services.checkout.main import app  # noqa: E402
from fruitpay.services.checkout.provider import get_provider  # noqa: E402


class FakeProvider:
    """Records every call; answers from `responses` or raises from `errors`."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple, dict]] = []
        self.responses: dict = {}
        self.errors: dict[str, Exception] = {}

    def _record(self, operation: str, *args, **kwargs):
        self.calls.append((operation, args, kwargs))
        if operation in self.errors:
            raise self.errors[operation]
        return self.responses[operation]

    async def create_payment_intent(self, amount, currency):
        return self._record("create_payment_intent", amount, currency)

    async def update_payment_intent(self, payment_intent_id, **fields):
        return self._record("update_payment_intent", payment_intent_id, **fields)

    async def search_customers(self, email):
        return self._record("search_customers", email)

    async def create_customer(self, email, name=None, address=None):
        return self._record("create_customer", email, name=name, address=address)

    async def list_payment_methods(self, customer_id):
        return self._record("list_payment_methods", customer_id)

    async def detach_payment_method(self, payment_method_id):
        return self._record("detach_payment_method", payment_method_id)

    async def create_account_session(self, account):
        return self._record("create_account_session", account)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(provider):
    app.dependency_overrides[get_provider] = lambda: provider
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def expose_detail(monkeypatch):
    monkeypatch.setattr(settings, "expose_error_detail", True)
