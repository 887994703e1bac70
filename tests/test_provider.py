"""StripeProvider tests against a canned HTTP client: requests sent, parsing, retries."""

import asyncio
import json
from urllib.parse import parse_qs, urlsplit

import pytest
import stripe

from fruitpay.services.checkout.provider import (
    StripeProvider,
    build_stripe_client,
    customer_email_query,
)


class CannedHTTPClient(stripe.HTTPClient):
    """Answers each request from a queue of `(status, body)` pairs or exceptions."""

    name = "canned"

    def __init__(self, *outcomes) -> None:
        super().__init__()
        self.outcomes = list(outcomes)
        self.requests: list[tuple[str, str, str | None]] = []

    def request(self, method, url, headers, post_data=None, *, _usage=None):
        self.requests.append((method, url, post_data))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        status, body = outcome
        return json.dumps(body), status, {"request-id": "req_test"}

    def close(self):
        pass


def make_provider(*outcomes) -> tuple[StripeProvider, CannedHTTPClient]:
    http = CannedHTTPClient(*outcomes)
    return StripeProvider(build_stripe_client("sk_test_dummy", http_client=http)), http


def form(post_data) -> dict[str, list[str]]:
    if isinstance(post_data, bytes):
        post_data = post_data.decode("utf-8")
    return parse_qs(post_data or "")


@pytest.fixture(autouse=True)
def global_retries(monkeypatch):
    """Keep the SDK's process-wide retry default on, as in production."""

    monkeypatch.setattr(stripe, "max_network_retries", 2)


def test_connection_error_is_not_retried():
    provider, http = make_provider(
        stripe.APIConnectionError("connection reset", should_retry=True),
        (200, {"id": "pi_1", "object": "payment_intent"}),
    )

    with pytest.raises(stripe.APIConnectionError):
        asyncio.run(provider.create_payment_intent(300, "gbp"))

    assert len(http.requests) == 1


def test_server_error_is_not_retried():
    provider, http = make_provider(
        (500, {"error": {"type": "api_error", "message": "try again"}}),
        (200, {"id": "pm_1", "object": "payment_method"}),
    )

    with pytest.raises(stripe.APIError):
        asyncio.run(provider.detach_payment_method("pm_1"))

    assert len(http.requests) == 1


def test_create_payment_intent_posts_amount_and_currency():
    provider, http = make_provider(
        (200, {"id": "pi_1", "object": "payment_intent", "client_secret": "pi_1_secret", "amount": 300})
    )

    intent = asyncio.run(provider.create_payment_intent(300, "gbp"))

    assert intent == {"id": "pi_1", "object": "payment_intent", "client_secret": "pi_1_secret", "amount": 300}
    method, url, post_data = http.requests[0]
    assert method == "post"
    assert urlsplit(url).path == "/v1/payment_intents"
    assert form(post_data) == {"amount": ["300"], "currency": ["gbp"]}


def test_update_payment_intent_targets_the_intent():
    provider, http = make_provider(
        (200, {"id": "pi_1", "object": "payment_intent", "customer": "cus_1"})
    )

    intent = asyncio.run(provider.update_payment_intent("pi_1", customer="cus_1"))

    assert intent["customer"] == "cus_1"
    method, url, post_data = http.requests[0]
    assert urlsplit(url).path == "/v1/payment_intents/pi_1"
    assert form(post_data) == {"customer": ["cus_1"]}


def test_search_customers_queries_by_email_and_returns_plain_dicts():
    provider, http = make_provider(
        (
            200,
            {
                "object": "search_result",
                "url": "/v1/customers/search",
                "has_more": False,
                "data": [{"id": "cus_1", "object": "customer", "email": "a@example.com"}],
            },
        )
    )

    customers = asyncio.run(provider.search_customers("a@example.com"))

    assert customers == [{"id": "cus_1", "object": "customer", "email": "a@example.com"}]
    assert type(customers[0]) is dict
    method, url, _ = http.requests[0]
    assert method == "get"
    assert urlsplit(url).path == "/v1/customers/search"
    assert parse_qs(urlsplit(url).query) == {"query": ['email:"a@example.com"']}


def test_email_quotes_and_backslashes_are_escaped():
    assert customer_email_query('o"brien@example.com') == 'email:"o\\"brien@example.com"'
    assert customer_email_query("a\\b@example.com") == 'email:"a\\\\b@example.com"'


def test_list_payment_methods_filters_by_customer():
    provider, http = make_provider(
        (
            200,
            {
                "object": "list",
                "url": "/v1/payment_methods",
                "has_more": False,
                "data": [{"id": "pm_1", "object": "payment_method", "card": {"last4": "4242"}}],
            },
        )
    )

    methods = asyncio.run(provider.list_payment_methods("cus_1"))

    assert methods == [{"id": "pm_1", "object": "payment_method", "card": {"last4": "4242"}}]
    _, url, _ = http.requests[0]
    assert parse_qs(urlsplit(url).query) == {"customer": ["cus_1"]}


def test_empty_list_reads_as_no_items():
    provider, _ = make_provider(
        (200, {"object": "list", "url": "/v1/payment_methods", "has_more": False, "data": []})
    )

    assert asyncio.run(provider.list_payment_methods("cus_1")) == []


def test_create_customer_leaves_out_empty_name_and_address():
    provider, http = make_provider((200, {"id": "cus_1", "object": "customer"}))

    asyncio.run(provider.create_customer("a@example.com", name="", address=None))

    assert form(http.requests[0][2]) == {"email": ["a@example.com"]}


def test_create_customer_sends_name_and_address():
    provider, http = make_provider((200, {"id": "cus_1", "object": "customer"}))

    asyncio.run(
        provider.create_customer(
            "a@example.com", name="Ada", address={"line1": "1 Orchard Lane", "country": "GB"}
        )
    )

    assert form(http.requests[0][2]) == {
        "email": ["a@example.com"],
        "name": ["Ada"],
        "address[line1]": ["1 Orchard Lane"],
        "address[country]": ["GB"],
    }


def test_detach_payment_method():
    provider, http = make_provider(
        (200, {"id": "pm_1", "object": "payment_method", "customer": None})
    )

    method = asyncio.run(provider.detach_payment_method("pm_1"))

    assert method == {"id": "pm_1", "object": "payment_method", "customer": None}
    verb, url, _ = http.requests[0]
    assert verb == "post"
    assert urlsplit(url).path == "/v1/payment_methods/pm_1/detach"


def test_account_session_enables_payments_component():
    provider, http = make_provider(
        (200, {"object": "account_session", "account": "acct_1", "client_secret": "accs_secret"})
    )

    session = asyncio.run(provider.create_account_session("acct_1"))

    assert session["client_secret"] == "accs_secret"
    _, url, post_data = http.requests[0]
    assert urlsplit(url).path == "/v1/account_sessions"
    assert form(post_data) == {
        "account": ["acct_1"],
        "components[payments][enabled]": ["true"],
    }
