"""Prometheus metric definitions for the checkout service."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
provider_calls_total = Counter(
    "provider_calls_total",
    "Stripe API calls by operation and outcome",
    ["service", "operation", "outcome"],
)
provider_call_duration_seconds = Histogram(
    "provider_call_duration_seconds",
    "Stripe API call latency seconds",
    ["service", "operation"],
)
provider_errors_total = Counter(
    "provider_errors_total",
    "Endpoint requests that ended in a provider or unexpected error",
    ["service", "endpoint"],
)
webhook_events_total = Counter(
    "webhook_events_total",
    "Verified webhook events by type",
    ["service", "event_type", "handled"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
