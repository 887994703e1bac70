"""Error types shared by checkout handlers and their JSON rendering.

Handlers raise `CheckoutError` subclasses; one FastAPI exception handler turns
them into `{"error": ...}` bodies. Provider failures are wrapped exactly once by
`provider_call`, so a failing Stripe call produces one 500 and is never retried.
"""

from contextlib import contextmanager

from fastapi import Request
from fastapi.responses import JSONResponse

from fruitpay.common.config import settings
from fruitpay.common.logging import logger
from fruitpay.common.metrics import provider_errors_total

MISSING_PARAMETERS = "Missing parameters"


class CheckoutError(Exception):
    """Base error carrying the client-facing message and HTTP status."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def body(self) -> dict:
        return {"error": self.message}


class MissingParameters(CheckoutError):
    """A required request field is absent or falsy."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(MISSING_PARAMETERS)
        self.missing = missing


class PostConditionFailed(CheckoutError):
    """The provider answered but the returned object is not in the expected state."""


class ProviderCallFailed(CheckoutError):
    """A provider call (or pricing) raised; reported as a generic 500."""

    status_code = 500

    def __init__(self, message: str, cause: BaseException) -> None:
        super().__init__(message)
        self.cause = cause

    def body(self) -> dict:
        body = super().body()
        if settings.expose_error_detail:
            body["detail"] = str(self.cause)
        return body


@contextmanager
def provider_call(message: str, endpoint: str):
    """Convert anything unexpected raised inside the block to `ProviderCallFailed`."""

    try:
        yield
    except CheckoutError:
        raise
    except Exception as exc:
        logger.exception("provider_call_failed endpoint=%s error=%s", endpoint, exc)
        provider_errors_total.labels(service=settings.service_name, endpoint=endpoint).inc()
        raise ProviderCallFailed(message, exc) from exc


async def checkout_error_handler(_: Request, exc: CheckoutError) -> JSONResponse:
    """Render a `CheckoutError` as its JSON error body."""

    if isinstance(exc, MissingParameters):
        logger.info("request_rejected missing=%s", exc.missing)
    return JSONResponse(status_code=exc.status_code, content=exc.body())
