"""Central environment-driven settings for the checkout service.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "checkout"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    # Older deployments export the key as STRIPE_TEST_KEY.
    stripe_secret_key: str = Field(
        validation_alias=AliasChoices("STRIPE_SECRET_KEY", "STRIPE_TEST_KEY")
    )
    stripe_webhook_secret: str = ""
    currency: str = "gbp"
    setup_future_usage: Literal["on_session", "off_session"] = "on_session"
    expose_error_detail: bool = False
    cors_allow_origins: list[str] = ["*"]
    otel_exporter_otlp_endpoint: str | None = None
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
