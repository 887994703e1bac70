"""Startup-time helpers for safe config logging."""

from pydantic_settings import BaseSettings

from fruitpay.common.logging import logger

SECRET_MARKERS = ("key", "secret", "password", "token")


def _safe_value(name: str, value) -> str:
    """Render one setting, redacting anything with a secret-like field name."""

    if value is None or value == "":
        return "<unset>"
    if any(marker in name.lower() for marker in SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def log_startup_config(config: BaseSettings, fields: list[str]) -> None:
    """Log selected settings fields for quick troubleshooting."""

    snapshot = {"service": getattr(config, "service_name", "unknown-service")}
    for field in fields:
        snapshot[field] = _safe_value(field, getattr(config, field, None))
    logger.info("startup_config=%s", snapshot)
