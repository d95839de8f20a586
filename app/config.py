"""Application configuration management via pydantic-settings.

Centralize all configuration parameters for the Portwatch prober. Load settings
from environment variables and/or a `.env` file. Provide type validation, default
values and parsing of the newline-delimited endpoint list.

Loading never fails on malformed values: integers, choices and flags that do not
parse fall back to the field default, so a bad `TIMEOUT`, `LOG_LEVEL` or
`NOTIFY_ON_FAILURE` value cannot keep the prober from starting.
"""

from functools import lru_cache
from typing import Any, Literal, Optional, get_args

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.portwatch.endpoints import EndpointEntry, parse_endpoint_list

_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "y", "t"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", "n", "f", ""})


class Settings(BaseSettings):
    """Application-wide configuration settings.

    Attributes:
        PROJECT_NAME: Display name for the application.
        VERSION: Semantic version string.
        ENVIRONMENT: Deployment environment identifier.
        LOG_LEVEL: Minimum logging verbosity level.
        HOST: Interface the metrics server binds to.
        PORT: Port the metrics server listens on.
        TIMEOUT: Per-connection probe deadline in seconds.
        NODEIP: Identity of the node running the prober, used in diagnostics.
        CLUSTERNAME: Cluster the node belongs to, used in alert payloads.
        WEBHOOKURL: Incoming webhook receiving failure alerts.
        RESCAN: Delay between full polling cycles in seconds.
        ENDPOINTS: Raw newline-delimited endpoint list.
        MAX_CONCURRENT_PROBES: Upper bound on probes in flight during a cycle.
        METRICS_NAMESPACE: Prometheus namespace of the exported gauges.
        METRICS_NAME: Prometheus name of the aggregate health gauge.
        NOTIFY_ON_FAILURE: Send a webhook alert for every failed probe.
        ALERT_TEMPLATE_PATH: Jinja2 JSON template used for alert payloads.
        WEBHOOK_TIMEOUT: Deadline for a single webhook delivery in seconds.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    # ==========================================================================
    # PROJECT METADATA
    # ==========================================================================
    PROJECT_NAME: str = "Portwatch"
    VERSION: str = "0.1.0"

    # ==========================================================================
    # ENVIRONMENT & LOGGING
    # ==========================================================================
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    LOG_LEVEL: Literal["debug", "info", "warning", "error", "critical"] = "info"
    LOGGING_NOISY_MODULES: list[str] = [
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "httpcore",
        "asyncio",
    ]

    # ==========================================================================
    # HTTP SERVER
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # ==========================================================================
    # PROBING
    # ==========================================================================
    TIMEOUT: int = 1
    NODEIP: str = ""
    CLUSTERNAME: str = ""
    RESCAN: int = 30
    ENDPOINTS: str = ""
    MAX_CONCURRENT_PROBES: int = 10

    # ==========================================================================
    # METRICS
    # ==========================================================================
    METRICS_NAMESPACE: str = "strongswan"
    METRICS_NAME: str = "cassandratest"

    # ==========================================================================
    # ALERTING
    # ==========================================================================
    # Alerts stay off unless NOTIFY_ON_FAILURE is set and WEBHOOKURL is non-empty.
    WEBHOOKURL: str = ""
    NOTIFY_ON_FAILURE: bool = False
    ALERT_TEMPLATE_PATH: Optional[str] = None
    WEBHOOK_TIMEOUT: int = 5

    @field_validator(
        "PORT", "TIMEOUT", "RESCAN", "MAX_CONCURRENT_PROBES", "WEBHOOK_TIMEOUT",
        mode="before",
    )
    @classmethod
    def fallback_invalid_int(cls, v: Any, info: ValidationInfo) -> Any:
        """Replace values that do not parse as integers with the field default.

        Args:
            v: Raw value taken from the environment or constructor.
            info: Pydantic validation context naming the field.

        Returns:
            The integer value, or the field default when parsing fails.
        """
        try:
            return int(v)
        except (TypeError, ValueError):
            return cls.model_fields[info.field_name].default

    @field_validator("ENVIRONMENT", "LOG_LEVEL", mode="before")
    @classmethod
    def fallback_invalid_choice(cls, v: Any, info: ValidationInfo) -> Any:
        """Lower-case a choice and replace unknown values with the field default.

        `LOG_LEVEL=INFO` is accepted as `info`; `ENVIRONMENT=prod` falls back
        to `development`.
        """
        field = cls.model_fields[info.field_name]
        choice = str(v).strip().lower()
        if choice in get_args(field.annotation):
            return choice
        return field.default

    @field_validator("NOTIFY_ON_FAILURE", mode="before")
    @classmethod
    def fallback_invalid_bool(cls, v: Any, info: ValidationInfo) -> Any:
        """Parse common boolean spellings, falling back to the field default."""
        if isinstance(v, bool):
            return v
        flag = str(v).strip().lower()
        if flag in _TRUE_VALUES:
            return True
        if flag in _FALSE_VALUES:
            return False
        return cls.model_fields[info.field_name].default

    @property
    def endpoint_entries(self) -> tuple[EndpointEntry, ...]:
        """Parsed endpoint entries, in the order they appear in ENDPOINTS."""
        return tuple(parse_endpoint_list(self.ENDPOINTS))

    @property
    def endpoints(self) -> tuple[str, ...]:
        """The ordered `host:port` strings to probe."""
        return tuple(entry.address for entry in self.endpoint_entries)

    @property
    def alerts_enabled(self) -> bool:
        return self.NOTIFY_ON_FAILURE and bool(self.WEBHOOKURL)


# ==============================================================================
# DEPENDENCY INJECTION
# ==============================================================================


def load_settings(**overrides: Any) -> Settings:
    """Build a fresh Settings instance from the environment.

    Args:
        **overrides: Field values taking precedence over the environment.

    Returns:
        A new, immutable Settings instance.
    """
    return Settings(**overrides)


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton instance of the application settings.

    Use as a FastAPI dependency to inject configuration into route handlers.

    Returns:
        The singleton Settings instance.
    """
    return load_settings()
