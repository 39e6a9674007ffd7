from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from throttlekit.config.models import ClientConfig, ThrottleConfig


class RuntimeSettings(BaseSettings):
    """Environment-driven overrides applied on top of the loaded config."""

    model_config = SettingsConfigDict(
        env_prefix="THROTTLEKIT_",
        extra="ignore",
        populate_by_name=True,
        case_sensitive=False,
    )

    enabled: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("THROTTLEKIT_ENABLED", "THROTTLING_ENABLED"),
    )
    codes: str | None = Field(
        default=None,
        validation_alias=AliasChoices("THROTTLEKIT_CODES", "THROTTLEKIT_THROTTLE_CODES"),
    )
    default_wait_ms: int | None = Field(
        default=None,
        validation_alias=AliasChoices("THROTTLEKIT_DEFAULT_WAIT_MS"),
    )
    jitter_percent: float | None = Field(
        default=None,
        validation_alias=AliasChoices("THROTTLEKIT_JITTER_PERCENT", "THROTTLEKIT_JITTER"),
    )
    max_retries: int | None = Field(
        default=None,
        validation_alias=AliasChoices("THROTTLEKIT_MAX_RETRIES"),
    )

    base_url: str | None = Field(default=None, validation_alias=AliasChoices("THROTTLEKIT_BASE_URL"))
    timeout_seconds: float | None = Field(
        default=None,
        validation_alias=AliasChoices("THROTTLEKIT_TIMEOUT_SECONDS", "THROTTLEKIT_TIMEOUT"),
    )
    verify_ssl: bool | None = Field(default=None, validation_alias=AliasChoices("THROTTLEKIT_VERIFY_SSL"))

    def throttle_overrides(self) -> dict[str, Any]:
        values = {
            "enabled": self.enabled,
            "codes": self.codes,
            "default_wait_ms": self.default_wait_ms,
            "jitter_percent": self.jitter_percent,
            "max_retries": self.max_retries,
        }
        return {key: value for key, value in values.items() if value is not None}

    def apply(self, config: ClientConfig) -> ClientConfig:
        throttle = config.throttle
        overrides = self.throttle_overrides()
        if overrides:
            throttle = ThrottleConfig.model_validate({**throttle.model_dump(), **overrides})

        client_values = {
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds,
            "verify_ssl": self.verify_ssl,
        }
        updates: dict[str, Any] = {key: value for key, value in client_values.items() if value is not None}
        updates["throttle"] = throttle
        return config.model_copy(update=updates)
