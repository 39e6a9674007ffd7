from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator

from throttlekit.constants import (
    DEFAULT_JITTER_PERCENT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_THROTTLE_CODES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_WAIT_MS,
)


class ThrottleConfig(BaseModel):
    """Retry policy for throttling responses.

    ``jitter_percent`` is clamped to ``[0, 100]`` and ``max_retries`` to at
    least ``1`` instead of being rejected.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    enabled: bool = Field(default=True, validation_alias=AliasChoices("enabled", "throttlingEnabled"))
    codes: frozenset[str] = Field(
        default=frozenset(DEFAULT_THROTTLE_CODES),
        validation_alias=AliasChoices("codes", "throttle_codes", "throttleCodes"),
    )
    default_wait_ms: int = Field(
        default=DEFAULT_WAIT_MS,
        ge=0,
        validation_alias=AliasChoices("default_wait_ms", "defaultWaitMs"),
    )
    jitter_percent: float = Field(
        default=DEFAULT_JITTER_PERCENT,
        validation_alias=AliasChoices("jitter_percent", "jitterPercent"),
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        validation_alias=AliasChoices("max_retries", "maxRetries", "maxThrottleTries"),
    )

    @field_validator("codes", mode="before")
    @classmethod
    def normalize_codes(cls, value: object) -> object:
        if isinstance(value, (str, int)):
            value = str(value).split(",")
        if isinstance(value, Iterable):
            return frozenset(str(code).strip() for code in value if str(code).strip())
        return value

    @field_validator("jitter_percent", mode="after")
    @classmethod
    def clamp_jitter(cls, value: float) -> float:
        return max(0.0, min(100.0, value))

    @field_validator("max_retries", mode="after")
    @classmethod
    def clamp_max_retries(cls, value: int) -> int:
        return max(1, value)

    @field_serializer("codes")
    def serialize_codes(self, codes: frozenset[str]) -> list[str]:
        return sorted(codes)


class ClientConfig(BaseModel):
    """Root configuration for throttled HTTP clients."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    base_url: str | None = Field(default=None, validation_alias=AliasChoices("base_url", "baseUrl"))
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        validation_alias=AliasChoices("timeout_seconds", "timeoutSeconds"),
    )
    verify_ssl: bool = Field(default=True, validation_alias=AliasChoices("verify_ssl", "verifySsl"))
    headers: dict[str, str] = Field(default_factory=dict)
    throttle: ThrottleConfig = Field(default_factory=ThrottleConfig)


class ResolvedConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: str
    path: Path | None = None
    data: ClientConfig


ConfigInput = ClientConfig | dict[str, Any]
