"""Throttle-aware retry driver."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

from throttlekit.config.models import ThrottleConfig
from throttlekit.errors import HttpStatusError, ThrottleExhaustedError
from throttlekit.headers import NormalizedHeaders, RawHeaders, normalize_headers
from throttlekit.jitter import apply_jitter
from throttlekit.wait_time import Clock, compute_wait_ms

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT")


@dataclass(slots=True)
class ThrottleResponse:
    """Minimal view of an HTTP response: status, normalized headers, body."""

    status_code: int
    headers: NormalizedHeaders = field(default_factory=dict)
    body: Any = None

    @classmethod
    def build(cls, status_code: int, headers: RawHeaders = None, body: Any = None) -> ThrottleResponse:
        return cls(status_code=int(status_code), headers=normalize_headers(headers), body=body)


Executor = Callable[[RequestT], Awaitable[ThrottleResponse]]
Sleeper = Callable[[float], Awaitable[None]]


class CallState(StrEnum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    THROTTLED_WAITING = "throttled_waiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ThrottlePolicy:
    """Stateless throttling policy shared by any number of concurrent calls."""

    def __init__(
        self,
        config: ThrottleConfig | None = None,
        *,
        sleep: Sleeper = asyncio.sleep,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.config = config or ThrottleConfig()
        self._sleep = sleep
        self._clock = clock
        self._rng = rng
        self.logger = log or logger

    def is_throttle_status(self, status_code: int) -> bool:
        return self.config.enabled and str(status_code) in self.config.codes

    def wait_ms_for(self, response: ThrottleResponse) -> float:
        base = compute_wait_ms(response.headers, self.config.default_wait_ms, clock=self._clock)
        return apply_jitter(base, self.config.jitter_percent, rng=self._rng)

    async def wait(self, wait_ms: float) -> None:
        await self._sleep(wait_ms / 1000.0)

    async def execute(
        self,
        request: RequestT,
        executor: Executor[RequestT],
        *,
        ignore_http_status_errors: bool = False,
    ) -> ThrottleResponse:
        call = ThrottledCall(self, executor, ignore_http_status_errors=ignore_http_status_errors)
        return await call.run(request)


class ThrottledCall(Generic[RequestT]):
    """Drives one logical request through throttled retries.

    Executor exceptions are never retried and propagate untouched; only
    responses whose status is a configured throttle code trigger a wait.
    """

    def __init__(
        self,
        policy: ThrottlePolicy,
        executor: Executor[RequestT],
        *,
        ignore_http_status_errors: bool = False,
    ) -> None:
        self.policy = policy
        self.executor = executor
        self.ignore_http_status_errors = ignore_http_status_errors
        self.state = CallState.IDLE
        self.attempt = 0
        self.calls = 0

    async def run(self, request: RequestT) -> ThrottleResponse:
        if self.state is not CallState.IDLE:
            raise RuntimeError("throttled call already started")

        config = self.policy.config
        try:
            while True:
                self.state = CallState.ATTEMPTING
                self.calls += 1
                response = await self.executor(request)

                if self.policy.is_throttle_status(response.status_code):
                    if self.attempt >= config.max_retries - 1:
                        raise ThrottleExhaustedError(
                            status_code=response.status_code,
                            max_retries=config.max_retries,
                        )

                    self.attempt += 1
                    wait_ms = self.policy.wait_ms_for(response)
                    self.policy.logger.info(
                        "throttled status=%s attempt=%d/%d wait_ms=%d",
                        response.status_code,
                        self.attempt,
                        config.max_retries,
                        round(wait_ms),
                        extra={
                            "status_code": response.status_code,
                            "attempt": self.attempt,
                            "max_retries": config.max_retries,
                            "wait_ms": round(wait_ms),
                        },
                    )
                    self.state = CallState.THROTTLED_WAITING
                    await self.policy.wait(wait_ms)
                    continue

                if response.status_code >= 400 and not self.ignore_http_status_errors:
                    raise HttpStatusError(status_code=response.status_code, body=response.body)

                self.state = CallState.SUCCEEDED
                return response
        except BaseException:
            self.state = CallState.FAILED
            raise
