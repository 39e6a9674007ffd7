from __future__ import annotations

import asyncio
import random
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx

from throttlekit.config import ClientConfig, ConfigInput, ThrottleConfig, load_config
from throttlekit.http import HttpRequest, HttpxExecutor, ThrottlePolicy, ThrottleResponse
from throttlekit.http.retry import Sleeper
from throttlekit.http.transport import QueryParams
from throttlekit.settings import RuntimeSettings
from throttlekit.wait_time import Clock


class AsyncThrottledClient:
    """Async HTTP client that transparently waits out throttling responses."""

    def __init__(
        self,
        config: ConfigInput | None = None,
        *,
        config_path: str | Path | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        verify_ssl: bool | None = None,
        throttle: ThrottleConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        resolved = load_config(config, config_path=config_path)
        effective: ClientConfig = RuntimeSettings().apply(resolved.data)

        overrides: dict[str, Any] = {}
        if base_url is not None:
            overrides["base_url"] = base_url
        if timeout_seconds is not None:
            overrides["timeout_seconds"] = timeout_seconds
        if verify_ssl is not None:
            overrides["verify_ssl"] = verify_ssl
        if throttle is not None:
            overrides["throttle"] = throttle
        self.config = effective.model_copy(update=overrides) if overrides else effective
        self.config_source = resolved.source

        self.policy = ThrottlePolicy(self.config.throttle, sleep=sleep, clock=clock, rng=rng)
        self._owns_http_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=(self.config.base_url or "").rstrip("/"),
            timeout=httpx.Timeout(self.config.timeout_seconds),
            verify=self.config.verify_ssl,
            headers=self.config.headers,
            follow_redirects=True,
        )
        self._executor = HttpxExecutor(self._client)

    async def __aenter__(self) -> AsyncThrottledClient:
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._client.aclose()

    async def send(self, request: HttpRequest, *, ignore_http_status_errors: bool = False) -> ThrottleResponse:
        return await self.policy.execute(
            request,
            self._executor,
            ignore_http_status_errors=ignore_http_status_errors,
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        json_data: Any = None,
        content: str | bytes | None = None,
        ignore_http_status_errors: bool = False,
    ) -> ThrottleResponse:
        request = HttpRequest(
            method=method,
            url=url,
            params=params,
            headers=dict(headers or {}),
            json=json_data,
            content=content,
        )
        return await self.send(request, ignore_http_status_errors=ignore_http_status_errors)
