"""Blocking facade over :class:`AsyncThrottledClient`."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Mapping
from typing import Any, TypeVar

from throttlekit.client.async_client import AsyncThrottledClient
from throttlekit.http import HttpRequest, ThrottleResponse
from throttlekit.http.transport import QueryParams

T = TypeVar("T")


class _SyncRunner:
    """Persistent sync runner to keep all sync calls on a single event loop."""

    def __init__(self) -> None:
        self._runner = asyncio.Runner()
        self._closed = False

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        if self._closed:
            coro.close()
            raise RuntimeError("sync client is closed")

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return self._runner.run(coro)

        coro.close()
        raise RuntimeError("sync client methods cannot run inside an active event loop")

    def close(self) -> None:
        if self._closed:
            return

        self._runner.close()
        self._closed = True


class ThrottledClient:
    """Sync client; throttled waits block only the calling thread."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._sync_runner = _SyncRunner()
        self._closed = False
        self._async = AsyncThrottledClient(*args, **kwargs)

    @property
    def config(self):
        return self._async.config

    @property
    def policy(self):
        return self._async.policy

    def send(self, request: HttpRequest, *, ignore_http_status_errors: bool = False) -> ThrottleResponse:
        return self._sync_runner.run(
            self._async.send(request, ignore_http_status_errors=ignore_http_status_errors)
        )

    def request(
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
        return self._sync_runner.run(
            self._async.request(
                method,
                url,
                params=params,
                headers=headers,
                json_data=json_data,
                content=content,
                ignore_http_status_errors=ignore_http_status_errors,
            )
        )

    def close(self) -> None:
        if self._closed:
            return

        try:
            self._sync_runner.run(self._async.aclose())
        finally:
            self._sync_runner.close()
            self._closed = True

    def __enter__(self) -> ThrottledClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
