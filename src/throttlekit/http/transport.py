"""httpx-backed request executor."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from throttlekit.errors import TransportError
from throttlekit.http.retry import ThrottleResponse

QueryParams = Mapping[str, str | int | float | bool]


@dataclass(slots=True)
class HttpRequest:
    """Request payload re-issued unchanged on every attempt."""

    method: str
    url: str
    params: QueryParams | None = None
    headers: dict[str, str] = field(default_factory=dict)
    json: Any = None
    content: str | bytes | None = None


def decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


class HttpxExecutor:
    """Issue one request per call; statuses are returned as data, never raised."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def __call__(self, request: HttpRequest) -> ThrottleResponse:
        try:
            response = await self._client.request(
                request.method.upper(),
                request.url,
                params=request.params,
                headers=request.headers or None,
                json=request.json,
                content=request.content,
            )
        except httpx.TransportError as exc:
            raise TransportError(f"network error: {exc}") from exc

        return ThrottleResponse.build(response.status_code, response.headers, decode_body(response))
