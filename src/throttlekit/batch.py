"""Run independent requests through the throttled client, one result per item."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from throttlekit.client import AsyncThrottledClient
from throttlekit.errors import HttpStatusError
from throttlekit.http import HttpRequest

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ItemResult:
    index: int
    ok: bool
    json: dict[str, Any]
    status_code: int | None = None
    error: str | None = None


def _as_json(body: Any) -> dict[str, Any]:
    if isinstance(body, dict):
        return body
    return {"data": body}


async def run_batch(
    client: AsyncThrottledClient,
    requests: Sequence[HttpRequest],
    *,
    continue_on_fail: bool = False,
    concurrency: int = 1,
) -> list[ItemResult]:
    """Execute each request with its own retry loop.

    With ``continue_on_fail`` a non-throttle HTTP error is recorded as a
    failed item and the remaining items still run. Throttle exhaustion and
    transport errors always abort the batch.
    """

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def run_item(index: int, request: HttpRequest) -> ItemResult:
        async with semaphore:
            try:
                response = await client.send(request)
            except HttpStatusError as exc:
                if not continue_on_fail:
                    raise
                logger.warning("item %d failed with HTTP %d", index, exc.status_code)
                return ItemResult(
                    index=index,
                    ok=False,
                    json={"error": f"HTTP {exc.status_code}", "body": exc.body},
                    status_code=exc.status_code,
                    error=str(exc),
                )
        return ItemResult(index=index, ok=True, json=_as_json(response.body), status_code=response.status_code)

    if concurrency <= 1:
        return [await run_item(index, request) for index, request in enumerate(requests)]

    tasks = [asyncio.ensure_future(run_item(index, request)) for index, request in enumerate(requests)]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
