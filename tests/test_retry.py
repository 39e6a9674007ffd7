from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import pytest

from throttlekit.config import ThrottleConfig
from throttlekit.errors import HttpStatusError, ThrottleExhaustedError, TransportError
from throttlekit.http import CallState, ThrottledCall, ThrottlePolicy, ThrottleResponse


class ScriptedExecutor:
    def __init__(self, responses: list[ThrottleResponse | BaseException]) -> None:
        self._responses = list(responses)
        self.requests: list[object] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def __call__(self, request: object) -> ThrottleResponse:
        self.requests.append(request)
        item = self._responses[min(len(self.requests), len(self._responses)) - 1]
        if isinstance(item, BaseException):
            raise item
        return item


def _throttled(**headers: str) -> ThrottleResponse:
    return ThrottleResponse.build(429, {key.replace("_", "-"): value for key, value in headers.items()})


def _policy(
    fake_sleep: Callable[[float], Awaitable[None]],
    **config: object,
) -> ThrottlePolicy:
    values: dict[str, object] = {"default_wait_ms": 1_000, "jitter_percent": 0}
    values.update(config)
    return ThrottlePolicy(ThrottleConfig.model_validate(values), sleep=fake_sleep)


@pytest.mark.asyncio
async def test_retries_throttled_responses_until_success(fake_sleep, sleeps: list[float]) -> None:
    executor = ScriptedExecutor([_throttled(), _throttled(), ThrottleResponse.build(200, body={"ok": True})])
    policy = _policy(fake_sleep, max_retries=5)

    response = await policy.execute({"url": "/things"}, executor)

    assert response.status_code == 200
    assert response.body == {"ok": True}
    assert executor.calls == 3
    assert executor.requests == [{"url": "/things"}] * 3
    assert sleeps == [1.0, 1.0]


@pytest.mark.asyncio
async def test_exhausts_after_max_retries(fake_sleep, sleeps: list[float]) -> None:
    executor = ScriptedExecutor([_throttled()])
    policy = _policy(fake_sleep, max_retries=3)

    with pytest.raises(ThrottleExhaustedError) as exc_info:
        await policy.execute("req", executor)

    assert exc_info.value.status_code == 429
    assert exc_info.value.max_retries == 3
    assert "max retries (3)" in str(exc_info.value)
    assert executor.calls == 3
    assert len(sleeps) == 2


@pytest.mark.asyncio
async def test_single_attempt_when_max_retries_is_one(fake_sleep, sleeps: list[float]) -> None:
    executor = ScriptedExecutor([_throttled()])
    policy = _policy(fake_sleep, max_retries=0)

    with pytest.raises(ThrottleExhaustedError) as exc_info:
        await policy.execute("req", executor)

    assert exc_info.value.max_retries == 1
    assert executor.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_non_throttle_error_is_surfaced_without_sleeping(fake_sleep, sleeps: list[float]) -> None:
    executor = ScriptedExecutor([ThrottleResponse.build(500, body="boom")])
    policy = _policy(fake_sleep)

    with pytest.raises(HttpStatusError) as exc_info:
        await policy.execute("req", executor)

    assert exc_info.value.status_code == 500
    assert exc_info.value.body == "boom"
    assert executor.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_ignored_http_errors_are_returned(fake_sleep) -> None:
    executor = ScriptedExecutor([_throttled(), ThrottleResponse.build(404, body="missing")])
    policy = _policy(fake_sleep)

    response = await policy.execute("req", executor, ignore_http_status_errors=True)

    assert response.status_code == 404
    assert executor.calls == 2


@pytest.mark.asyncio
async def test_transport_error_propagates_untouched(fake_sleep, sleeps: list[float]) -> None:
    failure = TransportError("network error: connection refused")
    executor = ScriptedExecutor([failure])
    call = ThrottledCall(_policy(fake_sleep), executor)

    with pytest.raises(TransportError) as exc_info:
        await call.run("req")

    assert exc_info.value is failure
    assert executor.calls == 1
    assert sleeps == []
    assert call.state is CallState.FAILED


@pytest.mark.asyncio
async def test_configured_codes_only(fake_sleep, sleeps: list[float]) -> None:
    executor = ScriptedExecutor(
        [
            ThrottleResponse.build(503),
            ThrottleResponse.build(504),
            ThrottleResponse.build(201, body="created"),
        ]
    )
    policy = _policy(fake_sleep, codes=["503", 504])

    response = await policy.execute("req", executor)

    assert response.status_code == 201
    assert len(sleeps) == 2


@pytest.mark.asyncio
async def test_disabled_throttling_treats_429_as_http_error(fake_sleep, sleeps: list[float]) -> None:
    executor = ScriptedExecutor([_throttled()])
    policy = _policy(fake_sleep, enabled=False)

    with pytest.raises(HttpStatusError) as exc_info:
        await policy.execute("req", executor)

    assert exc_info.value.status_code == 429
    assert sleeps == []


@pytest.mark.asyncio
async def test_wait_comes_from_response_headers(fake_sleep, sleeps: list[float]) -> None:
    executor = ScriptedExecutor([_throttled(Retry_After="2"), ThrottleResponse.build(200)])
    policy = _policy(fake_sleep, default_wait_ms=9_000)

    await policy.execute("req", executor)

    assert sleeps == [2.0]


@pytest.mark.asyncio
async def test_jitter_is_applied_to_wait(fake_sleep, sleeps: list[float]) -> None:
    executor = ScriptedExecutor([_throttled()] * 5 + [ThrottleResponse.build(200)])
    policy = _policy(fake_sleep, default_wait_ms=10_000, jitter_percent=25, max_retries=10)

    await policy.execute("req", executor)

    assert len(sleeps) == 5
    assert all(7.5 <= seconds <= 12.5 for seconds in sleeps)


@pytest.mark.asyncio
async def test_logs_each_throttled_attempt(fake_sleep, caplog: pytest.LogCaptureFixture) -> None:
    executor = ScriptedExecutor([_throttled(), ThrottleResponse.build(200)])
    policy = _policy(fake_sleep, max_retries=4)

    with caplog.at_level(logging.INFO, logger="throttlekit.http.retry"):
        await policy.execute("req", executor)

    records = [record for record in caplog.records if record.name == "throttlekit.http.retry"]
    assert len(records) == 1
    assert records[0].getMessage() == "throttled status=429 attempt=1/4 wait_ms=1000"
    assert records[0].status_code == 429
    assert records[0].attempt == 1
    assert records[0].max_retries == 4
    assert records[0].wait_ms == 1000


@pytest.mark.asyncio
async def test_call_state_transitions(fake_sleep) -> None:
    executor = ScriptedExecutor([ThrottleResponse.build(200)])
    call = ThrottledCall(_policy(fake_sleep), executor)
    assert call.state is CallState.IDLE

    await call.run("req")

    assert call.state is CallState.SUCCEEDED
    assert call.attempt == 0
    with pytest.raises(RuntimeError):
        await call.run("req")


@pytest.mark.asyncio
async def test_cancellation_during_wait_stops_the_call() -> None:
    executor = ScriptedExecutor([_throttled()])
    policy = ThrottlePolicy(ThrottleConfig(default_wait_ms=60_000, jitter_percent=0, max_retries=5))
    call = ThrottledCall(policy, executor)

    task = asyncio.create_task(call.run("req"))
    for _ in range(20):
        await asyncio.sleep(0)
        if call.state is CallState.THROTTLED_WAITING:
            break
    assert call.state is CallState.THROTTLED_WAITING

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert call.state is CallState.FAILED
    assert executor.calls == 1


@pytest.mark.asyncio
async def test_concurrent_calls_keep_independent_counters() -> None:
    policy = ThrottlePolicy(ThrottleConfig(default_wait_ms=1, jitter_percent=0, max_retries=3))
    slow = ScriptedExecutor([_throttled(), _throttled(), ThrottleResponse.build(200, body="slow")])
    fast = ScriptedExecutor([ThrottleResponse.build(200, body="fast")])

    slow_response, fast_response = await asyncio.gather(
        policy.execute("a", slow),
        policy.execute("b", fast),
    )

    assert slow_response.body == "slow"
    assert fast_response.body == "fast"
    assert slow.calls == 3
    assert fast.calls == 1
