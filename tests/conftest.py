from __future__ import annotations

import os
from collections.abc import Awaitable, Callable

import pytest

NOW_MS = 1_760_000_000_000.0


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.upper().startswith("THROTTLEKIT_") or name.upper() == "THROTTLING_ENABLED":
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def clock() -> Callable[[], float]:
    return lambda: NOW_MS


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def fake_sleep(sleeps: list[float]) -> Callable[[float], Awaitable[None]]:
    async def sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return sleep
