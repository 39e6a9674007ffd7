"""Wait-time resolution from rate-limit response headers.

Resolution order, first rule yielding a value wins:

1. ``Retry-After`` (delay seconds or HTTP date)
2. remaining quota exhausted -> reset timestamp, else the default
3. reset timestamp alone
4. the caller-supplied default

Every result is capped to :data:`MAX_THROTTLE_WAIT_MS`.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable, Iterable
from datetime import UTC
from email.utils import parsedate_to_datetime

from throttlekit.constants import (
    EPOCH_MS_THRESHOLD,
    MAX_THROTTLE_WAIT_MS,
    REMAINING_HEADERS,
    RESET_HEADERS,
    RETRY_AFTER_HEADER,
)
from throttlekit.headers import NormalizedHeaders, RawHeaders, normalize_headers

Clock = Callable[[], float]
"""Returns the current time as epoch milliseconds."""

_DIGITS = re.compile(r"^[0-9]+$")
_LEADING_INTEGER = re.compile(r"[+-]?[0-9]+")

# Delay-seconds values longer than this always exceed the cap.
_MAX_DELAY_DIGITS = len(str(MAX_THROTTLE_WAIT_MS // 1000)) + 1


def system_clock() -> float:
    return time.time() * 1000.0


def first_present_int(headers: NormalizedHeaders, keys: Iterable[str]) -> int | None:
    """Return the leading integer of the first parseable value among ``keys``.

    ``"1760000010.5"`` reads as ``1760000010``; values without a leading
    integer, or too long to convert, count as absent.
    """

    for key in keys:
        match = _LEADING_INTEGER.match(headers.get(key, "").strip())
        if match is None:
            continue
        try:
            return int(match.group())
        except ValueError:
            continue
    return None


def parse_retry_after_ms(value: str, *, clock: Clock | None = None) -> int | None:
    """Parse a ``Retry-After`` value into milliseconds.

    Accepts delay seconds (``"30"``) or an HTTP date
    (``"Wed, 19 Feb 2025 12:00:00 GMT"``). A date in the past yields ``0``.
    Returns ``None`` when the value is neither.
    """

    trimmed = value.strip()
    if not trimmed:
        return None

    if _DIGITS.match(trimmed):
        seconds = trimmed.lstrip("0") or "0"
        if len(seconds) > _MAX_DELAY_DIGITS:
            return MAX_THROTTLE_WAIT_MS
        return int(seconds) * 1000

    try:
        parsed = parsedate_to_datetime(trimmed)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)

    now_ms = (clock or system_clock)()
    delta = parsed.timestamp() * 1000.0 - now_ms
    return int(delta) if delta > 0 else 0


def reset_wait_ms(headers: NormalizedHeaders, *, clock: Clock | None = None) -> int | None:
    """Milliseconds until the advertised quota reset, ``None`` without a reset header."""

    reset = first_present_int(headers, RESET_HEADERS)
    if reset is None:
        return None

    # Values above 10^12 are already epoch milliseconds; anything smaller is epoch seconds.
    timestamp_ms = reset if reset > EPOCH_MS_THRESHOLD else reset * 1000
    delta = timestamp_ms - (clock or system_clock)()
    return int(delta) if delta > 0 else 0


Resolver = Callable[[NormalizedHeaders, int, Clock], int | None]


def _from_retry_after(headers: NormalizedHeaders, default_wait_ms: int, clock: Clock) -> int | None:
    raw = headers.get(RETRY_AFTER_HEADER)
    if not raw:
        return None
    return parse_retry_after_ms(raw, clock=clock)


def _from_exhausted_quota(headers: NormalizedHeaders, default_wait_ms: int, clock: Clock) -> int | None:
    remaining = first_present_int(headers, REMAINING_HEADERS)
    if remaining is None or remaining > 0:
        return None
    reset_ms = reset_wait_ms(headers, clock=clock)
    if reset_ms is not None and reset_ms > 0:
        return reset_ms
    return default_wait_ms


def _from_reset(headers: NormalizedHeaders, default_wait_ms: int, clock: Clock) -> int | None:
    reset_ms = reset_wait_ms(headers, clock=clock)
    if reset_ms is not None and reset_ms > 0:
        return reset_ms
    return None


def _from_default(headers: NormalizedHeaders, default_wait_ms: int, clock: Clock) -> int | None:
    return default_wait_ms


RESOLVERS: tuple[Resolver, ...] = (
    _from_retry_after,
    _from_exhausted_quota,
    _from_reset,
    _from_default,
)


def _cap(wait_ms: float) -> int:
    return int(min(max(0, wait_ms), MAX_THROTTLE_WAIT_MS))


def compute_wait_ms(raw_headers: RawHeaders, default_wait_ms: int, *, clock: Clock | None = None) -> int:
    """Compute how long to wait before retrying a throttled request."""

    headers = normalize_headers(raw_headers)
    now = clock or system_clock
    for resolve in RESOLVERS:
        wait_ms = resolve(headers, default_wait_ms, now)
        if wait_ms is not None:
            return _cap(wait_ms)
    return _cap(default_wait_ms)
