"""Header normalization for rate-limit inspection."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import httpx

HeaderValue = str | bytes | Sequence[str] | int | float | None
RawHeaders = Mapping[str, HeaderValue] | httpx.Headers | None
NormalizedHeaders = dict[str, str]


def _single_value(value: HeaderValue) -> str | None:
    if value is None:
        return None
    if isinstance(value, (str, bytes)):
        return value.decode("latin-1") if isinstance(value, bytes) else value
    if isinstance(value, Sequence):
        if not value:
            return None
        return _single_value(value[0])
    return str(value)


def normalize_headers(raw: RawHeaders) -> NormalizedHeaders:
    """Lowercase keys and collapse repeated headers to their first value.

    Entries whose value is ``None`` (or an empty sequence) are dropped.
    """

    if raw is None:
        return {}

    if isinstance(raw, httpx.Headers):
        out: NormalizedHeaders = {}
        for key, value in raw.multi_items():
            out.setdefault(key.lower(), value)
        return out

    normalized: NormalizedHeaders = {}
    for key, value in raw.items():
        single = _single_value(value)
        if single is None:
            continue
        normalized[str(key).lower()] = single
    return normalized
