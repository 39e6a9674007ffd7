"""Randomized perturbation of retry waits."""

from __future__ import annotations

import random


def apply_jitter(base_ms: float, jitter_pct: float, *, rng: random.Random | None = None) -> float:
    """Spread ``base_ms`` uniformly by up to +/- ``jitter_pct`` percent.

    Keeps concurrent callers that were throttled together from retrying in
    lock-step. ``jitter_pct`` is clamped to ``[0, 100]`` and the result is
    never negative.
    """

    pct = max(0.0, min(100.0, float(jitter_pct)))
    if pct == 0 or base_ms == 0:
        return base_ms

    variance = base_ms * pct / 100.0
    uniform = (rng or random).uniform
    return max(0.0, base_ms + uniform(-variance, variance))
