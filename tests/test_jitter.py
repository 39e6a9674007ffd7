from __future__ import annotations

import random

import pytest

from throttlekit.jitter import apply_jitter


def test_within_bounds_for_25_percent() -> None:
    rng = random.Random(7)
    for _ in range(500):
        result = apply_jitter(10_000, 25, rng=rng)
        assert 7_500 <= result <= 12_500


def test_zero_jitter_returns_base_exactly() -> None:
    assert apply_jitter(10_000, 0) == 10_000
    assert apply_jitter(1, 0) == 1


@pytest.mark.parametrize("pct", [0, 25, 100, 250, -10])
def test_zero_base_returns_zero(pct: float) -> None:
    assert apply_jitter(0, pct) == 0


def test_never_negative_with_extreme_jitter() -> None:
    rng = random.Random(11)
    for _ in range(500):
        assert apply_jitter(1, 200, rng=rng) >= 0


def test_percent_above_100_is_clamped() -> None:
    rng = random.Random(3)
    samples = [apply_jitter(1_000, 150, rng=rng) for _ in range(500)]
    assert all(0 <= sample <= 2_000 for sample in samples)


def test_negative_percent_is_clamped_to_zero() -> None:
    assert apply_jitter(5_000, -20) == 5_000


def test_spreads_values() -> None:
    rng = random.Random(42)
    samples = [apply_jitter(10_000, 25, rng=rng) for _ in range(200)]
    assert min(samples) < 9_000
    assert max(samples) > 11_000
