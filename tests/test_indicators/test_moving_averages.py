from __future__ import annotations

import pytest

from sniper_bot.indicators.implementations.bollinger import bollinger_bands
from sniper_bot.indicators.implementations.ema import ema


def test_ema_empty_when_shorter_than_period():
    assert ema([1.0, 2.0, 3.0], 5) == []
    assert ema([], 3) == []


def test_ema_constant_series_is_exact():
    out = ema([42.5] * 30, 8)
    assert len(out) == 30 - 8 + 1
    assert all(v == 42.5 for v in out)


def test_ema_seeded_with_sma_then_blended():
    prices = [1.0, 2.0, 3.0, 4.0, 5.0]
    out = ema(prices, 3)
    k = 2.0 / 4.0
    assert out[0] == pytest.approx(2.0)
    assert out[1] == pytest.approx(2.0 + k * (4.0 - 2.0))
    assert out[2] == pytest.approx(out[1] + k * (5.0 - out[1]))


def test_ema_is_deterministic():
    prices = [100.0 + ((i * 7) % 11) * 0.37 for i in range(200)]
    a = ema(prices, 21)
    b = ema(list(prices), 21)
    assert len(a) == len(b)
    for x, y in zip(a, b):
        assert abs(x - y) < 1e-12


def test_ema_lags_a_linear_trend_by_half_the_window():
    prices = [100.0 - 0.1 * i for i in range(40)]
    fast = ema(prices, 8)
    slow = ema(prices, 21)
    assert fast[-1] - prices[-1] == pytest.approx(0.35)
    assert slow[-1] - prices[-1] == pytest.approx(1.0)


def test_bollinger_none_when_short():
    assert bollinger_bands([1.0] * 5, period=20) is None


def test_bollinger_population_std():
    bands = bollinger_bands([1.0, 2.0, 3.0, 4.0], period=4, std_dev=2.0)
    assert bands is not None
    assert bands.middle == pytest.approx(2.5)
    assert bands.upper == pytest.approx(2.5 + 2.0 * 1.25 ** 0.5)
    assert bands.lower == pytest.approx(2.5 - 2.0 * 1.25 ** 0.5)


def test_bollinger_uses_last_window_only():
    bands = bollinger_bands([1000.0, 5.0, 5.0, 5.0], period=3)
    assert bands is not None
    assert bands.upper == bands.middle == bands.lower == 5.0
