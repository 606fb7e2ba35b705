from __future__ import annotations

import pytest

from sniper_bot.indicators.implementations.rsi import rsi


def test_rsi_empty_with_short_window():
    assert rsi([1.0] * 14, period=14) == []


def test_rsi_series_length_and_range():
    prices = [100.0 + ((i * 5) % 9) - 4 for i in range(60)]
    out = rsi(prices, period=14)
    assert len(out) == len(prices) - 14
    assert all(0.0 <= v <= 100.0 for v in out)


def test_rsi_zero_average_loss_substitutes_one():
    # 15 prices rising by 2: avg gain 2, avg loss 0 -> rs = 2 / 1
    prices = [float(2 * i) for i in range(15)]
    out = rsi(prices, period=14)
    assert out == [pytest.approx(100.0 - 100.0 / 3.0)]


def test_rsi_flat_prices_read_zero():
    assert rsi([10.0] * 20, period=14)[-1] == 0.0


def test_rsi_falls_in_a_downtrend():
    up = rsi([float(i) for i in range(30)], period=5)[-1]
    down = rsi([float(30 - i) for i in range(30)], period=5)[-1]
    assert down < up
