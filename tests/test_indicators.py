"""技术指标纯函数测试"""

import pytest

from signaltrader.indicators.technical import ema, macd, rsi, sma


def test_sma_window():
    assert sma([1, 2, 3, 4, 5], 3) == [2.0, 3.0, 4.0]
    assert sma([1, 2, 3, 4, 5], 5) == [3.0]


def test_sma_insufficient_data():
    assert sma([1, 2], 3) == []
    assert sma([], 1) == []


@pytest.mark.parametrize('func', [sma, ema, rsi])
def test_invalid_period(func):
    with pytest.raises(ValueError):
        func([1, 2, 3], 0)


def test_ema_seeded_with_first_price():
    values = ema([1, 2, 3], 2)
    assert len(values) == 3
    assert values[0] == 1
    assert values[1] == pytest.approx(1 + (2 - 1) * 2 / 3)
    assert values[2] == pytest.approx(values[1] + (3 - values[1]) * 2 / 3)


def test_ema_empty():
    assert ema([], 5) == []


def test_rsi_all_gains_is_100():
    assert rsi([1, 2, 3, 4, 5], 2) == [100.0, 100.0, 100.0]


def test_rsi_known_values():
    # 涨跌: +1 +1 -1 -1 -1
    values = rsi([10, 11, 12, 11, 10, 9], 2)
    assert values == pytest.approx([100.0, 50.0, 0.0, 0.0])


def test_rsi_output_length():
    prices = list(range(30))
    assert len(rsi(prices, 14)) == len(prices) - 14
    assert rsi(prices[:14], 14) == []


def test_rsi_bounded():
    prices = [100, 101, 99, 102, 98, 97, 103, 104, 100, 99, 101]
    for value in rsi(prices, 3):
        assert 0 <= value <= 100


def test_macd_constant_prices_is_flat():
    result = macd([50.0] * 40)
    assert all(v == pytest.approx(0.0) for v in result.macd)
    assert all(v == pytest.approx(0.0) for v in result.histogram)


def test_macd_alignment():
    prices = [100 + i for i in range(50)]
    result = macd(prices, fast_period=3, slow_period=6, signal_period=4)
    assert len(result.macd) == len(prices)
    assert len(result.signal) == len(result.macd)
    assert len(result.histogram) == len(result.macd)
    # 持续上涨时快线在慢线之上
    assert result.macd[-1] > 0
    assert result.histogram[-1] == pytest.approx(result.macd[-1] - result.signal[-1])
