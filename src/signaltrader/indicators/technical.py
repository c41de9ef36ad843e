"""
技术指标纯函数
所有函数都是无状态的，输入为按时间排序的价格序列
"""

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class MACDResult:
    macd: List[float]
    signal: List[float]
    histogram: List[float]


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


def sma(prices: Sequence[float], period: int) -> List[float]:
    """
    简单移动平均

    Returns:
        长度为 len(prices) - period + 1 的列表，数据不足时为空列表
    """
    _check_period(period)
    prices = list(prices)
    return [
        sum(prices[i - period + 1:i + 1]) / period
        for i in range(period - 1, len(prices))
    ]


def ema(prices: Sequence[float], period: int) -> List[float]:
    """
    指数移动平均，以第一个价格为种子

    输出与输入等长（不截掉预热段），MACD 的对齐依赖这一点。
    """
    _check_period(period)
    prices = list(prices)
    if not prices:
        return []

    multiplier = 2 / (period + 1)
    values = [prices[0]]
    for price in prices[1:]:
        values.append((price - values[-1]) * multiplier + values[-1])
    return values


def rsi(prices: Sequence[float], period: int) -> List[float]:
    """
    相对强弱指数，窗口内涨跌幅取简单平均

    平均跌幅为0时 RSI 记为100。

    Returns:
        长度为 len(prices) - period 的列表，数据不足时为空列表
    """
    _check_period(period)
    prices = list(prices)
    gains: List[float] = []
    losses: List[float] = []
    for prev, curr in zip(prices, prices[1:]):
        change = curr - prev
        gains.append(change if change > 0 else 0.0)
        losses.append(-change if change < 0 else 0.0)

    values: List[float] = []
    for i in range(period - 1, len(gains)):
        avg_gain = sum(gains[i - period + 1:i + 1]) / period
        avg_loss = sum(losses[i - period + 1:i + 1]) / period
        if avg_loss == 0:
            values.append(100.0)
        else:
            rs = avg_gain / avg_loss
            values.append(100 - (100 / (1 + rs)))
    return values


def macd(prices: Sequence[float], fast_period: int = 12, slow_period: int = 26,
         signal_period: int = 9) -> MACDResult:
    """
    MACD 指标

    Args:
        prices: 价格序列
        fast_period: 快线 EMA 周期
        slow_period: 慢线 EMA 周期
        signal_period: 信号线 EMA 周期

    Returns:
        MACDResult，三条序列按共同的尾部对齐
    """
    fast = ema(prices, fast_period)
    slow = ema(prices, slow_period)

    # 两条 EMA 等长时 offset 为0，不等长时按尾部对齐
    common = min(len(fast), len(slow))
    fast_tail = fast[len(fast) - common:]
    slow_tail = slow[len(slow) - common:]
    macd_line = [f - s for f, s in zip(fast_tail, slow_tail)]

    signal_line = ema(macd_line, signal_period)
    overlap = min(len(macd_line), len(signal_line))
    macd_tail = macd_line[len(macd_line) - overlap:]
    signal_tail = signal_line[len(signal_line) - overlap:]
    histogram = [m - s for m, s in zip(macd_tail, signal_tail)]

    return MACDResult(macd=macd_line, signal=signal_line, histogram=histogram)
