"""
RSI 阈值策略
超卖区下穿买入，超买区上穿卖出；last_signal 锁存防止 RSI 停留在阈值外时重复发信号
"""

from typing import Any, Dict, List, Optional

from logbook import Logger

from signaltrader.indicators.technical import rsi
from signaltrader.models.strategy_data import SignalAction, TradingSignal
from signaltrader.strategies.base import Strategy


class RSIStrategy(Strategy):

    name = "RSI"
    max_history_size = 100

    def __init__(self, period: int = 14, oversold_level: float = 30,
                 overbought_level: float = 70, log: Optional[Logger] = None):
        if not 0 < oversold_level < overbought_level < 100:
            raise ValueError(
                f"expected 0 < oversold < overbought < 100, got {oversold_level}/{overbought_level}"
            )
        if period < 1:
            raise ValueError(f"period must be >= 1, got {period}")
        super().__init__(log)
        self.period = period
        self.oversold_level = oversold_level
        self.overbought_level = overbought_level
        self.last_signal = SignalAction.HOLD
        self.log.info(
            f"RSI策略初始化: period={period}, oversold={oversold_level}, overbought={overbought_level}"
        )

    @property
    def min_samples(self) -> int:
        return self.period + 1

    def _generate_signal(self, prices: List[float], timestamp: int) -> TradingSignal:
        values = rsi(prices, self.period)
        if len(values) < 2:
            return TradingSignal.hold(timestamp)

        current_rsi, previous_rsi = values[-1], values[-2]

        if (current_rsi <= self.oversold_level
                and previous_rsi > self.oversold_level
                and self.last_signal is not SignalAction.BUY):
            confidence = min((self.oversold_level - current_rsi) / self.oversold_level, 1.0)
            self.last_signal = SignalAction.BUY
            self.log.info(f"RSI策略: 超卖 BUY - RSI: {current_rsi:.2f} (置信度: {confidence:.2f})")
            return TradingSignal(SignalAction.BUY, confidence, timestamp)

        if (current_rsi >= self.overbought_level
                and previous_rsi < self.overbought_level
                and self.last_signal is not SignalAction.SELL):
            confidence = min(
                (current_rsi - self.overbought_level) / (100 - self.overbought_level), 1.0
            )
            self.last_signal = SignalAction.SELL
            self.log.info(f"RSI策略: 超买 SELL - RSI: {current_rsi:.2f} (置信度: {confidence:.2f})")
            return TradingSignal(SignalAction.SELL, confidence, timestamp)

        # 回到中性区间后重新允许触发
        if self.oversold_level < current_rsi < self.overbought_level:
            if self.last_signal is not SignalAction.HOLD:
                self.last_signal = SignalAction.HOLD
                self.log.debug(f"RSI策略: 回到中性区间 - RSI: {current_rsi:.2f}")

        return TradingSignal.hold(timestamp)

    def get_current_rsi(self) -> Optional[float]:
        if len(self.price_history) < self.min_samples:
            return None

        values = rsi(list(self.price_history), self.period)
        return values[-1] if values else None

    def get_state(self) -> Dict[str, Any]:
        state = super().get_state()
        state.update({
            'current_rsi': self.get_current_rsi(),
            'oversold_level': self.oversold_level,
            'overbought_level': self.overbought_level,
            'last_signal': self.last_signal.value,
        })
        return state
