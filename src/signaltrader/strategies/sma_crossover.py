"""
均线交叉策略
快线上穿慢线买入，下穿卖出
"""

from typing import Any, Dict, List, Optional

from logbook import Logger

from signaltrader.indicators.technical import sma
from signaltrader.models.strategy_data import SignalAction, TradingSignal
from signaltrader.strategies.base import Strategy


class SMACrossoverStrategy(Strategy):

    name = "SMA_CROSSOVER"
    max_history_size = 200

    def __init__(self, fast_period: int = 10, slow_period: int = 20, log: Optional[Logger] = None):
        if fast_period < 1 or fast_period >= slow_period:
            raise ValueError(
                f"fast_period must be >= 1 and < slow_period, got {fast_period}/{slow_period}"
            )
        super().__init__(log)
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.log.info(f"SMA Crossover初始化: fast={fast_period}, slow={slow_period}")

    @property
    def min_samples(self) -> int:
        return self.slow_period

    def _generate_signal(self, prices: List[float], timestamp: int) -> TradingSignal:
        fast = sma(prices, self.fast_period)
        slow = sma(prices, self.slow_period)

        if len(fast) < 2 or len(slow) < 2:
            return TradingSignal.hold(timestamp)

        current_fast, previous_fast = fast[-1], fast[-2]
        current_slow, previous_slow = slow[-1], slow[-2]

        if previous_fast <= previous_slow and current_fast > current_slow:
            confidence = min(((current_fast - current_slow) / current_slow) * 100, 1.0)
            self.log.info(f"SMA Crossover: 金叉 BUY (置信度: {confidence:.2f})")
            return TradingSignal(SignalAction.BUY, confidence, timestamp)

        if previous_fast >= previous_slow and current_fast < current_slow:
            confidence = min(((current_slow - current_fast) / current_fast) * 100, 1.0)
            self.log.info(f"SMA Crossover: 死叉 SELL (置信度: {confidence:.2f})")
            return TradingSignal(SignalAction.SELL, confidence, timestamp)

        return TradingSignal.hold(timestamp)

    def get_indicator_values(self) -> Dict[str, List[float]]:
        """当前窗口的快慢均线序列，预热期间为空"""
        if len(self.price_history) < self.slow_period:
            return {'fast': [], 'slow': []}

        prices = list(self.price_history)
        return {
            'fast': sma(prices, self.fast_period),
            'slow': sma(prices, self.slow_period),
        }

    def get_state(self) -> Dict[str, Any]:
        state = super().get_state()
        values = self.get_indicator_values()
        state.update({
            'fast_period': self.fast_period,
            'slow_period': self.slow_period,
            'fast_sma': values['fast'][-1] if values['fast'] else None,
            'slow_sma': values['slow'][-1] if values['slow'] else None,
        })
        return state
