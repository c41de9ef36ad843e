"""
策略基类 - 维护固定容量的滑动价格窗口
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from logbook import Logger

from signaltrader.models.market_data import PriceSample
from signaltrader.models.strategy_data import TradingSignal
from signaltrader.utils.log import setup_logging


class Strategy(ABC):
    """
    所有策略共享的信号契约：每个价格样本产生恰好一个 TradingSignal
    """

    name: str = "BASE"
    max_history_size: int = 200

    def __init__(self, log: Optional[Logger] = None):
        self.log = log or setup_logging(module_prefix='STRATEGY')
        # deque(maxlen) 溢出时自动丢弃最旧的价格
        self.price_history: Deque[float] = deque(maxlen=self.max_history_size)

    @property
    @abstractmethod
    def min_samples(self) -> int:
        """产生信号所需的最少价格数量"""

    @abstractmethod
    def _generate_signal(self, prices: List[float], timestamp: int) -> TradingSignal:
        """窗口已满足最少样本数时计算信号"""

    def add_price_data(self, sample: PriceSample) -> TradingSignal:
        """追加一个价格样本并返回信号"""
        self.price_history.append(sample.price)

        if len(self.price_history) < self.min_samples:
            return TradingSignal.hold(sample.timestamp)

        return self._generate_signal(list(self.price_history), sample.timestamp)

    def get_state(self) -> Dict[str, Any]:
        return {
            'strategy': self.name,
            'price_data_points': len(self.price_history),
        }
