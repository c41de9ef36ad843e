"""
策略相关数据模型
"""

from dataclasses import dataclass
from enum import Enum


class SignalAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True)
class TradingSignal:
    """交易信号"""
    action: SignalAction
    confidence: float  # 0.0 to 1.0, HOLD 时为 0
    timestamp: int

    @classmethod
    def hold(cls, timestamp: int) -> 'TradingSignal':
        return cls(action=SignalAction.HOLD, confidence=0.0, timestamp=timestamp)

    @property
    def is_actionable(self) -> bool:
        return self.action is not SignalAction.HOLD
