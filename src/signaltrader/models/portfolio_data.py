"""
持仓与成交记录
"""

from dataclasses import dataclass
from enum import Enum

from signaltrader.models.market_data import OrderSide


class PositionSide(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


@dataclass
class Position:
    """单个品种的净持仓，quantity 为正表示多头，为负表示空头"""
    symbol: str
    quantity: float
    avg_price: float
    current_price: float
    unrealized_pnl: float
    side: PositionSide

    @property
    def market_value(self) -> float:
        return self.current_price * self.quantity


@dataclass(frozen=True)
class Trade:
    """成交记录，写入后不可修改"""
    id: str
    symbol: str
    side: OrderSide
    quantity: float
    price: float
    timestamp: int
    fee: float = 0.0

    @property
    def notional(self) -> float:
        return self.quantity * self.price
