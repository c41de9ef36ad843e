"""
市场数据与订单相关类型定义
时间戳统一使用毫秒级 epoch 整数
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"


class OrderStatus(str, Enum):
    NEW = "NEW"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class PriceSample:
    """单次轮询得到的价格"""
    symbol: str
    price: float
    timestamp: int
    volume: float = 0.0


@dataclass(frozen=True)
class OrderBook:
    """订单簿快照"""
    symbol: str
    bids: List[Tuple[float, float]] = field(default_factory=list)  # (价格, 数量)
    asks: List[Tuple[float, float]] = field(default_factory=list)
    timestamp: int = 0

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0][0] if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0][0] if self.asks else None


@dataclass(frozen=True)
class Order:
    """交易所返回的订单"""
    id: str
    symbol: str
    side: OrderSide
    type: OrderType
    quantity: float
    status: OrderStatus
    timestamp: int
    price: Optional[float] = None  # 成交均价，未成交时为空
