"""
模拟交易所 - 本地价格源 + 即时成交
"""

import math
import random
import uuid
from dataclasses import replace
from typing import Callable, Dict, Iterable, Iterator, Optional

from logbook import Logger

from signaltrader.config.config import ExchangeConfig
from signaltrader.core.errors import ExchangeConnectionError, ExchangeError
from signaltrader.exchange.base import BaseExchange
from signaltrader.models.market_data import (
    Order, OrderBook, OrderSide, OrderStatus, OrderType, PriceSample
)
from signaltrader.utils.data_transforms import now_ms

BOOK_HALF_SPREAD = 0.0005


def random_walk(start_price: float = 100.0, volatility: float = 0.002,
                seed: Optional[int] = None) -> Iterator[float]:
    """几何随机游走价格序列"""
    rng = random.Random(seed)
    price = start_price
    while True:
        yield price
        price *= math.exp(rng.gauss(0.0, volatility))


class SimulatedExchange(BaseExchange):

    name = "simulated"

    def __init__(self, config: Optional[ExchangeConfig] = None,
                 prices: Optional[Iterable[float]] = None,
                 fill_status: OrderStatus = OrderStatus.FILLED,
                 seed: Optional[int] = None,
                 log: Optional[Logger] = None,
                 clock: Callable[[], int] = now_ms):
        super().__init__(config or ExchangeConfig(name='simulated'), log)
        self._feed = iter(prices) if prices is not None else random_walk(seed=seed)
        self._clock = clock
        self.fill_status = fill_status
        self.last_price: Optional[float] = None
        self.orders: Dict[str, Order] = {}

    def connect(self) -> None:
        self.is_connected = True
        self.log.info("模拟交易所已连接")

    def disconnect(self) -> None:
        self.is_connected = False
        self.log.info("模拟交易所已断开")

    def get_market_data(self, symbol: str) -> PriceSample:
        try:
            price = float(next(self._feed))
        except StopIteration:
            raise ExchangeConnectionError(f"{symbol}: simulated price feed exhausted") from None

        self.last_price = price
        return PriceSample(symbol=symbol, price=price, timestamp=self._clock())

    def get_order_book(self, symbol: str) -> OrderBook:
        if self.last_price is None:
            raise ExchangeConnectionError(f"{symbol}: no simulated price yet")

        return OrderBook(
            symbol=symbol,
            bids=[(self.last_price * (1 - BOOK_HALF_SPREAD), 1.0)],
            asks=[(self.last_price * (1 + BOOK_HALF_SPREAD), 1.0)],
            timestamp=self._clock(),
        )

    def place_order(self, symbol: str, side: OrderSide, quantity: float,
                    order_type: OrderType = OrderType.MARKET,
                    price: Optional[float] = None) -> Order:
        if self.last_price is None:
            raise ExchangeError(f"{symbol}: cannot fill before the first price")

        fill_price = price if order_type is OrderType.LIMIT and price else self.last_price
        filled = self.fill_status is OrderStatus.FILLED
        order = Order(
            id=str(uuid.uuid4()),
            symbol=symbol,
            side=side,
            type=order_type,
            quantity=quantity,
            status=self.fill_status,
            timestamp=self._clock(),
            price=fill_price if filled else None,
        )
        self.orders[order.id] = order
        self.log.debug(f"模拟下单: {side.value} {quantity:.6f} {symbol} -> {order.status.value}")
        return order

    def cancel_order(self, order_id: str) -> bool:
        order = self.orders.get(order_id)
        if order is None or order.status is not OrderStatus.NEW:
            return False
        self.orders[order_id] = replace(order, status=OrderStatus.CANCELLED)
        return True

    def get_balance(self) -> Dict[str, float]:
        # 资金由组合账本维护，模拟交易所本身不持有资产
        return {}
