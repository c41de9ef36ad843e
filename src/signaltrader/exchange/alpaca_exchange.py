"""
Alpaca 加密货币适配器
行情使用 CryptoHistoricalDataClient，下单使用 TradingClient (IOC 市价单)
"""

from typing import Dict, Optional

from alpaca.common.exceptions import APIError
from alpaca.data.historical import CryptoHistoricalDataClient
from alpaca.data.requests import CryptoLatestOrderbookRequest, CryptoLatestTradeRequest
from alpaca.trading.client import TradingClient
from alpaca.trading.enums import OrderSide as AlpacaOrderSide
from alpaca.trading.enums import OrderStatus as AlpacaOrderStatus
from alpaca.trading.enums import TimeInForce
from alpaca.trading.requests import LimitOrderRequest, MarketOrderRequest
from logbook import Logger

from signaltrader.config.config import ExchangeConfig
from signaltrader.core.errors import AuthenticationError, ExchangeConnectionError, ExchangeError
from signaltrader.exchange.base import BaseExchange
from signaltrader.models.market_data import (
    Order, OrderBook, OrderSide, OrderStatus, OrderType, PriceSample
)
from signaltrader.utils.data_transforms import now_ms

CLOSED_STATUSES = {
    AlpacaOrderStatus.CANCELED,
    AlpacaOrderStatus.EXPIRED,
    AlpacaOrderStatus.REJECTED,
    AlpacaOrderStatus.DONE_FOR_DAY,
}


def _to_ms(timestamp) -> int:
    return int(timestamp.timestamp() * 1000) if timestamp is not None else now_ms()


def map_order_status(status: AlpacaOrderStatus) -> OrderStatus:
    """Alpaca 订单状态映射为内部三态"""
    if status == AlpacaOrderStatus.FILLED:
        return OrderStatus.FILLED
    if status in CLOSED_STATUSES:
        return OrderStatus.CANCELLED
    return OrderStatus.NEW


def _translate(exc: Exception, action: str) -> ExchangeError:
    status_code = getattr(exc, 'status_code', None)
    if status_code in (401, 403):
        return AuthenticationError(f"Alpaca rejected credentials during {action} ({status_code})")
    if isinstance(exc, APIError):
        return ExchangeError(f"Alpaca {action} failed: {exc}")
    return ExchangeConnectionError(f"Alpaca {action} failed: {exc}")


class AlpacaExchange(BaseExchange):

    name = "alpaca"

    def __init__(self, config: ExchangeConfig,
                 data_client: Optional[CryptoHistoricalDataClient] = None,
                 trading_client: Optional[TradingClient] = None,
                 log: Optional[Logger] = None):
        super().__init__(config, log)
        self._data_client = data_client
        self._trading_client = trading_client

    @property
    def data_client(self) -> CryptoHistoricalDataClient:
        if self._data_client is None:
            # 加密货币行情不强制要求密钥
            self._data_client = CryptoHistoricalDataClient(
                api_key=self.config.api_key or None,
                secret_key=self.config.secret_key or None,
            )
        return self._data_client

    @property
    def trading_client(self) -> TradingClient:
        if self._trading_client is None:
            if not self.validate_config():
                raise AuthenticationError("Alpaca trading requires api_key/secret_key")
            self._trading_client = TradingClient(
                api_key=self.config.api_key,
                secret_key=self.config.secret_key,
                paper=self.config.sandbox,
            )
        return self._trading_client

    def connect(self) -> None:
        if not self.validate_config():
            raise AuthenticationError("Invalid API configuration: missing api_key/secret_key")

        try:
            account = self.trading_client.get_account()
        except (APIError, OSError) as exc:
            raise _translate(exc, "connect") from exc

        self.is_connected = True
        self.log.info(f"已连接 Alpaca {'paper' if self.config.sandbox else 'live'} 账户: {account.id}")

    def disconnect(self) -> None:
        self.is_connected = False
        self.log.info("已断开 Alpaca")

    def get_market_data(self, symbol: str) -> PriceSample:
        try:
            trades = self.data_client.get_crypto_latest_trade(
                CryptoLatestTradeRequest(symbol_or_symbols=symbol)
            )
        except (APIError, OSError) as exc:
            raise _translate(exc, "market data") from exc

        trade = trades.get(symbol)
        if trade is None:
            raise ExchangeError(f"Alpaca returned no trade for {symbol}")

        return PriceSample(
            symbol=symbol,
            price=float(trade.price),
            timestamp=_to_ms(trade.timestamp),
            volume=float(trade.size or 0.0),
        )

    def get_order_book(self, symbol: str) -> OrderBook:
        try:
            books = self.data_client.get_crypto_latest_orderbook(
                CryptoLatestOrderbookRequest(symbol_or_symbols=symbol)
            )
        except (APIError, OSError) as exc:
            raise _translate(exc, "order book") from exc

        book = books.get(symbol)
        if book is None:
            raise ExchangeError(f"Alpaca returned no order book for {symbol}")

        return OrderBook(
            symbol=symbol,
            bids=[(float(level.p), float(level.s)) for level in book.bids],
            asks=[(float(level.p), float(level.s)) for level in book.asks],
            timestamp=_to_ms(book.timestamp),
        )

    def place_order(self, symbol: str, side: OrderSide, quantity: float,
                    order_type: OrderType = OrderType.MARKET,
                    price: Optional[float] = None) -> Order:
        alpaca_side = AlpacaOrderSide.BUY if side is OrderSide.BUY else AlpacaOrderSide.SELL
        if order_type is OrderType.LIMIT:
            if price is None:
                raise ExchangeError("LIMIT orders require a price")
            request = LimitOrderRequest(
                symbol=symbol, qty=quantity, side=alpaca_side,
                time_in_force=TimeInForce.IOC, limit_price=price,
            )
        else:
            request = MarketOrderRequest(
                symbol=symbol, qty=quantity, side=alpaca_side, time_in_force=TimeInForce.IOC,
            )

        try:
            placed = self.trading_client.submit_order(request)
        except (APIError, OSError) as exc:
            raise _translate(exc, "order placement") from exc

        status = map_order_status(placed.status)
        filled_price = float(placed.filled_avg_price) if placed.filled_avg_price else None
        self.log.info(
            f"{symbol}: Alpaca下单 订单ID:{placed.id} 方向:{side.value} 数量:{quantity} "
            f"状态:{placed.status}"
        )
        return Order(
            id=str(placed.id),
            symbol=symbol,
            side=side,
            type=order_type,
            quantity=quantity,
            status=status,
            timestamp=_to_ms(placed.submitted_at),
            price=filled_price,
        )

    def cancel_order(self, order_id: str) -> bool:
        try:
            self.trading_client.cancel_order_by_id(order_id)
        except (APIError, OSError) as exc:
            raise _translate(exc, "order cancellation") from exc
        return True

    def get_balance(self) -> Dict[str, float]:
        try:
            account = self.trading_client.get_account()
        except (APIError, OSError) as exc:
            raise _translate(exc, "balance retrieval") from exc
        return {str(account.currency or 'USD'): float(account.cash)}
