"""
Binance 公共 REST 接口适配器
只实现行情相关接口，下单/撤单/余额查询明确返回 NotSupportedError
"""

from typing import Any, Dict, Optional

import httpx
from logbook import Logger

from signaltrader.config.config import ExchangeConfig
from signaltrader.core.errors import (
    AuthenticationError, ExchangeConnectionError, ExchangeError, NotSupportedError
)
from signaltrader.exchange.base import BaseExchange
from signaltrader.models.market_data import Order, OrderBook, OrderSide, OrderType, PriceSample
from signaltrader.utils.data_transforms import now_ms

MAINNET_URL = 'https://api.binance.com/api'
TESTNET_URL = 'https://testnet.binance.vision/api'


class BinanceExchange(BaseExchange):

    name = "binance"

    def __init__(self, config: ExchangeConfig, client: Optional[httpx.Client] = None,
                 log: Optional[Logger] = None):
        super().__init__(config, log)
        self.base_url = TESTNET_URL if config.sandbox else MAINNET_URL
        self._client = client or httpx.Client(base_url=self.base_url, timeout=10)

    def connect(self) -> None:
        if not self.validate_config():
            raise AuthenticationError("Invalid API configuration: missing api_key/secret_key")

        self._get('/v3/exchangeInfo')
        self.is_connected = True
        self.log.info(f"已连接 Binance API: {self.base_url}")

    def disconnect(self) -> None:
        self.is_connected = False
        self._client.close()
        self.log.info("已断开 Binance API")

    def get_market_data(self, symbol: str) -> PriceSample:
        data = self._get('/v3/ticker/price', params={'symbol': symbol})
        try:
            price = float(data['price'])
        except (KeyError, TypeError, ValueError) as exc:
            raise ExchangeError(f"Unexpected ticker payload for {symbol}: {data!r}") from exc
        return PriceSample(symbol=symbol, price=price, timestamp=now_ms())

    def get_order_book(self, symbol: str) -> OrderBook:
        data = self._get('/v3/depth', params={'symbol': symbol, 'limit': 100})
        return OrderBook(
            symbol=symbol,
            bids=[(float(p), float(q)) for p, q in data.get('bids', [])],
            asks=[(float(p), float(q)) for p, q in data.get('asks', [])],
            timestamp=now_ms(),
        )

    def place_order(self, symbol: str, side: OrderSide, quantity: float,
                    order_type: OrderType = OrderType.MARKET,
                    price: Optional[float] = None) -> Order:
        raise NotSupportedError("order placement", self.name)

    def cancel_order(self, order_id: str) -> bool:
        raise NotSupportedError("order cancellation", self.name)

    def get_balance(self) -> Dict[str, float]:
        raise NotSupportedError("balance retrieval", self.name)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in (401, 403):
                raise AuthenticationError(f"Binance rejected credentials ({status})") from exc
            raise ExchangeConnectionError(f"Binance {path} failed with HTTP {status}") from exc
        except httpx.HTTPError as exc:
            raise ExchangeConnectionError(f"Binance {path} request failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ExchangeConnectionError(f"Binance {path} returned invalid JSON") from exc
