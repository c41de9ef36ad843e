"""
交易所能力接口
核心逻辑只依赖这里的契约，不关心具体是模拟还是实盘
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from logbook import Logger

from signaltrader.config.config import ExchangeConfig
from signaltrader.models.market_data import Order, OrderBook, OrderSide, OrderType, PriceSample
from signaltrader.utils.log import setup_logging


class BaseExchange(ABC):

    name: str = "base"

    def __init__(self, config: ExchangeConfig, log: Optional[Logger] = None):
        self.config = config
        self.log = log or setup_logging(module_prefix='EXCHANGE')
        self.is_connected = False

    @abstractmethod
    def connect(self) -> None:
        """建立连接，失败时抛出 ExchangeError"""

    @abstractmethod
    def disconnect(self) -> None:
        """断开连接"""

    @abstractmethod
    def get_market_data(self, symbol: str) -> PriceSample:
        """最新价格，网络失败抛出 ExchangeConnectionError"""

    @abstractmethod
    def get_order_book(self, symbol: str) -> OrderBook:
        """订单簿快照"""

    @abstractmethod
    def place_order(self, symbol: str, side: OrderSide, quantity: float,
                    order_type: OrderType = OrderType.MARKET,
                    price: Optional[float] = None) -> Order:
        """提交订单，返回交易所当前的订单状态"""

    @abstractmethod
    def cancel_order(self, order_id: str) -> bool:
        """撤单"""

    @abstractmethod
    def get_balance(self) -> Dict[str, float]:
        """各资产余额"""

    def validate_config(self) -> bool:
        return bool(self.config.api_key and self.config.secret_key)

    def is_connection_active(self) -> bool:
        return self.is_connected
