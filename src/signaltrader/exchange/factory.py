"""根据配置创建交易所适配器"""

from typing import Optional

from logbook import Logger

from signaltrader.config.config import ExchangeConfig
from signaltrader.core.errors import ConfigError
from signaltrader.exchange.alpaca_exchange import AlpacaExchange
from signaltrader.exchange.base import BaseExchange
from signaltrader.exchange.binance import BinanceExchange
from signaltrader.exchange.simulated import SimulatedExchange


def create_exchange(config: ExchangeConfig, log: Optional[Logger] = None) -> BaseExchange:
    name = config.name.lower()
    if name == 'simulated':
        return SimulatedExchange(config, log=log)
    if name == 'binance':
        return BinanceExchange(config, log=log)
    if name == 'alpaca':
        return AlpacaExchange(config, log=log)
    raise ConfigError(f"Unknown exchange: {config.name}")
