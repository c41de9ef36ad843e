"""根据配置创建策略实例"""

from typing import Optional

from logbook import Logger

from signaltrader.config.config import StrategyConfig
from signaltrader.core.errors import ConfigError
from signaltrader.strategies.base import Strategy
from signaltrader.strategies.rsi_strategy import RSIStrategy
from signaltrader.strategies.sma_crossover import SMACrossoverStrategy


def create_strategy(config: StrategyConfig, log: Optional[Logger] = None) -> Strategy:
    name = config.name.upper()
    if name == 'SMA':
        return SMACrossoverStrategy(config.fast_period, config.slow_period, log=log)
    if name == 'RSI':
        return RSIStrategy(config.rsi_period, config.oversold, config.overbought, log=log)
    raise ConfigError(f"Unknown strategy: {config.name}")
