"""根据配置创建成交日志后端"""

from typing import Optional

from logbook import Logger

from signaltrader.config.config import TradingConfig
from signaltrader.core.errors import ConfigError
from signaltrader.journal.base import JournalSink
from signaltrader.journal.file_journal import TradeJournal
from signaltrader.journal.redis_journal import RedisTradeJournal


def create_journal(config: TradingConfig, log: Optional[Logger] = None) -> JournalSink:
    backend = config.journal.backend.lower()
    if backend == 'file':
        return TradeJournal(config.journal.log_dir, log=log)
    if backend == 'redis':
        return RedisTradeJournal(config.redis, log=log)
    raise ConfigError(f"Unknown journal backend: {config.journal.backend}")
