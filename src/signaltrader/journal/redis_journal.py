"""Redis成交日志"""

import json
from dataclasses import asdict
from typing import Any, Dict, List, Optional

import redis
from logbook import Logger

from signaltrader.config.config import RedisConfig
from signaltrader.journal.base import JournalSink, TradeLogEntry, TRADE_COLUMNS
from signaltrader.utils.log import setup_logging


class RedisTradeJournal(JournalSink):
    """成交与信号以 JSON 形式 RPUSH 到两个列表"""

    def __init__(self, config: RedisConfig, client: Optional[redis.Redis] = None,
                 log: Optional[Logger] = None):
        self.config = config
        self.log = log or setup_logging(module_prefix='JOURNAL')
        self._client = client
        self.trades_key = f"{config.key_prefix}:trades"
        self.signals_key = f"{config.key_prefix}:signals"
        self.log.info(f"初始化Redis成交日志: {config.host}:{config.port}, DB={config.db}")

    @property
    def client(self) -> redis.Redis:
        """获取Redis客户端连接"""
        if self._client is None:
            self.log.info(f"正在连接Redis服务器: {self.config.host}:{self.config.port}")
            client = redis.Redis(
                host=self.config.host,
                port=self.config.port,
                password=self.config.password or None,
                db=self.config.db,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
            client.ping()
            self._client = client
            self.log.info("Redis连接建立成功")
        return self._client

    def log_trade(self, entry: TradeLogEntry) -> None:
        self._push(self.trades_key, asdict(entry))

    def _write_signal(self, record: Dict[str, Any]) -> None:
        self._push(self.signals_key, record)

    def _push(self, key: str, record: Dict[str, Any]) -> None:
        try:
            self.client.rpush(key, json.dumps(record))
        except redis.RedisError as exc:
            self.log.error(f"写入Redis失败 {key}: {exc}")

    def _load_trades(self) -> List[TradeLogEntry]:
        try:
            raw_entries = self.client.lrange(self.trades_key, 0, -1)
        except redis.RedisError as exc:
            self.log.error(f"读取Redis失败 {self.trades_key}: {exc}")
            return []

        entries = []
        for raw in raw_entries:
            try:
                data = json.loads(raw)
                entries.append(TradeLogEntry(**{k: data[k] for k in TRADE_COLUMNS if k in data}))
            except (ValueError, TypeError) as exc:
                self.log.warning(f"跳过损坏的成交记录: {exc}")
        return entries

    def close(self) -> None:
        """关闭连接"""
        if self._client:
            self.log.info("关闭Redis连接")
            self._client.close()
            self._client = None
