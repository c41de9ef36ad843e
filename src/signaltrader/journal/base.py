"""
成交/信号日志接口
日志只用于观测，不参与任何交易决策
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, List, Optional

import arrow

from signaltrader.models.strategy_data import SignalAction, TradingSignal
from signaltrader.utils.data_transforms import (
    local_day_start_ms, ms_to_iso, now_ms, records_to_dataframe
)

DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class TradeLogEntry:
    """一条成交日志"""
    timestamp: int
    symbol: str
    action: str  # "BUY" or "SELL"
    quantity: float
    price: float
    value: float
    strategy: str
    confidence: float
    balance: float
    pnl: float = 0.0


TRADE_COLUMNS = [f.name for f in fields(TradeLogEntry)]


def signal_record(signal: TradingSignal, symbol: str, price: float, strategy: str) -> Dict[str, Any]:
    return {
        'timestamp': signal.timestamp,
        'date': ms_to_iso(signal.timestamp),
        'symbol': symbol,
        'signal': signal.action.value,
        'price': price,
        'confidence': signal.confidence,
        'strategy': strategy,
    }


class JournalSink(ABC):
    """成交日志后端的公共接口"""

    @abstractmethod
    def log_trade(self, entry: TradeLogEntry) -> None:
        """记录一条成交"""

    @abstractmethod
    def _write_signal(self, record: Dict[str, Any]) -> None:
        """写入一条信号记录"""

    @abstractmethod
    def _load_trades(self) -> List[TradeLogEntry]:
        """读取全部成交记录"""

    def log_signal(self, signal: TradingSignal, symbol: str, price: float, strategy: str) -> None:
        """记录非 HOLD 信号"""
        if signal.action is SignalAction.HOLD:
            return
        self._write_signal(signal_record(signal, symbol, price, strategy))

    def get_daily_stats(self, now: Optional[arrow.Arrow] = None) -> Dict[str, Any]:
        """本地时区当天的成交笔数、成交额与盈亏"""
        return daily_stats(self._load_trades(), now)

    def get_trade_history(self, days: int = 7) -> List[TradeLogEntry]:
        cutoff = now_ms() - days * DAY_MS
        return [entry for entry in self._load_trades() if entry.timestamp >= cutoff]


def daily_stats(entries: Iterable[TradeLogEntry], now: Optional[arrow.Arrow] = None) -> Dict[str, Any]:
    df = records_to_dataframe(entries, TRADE_COLUMNS)
    today = df[df['timestamp'] >= local_day_start_ms(now)]
    return {
        'trades': int(len(today)),
        'volume': round(float(today['value'].sum()), 2),
        'pnl': round(float(today['pnl'].sum()), 2),
    }
