"""
文件成交日志
trades.csv 便于人工查看，trades.jsonl / signals.jsonl 只追加写入
历史记录只在启动时读取一次，之后在内存中维护索引
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
from logbook import Logger

from signaltrader.journal.base import JournalSink, TradeLogEntry, TRADE_COLUMNS
from signaltrader.utils.data_transforms import ms_to_iso
from signaltrader.utils.log import setup_logging

CSV_COLUMNS = ['timestamp', 'date', 'symbol', 'action', 'quantity', 'price', 'value',
               'strategy', 'confidence', 'balance', 'pnl']


class TradeJournal(JournalSink):

    def __init__(self, log_dir: Union[str, Path] = './logs', log: Optional[Logger] = None):
        self.log = log or setup_logging(module_prefix='JOURNAL')
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.csv_path = self.log_dir / 'trades.csv'
        self.trades_path = self.log_dir / 'trades.jsonl'
        self.signals_path = self.log_dir / 'signals.jsonl'

        if not self.csv_path.exists():
            pd.DataFrame(columns=CSV_COLUMNS).to_csv(self.csv_path, index=False)

        self._entries: List[TradeLogEntry] = self._read_history()
        self.log.info(f"成交日志目录: {self.log_dir} (已有{len(self._entries)}条成交)")

    def _read_history(self) -> List[TradeLogEntry]:
        if not self.trades_path.exists():
            return []

        entries = []
        with open(self.trades_path, 'r', encoding='utf-8') as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    entries.append(TradeLogEntry(**{k: data[k] for k in TRADE_COLUMNS if k in data}))
                except (ValueError, TypeError) as exc:
                    self.log.warning(f"跳过损坏的成交记录 {self.trades_path}:{line_no}: {exc}")
        return entries

    def log_trade(self, entry: TradeLogEntry) -> None:
        self._entries.append(entry)

        row = {
            'timestamp': entry.timestamp,
            'date': ms_to_iso(entry.timestamp),
            'symbol': entry.symbol,
            'action': entry.action,
            'quantity': entry.quantity,
            'price': entry.price,
            'value': round(entry.value, 2),
            'strategy': entry.strategy,
            'confidence': round(entry.confidence, 4),
            'balance': round(entry.balance, 2),
            'pnl': round(entry.pnl, 2),
        }
        pd.DataFrame([row], columns=CSV_COLUMNS).to_csv(
            self.csv_path, mode='a', header=False, index=False
        )
        self._append_json(self.trades_path, asdict(entry))

    def _write_signal(self, record: Dict[str, Any]) -> None:
        self._append_json(self.signals_path, record)

    def _load_trades(self) -> List[TradeLogEntry]:
        return list(self._entries)

    @staticmethod
    def _append_json(path: Path, record: Dict[str, Any]) -> None:
        with open(path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(record) + '\n')
