"""
数据转换纯函数
时间戳与表格格式转换都集中在这里
"""

from dataclasses import asdict, is_dataclass
from typing import Any, Iterable, List, Optional

import arrow
import pandas as pd


def now_ms() -> int:
    """当前时间的毫秒时间戳"""
    return int(arrow.utcnow().float_timestamp * 1000)


def ms_to_iso(timestamp_ms: int) -> str:
    """毫秒时间戳转 ISO-8601 (UTC)"""
    return arrow.get(timestamp_ms / 1000).isoformat()


def local_day_start_ms(now: Optional[arrow.Arrow] = None) -> int:
    """本地时区当天零点的毫秒时间戳"""
    now = now or arrow.now()
    return int(now.floor('day').float_timestamp * 1000)


def records_to_dataframe(records: Iterable[Any], columns: List[str]) -> pd.DataFrame:
    """将 dataclass 或 dict 列表转换为 DataFrame，列顺序固定"""
    rows = [asdict(r) if is_dataclass(r) else dict(r) for r in records]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)
