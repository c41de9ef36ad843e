import arrow
import pytest
from logbook import TestHandler

from signaltrader.models.market_data import PriceSample
from signaltrader.utils.log import reset_logging

START_MS = 1_700_000_000_000
STEP_MS = 30_000


@pytest.fixture
def log_handler():
    """捕获测试期间的 logbook 日志"""
    handler = TestHandler()
    with handler.applicationbound():
        yield handler


@pytest.fixture(autouse=True)
def _clean_logging():
    yield
    reset_logging()


@pytest.fixture
def make_samples():
    def _make(prices, symbol='BTCUSDT', start=START_MS, step=STEP_MS):
        return [
            PriceSample(symbol=symbol, price=float(p), timestamp=start + i * step)
            for i, p in enumerate(prices)
        ]
    return _make


class FakeClock:
    """可手动推进的 arrow 时钟"""

    def __init__(self, start: arrow.Arrow):
        self.now = start

    def __call__(self) -> arrow.Arrow:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now.shift(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(arrow.now().floor('day').shift(hours=10))
