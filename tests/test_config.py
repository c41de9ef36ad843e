"""配置加载测试"""

from pathlib import Path

import pytest

from signaltrader.config.config import TradingConfig
from signaltrader.core.errors import ConfigError

ENV_KEYS = [
    'TRADING_PAIR', 'DRY_RUN', 'TRADING_ENABLED', 'INITIAL_BALANCE', 'POLL_INTERVAL',
    'STRATEGY', 'SMA_FAST', 'SMA_SLOW', 'RSI_PERIOD', 'RSI_OVERSOLD', 'RSI_OVERBOUGHT',
    'MAX_POSITION_SIZE', 'MAX_DAILY_LOSS', 'STOP_LOSS_PERCENT', 'TAKE_PROFIT_PERCENT',
    'MAX_OPEN_POSITIONS', 'EXCHANGE', 'BINANCE_API_KEY', 'BINANCE_SECRET_KEY',
    'BINANCE_SANDBOX', 'ALPACA_API_KEY', 'ALPACA_SECRET_KEY', 'ALPACA_SANDBOX',
    'JOURNAL_BACKEND', 'LOG_DIR', 'REDIS_HOST', 'REDIS_PORT', 'REDIS_PASSWORD', 'REDIS_DB',
    'LOG_LEVEL', 'LOG_FILE',
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults_are_valid():
    config = TradingConfig()
    config.validate()
    assert config.symbol == 'BTCUSDT'
    assert config.dry_run
    assert not config.live_trading
    assert config.risk.max_position_size == 10.0
    assert config.strategy.name == 'SMA'


def test_from_yaml_file(tmp_path, clean_env):
    path = tmp_path / 'config.yaml'
    path.write_text(
        'symbol: ETHUSDT\n'
        'poll_interval: 5\n'
        'strategy:\n'
        '  name: RSI\n'
        '  rsi_period: 7\n'
        'risk:\n'
        '  stop_loss_percent: 1.5\n'
        'exchange:\n'
        '  name: simulated\n',
        encoding='utf-8',
    )

    config = TradingConfig.create(path)

    assert config.symbol == 'ETHUSDT'
    assert config.poll_interval == 5
    assert config.strategy.name == 'RSI'
    assert config.strategy.rsi_period == 7
    assert config.risk.stop_loss_percent == 1.5
    assert config.risk.take_profit_percent == 4.0
    assert config.exchange.name == 'simulated'


def test_env_overrides_file(tmp_path, clean_env):
    path = tmp_path / 'config.yaml'
    path.write_text('symbol: ETHUSDT\nexchange:\n  name: alpaca\n', encoding='utf-8')
    clean_env.setenv('TRADING_PAIR', 'SOLUSDT')
    clean_env.setenv('MAX_OPEN_POSITIONS', '5')
    clean_env.setenv('ALPACA_API_KEY', 'key-123')
    clean_env.setenv('ALPACA_SANDBOX', 'false')

    config = TradingConfig.create(path)

    assert config.symbol == 'SOLUSDT'
    assert config.risk.max_open_positions == 5
    assert config.exchange.api_key == 'key-123'
    assert config.exchange.sandbox is False


def test_env_overrides_mapping():
    config = TradingConfig().with_env_overrides({
        'DRY_RUN': 'false',
        'TRADING_ENABLED': 'yes',
        'STRATEGY': 'rsi',
        'RSI_OVERSOLD': '25',
        'JOURNAL_BACKEND': 'redis',
        'REDIS_PORT': '6380',
        'LOG_LEVEL': 'DEBUG',
        'EXCHANGE': 'binance',
        'BINANCE_API_KEY': 'abc',
        'SMA_FAST': '',
    })

    assert config.live_trading
    assert config.strategy.name == 'rsi'
    assert config.strategy.oversold == 25.0
    assert config.strategy.fast_period == 10
    assert config.journal.backend == 'redis'
    assert config.redis.port == 6380
    assert config.logging.level == 'DEBUG'
    assert config.exchange.api_key == 'abc'


def test_live_trading_requires_both_flags():
    assert not TradingConfig(dry_run=False, trading_enabled=False).live_trading
    assert not TradingConfig(dry_run=True, trading_enabled=True).live_trading
    assert TradingConfig(dry_run=False, trading_enabled=True).live_trading


def test_invalid_env_value():
    with pytest.raises(ConfigError, match='SMA_FAST'):
        TradingConfig().with_env_overrides({'SMA_FAST': 'ten'})


def test_unknown_keys_rejected():
    with pytest.raises(ConfigError):
        TradingConfig.from_dict({'symbl': 'BTCUSDT'})
    with pytest.raises(ConfigError, match='risk'):
        TradingConfig.from_dict({'risk': {'max_loss': 3}})


def test_missing_explicit_file(tmp_path, clean_env):
    with pytest.raises(ConfigError):
        TradingConfig.create(tmp_path / 'missing.yaml')


def test_invalid_yaml(tmp_path, clean_env):
    path = tmp_path / 'config.yaml'
    path.write_text('- just\n- a list\n', encoding='utf-8')
    with pytest.raises(ConfigError):
        TradingConfig.create(path)


@pytest.mark.parametrize('data', [
    {'strategy': {'name': 'MACD'}},
    {'strategy': {'fast_period': 20, 'slow_period': 10}},
    {'strategy': {'oversold': 80, 'overbought': 70}},
    {'risk': {'max_position_size': 0}},
    {'risk': {'max_open_positions': 0}},
    {'initial_balance': -1},
    {'stop_check_interval': 0},
    {'exchange': {'name': 'kraken'}},
    {'journal': {'backend': 'sqlite'}},
])
def test_validation_errors(data):
    with pytest.raises(ConfigError):
        TradingConfig.from_dict(data).validate()


def test_shipped_config_runs_without_keys(clean_env):
    """仓库自带的 config.yaml 默认使用模拟交易所"""
    config = TradingConfig.create(Path(__file__).resolve().parent.parent / 'config.yaml')

    assert config.exchange.name == 'simulated'
    assert not config.live_trading
    assert TradingConfig().exchange.name == 'simulated'
