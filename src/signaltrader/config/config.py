"""交易配置管理"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv

from signaltrader.core.errors import ConfigError
from signaltrader.risk.risk_manager import RiskLimits

SUPPORTED_STRATEGIES = ('SMA', 'RSI')
SUPPORTED_EXCHANGES = ('binance', 'alpaca', 'simulated')
SUPPORTED_JOURNALS = ('file', 'redis')


@dataclass
class StrategyConfig:
    """策略选择与参数"""
    name: str = 'SMA'
    fast_period: int = 10
    slow_period: int = 20
    rsi_period: int = 14
    oversold: float = 30.0
    overbought: float = 70.0


@dataclass
class ExchangeConfig:
    """交易所连接配置"""
    name: str = 'simulated'
    api_key: str = ''
    secret_key: str = ''
    sandbox: bool = True


@dataclass
class RedisConfig:
    """Redis配置"""
    host: str = 'localhost'
    port: int = 6379
    password: str = ''
    db: int = 0
    key_prefix: str = 'signaltrader'


@dataclass
class JournalConfig:
    """成交日志配置"""
    backend: str = 'file'
    log_dir: str = './logs'


@dataclass
class LoggingConfig:
    level: str = 'INFO'
    use_colors: bool = True
    file: Optional[str] = None


@dataclass
class TradingConfig:
    """交易系统配置"""
    symbol: str = 'BTCUSDT'

    # 执行模式
    dry_run: bool = True
    trading_enabled: bool = False

    # 资金与节奏
    initial_balance: float = 10000.0
    poll_interval: float = 30.0
    stop_check_interval: int = 1
    resize_rejected_trades: bool = True

    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    risk: RiskLimits = field(default_factory=RiskLimits)
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    journal: JournalConfig = field(default_factory=JournalConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def create(cls, config_path: Union[str, Path, None] = None) -> 'TradingConfig':
        """创建配置实例：YAML文件为基础，环境变量覆盖"""
        load_dotenv()

        if config_path is None:
            # 默认配置文件路径 - 当前工作目录下的 config.yaml，可以不存在
            config_path = Path.cwd() / "config.yaml"
            config_data = _read_yaml(config_path) if config_path.exists() else {}
        else:
            config_data = _read_yaml(Path(config_path))

        config = cls.from_dict(config_data)
        config = config.with_env_overrides(os.environ)
        config.validate()
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TradingConfig':
        sections = {
            'strategy': StrategyConfig,
            'risk': RiskLimits,
            'exchange': ExchangeConfig,
            'journal': JournalConfig,
            'redis': RedisConfig,
            'logging': LoggingConfig,
        }
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            if key in sections:
                kwargs[key] = _build_section(sections[key], value or {}, key)
            elif key in _field_names(cls):
                kwargs[key] = value
            else:
                raise ConfigError(f"Unknown configuration key: {key}")
        return cls(**kwargs)

    def with_env_overrides(self, env: Dict[str, str]) -> 'TradingConfig':
        """返回应用了环境变量覆盖的新配置"""
        top = _collect(env, {
            'TRADING_PAIR': ('symbol', str),
            'DRY_RUN': ('dry_run', _to_bool),
            'TRADING_ENABLED': ('trading_enabled', _to_bool),
            'INITIAL_BALANCE': ('initial_balance', float),
            'POLL_INTERVAL': ('poll_interval', float),
        })
        strategy = _collect(env, {
            'STRATEGY': ('name', str),
            'SMA_FAST': ('fast_period', int),
            'SMA_SLOW': ('slow_period', int),
            'RSI_PERIOD': ('rsi_period', int),
            'RSI_OVERSOLD': ('oversold', float),
            'RSI_OVERBOUGHT': ('overbought', float),
        })
        risk = _collect(env, {
            'MAX_POSITION_SIZE': ('max_position_size', float),
            'MAX_DAILY_LOSS': ('max_daily_loss', float),
            'STOP_LOSS_PERCENT': ('stop_loss_percent', float),
            'TAKE_PROFIT_PERCENT': ('take_profit_percent', float),
            'MAX_OPEN_POSITIONS': ('max_open_positions', int),
        })
        exchange = _collect(env, {'EXCHANGE': ('name', str)})
        exchange_name = exchange.get('name', self.exchange.name).upper()
        exchange.update(_collect(env, {
            f'{exchange_name}_API_KEY': ('api_key', str),
            f'{exchange_name}_SECRET_KEY': ('secret_key', str),
            f'{exchange_name}_SANDBOX': ('sandbox', _to_bool),
        }))
        journal = _collect(env, {
            'JOURNAL_BACKEND': ('backend', str),
            'LOG_DIR': ('log_dir', str),
        })
        redis = _collect(env, {
            'REDIS_HOST': ('host', str),
            'REDIS_PORT': ('port', int),
            'REDIS_PASSWORD': ('password', str),
            'REDIS_DB': ('db', int),
        })
        logging = _collect(env, {
            'LOG_LEVEL': ('level', str),
            'LOG_FILE': ('file', str),
        })

        return replace(
            self,
            strategy=replace(self.strategy, **strategy),
            risk=replace(self.risk, **risk),
            exchange=replace(self.exchange, **exchange),
            journal=replace(self.journal, **journal),
            redis=replace(self.redis, **redis),
            logging=replace(self.logging, **logging),
            **top,
        )

    @property
    def live_trading(self) -> bool:
        """只有关闭 dry_run 且显式开启 trading_enabled 才真实下单"""
        return not self.dry_run and self.trading_enabled

    def validate(self) -> None:
        if not self.symbol:
            raise ConfigError("symbol must not be empty")
        if self.initial_balance <= 0:
            raise ConfigError(f"initial_balance must be positive, got {self.initial_balance}")
        if self.poll_interval < 0:
            raise ConfigError(f"poll_interval must be >= 0, got {self.poll_interval}")
        if self.stop_check_interval < 1:
            raise ConfigError(f"stop_check_interval must be >= 1, got {self.stop_check_interval}")

        if self.strategy.name.upper() not in SUPPORTED_STRATEGIES:
            raise ConfigError(f"Unknown strategy: {self.strategy.name}")
        if not 1 <= self.strategy.fast_period < self.strategy.slow_period:
            raise ConfigError("SMA fast_period must be >= 1 and smaller than slow_period")
        if self.strategy.rsi_period < 1:
            raise ConfigError("rsi_period must be >= 1")
        if not 0 < self.strategy.oversold < self.strategy.overbought < 100:
            raise ConfigError("RSI levels must satisfy 0 < oversold < overbought < 100")

        for name in ('max_position_size', 'max_daily_loss', 'stop_loss_percent', 'take_profit_percent'):
            value = getattr(self.risk, name)
            if not 0 < value <= 100:
                raise ConfigError(f"risk.{name} must be within (0, 100], got {value}")
        if self.risk.max_open_positions < 1:
            raise ConfigError("risk.max_open_positions must be >= 1")

        if self.exchange.name.lower() not in SUPPORTED_EXCHANGES:
            raise ConfigError(f"Unknown exchange: {self.exchange.name}")
        if self.journal.backend.lower() not in SUPPORTED_JOURNALS:
            raise ConfigError(f"Unknown journal backend: {self.journal.backend}")


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def _field_names(cls) -> set:
    return {f.name for f in fields(cls)}


def _build_section(section_cls, values: Dict[str, Any], key: str):
    unknown = set(values) - _field_names(section_cls)
    if unknown:
        raise ConfigError(f"Unknown keys in '{key}': {', '.join(sorted(unknown))}")
    return section_cls(**values)


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _collect(env: Dict[str, str], mapping: Dict[str, tuple]) -> Dict[str, Any]:
    """按映射表读取环境变量并转换类型"""
    values: Dict[str, Any] = {}
    for env_name, (attr, convert) in mapping.items():
        raw = env.get(env_name)
        if raw is None or raw == '':
            continue
        try:
            values[attr] = convert(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid value for {env_name}: {raw!r}") from exc
    return values
