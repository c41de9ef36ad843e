"""
异常类型定义
交易所适配器把底层库的异常统一转换为这里的类型
"""


class TradingError(Exception):
    """所有交易系统异常的基类"""


class ConfigError(TradingError):
    """配置缺失或取值不合法"""


class ExchangeError(TradingError):
    """交易所调用失败"""


class ExchangeConnectionError(ExchangeError):
    """网络/行情获取失败，属于可恢复错误"""


class AuthenticationError(ExchangeError):
    """API密钥缺失或被交易所拒绝，不应重试"""


class NotSupportedError(ExchangeError):
    """该交易所适配器未实现此功能，不应重试"""

    def __init__(self, operation: str, exchange: str = ""):
        self.operation = operation
        self.exchange = exchange
        prefix = f"{exchange}: " if exchange else ""
        super().__init__(f"{prefix}{operation} not supported")
