"""日志工具"""

import re
import sys
from typing import List, Optional

from colorama import init, Fore, Back, Style
from logbook import Handler, Logger, RotatingFileHandler, StreamHandler

ROOT_CHANNEL = 'SignalTrader'

FORMAT_STRING = (
    '[{record.time:%Y-%m-%d %H:%M:%S}] {record.level_name}: '
    '{record.channel}: {record.message}'
)

TIME_PATTERN = re.compile(r'(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}|\d{2}:\d{2}:\d{2})')

# configure_logging 推入的处理器，重复配置时先弹出
_active_handlers: List[Handler] = []


class ColoredStreamHandler(StreamHandler):
    """支持彩色输出的StreamHandler"""

    # 日志级别颜色映射
    LEVEL_COLORS = {
        'TRACE': Fore.CYAN,
        'DEBUG': Fore.BLUE,
        'INFO': Fore.GREEN,
        'NOTICE': Fore.GREEN + Style.BRIGHT,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Back.WHITE + Style.BRIGHT,
    }

    # 模块前缀颜色映射
    MODULE_COLORS = {
        'STRATEGY': Fore.MAGENTA,
        'EXECUTION': Fore.CYAN,
        'RISK': Fore.RED,
        'PORTFOLIO': Fore.BLUE,
        'EXCHANGE': Fore.YELLOW,
        'JOURNAL': Fore.WHITE,
        'ENGINE': Fore.GREEN,
    }

    def format(self, record):
        """格式化日志记录，添加颜色"""
        formatted = super().format(record)

        level_color = self.LEVEL_COLORS.get(record.level_name, '')
        if level_color:
            colored_level = f"{level_color}{record.level_name}{Style.RESET_ALL}"
            formatted = formatted.replace(record.level_name, colored_level, 1)

        # 从channel中提取模块名 (如 SignalTrader.RISK -> RISK)
        if record.channel:
            module_name = record.channel.split('.')[-1]
            module_color = self.MODULE_COLORS.get(module_name)
            if module_color:
                colored_channel = f"{module_color}{record.channel}{Style.RESET_ALL}"
                formatted = formatted.replace(record.channel, colored_channel, 1)

        return TIME_PATTERN.sub(f"{Style.DIM}\\1{Style.RESET_ALL}", formatted, count=1)


def configure_logging(level: str = 'INFO', use_colors: bool = True,
                      log_file: Optional[str] = None) -> None:
    """
    配置进程级日志处理器，只需在启动时调用一次

    Args:
        level: 日志级别
        use_colors: 是否使用彩色输出
        log_file: 日志文件路径，为空则只输出到控制台
    """
    reset_logging()

    level = level.upper()
    if use_colors:
        init()
        console = ColoredStreamHandler(sys.stdout, level=level, format_string=FORMAT_STRING)
    else:
        console = StreamHandler(sys.stdout, level=level, format_string=FORMAT_STRING)

    # 文件处理器在栈顶，记录后继续冒泡到控制台
    handlers: List[Handler] = [console]
    if log_file:
        handlers.append(RotatingFileHandler(
            log_file,
            level=level,
            max_size=10 * 1024 * 1024,
            backup_count=7,
            format_string=FORMAT_STRING,
            bubble=True,
        ))

    for handler in handlers:
        handler.push_application()
        _active_handlers.append(handler)


def reset_logging() -> None:
    """弹出并关闭 configure_logging 推入的处理器"""
    while _active_handlers:
        handler = _active_handlers.pop()
        handler.pop_application()
        handler.close()


def setup_logging(module_prefix: Optional[str] = None) -> Logger:
    """返回指定模块的logger实例"""
    logger_name = f'{ROOT_CHANNEL}.{module_prefix}' if module_prefix else ROOT_CHANNEL
    return Logger(logger_name)
