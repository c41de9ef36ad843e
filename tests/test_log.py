"""彩色日志输出测试"""

import io

from colorama import Fore, Style
from logbook import Logger

from signaltrader.utils.log import (
    ColoredStreamHandler, FORMAT_STRING, configure_logging, reset_logging, setup_logging
)


def render(channel, level_method, message):
    stream = io.StringIO()
    handler = ColoredStreamHandler(stream, format_string=FORMAT_STRING)
    with handler.applicationbound():
        getattr(Logger(channel), level_method)(message)
    return stream.getvalue()


def test_level_and_module_colors():
    output = render('SignalTrader.RISK', 'warning', '仓位过大')

    assert f"{Fore.YELLOW}WARNING{Style.RESET_ALL}" in output
    assert f"{Fore.RED}SignalTrader.RISK{Style.RESET_ALL}" in output
    assert output.rstrip().endswith('仓位过大')


def test_unknown_module_not_colored():
    output = render('SignalTrader.OTHER', 'info', 'hello')
    assert f"{Fore.GREEN}INFO{Style.RESET_ALL}" in output
    assert 'SignalTrader.OTHER' in output
    assert f"SignalTrader.OTHER{Style.RESET_ALL}" not in output


def test_setup_logging_channel():
    assert setup_logging(module_prefix='STRATEGY').name == 'SignalTrader.STRATEGY'
    assert setup_logging().name == 'SignalTrader'


def test_configure_logging_writes_file(tmp_path, capsys):
    log_file = tmp_path / 'bot.log'
    configure_logging('DEBUG', use_colors=False, log_file=str(log_file))

    setup_logging(module_prefix='ENGINE').debug('调试信息')
    reset_logging()

    assert '调试信息' in log_file.read_text(encoding='utf-8')
    assert '调试信息' in capsys.readouterr().out


def test_level_filters_console(capsys):
    configure_logging('WARNING', use_colors=False)

    log = setup_logging(module_prefix='ENGINE')
    log.info('不应输出')
    log.warning('应当输出')
    reset_logging()

    out = capsys.readouterr().out
    assert '应当输出' in out
    assert '不应输出' not in out
