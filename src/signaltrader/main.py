"""
单品种信号交易机器人
轮询行情 → 策略信号 → 风险检查 → 成交记账 → 止损/止盈扫描
"""

import argparse
import signal
import sys
import threading
from dataclasses import replace
from typing import List, Optional

from signaltrader.config.config import TradingConfig
from signaltrader.core.errors import (
    AuthenticationError, ConfigError, ExchangeError, NotSupportedError
)
from signaltrader.exchange.base import BaseExchange
from signaltrader.exchange.factory import create_exchange
from signaltrader.execution.trade_executor import ExecutionResult, TradeExecutor
from signaltrader.journal.base import JournalSink
from signaltrader.journal.factory import create_journal
from signaltrader.portfolio.portfolio_manager import PortfolioManager
from signaltrader.risk.risk_manager import RiskManager
from signaltrader.strategies.factory import create_strategy
from signaltrader.utils.log import configure_logging, setup_logging

log = setup_logging(module_prefix='ENGINE')

MAX_BACKOFF_SECONDS = 300.0


class TradingBot:
    """交易机器人 - 组装各组件并运行轮询循环"""

    def __init__(self, config: TradingConfig, exchange: Optional[BaseExchange] = None,
                 journal: Optional[JournalSink] = None):
        self.config = config
        self.symbol = config.symbol

        if not config.dry_run and not config.trading_enabled:
            log.warning("DRY_RUN已关闭但TRADING_ENABLED未开启，使用模拟成交")
        self.dry_run = not config.live_trading

        self.exchange = exchange or create_exchange(config.exchange)
        self.strategy = create_strategy(config.strategy)
        self.portfolio = PortfolioManager(config.initial_balance)
        self.risk_manager = RiskManager(config.risk)
        self.journal = journal or create_journal(config)
        self.executor = TradeExecutor(
            exchange=self.exchange,
            portfolio=self.portfolio,
            risk_manager=self.risk_manager,
            journal=self.journal,
            dry_run=self.dry_run,
            resize_rejected_trades=config.resize_rejected_trades,
        )

        self.tick_count = 0
        self.halt_reason: Optional[str] = None
        self._stop_event = threading.Event()

        log.info(
            f"交易机器人初始化: {self.symbol} 策略:{self.strategy.name} "
            f"交易所:{self.exchange.name} 模式:{'DRY RUN' if self.dry_run else 'LIVE'}"
        )

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    def tick(self) -> Optional[ExecutionResult]:
        """
        处理一个价格样本

        Returns:
            信号的执行结果，HOLD 时为 None
        """
        sample = self.exchange.get_market_data(self.symbol)
        log.debug(f"{self.symbol} 价格: ${sample.price:,.2f}")

        trading_signal = self.strategy.add_price_data(sample)
        self.journal.log_signal(trading_signal, self.symbol, sample.price, self.strategy.name)
        self.portfolio.update_price(self.symbol, sample.price)

        result = None
        if trading_signal.is_actionable:
            log.info(
                f"交易信号: {trading_signal.action.value} "
                f"(置信度: {trading_signal.confidence:.2f}) @ ${sample.price:,.2f}"
            )
            result = self.executor.execute_signal(
                trading_signal, self.symbol, sample.price, self.strategy.name
            )
            self._handle_result(result)

        self.tick_count += 1
        if self.tick_count % self.config.stop_check_interval == 0:
            for stop_result in self.executor.check_stop_loss_orders():
                self._handle_result(stop_result)

        return result

    def _handle_result(self, result: ExecutionResult) -> None:
        if result.success:
            log.info(f"组合状态: {self.portfolio.get_portfolio_summary()}")
        elif not result.retryable:
            self.halt_reason = result.reason
            log.critical(f"不可恢复的执行错误，停止交易: {result.reason}")
            self.stop()

    def run(self, max_ticks: Optional[int] = None) -> None:
        """运行轮询循环，直到 stop() 被调用或达到 max_ticks"""
        self._stop_event.clear()
        failures = 0
        ticks = 0
        try:
            self.exchange.connect()
            log.info(f"启动交易循环，轮询间隔 {self.config.poll_interval}s")

            while not self._stop_event.is_set():
                delay = self.config.poll_interval
                try:
                    self.tick()
                    failures = 0
                except AuthenticationError as exc:
                    self.halt_reason = str(exc)
                    log.critical(f"认证失败，停止交易: {exc}")
                    break
                except NotSupportedError as exc:
                    self.halt_reason = str(exc)
                    log.critical(f"交易所不支持该操作，停止交易: {exc}")
                    break
                except ExchangeError as exc:
                    failures += 1
                    delay = min(self.config.poll_interval * 2 ** failures, MAX_BACKOFF_SECONDS)
                    log.warning(f"获取行情失败 (第{failures}次): {exc}，{delay:.0f}秒后重试")

                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break
                self._stop_event.wait(delay)
        finally:
            self.exchange.disconnect()
            self._log_final_state()

    def stop(self) -> None:
        if not self._stop_event.is_set():
            log.info("停止交易机器人...")
        self._stop_event.set()

    def _log_final_state(self) -> None:
        log.info(f"组合汇总: {self.portfolio.get_portfolio_summary()}")
        log.info(f"风险指标: {self.risk_manager.get_risk_metrics(self.portfolio)}")
        log.info(f"策略状态: {self.strategy.get_state()}")
        log.info(f"当日统计: {self.journal.get_daily_stats()}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Single-instrument signal trading bot")
    parser.add_argument('--config', default=None, help="path to config.yaml")
    parser.add_argument('--dry-run', action='store_true', help="force simulated fills")
    parser.add_argument('--max-ticks', type=int, default=None, help="stop after N polling ticks")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = TradingConfig.create(args.config)
    except ConfigError as exc:
        configure_logging()
        log.error(f"配置错误: {exc}")
        return 2

    if args.dry_run:
        config = replace(config, dry_run=True)

    configure_logging(config.logging.level, config.logging.use_colors, config.logging.file)

    try:
        bot = TradingBot(config)
    except ConfigError as exc:
        log.error(f"配置错误: {exc}")
        return 2

    def _handle_signal(signum, _frame):
        log.info(f"收到停止信号 {signal.Signals(signum).name}")
        bot.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        bot.run(max_ticks=args.max_ticks)
    except ExchangeError as exc:
        log.critical(f"连接交易所失败: {exc}")
        return 1

    return 1 if bot.halt_reason else 0


if __name__ == "__main__":
    sys.exit(main())
