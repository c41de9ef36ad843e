"""
执行引擎 - 信号 → 风险检查 → 成交 → 记账
从策略信号到实际交易执行的桥梁
"""

import uuid
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from logbook import Logger

from signaltrader.core.errors import ExchangeError, NotSupportedError
from signaltrader.exchange.base import BaseExchange
from signaltrader.journal.base import JournalSink, TradeLogEntry
from signaltrader.models.market_data import OrderSide, OrderStatus, OrderType
from signaltrader.models.portfolio_data import PositionSide, Trade
from signaltrader.models.strategy_data import SignalAction, TradingSignal
from signaltrader.portfolio.portfolio_manager import PortfolioManager
from signaltrader.risk.risk_manager import RiskAssessment, RiskManager
from signaltrader.utils.data_transforms import now_ms
from signaltrader.utils.log import setup_logging

# 以可用余额的10%为基础仓位，按置信度缩放到 0.5x-1.0x
BASE_ALLOCATION = 0.10
FEE_RATE = 0.001

STOP_LOSS = 'STOP_LOSS'
TAKE_PROFIT = 'TAKE_PROFIT'


@dataclass(frozen=True)
class ExecutionResult:
    success: bool
    trade: Optional[Trade] = None
    reason: Optional[str] = None
    retryable: bool = True


class TradeExecutor:
    """
    执行引擎 - 负责仓位计算、风险检查和成交路由
    dry_run 时在本地模拟成交，否则提交到交易所
    """

    def __init__(self, exchange: BaseExchange, portfolio: PortfolioManager,
                 risk_manager: RiskManager, journal: JournalSink,
                 dry_run: bool = True, resize_rejected_trades: bool = True,
                 log: Optional[Logger] = None, clock: Callable[[], int] = now_ms):
        self.exchange = exchange
        self.portfolio = portfolio
        self.risk_manager = risk_manager
        self.journal = journal
        self.dry_run = dry_run
        self.resize_rejected_trades = resize_rejected_trades
        self.log = log or setup_logging(module_prefix='EXECUTION')
        self._clock = clock

    def execute_signal(self, signal: TradingSignal, symbol: str,
                       current_price: float, strategy: str) -> ExecutionResult:
        """
        执行交易信号

        Args:
            signal: 策略信号
            symbol: 交易品种
            current_price: 当前价格
            strategy: 策略名称，止损/止盈时为 STOP_LOSS / TAKE_PROFIT

        Returns:
            ExecutionResult，风险拒绝与未成交都不是异常
        """
        if signal.action is SignalAction.HOLD:
            return ExecutionResult(success=False, reason="No action required")

        if current_price <= 0:
            return ExecutionResult(success=False, reason=f"Invalid price: {current_price}")

        side = OrderSide(signal.action.value)
        position_size = self._calculate_position_size(signal, current_price)

        assessment = self._assess(symbol, side, position_size, current_price)
        if not assessment.allowed:
            self.log.warning(f"{symbol}: 风险管理拒绝交易: {assessment.reason}")
            return ExecutionResult(success=False, reason=assessment.reason)

        quantity = assessment.recommended_size or position_size
        trade = Trade(
            id=str(uuid.uuid4()),
            symbol=symbol,
            side=side,
            quantity=quantity,
            price=current_price,
            timestamp=signal.timestamp,
            fee=self._calculate_fee(quantity, current_price),
        )

        if self.dry_run:
            return self._simulate_trade(trade, strategy, signal.confidence)
        return self._execute_live_trade(trade, strategy, signal.confidence)

    def _assess(self, symbol: str, side: OrderSide, quantity: float, price: float) -> RiskAssessment:
        assessment = self.risk_manager.assess_trade_risk(symbol, side, quantity, price, self.portfolio)
        if assessment.allowed or not self.resize_rejected_trades or not assessment.recommended_size:
            return assessment

        resized = assessment.recommended_size
        self.log.info(f"{symbol}: {assessment.reason}，按建议数量重新评估 {quantity:.6f} -> {resized:.6f}")
        retry = self.risk_manager.assess_trade_risk(symbol, side, resized, price, self.portfolio)
        if not retry.allowed:
            return retry
        return RiskAssessment(allowed=True, reason=assessment.reason, recommended_size=resized)

    def _calculate_position_size(self, signal: TradingSignal, price: float) -> float:
        base_amount = self.portfolio.available_balance * BASE_ALLOCATION
        confidence_multiplier = 0.5 + (signal.confidence * 0.5)
        return base_amount * confidence_multiplier / price

    @staticmethod
    def _calculate_fee(quantity: float, price: float) -> float:
        return quantity * price * FEE_RATE

    def _simulate_trade(self, trade: Trade, strategy: str, confidence: float) -> ExecutionResult:
        self._record_fill(trade, strategy, confidence)
        self.log.info(
            f"DRY RUN: 执行 {trade.side.value} {trade.quantity:.4f} {trade.symbol} @ ${trade.price:,.2f} "
            f"[{strategy}]"
        )
        return ExecutionResult(success=True, trade=trade)

    def _execute_live_trade(self, trade: Trade, strategy: str, confidence: float) -> ExecutionResult:
        try:
            order = self.exchange.place_order(
                symbol=trade.symbol,
                side=trade.side,
                quantity=trade.quantity,
                order_type=OrderType.MARKET,
            )
        except NotSupportedError as exc:
            self.log.error(f"{trade.symbol}: 交易所不支持下单: {exc}")
            return ExecutionResult(success=False, reason=f"Execution failed: {exc}", retryable=False)
        except ExchangeError as exc:
            self.log.error(f"{trade.symbol}: 实盘下单失败: {exc}")
            return ExecutionResult(success=False, reason=f"Execution failed: {exc}")

        if order.status is not OrderStatus.FILLED:
            # 未确认成交的订单不记账
            self.log.error(f"{trade.symbol}: 订单未成交 {order.id}: {order.status.value}")
            return ExecutionResult(success=False, reason=f"Order status: {order.status.value}")

        fill_price = order.price or trade.price
        filled = replace(
            trade,
            id=order.id,
            price=fill_price,
            fee=self._calculate_fee(trade.quantity, fill_price),
        )
        self._record_fill(filled, strategy, confidence)
        self.log.info(
            f"LIVE: 执行 {filled.side.value} {filled.quantity:.4f} {filled.symbol} @ ${filled.price:,.2f} "
            f"[{strategy}] 订单ID:{order.id}"
        )
        return ExecutionResult(success=True, trade=filled)

    def _record_fill(self, trade: Trade, strategy: str, confidence: float) -> None:
        """成交记账，并同步当日盈亏与成交日志"""
        realized_pnl = self.portfolio.add_trade(trade)
        self.risk_manager.update_daily_pnl(realized_pnl)

        entry = TradeLogEntry(
            timestamp=trade.timestamp,
            symbol=trade.symbol,
            action=trade.side.value,
            quantity=trade.quantity,
            price=trade.price,
            value=trade.notional,
            strategy=strategy,
            confidence=confidence,
            balance=self.portfolio.available_balance,
            pnl=realized_pnl,
        )
        try:
            self.journal.log_trade(entry)
        except OSError as exc:
            # 账本已更新，日志失败只影响观测
            self.log.error(f"{trade.symbol}: 写入成交日志失败: {exc}")

    def check_stop_loss_orders(self) -> List[ExecutionResult]:
        """扫描全部持仓，触发止损/止盈时以反向信号平仓"""
        results: List[ExecutionResult] = []

        for position in self.portfolio.get_all_positions():
            closing_action = SignalAction.SELL if position.side is PositionSide.LONG else SignalAction.BUY

            if self.risk_manager.check_stop_loss(position):
                self.log.warning(f"{position.symbol}: 触发止损 @ ${position.current_price:,.2f}")
                signal = TradingSignal(closing_action, 1.0, self._clock())
                results.append(
                    self.execute_signal(signal, position.symbol, position.current_price, STOP_LOSS)
                )

            if self.risk_manager.check_take_profit(position):
                self.log.info(f"{position.symbol}: 触发止盈 @ ${position.current_price:,.2f}")
                signal = TradingSignal(closing_action, 1.0, self._clock())
                results.append(
                    self.execute_signal(signal, position.symbol, position.current_price, TAKE_PROFIT)
                )

        return results
