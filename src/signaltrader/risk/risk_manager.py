"""
Risk limits, per-trade assessment and stop-loss / take-profit predicates.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import arrow
from logbook import Logger

from signaltrader.models.market_data import OrderSide
from signaltrader.models.portfolio_data import Position, PositionSide
from signaltrader.portfolio.portfolio_manager import PortfolioManager
from signaltrader.utils.log import setup_logging


@dataclass(frozen=True)
class RiskLimits:
    """All percentages are expressed as 0-100."""

    max_position_size: float = 10.0
    max_daily_loss: float = 5.0
    stop_loss_percent: float = 2.0
    take_profit_percent: float = 4.0
    max_open_positions: int = 3


@dataclass(frozen=True)
class RiskAssessment:
    """Result of a single assessment; never stored."""

    allowed: bool
    reason: Optional[str] = None
    recommended_size: Optional[float] = None


class RiskManager:
    """Accepts, rejects or resizes candidate trades against the configured limits."""

    def __init__(self, limits: RiskLimits, log: Optional[Logger] = None,
                 clock: Callable[[], arrow.Arrow] = arrow.now):
        self.limits = limits
        self.log = log or setup_logging(module_prefix='RISK')
        self._clock = clock
        self._daily_pnl = 0.0
        self._next_reset: Optional[arrow.Arrow] = None
        self._reset_daily_tracking()
        self.log.info(f"风险管理初始化: {limits}")

    @property
    def daily_pnl(self) -> float:
        return self._daily_pnl

    def _reset_daily_tracking(self) -> None:
        # Lazy reset: checked on every assessment, no timer involved.
        now = self._clock()
        if self._next_reset is None or now >= self._next_reset:
            if self._next_reset is not None:
                self.log.info(f"新交易日，重置当日盈亏 (前值: {self._daily_pnl:.2f})")
            self._daily_pnl = 0.0
            self._next_reset = now.floor('day').shift(days=1)

    def assess_trade_risk(self, symbol: str, side: OrderSide, quantity: float,
                          price: float, portfolio: PortfolioManager) -> RiskAssessment:
        self._reset_daily_tracking()

        if quantity <= 0 or price <= 0:
            return RiskAssessment(allowed=False, reason="Quantity and price must be positive")

        total_value = portfolio.get_total_value()
        if total_value <= 0:
            return RiskAssessment(allowed=False, reason="Portfolio value is not positive")

        max_daily_loss_amount = total_value * (self.limits.max_daily_loss / 100)
        if self._daily_pnl <= -max_daily_loss_amount:
            return RiskAssessment(
                allowed=False,
                reason=f"Daily loss limit reached: ${abs(self._daily_pnl):.2f}",
            )

        position_size_percent = self._position_size_percent(quantity, price, total_value)
        if position_size_percent > self.limits.max_position_size:
            return RiskAssessment(
                allowed=False,
                reason=(f"Position size too large: {position_size_percent:.1f}% > "
                        f"{self.limits.max_position_size}%"),
                recommended_size=self._max_quantity(price, total_value),
            )

        open_positions = len(portfolio.get_all_positions())
        if open_positions >= self.limits.max_open_positions:
            return RiskAssessment(
                allowed=False,
                reason=(f"Maximum open positions reached: "
                        f"{open_positions}/{self.limits.max_open_positions}"),
            )

        if side is OrderSide.BUY and not portfolio.can_afford(symbol, quantity, price):
            return RiskAssessment(allowed=False, reason="Insufficient balance for trade")

        return RiskAssessment(allowed=True)

    @staticmethod
    def _position_size_percent(quantity: float, price: float, total_value: float) -> float:
        return (quantity * price / total_value) * 100

    def _max_quantity(self, price: float, total_value: float) -> float:
        max_allowed_value = total_value * (self.limits.max_position_size / 100)
        quantity = max_allowed_value / price
        # The recommended size must itself pass the size gate; step down past rounding error.
        while self._position_size_percent(quantity, price, total_value) > self.limits.max_position_size:
            quantity = math.nextafter(quantity, 0.0)
        return quantity

    def check_stop_loss(self, position: Position) -> bool:
        """True when the adverse move from entry meets or exceeds stop_loss_percent."""
        if position.side is PositionSide.LONG:
            loss_percent = (position.avg_price - position.current_price) / position.avg_price * 100
        else:
            loss_percent = (position.current_price - position.avg_price) / position.avg_price * 100
        return loss_percent >= self.limits.stop_loss_percent

    def check_take_profit(self, position: Position) -> bool:
        """True when the favorable move from entry meets or exceeds take_profit_percent."""
        if position.side is PositionSide.LONG:
            profit_percent = (position.current_price - position.avg_price) / position.avg_price * 100
        else:
            profit_percent = (position.avg_price - position.current_price) / position.avg_price * 100
        return profit_percent >= self.limits.take_profit_percent

    def update_daily_pnl(self, pnl: float) -> None:
        self._reset_daily_tracking()
        self._daily_pnl += pnl

    def get_risk_metrics(self, portfolio: PortfolioManager) -> Dict[str, Any]:
        total_value = portfolio.get_total_value()
        positions = portfolio.get_all_positions()

        total_exposure = 0.0
        largest_position = 0.0
        positions_at_risk = 0
        for position in positions:
            position_value = abs(position.market_value)
            total_exposure += position_value
            largest_position = max(largest_position, position_value)
            if self.check_stop_loss(position):
                positions_at_risk += 1

        def pct(value: float) -> float:
            return round(value / total_value * 100, 1) if total_value else 0.0

        return {
            'total_exposure_pct': pct(total_exposure),
            'largest_position_pct': pct(largest_position),
            'open_positions': len(positions),
            'daily_pnl': round(self._daily_pnl, 2),
            'positions_at_risk': positions_at_risk,
        }
