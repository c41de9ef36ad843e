"""
组合账本 - 余额、持仓与成交历史的唯一权威来源
所有汇总值都按需计算，不做缓存
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional

from logbook import Logger

from signaltrader.models.market_data import OrderSide
from signaltrader.models.portfolio_data import Position, PositionSide, Trade
from signaltrader.utils.log import setup_logging

# 预留1%作为手续费/滑点缓冲
AFFORDABILITY_BUFFER = 0.01


def _side_for(quantity: float) -> PositionSide:
    return PositionSide.LONG if quantity > 0 else PositionSide.SHORT


class PortfolioManager:
    """单账户组合账本"""

    def __init__(self, initial_balance: float, log: Optional[Logger] = None):
        if initial_balance <= 0:
            raise ValueError(f"initial_balance must be positive, got {initial_balance}")
        self.log = log or setup_logging(module_prefix='PORTFOLIO')
        self._initial_balance = float(initial_balance)
        self._available_balance = float(initial_balance)
        self._positions: Dict[str, Position] = {}
        self._trades: List[Trade] = []
        self.log.info(f"组合初始化，初始资金: ${initial_balance:,.2f}")

    @property
    def initial_balance(self) -> float:
        return self._initial_balance

    @property
    def available_balance(self) -> float:
        return self._available_balance

    def add_trade(self, trade: Trade) -> float:
        """
        记录成交并更新持仓与余额

        Returns:
            本次成交平掉部分的已实现盈亏（不含手续费）
        """
        self._trades.append(trade)
        realized_pnl = self._update_position(trade)

        if trade.side is OrderSide.BUY:
            self._available_balance -= trade.quantity * trade.price + trade.fee
        else:
            self._available_balance += trade.quantity * trade.price - trade.fee

        self.log.info(
            f"成交记账: {trade.side.value} {trade.quantity:.6f} {trade.symbol} @ ${trade.price:,.2f} "
            f"手续费:{trade.fee:.4f} 已实现盈亏:{realized_pnl:.2f}"
        )
        return realized_pnl

    def _update_position(self, trade: Trade) -> float:
        signed_qty = trade.quantity if trade.side is OrderSide.BUY else -trade.quantity
        existing = self._positions.get(trade.symbol)

        if existing is None:
            self._positions[trade.symbol] = Position(
                symbol=trade.symbol,
                quantity=signed_qty,
                avg_price=trade.price,
                current_price=trade.price,
                unrealized_pnl=0.0,
                side=_side_for(signed_qty),
            )
            return 0.0

        new_qty = existing.quantity + signed_qty

        # 同方向加仓：加权平均成本
        if existing.quantity * signed_qty > 0:
            existing.avg_price = (
                (existing.avg_price * existing.quantity) + (trade.price * signed_qty)
            ) / new_qty
            existing.quantity = new_qty
            existing.unrealized_pnl = (existing.current_price - existing.avg_price) * new_qty
            return 0.0

        # 反方向：先平掉已有部分
        closed_qty = min(abs(signed_qty), abs(existing.quantity))
        direction = 1 if existing.side is PositionSide.LONG else -1
        realized_pnl = (trade.price - existing.avg_price) * closed_qty * direction

        if new_qty == 0:
            del self._positions[trade.symbol]
            self.log.info(f"{trade.symbol}: 持仓已平")
            return realized_pnl

        if new_qty * existing.quantity < 0:
            # 超出部分按成交价反向开仓
            existing.avg_price = trade.price
            existing.current_price = trade.price
            self.log.info(f"{trade.symbol}: 持仓反转为 {_side_for(new_qty).value}")

        existing.quantity = new_qty
        existing.side = _side_for(new_qty)
        existing.unrealized_pnl = (existing.current_price - existing.avg_price) * new_qty
        return realized_pnl

    def update_price(self, symbol: str, current_price: float) -> None:
        position = self._positions.get(symbol)
        if position:
            position.current_price = current_price
            position.unrealized_pnl = (current_price - position.avg_price) * position.quantity

    def get_position(self, symbol: str) -> Optional[Position]:
        position = self._positions.get(symbol)
        return replace(position) if position else None

    def get_all_positions(self) -> List[Position]:
        return [replace(p) for p in self._positions.values()]

    def get_trades(self) -> List[Trade]:
        return list(self._trades)

    def get_total_value(self) -> float:
        total_value = self._available_balance
        for position in self._positions.values():
            total_value += position.market_value
        return total_value

    def get_total_pnl(self) -> float:
        return self.get_total_value() - self._initial_balance

    def can_afford(self, symbol: str, quantity: float, price: float) -> bool:
        cost = quantity * price
        return self._available_balance >= cost + cost * AFFORDABILITY_BUFFER

    def get_portfolio_summary(self) -> Dict[str, Any]:
        total_value = self.get_total_value()
        total_pnl = self.get_total_pnl()
        return {
            'total_value': round(total_value, 2),
            'available_balance': round(self._available_balance, 2),
            'total_pnl': round(total_pnl, 2),
            'pnl_percentage': round(total_pnl / self._initial_balance * 100, 2),
            'positions': len(self._positions),
            'trades': len(self._trades),
        }
