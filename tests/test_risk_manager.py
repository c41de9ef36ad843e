"""风险管理测试"""

import random

import pytest

from signaltrader.models.market_data import OrderSide
from signaltrader.models.portfolio_data import Position, PositionSide, Trade
from signaltrader.portfolio.portfolio_manager import PortfolioManager
from signaltrader.risk.risk_manager import RiskLimits, RiskManager


def make_position(avg_price, current_price, quantity=1.0):
    side = PositionSide.LONG if quantity > 0 else PositionSide.SHORT
    return Position(
        symbol='BTCUSDT',
        quantity=quantity,
        avg_price=avg_price,
        current_price=current_price,
        unrealized_pnl=(current_price - avg_price) * quantity,
        side=side,
    )


def buy(portfolio, symbol, quantity, price):
    portfolio.add_trade(Trade(id=f'{symbol}-{quantity}', symbol=symbol, side=OrderSide.BUY,
                              quantity=quantity, price=price, timestamp=0))


class TestAssessTradeRisk:

    def test_oversized_trade_gets_recommended_size(self, clock):
        manager = RiskManager(RiskLimits(max_position_size=20), clock=clock)
        portfolio = PortfolioManager(1000)

        assessment = manager.assess_trade_risk('BTCUSDT', OrderSide.BUY, 3, 100, portfolio)

        assert not assessment.allowed
        assert assessment.reason.startswith('Position size too large')
        assert assessment.recommended_size == pytest.approx(2.0)
        assert manager.assess_trade_risk(
            'BTCUSDT', OrderSide.BUY, assessment.recommended_size, 100, portfolio
        ).allowed

    def test_recommended_size_always_passes_size_gate(self, clock):
        rng = random.Random(3)
        for _ in range(300):
            limit = rng.uniform(0.5, 60)
            manager = RiskManager(RiskLimits(max_position_size=limit, max_open_positions=10),
                                  clock=clock)
            portfolio = PortfolioManager(rng.uniform(100, 1_000_000))
            price = rng.uniform(0.01, 70_000)
            quantity = portfolio.get_total_value() * (limit / 100) / price * rng.uniform(1.01, 5)

            rejected = manager.assess_trade_risk('X', OrderSide.SELL, quantity, price, portfolio)
            assert not rejected.allowed
            retry = manager.assess_trade_risk(
                'X', OrderSide.SELL, rejected.recommended_size, price, portfolio
            )
            assert retry.allowed, (limit, price, quantity)

    def test_daily_loss_gate_checked_first(self, clock):
        manager = RiskManager(RiskLimits(max_position_size=20, max_daily_loss=5), clock=clock)
        portfolio = PortfolioManager(1000)
        manager.update_daily_pnl(-60)

        assessment = manager.assess_trade_risk('BTCUSDT', OrderSide.BUY, 3, 100, portfolio)

        assert not assessment.allowed
        assert assessment.reason == 'Daily loss limit reached: $60.00'
        assert assessment.recommended_size is None

    def test_daily_pnl_resets_on_new_day(self, clock):
        manager = RiskManager(RiskLimits(max_daily_loss=5), clock=clock)
        portfolio = PortfolioManager(1000)
        manager.update_daily_pnl(-100)
        assert not manager.assess_trade_risk('BTCUSDT', OrderSide.BUY, 0.5, 100, portfolio).allowed

        clock.advance(hours=14, minutes=30)
        assert manager.assess_trade_risk('BTCUSDT', OrderSide.BUY, 0.5, 100, portfolio).allowed
        assert manager.daily_pnl == 0.0

    def test_daily_pnl_accumulates_within_day(self, clock):
        manager = RiskManager(RiskLimits(), clock=clock)
        manager.update_daily_pnl(-10)
        clock.advance(hours=5)
        manager.update_daily_pnl(4)
        assert manager.daily_pnl == pytest.approx(-6)

    def test_max_open_positions(self, clock):
        manager = RiskManager(RiskLimits(max_open_positions=1), clock=clock)
        portfolio = PortfolioManager(1000)
        buy(portfolio, 'ETHUSDT', 0.5, 100)

        assessment = manager.assess_trade_risk('BTCUSDT', OrderSide.BUY, 0.5, 100, portfolio)

        assert not assessment.allowed
        assert assessment.reason == 'Maximum open positions reached: 1/1'

    def test_insufficient_balance_only_for_buys(self, clock):
        manager = RiskManager(RiskLimits(max_position_size=50), clock=clock)
        portfolio = PortfolioManager(1000)
        buy(portfolio, 'BTCUSDT', 9, 100)

        rejected = manager.assess_trade_risk('BTCUSDT', OrderSide.BUY, 0.999, 100, portfolio)
        assert not rejected.allowed
        assert rejected.reason == 'Insufficient balance for trade'

        assert manager.assess_trade_risk('BTCUSDT', OrderSide.SELL, 0.999, 100, portfolio).allowed

    @pytest.mark.parametrize('quantity,price', [(0, 100), (-1, 100), (1, 0)])
    def test_non_positive_inputs_rejected(self, clock, quantity, price):
        manager = RiskManager(RiskLimits(), clock=clock)
        assessment = manager.assess_trade_risk('BTCUSDT', OrderSide.BUY, quantity, price,
                                               PortfolioManager(1000))
        assert not assessment.allowed


class TestStopLossTakeProfit:

    @pytest.fixture
    def manager(self, clock):
        return RiskManager(RiskLimits(stop_loss_percent=3, take_profit_percent=4), clock=clock)

    def test_long_stop_loss(self, manager):
        assert manager.check_stop_loss(make_position(100, 96.9))
        assert not manager.check_stop_loss(make_position(100, 97.5))

    def test_short_stop_loss(self, manager):
        assert manager.check_stop_loss(make_position(100, 103.1, quantity=-1))
        assert not manager.check_stop_loss(make_position(100, 102, quantity=-1))

    def test_long_take_profit(self, manager):
        assert manager.check_take_profit(make_position(100, 104))
        assert not manager.check_take_profit(make_position(100, 103))

    def test_short_take_profit(self, manager):
        assert manager.check_take_profit(make_position(100, 95, quantity=-1))
        assert not manager.check_take_profit(make_position(100, 101, quantity=-1))


def test_risk_metrics(clock):
    manager = RiskManager(RiskLimits(stop_loss_percent=2), clock=clock)
    portfolio = PortfolioManager(1000)
    buy(portfolio, 'BTCUSDT', 1, 100)
    buy(portfolio, 'ETHUSDT', 2, 50)
    portfolio.update_price('BTCUSDT', 90)
    manager.update_daily_pnl(-5)

    metrics = manager.get_risk_metrics(portfolio)

    # 余额 800 + 90 + 100
    assert metrics['open_positions'] == 2
    assert metrics['total_exposure_pct'] == round(190 / 990 * 100, 1)
    assert metrics['largest_position_pct'] == round(100 / 990 * 100, 1)
    assert metrics['positions_at_risk'] == 1
    assert metrics['daily_pnl'] == -5.0
