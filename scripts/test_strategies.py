from __future__ import annotations

import unittest

from simulator.trading.strategies import determine_action, describe_state
from simulator.trading.types import (
    MIN_SOL_AMOUNT,
    MIN_USDC_AMOUNT,
    AlternatingState,
    PriceInfo,
    RangeTraderState,
    Strategy,
    StrategyId,
    SwapDirection,
    TrendFollowState,
)


def _price(value: float) -> PriceInfo:
    return PriceInfo(value=value, publish_time=1_700_000_000)


class AlternatingStrategyTests(unittest.TestCase):
    def test_sells_entire_sol_balance_and_schedules_flip(self) -> None:
        strategy = Strategy.alternating(sol=1.0, usdc=0.0)

        pending = determine_action(0, strategy, _price(150.0))

        assert pending is not None
        self.assertEqual(pending.strategy_index, 0)
        self.assertEqual(pending.strategy_id, StrategyId.ALTERNATING)
        self.assertEqual(pending.action.direction, SwapDirection.TO_USDC)
        self.assertEqual(pending.action.amount, 1.0)
        self.assertEqual(pending.next_swap, SwapDirection.TO_SOL)
        # The flip waits for the commit.
        self.assertEqual(strategy.state.next_swap, SwapDirection.TO_USDC)

    def test_sells_entire_usdc_balance_when_direction_is_to_sol(self) -> None:
        strategy = Strategy.alternating(sol=0.0, usdc=150.0)
        strategy.state = AlternatingState(next_swap=SwapDirection.TO_SOL)

        pending = determine_action(2, strategy, _price(150.0))

        assert pending is not None
        self.assertEqual(pending.action.direction, SwapDirection.TO_SOL)
        self.assertEqual(pending.action.amount, 150.0)
        self.assertEqual(pending.next_swap, SwapDirection.TO_USDC)

    def test_no_decision_when_balance_is_dust(self) -> None:
        strategy = Strategy.alternating(sol=MIN_SOL_AMOUNT, usdc=500.0)
        self.assertIsNone(determine_action(0, strategy, _price(150.0)))

        strategy = Strategy.alternating(sol=5.0, usdc=MIN_USDC_AMOUNT)
        strategy.state = AlternatingState(next_swap=SwapDirection.TO_SOL)
        self.assertIsNone(determine_action(0, strategy, _price(150.0)))


class TrendFollowStrategyTests(unittest.TestCase):
    def test_first_tick_only_sets_baseline(self) -> None:
        for value in (0.01, 100.0, 1_000_000.0):
            strategy = Strategy.trend_follow(sol=1.0, usdc=100.0)
            self.assertIsNone(determine_action(1, strategy, _price(value)))
            self.assertEqual(strategy.state.last_price, value)

    def test_rise_above_threshold_sells_capped_sol(self) -> None:
        strategy = Strategy.trend_follow(sol=1.0, usdc=100.0)
        strategy.state = TrendFollowState(last_price=100.0)

        pending = determine_action(1, strategy, _price(100.25))

        assert pending is not None
        self.assertEqual(pending.action.direction, SwapDirection.TO_USDC)
        self.assertAlmostEqual(pending.action.amount, 0.15)
        self.assertIsNone(pending.next_swap)
        self.assertEqual(strategy.state.last_price, 100.25)

    def test_drop_below_threshold_buys_with_capped_usdc(self) -> None:
        strategy = Strategy.trend_follow(sol=1.0, usdc=10.0)
        strategy.state = TrendFollowState(last_price=100.0)

        pending = determine_action(1, strategy, _price(99.7))

        assert pending is not None
        self.assertEqual(pending.action.direction, SwapDirection.TO_SOL)
        self.assertAlmostEqual(pending.action.amount, 10.0)

    def test_small_move_updates_memory_without_trading(self) -> None:
        strategy = Strategy.trend_follow(sol=1.0, usdc=100.0)
        strategy.state = TrendFollowState(last_price=100.0)

        self.assertIsNone(determine_action(1, strategy, _price(100.1)))
        self.assertEqual(strategy.state.last_price, 100.1)

    def test_rise_without_sol_does_not_trade(self) -> None:
        strategy = Strategy.trend_follow(sol=0.0, usdc=100.0)
        strategy.state = TrendFollowState(last_price=100.0)

        self.assertIsNone(determine_action(1, strategy, _price(101.0)))
        self.assertEqual(strategy.state.last_price, 101.0)


class RangeTraderStrategyTests(unittest.TestCase):
    def test_drop_below_band_buys_capped_amount(self) -> None:
        strategy = Strategy.range_trader(sol=1.0, usdc=50.0)
        strategy.state = RangeTraderState(last_price=100.0)

        pending = determine_action(2, strategy, _price(99.6))

        assert pending is not None
        self.assertEqual(pending.strategy_id, StrategyId.RANGE_TRADER)
        self.assertEqual(pending.action.direction, SwapDirection.TO_SOL)
        self.assertAlmostEqual(pending.action.amount, 20.0)

    def test_rise_above_band_sells_capped_amount(self) -> None:
        strategy = Strategy.range_trader(sol=1.0, usdc=50.0)
        strategy.state = RangeTraderState(last_price=100.0)

        pending = determine_action(2, strategy, _price(100.5))

        assert pending is not None
        self.assertEqual(pending.action.direction, SwapDirection.TO_USDC)
        self.assertAlmostEqual(pending.action.amount, 0.1)

    def test_move_inside_band_is_ignored(self) -> None:
        strategy = Strategy.range_trader(sol=1.0, usdc=50.0)
        strategy.state = RangeTraderState(last_price=100.0)

        # 0.25% is enough for the trend follower but not for the range trader.
        self.assertIsNone(determine_action(2, strategy, _price(100.25)))
        self.assertEqual(strategy.state.last_price, 100.25)

    def test_small_balance_is_sold_whole(self) -> None:
        strategy = Strategy.range_trader(sol=0.05, usdc=0.0)
        strategy.state = RangeTraderState(last_price=100.0)

        pending = determine_action(2, strategy, _price(101.0))

        assert pending is not None
        self.assertAlmostEqual(pending.action.amount, 0.05)


class DescribeStateTests(unittest.TestCase):
    def test_describes_each_variant(self) -> None:
        self.assertEqual(
            describe_state(AlternatingState()),
            {"kind": "alternating", "next_swap": "to_usdc"},
        )
        self.assertEqual(
            describe_state(TrendFollowState(last_price=1.5)),
            {"kind": "trend_follow", "last_price": 1.5},
        )
        self.assertEqual(
            describe_state(RangeTraderState()),
            {"kind": "range_trader", "last_price": None},
        )


if __name__ == "__main__":
    unittest.main()
