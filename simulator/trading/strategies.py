from __future__ import annotations

from typing import Any

from .types import (
    MIN_SOL_AMOUNT,
    MIN_USDC_AMOUNT,
    AlternatingState,
    PendingAction,
    PriceInfo,
    RangeTraderState,
    Strategy,
    StrategyState,
    SwapAction,
    SwapDirection,
    TrendFollowState,
    Wallet,
)

TREND_THRESHOLD = 0.002
TREND_SELL_SOL_AMOUNT = 0.15
TREND_BUY_USDC_AMOUNT = 25.0

RANGE_THRESHOLD = 0.003
RANGE_SELL_SOL_AMOUNT = 0.1
RANGE_BUY_USDC_AMOUNT = 20.0


def _sell_sol(wallet: Wallet, cap: float) -> SwapAction:
    return SwapAction(SwapDirection.TO_USDC, max(min(wallet.sol, cap), MIN_SOL_AMOUNT))


def _buy_sol(wallet: Wallet, cap: float) -> SwapAction:
    return SwapAction(SwapDirection.TO_SOL, max(min(wallet.usdc, cap), MIN_USDC_AMOUNT))


def _alternating_action(state: AlternatingState, wallet: Wallet) -> SwapAction | None:
    if state.next_swap is SwapDirection.TO_USDC:
        if wallet.sol <= MIN_SOL_AMOUNT:
            return None
        return SwapAction(SwapDirection.TO_USDC, wallet.sol)

    if wallet.usdc <= MIN_USDC_AMOUNT:
        return None
    return SwapAction(SwapDirection.TO_SOL, wallet.usdc)


def _trend_action(previous: float, current: float, wallet: Wallet) -> SwapAction | None:
    change = (current - previous) / previous
    if change >= TREND_THRESHOLD and wallet.sol > MIN_SOL_AMOUNT:
        return _sell_sol(wallet, TREND_SELL_SOL_AMOUNT)
    if change <= -TREND_THRESHOLD and wallet.usdc > MIN_USDC_AMOUNT:
        return _buy_sol(wallet, TREND_BUY_USDC_AMOUNT)
    return None


def _range_action(previous: float, current: float, wallet: Wallet) -> SwapAction | None:
    if current >= previous * (1.0 + RANGE_THRESHOLD) and wallet.sol > MIN_SOL_AMOUNT:
        return _sell_sol(wallet, RANGE_SELL_SOL_AMOUNT)
    if current <= previous * (1.0 - RANGE_THRESHOLD) and wallet.usdc > MIN_USDC_AMOUNT:
        return _buy_sol(wallet, RANGE_BUY_USDC_AMOUNT)
    return None


def determine_action(index: int, strategy: Strategy, price: PriceInfo) -> PendingAction | None:
    state = strategy.state

    if isinstance(state, AlternatingState):
        action = _alternating_action(state, strategy.wallet)
        if action is None:
            return None
        return PendingAction(
            strategy_index=index,
            strategy_id=strategy.id,
            action=action,
            next_swap=state.next_swap.flipped(),
        )

    if isinstance(state, (TrendFollowState, RangeTraderState)):
        previous = state.last_price
        state.last_price = price.value
        if previous is None:
            return None

        if isinstance(state, TrendFollowState):
            action = _trend_action(previous, price.value, strategy.wallet)
        else:
            action = _range_action(previous, price.value, strategy.wallet)
        if action is None:
            return None
        return PendingAction(strategy_index=index, strategy_id=strategy.id, action=action)

    raise TypeError(f"Unsupported strategy state: {type(state).__name__}")


def describe_state(state: StrategyState) -> dict[str, Any]:
    if isinstance(state, AlternatingState):
        return {"kind": "alternating", "next_swap": state.next_swap.value}
    if isinstance(state, TrendFollowState):
        return {"kind": "trend_follow", "last_price": state.last_price}
    return {"kind": "range_trader", "last_price": state.last_price}
