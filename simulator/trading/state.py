from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from simulator.common import log_event

from .strategies import describe_state
from .types import (
    MAX_HISTORY_ENTRIES,
    AlternatingState,
    AppSnapshot,
    PendingAction,
    PriceInfo,
    Strategy,
    StrategySnapshot,
    SwapExecution,
    TradeRecord,
    now_timestamp,
)


def apply_wallet_updates(strategy: Strategy, pending: PendingAction, execution: SwapExecution) -> None:
    strategy.wallet.debit(execution.input_token, execution.amount_in)
    strategy.wallet.credit(execution.output_token, execution.amount_out)

    if pending.next_swap is not None and isinstance(strategy.state, AlternatingState):
        strategy.state.next_swap = pending.next_swap


class ApplicationState:
    def __init__(
        self,
        *,
        logger: logging.Logger,
        strategies: Iterable[Strategy],
        max_history: int = MAX_HISTORY_ENTRIES,
    ) -> None:
        self._logger = logger
        self.lock = asyncio.Lock()
        self.latest_price: PriceInfo | None = None
        self.strategies: list[Strategy] = list(strategies)
        self.history: list[TradeRecord] = []
        self.max_history = max(1, int(max_history))

    def append_record(self, record: TradeRecord) -> None:
        # Caller holds the lock.
        self.history.append(record)
        excess = len(self.history) - self.max_history
        if excess > 0:
            del self.history[:excess]

    async def commit(
        self,
        pending: PendingAction,
        execution: SwapExecution,
        price: PriceInfo,
    ) -> TradeRecord | None:
        async with self.lock:
            index = pending.strategy_index
            if not 0 <= index < len(self.strategies) or self.strategies[index].id != pending.strategy_id:
                log_event(
                    self._logger,
                    level="error",
                    event="commit_strategy_missing",
                    message="Dropping trade for a strategy that is no longer present",
                    strategy_index=pending.strategy_index,
                    strategy=pending.strategy_id.value,
                )
                return None

            strategy = self.strategies[pending.strategy_index]
            apply_wallet_updates(strategy, pending, execution)

            record = TradeRecord(
                timestamp=now_timestamp(),
                strategy=pending.strategy_id,
                direction=pending.action.direction.label,
                price=price.value,
                amount_in=execution.amount_in,
                amount_out=execution.amount_out,
                input_token=execution.input_token,
                output_token=execution.output_token,
                gas_lamports=execution.gas_lamports,
                price_impact_pct=execution.price_impact_pct,
            )
            self.append_record(record)
            return record

    async def snapshot(self) -> AppSnapshot:
        async with self.lock:
            return AppSnapshot(
                latest_price=self.latest_price,
                strategies=tuple(
                    StrategySnapshot(
                        id=strategy.id,
                        sol=strategy.wallet.sol,
                        usdc=strategy.wallet.usdc,
                        state=describe_state(strategy.state),
                    )
                    for strategy in self.strategies
                ),
                history=tuple(reversed(self.history)),
            )
