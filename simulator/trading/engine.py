from __future__ import annotations

import asyncio
import logging

from simulator.common import guarded_call, log_event

from .resolver import QuoteResolver
from .state import ApplicationState
from .strategies import determine_action
from .types import PendingAction, PriceInfo, TradeRecord


class SimulationEngine:
    def __init__(
        self,
        *,
        logger: logging.Logger,
        state: ApplicationState,
        resolver: QuoteResolver,
        concurrent_execution: bool = True,
    ) -> None:
        self._logger = logger
        self.state = state
        self.resolver = resolver
        self._concurrent_execution = concurrent_execution

    async def decide(self, price: PriceInfo) -> list[PendingAction]:
        async with self.state.lock:
            self.state.latest_price = price
            pending: list[PendingAction] = []
            for index, strategy in enumerate(self.state.strategies):
                action = determine_action(index, strategy, price)
                if action is not None:
                    pending.append(action)
            return pending

    async def _execute_and_commit(self, pending: PendingAction, price: PriceInfo) -> TradeRecord | None:
        execution = await self.resolver.resolve(pending.action, price)
        record = await self.state.commit(pending, execution, price)
        if record is not None:
            log_event(
                self._logger,
                level="info",
                event="trade_committed",
                message="Simulated swap committed",
                strategy=record.strategy.value,
                direction=record.direction,
                price=record.price,
                amount_in=record.amount_in,
                amount_out=record.amount_out,
                gas_lamports=record.gas_lamports,
            )
        return record

    async def _run_pending(self, pending: PendingAction, price: PriceInfo) -> TradeRecord | None:
        return await guarded_call(
            lambda: self._execute_and_commit(pending, price),
            logger=self._logger,
            event="trade_execution_failed",
            message="Failed to execute simulated swap; decision dropped",
            level="error",
            strategy=pending.strategy_id.value,
            direction=pending.action.direction.value,
        )

    async def apply_price_update(self, price: PriceInfo) -> list[TradeRecord]:
        if not price.is_tradable():
            return []

        pending = await self.decide(price)
        if not pending:
            return []

        if self._concurrent_execution:
            results = await asyncio.gather(*(self._run_pending(item, price) for item in pending))
        else:
            results = [await self._run_pending(item, price) for item in pending]

        return [record for record in results if record is not None]
