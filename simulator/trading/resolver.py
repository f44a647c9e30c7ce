from __future__ import annotations

import asyncio
import logging

from simulator.common import log_event

from .types import (
    PriceInfo,
    QuotingClient,
    SwapAction,
    SwapDirection,
    SwapExecution,
    Token,
    from_base_units,
    to_base_units,
)


def wraps_sol(input_token: Token, output_token: Token) -> bool:
    return input_token is Token.SOL or output_token is Token.SOL


def execute_with_price(price: PriceInfo, action: SwapAction) -> SwapExecution:
    amount_in = action.amount
    if action.direction is SwapDirection.TO_USDC:
        amount_out = amount_in * price.value
    else:
        amount_out = amount_in / price.value if price.value > 0 else 0.0

    return SwapExecution(
        amount_in=amount_in,
        amount_out=amount_out,
        input_token=action.input_token,
        output_token=action.output_token,
    )


class QuoteResolver:
    def __init__(self, *, logger: logging.Logger, client: QuotingClient | None = None) -> None:
        self._logger = logger
        self._client = client
        self._fallback_warning_emitted = False
        self._simulation_skip_logged = False

    @property
    def remote_enabled(self) -> bool:
        return self._client is not None

    @property
    def fallback_warning_emitted(self) -> bool:
        return self._fallback_warning_emitted

    async def resolve(self, action: SwapAction, price: PriceInfo) -> SwapExecution:
        if self._client is not None:
            try:
                return await self._execute_with_jupiter(self._client, action)
            except asyncio.CancelledError:
                raise
            except Exception as error:
                self._warn_fallback(error, action)

        return execute_with_price(price, action)

    async def _execute_with_jupiter(self, client: QuotingClient, action: SwapAction) -> SwapExecution:
        input_token = action.input_token
        output_token = action.output_token

        amount_in_base = to_base_units(action.amount, input_token.decimals)
        if amount_in_base is None:
            raise ValueError(
                f"amount too small to convert to base units: {action.amount} {input_token.symbol}"
            )

        quote = await client.quote_exact_in(
            input_mint=input_token.mint,
            output_mint=output_token.mint,
            amount=amount_in_base,
        )

        gas_lamports: int | None = None
        price_impact_pct: float | None = None
        if not client.simulation_enabled:
            self._log_simulation_skipped()
        else:
            try:
                simulation = await client.simulate_swap(
                    quote=quote,
                    wrap_and_unwrap_sol=wraps_sol(input_token, output_token),
                )
            except asyncio.CancelledError:
                raise
            except Exception as error:
                log_event(
                    self._logger,
                    level="warning",
                    event="jupiter_simulation_failed",
                    message="Jupiter simulation failed, ignoring gas data",
                    error=str(error),
                    direction=action.direction.value,
                )
            else:
                gas_lamports = simulation.gas_lamports
                price_impact_pct = quote.price_impact_pct

        return SwapExecution(
            amount_in=from_base_units(quote.in_amount, input_token.decimals),
            amount_out=from_base_units(quote.out_amount, output_token.decimals),
            input_token=input_token,
            output_token=output_token,
            gas_lamports=gas_lamports,
            price_impact_pct=price_impact_pct,
        )

    def _warn_fallback(self, error: Exception, action: SwapAction) -> None:
        if self._fallback_warning_emitted:
            return
        self._fallback_warning_emitted = True
        log_event(
            self._logger,
            level="warning",
            event="jupiter_quote_fallback",
            message="Jupiter quote failed, falling back to local pricing",
            error=str(error),
            error_type=type(error).__name__,
            direction=action.direction.value,
            amount=action.amount,
        )

    def _log_simulation_skipped(self) -> None:
        if self._simulation_skip_logged:
            return
        self._simulation_skip_logged = True
        log_event(
            self._logger,
            level="info",
            event="jupiter_simulation_skipped",
            message="JUPITER_USER_PUBKEY is not set; skipping swap simulation and gas data",
        )
