from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, Union

SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SOL_DECIMALS = 9
USDC_DECIMALS = 6

MAX_HISTORY_ENTRIES = 200

# Dust guards: balances at or below these are never traded.
MIN_SOL_AMOUNT = 1e-6
MIN_USDC_AMOUNT = 0.01


def now_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%d %H:%M:%S.") + f"{now.microsecond // 1000:03d} UTC"


def publish_time_to_string(publish_time: int | None) -> str:
    if publish_time is None:
        return "unknown"
    try:
        moment = datetime.fromtimestamp(publish_time, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return "unknown"
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def to_base_units(amount: float, decimals: int) -> int | None:
    if not math.isfinite(amount) or amount <= 0:
        return None
    value = round(amount * (10**decimals))
    if value < 1:
        return None
    return int(value)


def from_base_units(amount: int, decimals: int) -> float:
    return amount / (10**decimals)


class Token(Enum):
    SOL = ("SOL", SOL_MINT, SOL_DECIMALS)
    USDC = ("USDC", USDC_MINT, USDC_DECIMALS)

    def __init__(self, symbol: str, mint: str, decimals: int) -> None:
        self.symbol = symbol
        self.mint = mint
        self.decimals = decimals


class SwapDirection(str, Enum):
    TO_USDC = "to_usdc"
    TO_SOL = "to_sol"

    @property
    def input_token(self) -> Token:
        return Token.SOL if self is SwapDirection.TO_USDC else Token.USDC

    @property
    def output_token(self) -> Token:
        return Token.USDC if self is SwapDirection.TO_USDC else Token.SOL

    @property
    def label(self) -> str:
        return f"{self.input_token.symbol} → {self.output_token.symbol}"

    def flipped(self) -> "SwapDirection":
        return SwapDirection.TO_SOL if self is SwapDirection.TO_USDC else SwapDirection.TO_USDC


class StrategyId(str, Enum):
    ALTERNATING = "alternating"
    TREND_FOLLOW = "trend_follow"
    RANGE_TRADER = "range_trader"

    @property
    def label(self) -> str:
        return {
            StrategyId.ALTERNATING: "Alternating",
            StrategyId.TREND_FOLLOW: "Trend follow",
            StrategyId.RANGE_TRADER: "Range trader",
        }[self]


@dataclass(slots=True, frozen=True)
class PriceInfo:
    value: float
    publish_time: int | None = None

    def is_tradable(self) -> bool:
        return math.isfinite(self.value) and self.value > 0


@dataclass(slots=True)
class Wallet:
    sol: float
    usdc: float

    def debit(self, token: Token, amount: float) -> None:
        # Clamped at zero to absorb floating-point drift.
        if token is Token.SOL:
            self.sol = max(0.0, self.sol - amount)
        else:
            self.usdc = max(0.0, self.usdc - amount)

    def credit(self, token: Token, amount: float) -> None:
        if token is Token.SOL:
            self.sol += amount
        else:
            self.usdc += amount


@dataclass(slots=True)
class AlternatingState:
    next_swap: SwapDirection = SwapDirection.TO_USDC


@dataclass(slots=True)
class TrendFollowState:
    last_price: float | None = None


@dataclass(slots=True)
class RangeTraderState:
    last_price: float | None = None


StrategyState = Union[AlternatingState, TrendFollowState, RangeTraderState]


@dataclass(slots=True)
class Strategy:
    id: StrategyId
    wallet: Wallet
    state: StrategyState

    @classmethod
    def alternating(cls, *, sol: float, usdc: float) -> "Strategy":
        return cls(id=StrategyId.ALTERNATING, wallet=Wallet(sol=sol, usdc=usdc), state=AlternatingState())

    @classmethod
    def trend_follow(cls, *, sol: float, usdc: float) -> "Strategy":
        return cls(id=StrategyId.TREND_FOLLOW, wallet=Wallet(sol=sol, usdc=usdc), state=TrendFollowState())

    @classmethod
    def range_trader(cls, *, sol: float, usdc: float) -> "Strategy":
        return cls(id=StrategyId.RANGE_TRADER, wallet=Wallet(sol=sol, usdc=usdc), state=RangeTraderState())


def default_strategies(*, sol: float, usdc: float) -> list[Strategy]:
    return [
        Strategy.alternating(sol=sol, usdc=usdc),
        Strategy.trend_follow(sol=sol, usdc=usdc),
        Strategy.range_trader(sol=sol, usdc=usdc),
    ]


@dataclass(slots=True, frozen=True)
class SwapAction:
    direction: SwapDirection
    amount: float

    @property
    def input_token(self) -> Token:
        return self.direction.input_token

    @property
    def output_token(self) -> Token:
        return self.direction.output_token


@dataclass(slots=True, frozen=True)
class PendingAction:
    strategy_index: int
    strategy_id: StrategyId
    action: SwapAction
    next_swap: SwapDirection | None = None


@dataclass(slots=True, frozen=True)
class SwapExecution:
    amount_in: float
    amount_out: float
    input_token: Token
    output_token: Token
    gas_lamports: int | None = None
    price_impact_pct: float | None = None


@dataclass(slots=True, frozen=True)
class TradeRecord:
    timestamp: str
    strategy: StrategyId
    direction: str
    price: float
    amount_in: float
    amount_out: float
    input_token: Token
    output_token: Token
    gas_lamports: int | None = None
    price_impact_pct: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["strategy"] = self.strategy.value
        payload["input_token"] = self.input_token.symbol
        payload["output_token"] = self.output_token.symbol
        return payload


@dataclass(slots=True, frozen=True)
class StrategySnapshot:
    id: StrategyId
    sol: float
    usdc: float
    state: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class AppSnapshot:
    latest_price: PriceInfo | None
    strategies: tuple[StrategySnapshot, ...]
    history: tuple[TradeRecord, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "latest_price": (
                None
                if self.latest_price is None
                else {
                    "value": self.latest_price.value,
                    "publish_time": self.latest_price.publish_time,
                }
            ),
            "strategies": [
                {
                    "id": strategy.id.value,
                    "sol": strategy.sol,
                    "usdc": strategy.usdc,
                    "state": dict(strategy.state),
                }
                for strategy in self.strategies
            ],
            "history": [record.to_dict() for record in self.history],
        }


@dataclass(slots=True, frozen=True)
class JupiterQuote:
    raw: dict[str, Any]
    in_amount: int
    out_amount: int
    price_impact_pct: float | None


@dataclass(slots=True, frozen=True)
class JupiterSimulation:
    gas_lamports: int | None


class QuotingClient(Protocol):
    @property
    def simulation_enabled(self) -> bool:
        ...

    async def quote_exact_in(
        self,
        *,
        input_mint: str,
        output_mint: str,
        amount: int,
    ) -> JupiterQuote:
        ...

    async def simulate_swap(
        self,
        *,
        quote: JupiterQuote,
        wrap_and_unwrap_sol: bool,
    ) -> JupiterSimulation:
        ...
