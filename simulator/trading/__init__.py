from .engine import SimulationEngine
from .jupiter import JupiterClient
from .resolver import QuoteResolver, execute_with_price
from .state import ApplicationState
from .strategies import determine_action
from .types import (
    MAX_HISTORY_ENTRIES,
    AppSnapshot,
    PriceInfo,
    QuotingClient,
    Strategy,
    StrategyId,
    SwapAction,
    SwapDirection,
    SwapExecution,
    Token,
    TradeRecord,
    Wallet,
    default_strategies,
)

__all__ = [
    "AppSnapshot",
    "ApplicationState",
    "JupiterClient",
    "MAX_HISTORY_ENTRIES",
    "PriceInfo",
    "QuoteResolver",
    "QuotingClient",
    "SimulationEngine",
    "Strategy",
    "StrategyId",
    "SwapAction",
    "SwapDirection",
    "SwapExecution",
    "Token",
    "TradeRecord",
    "Wallet",
    "default_strategies",
    "determine_action",
    "execute_with_price",
]
