from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from solders.pubkey import Pubkey

from simulator.trading.jupiter import DEFAULT_JUPITER_BASE_URL
from simulator.trading.types import MAX_HISTORY_ENTRIES

DEFAULT_HERMES_STREAM_URL = "https://hermes.pyth.network/v2/updates/price/stream"
SOL_USD_FEED_ID = "0xef0d8b6fda2ceba41da15d4095d1da392a0d2f8ed0c6c7bc0f4cfac8c280b56d"


def to_bool(value: Any, default: bool) -> bool:
    if value is None or str(value).strip() == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def to_int(value: Any, default: int) -> int:
    try:
        if value is None or str(value).strip() == "":
            return default
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def to_float(value: Any, default: float) -> float:
    try:
        if value is None or str(value).strip() == "":
            return default
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def normalize_public_key(value: str) -> str:
    candidate = (value or "").strip()
    if not candidate:
        return ""
    try:
        return str(Pubkey.from_string(candidate))
    except Exception as error:
        raise ValueError(f"JUPITER_USER_PUBKEY is not a valid Solana public key: {candidate!r}") from error


def normalize_log_level(value: str) -> str:
    level = (value or "").strip().upper()
    if level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        return level
    return "INFO"


@dataclass(slots=True)
class AppSettings:
    jupiter_enabled: bool
    jupiter_base_url: str
    jupiter_api_key: str
    jupiter_user_pubkey: str
    jupiter_slippage_bps: int
    jupiter_timeout_seconds: float
    hermes_stream_url: str
    price_feed_id: str
    price_stream_reconnect_seconds: float
    max_history_entries: int
    initial_sol_balance: float
    initial_usdc_balance: float
    concurrent_execution: bool
    web_host: str
    web_port: int
    log_level: str

    @property
    def price_stream_url(self) -> str:
        return f"{self.hermes_stream_url}?ids[]={self.price_feed_id}"

    @classmethod
    def from_env(cls) -> "AppSettings":
        return cls(
            jupiter_enabled=to_bool(os.getenv("JUPITER_ENABLED"), False),
            jupiter_base_url=os.getenv("JUPITER_BASE_URL", DEFAULT_JUPITER_BASE_URL).strip().rstrip("/"),
            jupiter_api_key=os.getenv("JUPITER_API_KEY", "").strip(),
            jupiter_user_pubkey=normalize_public_key(os.getenv("JUPITER_USER_PUBKEY", "")),
            jupiter_slippage_bps=max(0, to_int(os.getenv("JUPITER_SLIPPAGE_BPS"), 50)),
            jupiter_timeout_seconds=max(0.5, to_float(os.getenv("JUPITER_TIMEOUT_SECONDS"), 8.0)),
            hermes_stream_url=os.getenv("HERMES_STREAM_URL", DEFAULT_HERMES_STREAM_URL).strip().rstrip("/"),
            price_feed_id=os.getenv("PRICE_FEED_ID", SOL_USD_FEED_ID).strip(),
            price_stream_reconnect_seconds=max(
                0.1,
                to_float(os.getenv("PRICE_STREAM_RECONNECT_SECONDS"), 3.0),
            ),
            max_history_entries=max(1, to_int(os.getenv("MAX_HISTORY_ENTRIES"), MAX_HISTORY_ENTRIES)),
            initial_sol_balance=max(0.0, to_float(os.getenv("INITIAL_SOL_BALANCE"), 1.0)),
            initial_usdc_balance=max(0.0, to_float(os.getenv("INITIAL_USDC_BALANCE"), 100.0)),
            concurrent_execution=to_bool(os.getenv("CONCURRENT_EXECUTION"), True),
            web_host=os.getenv("WEB_HOST", "0.0.0.0").strip() or "0.0.0.0",
            web_port=min(65535, max(1, to_int(os.getenv("WEB_PORT"), 3001))),
            log_level=normalize_log_level(os.getenv("LOG_LEVEL", "INFO")),
        )
