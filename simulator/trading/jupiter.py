from __future__ import annotations

import logging
from typing import Any

import aiohttp

from simulator.common import log_event

from .types import JupiterQuote, JupiterSimulation

DEFAULT_JUPITER_BASE_URL = "https://lite-api.jup.ag/swap/v1"
DEFAULT_LAMPORTS_FEE = 5000


def parse_amount(payload: dict[str, Any], key: str) -> int:
    if key not in payload:
        raise RuntimeError(f"Jupiter response missing field `{key}`")

    raw_value = payload[key]
    if isinstance(raw_value, bool):
        raise RuntimeError(f"Unexpected type for `{key}` in Jupiter response")
    if isinstance(raw_value, int):
        if raw_value < 0:
            raise RuntimeError(f"Negative `{key}` in Jupiter response: {raw_value}")
        return raw_value
    if isinstance(raw_value, str):
        try:
            value = int(raw_value.strip())
        except ValueError as error:
            raise RuntimeError(f"Failed to parse `{key}`: {error}") from error
        if value < 0:
            raise RuntimeError(f"Negative `{key}` in Jupiter response: {value}")
        return value

    raise RuntimeError(f"Unexpected type for `{key}` in Jupiter response")


def parse_optional_float(raw_value: Any) -> float | None:
    if raw_value is None or isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, (int, float)):
        return float(raw_value)
    try:
        return float(str(raw_value).strip())
    except ValueError:
        return None


def parse_optional_int(raw_value: Any, default: int) -> int:
    if isinstance(raw_value, bool):
        return default
    if isinstance(raw_value, int) and raw_value >= 0:
        return raw_value
    return default


class JupiterClient:
    def __init__(
        self,
        *,
        logger: logging.Logger,
        base_url: str = DEFAULT_JUPITER_BASE_URL,
        api_key: str = "",
        user_public_key: str = "",
        slippage_bps: int = 50,
        timeout_seconds: float = 8.0,
    ) -> None:
        self._logger = logger
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key.strip()
        self._user_public_key = user_public_key.strip()
        self._slippage_bps = max(0, int(slippage_bps))
        self._timeout_seconds = timeout_seconds
        self._session: aiohttp.ClientSession | None = None
        self._missing_api_key_logged = False

    @property
    def simulation_enabled(self) -> bool:
        return bool(self._user_public_key)

    async def connect(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": "sol-strategy-simulator/1.0",
        }
        if self._api_key:
            headers["x-api-key"] = self._api_key
        elif not self._missing_api_key_logged:
            self._missing_api_key_logged = True
            log_event(
                self._logger,
                level="info",
                event="jupiter_api_key_missing",
                message="JUPITER_API_KEY is not set; using the keyless Jupiter endpoint",
                base_url=self._base_url,
            )
        return headers

    async def _session_or_connect(self) -> aiohttp.ClientSession:
        if self._session is None:
            await self.connect()
        if self._session is None:
            raise RuntimeError("Jupiter HTTP session is not initialized.")
        return self._session

    async def quote_exact_in(
        self,
        *,
        input_mint: str,
        output_mint: str,
        amount: int,
    ) -> JupiterQuote:
        session = await self._session_or_connect()
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "swapMode": "ExactIn",
            "slippageBps": str(self._slippage_bps),
        }

        async with session.get(f"{self._base_url}/quote", params=params, headers=self._build_headers()) as response:
            data = await response.json(content_type=None)
            if response.status >= 400:
                raise RuntimeError(f"Jupiter quote failed: status={response.status} body={data}")

        if not isinstance(data, dict):
            raise RuntimeError(f"Unexpected Jupiter quote response: {data}")

        return JupiterQuote(
            raw=data,
            in_amount=parse_amount(data, "inAmount"),
            out_amount=parse_amount(data, "outAmount"),
            price_impact_pct=parse_optional_float(data.get("priceImpactPct")),
        )

    async def simulate_swap(
        self,
        *,
        quote: JupiterQuote,
        wrap_and_unwrap_sol: bool,
    ) -> JupiterSimulation:
        if not self._user_public_key:
            raise RuntimeError("JUPITER_USER_PUBKEY is not configured; swap simulation is unavailable")

        session = await self._session_or_connect()
        body = {
            "quoteResponse": quote.raw,
            "userPublicKey": self._user_public_key,
            "wrapAndUnwrapSol": wrap_and_unwrap_sol,
            "simulate": True,
            "asLegacyTransaction": True,
        }

        async with session.post(f"{self._base_url}/swap", json=body, headers=self._build_headers()) as response:
            data = await response.json(content_type=None)
            if response.status >= 400:
                raise RuntimeError(f"Jupiter swap simulation failed: status={response.status} body={data}")

        if not isinstance(data, dict):
            raise RuntimeError(f"Unexpected Jupiter swap response: {data}")

        simulation_error = data.get("simulationError")
        if simulation_error:
            raise RuntimeError(f"Jupiter simulation returned error: {simulation_error}")

        lamports_fee = parse_optional_int(data.get("lamportsFee"), DEFAULT_LAMPORTS_FEE)
        prioritization_fee = parse_optional_int(data.get("prioritizationFeeLamports"), 0)
        return JupiterSimulation(gas_lamports=lamports_fee + prioritization_fee)
