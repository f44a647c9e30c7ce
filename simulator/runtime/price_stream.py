from __future__ import annotations

import asyncio
import json
import logging
import math
from typing import Any, Awaitable, Callable

import aiohttp

from simulator.common import log_event, wait_with_stop
from simulator.trading.types import PriceInfo

PriceHandler = Callable[[PriceInfo], Awaitable[Any]]


def to_price_info(price: dict[str, Any]) -> PriceInfo | None:
    try:
        raw_price = int(str(price["price"]).strip())
        expo = price["expo"]
    except (KeyError, TypeError, ValueError, OverflowError):
        return None
    if isinstance(expo, bool) or not isinstance(expo, int):
        return None

    try:
        value = raw_price / (10**-expo) if expo < 0 else float(raw_price * 10**expo)
    except OverflowError:
        return None
    if not math.isfinite(value):
        return None

    publish_time = price.get("publish_time")
    if isinstance(publish_time, bool) or not isinstance(publish_time, int):
        publish_time = None

    return PriceInfo(value=value, publish_time=publish_time)


def parse_hermes_payload(payload: str) -> list[PriceInfo]:
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError(f"Hermes payload is not a JSON object: {payload[:120]!r}")

    parsed = data.get("parsed")
    if parsed is None:
        return []
    if not isinstance(parsed, list):
        raise ValueError(f"Hermes payload has a malformed parsed section: {payload[:120]!r}")

    prices: list[PriceInfo] = []
    for entry in parsed:
        if not isinstance(entry, dict) or not isinstance(entry.get("price"), dict):
            continue
        price_info = to_price_info(entry["price"])
        if price_info is not None:
            prices.append(price_info)
    return prices


class HermesPriceStream:
    def __init__(
        self,
        *,
        logger: logging.Logger,
        stream_url: str,
        on_price: PriceHandler,
        reconnect_delay_seconds: float = 3.0,
    ) -> None:
        self._logger = logger
        self._stream_url = stream_url
        self._on_price = on_price
        self._reconnect_delay_seconds = max(0.0, reconnect_delay_seconds)

    async def handle_line(self, raw_line: bytes | str) -> None:
        line = raw_line.decode("utf-8", errors="replace") if isinstance(raw_line, bytes) else raw_line
        line = line.strip()
        if not line.startswith("data:"):
            return

        payload = line[len("data:"):].strip()
        try:
            prices = parse_hermes_payload(payload)
        except ValueError as error:
            log_event(
                self._logger,
                level="warning",
                event="price_payload_invalid",
                message="Failed to handle price payload",
                error=str(error),
            )
            return

        for price_info in prices:
            await self._on_price(price_info)

    async def stream_once(self, session: aiohttp.ClientSession) -> None:
        headers = {"Accept": "text/event-stream"}
        async with session.get(self._stream_url, headers=headers) as response:
            if response.status >= 400:
                body = await response.text()
                raise RuntimeError(f"Price stream failed: status={response.status} body={body[:200]!r}")

            log_event(
                self._logger,
                level="info",
                event="price_stream_connected",
                message="Connected to price stream",
                stream_url=self._stream_url,
            )
            async for raw_line in response.content:
                await self.handle_line(raw_line)

    async def run(self, stop_event: asyncio.Event) -> None:
        # No total timeout: the stream is expected to stay open indefinitely.
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=10)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            while not stop_event.is_set():
                try:
                    await self.stream_once(session)
                    log_event(
                        self._logger,
                        level="warning",
                        event="price_stream_closed",
                        message="Price stream ended; reconnecting",
                    )
                except asyncio.CancelledError:
                    raise
                except Exception as error:
                    log_event(
                        self._logger,
                        level="error",
                        event="price_stream_error",
                        message="Price stream error; reconnecting",
                        error=str(error),
                        error_type=type(error).__name__,
                    )
                await wait_with_stop(stop_event, self._reconnect_delay_seconds)
