from __future__ import annotations

import logging
import unittest

from aiohttp import test_utils

from simulator.trading.state import ApplicationState
from simulator.trading.types import (
    AppSnapshot,
    PriceInfo,
    StrategyId,
    StrategySnapshot,
    SwapDirection,
    Token,
    TradeRecord,
    default_strategies,
    publish_time_to_string,
)
from simulator.web.dashboard import create_app, render_page


def _record() -> TradeRecord:
    return TradeRecord(
        timestamp="2024-01-01 00:00:00.000 UTC",
        strategy=StrategyId.TREND_FOLLOW,
        direction=SwapDirection.TO_USDC.label,
        price=150.0,
        amount_in=0.15,
        amount_out=22.5,
        input_token=Token.SOL,
        output_token=Token.USDC,
        gas_lamports=5_000,
        price_impact_pct=None,
    )


class RenderPageTests(unittest.TestCase):
    def test_waiting_state_before_first_price(self) -> None:
        page = render_page(AppSnapshot(latest_price=None, strategies=(), history=()))

        self.assertIn("waiting…", page)
        self.assertIn("Last publish time: unknown", page)

    def test_renders_strategies_and_history(self) -> None:
        snapshot = AppSnapshot(
            latest_price=PriceInfo(value=150.12346, publish_time=0),
            strategies=(
                StrategySnapshot(
                    id=StrategyId.ALTERNATING,
                    sol=1.0,
                    usdc=0.0,
                    state={"kind": "alternating", "next_swap": "to_usdc"},
                ),
            ),
            history=(_record(),),
        )

        page = render_page(snapshot)

        self.assertIn("$150.1235", page)
        self.assertIn("1970-01-01 00:00:00 UTC", page)
        self.assertIn("Alternating (next_swap: to_usdc)", page)
        self.assertIn("<td>Trend follow</td>", page)
        self.assertIn("SOL → USDC", page)
        self.assertIn("<td>5000</td>", page)

    def test_publish_time_formatting(self) -> None:
        self.assertEqual(publish_time_to_string(None), "unknown")
        self.assertEqual(publish_time_to_string(86_400), "1970-01-02 00:00:00 UTC")


class DashboardAppTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.state = ApplicationState(
            logger=logging.getLogger("test.dashboard"),
            strategies=default_strategies(sol=1.0, usdc=100.0),
        )
        self.state.latest_price = PriceInfo(value=150.0, publish_time=1_700_000_000)
        async with self.state.lock:
            self.state.append_record(_record())
        self.client = test_utils.TestClient(test_utils.TestServer(create_app(self.state)))
        await self.client.start_server()

    async def asyncTearDown(self) -> None:
        await self.client.close()

    async def test_index_serves_html(self) -> None:
        response = await self.client.get("/")

        self.assertEqual(response.status, 200)
        self.assertEqual(response.content_type, "text/html")
        body = await response.text()
        self.assertIn("SOL / USDC Live Simulation", body)
        self.assertIn("Range trader", body)

    async def test_state_endpoint_returns_snapshot(self) -> None:
        response = await self.client.get("/api/state")

        self.assertEqual(response.status, 200)
        payload = await response.json()
        self.assertEqual(payload["latest_price"], {"value": 150.0, "publish_time": 1_700_000_000})
        self.assertEqual([item["id"] for item in payload["strategies"]], [item.value for item in StrategyId])
        self.assertEqual(payload["history"][0]["strategy"], "trend_follow")
        self.assertEqual(payload["history"][0]["gas_lamports"], 5_000)


if __name__ == "__main__":
    unittest.main()
