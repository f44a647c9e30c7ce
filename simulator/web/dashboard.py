from __future__ import annotations

from html import escape

from aiohttp import web

from simulator.trading.state import ApplicationState
from simulator.trading.types import AppSnapshot, StrategySnapshot, TradeRecord, publish_time_to_string

STATE_KEY = web.AppKey("simulation_state", ApplicationState)

PAGE_STYLE = """
        body { font-family: Arial, sans-serif; margin: 2rem; color: #1f2933; background: #f5f7fa; }
        h1 { margin-bottom: 0.5rem; }
        .card { background: white; border-radius: 0.75rem; padding: 1.5rem;
                box-shadow: 0 10px 25px rgba(15, 23, 42, 0.08); margin-bottom: 2rem; }
        table { width: 100%; border-collapse: collapse; }
        th, td { padding: 0.75rem; border-bottom: 1px solid #d9e2ec; text-align: left; }
        th { background: #dceefb; color: #102a43; }
        tr:nth-child(even) { background: #f0f4f8; }
        .metric { font-size: 1.5rem; font-weight: bold; }
        .metric-label { font-size: 0.85rem; color: #627d98; }
        .grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(160px, 1fr)); gap: 1rem; margin-top: 1rem; }
        .chip { display: inline-block; padding: 0.5rem 1rem; border-radius: 999px;
                background: #edf2ff; color: #334e68; font-size: 0.85rem; }
"""


def _optional(value: float | int | None, format_spec: str) -> str:
    return "–" if value is None else format(value, format_spec)


def _strategy_card(strategy: StrategySnapshot) -> str:
    state = ", ".join(
        f"{escape(str(key))}: {escape(str(value))}" for key, value in strategy.state.items() if key != "kind"
    )
    return (
        "<div>"
        f'<div class="metric">{strategy.sol:.4f} SOL / ${strategy.usdc:.2f}</div>'
        f'<div class="metric-label">{escape(strategy.id.label)} ({state})</div>'
        "</div>"
    )


def _history_row(record: TradeRecord) -> str:
    return (
        "<tr>"
        f"<td>{escape(record.timestamp)}</td>"
        f"<td>{escape(record.strategy.label)}</td>"
        f"<td>{escape(record.direction)}</td>"
        f"<td>{record.price:.4f}</td>"
        f"<td>{record.amount_in:.4f} {record.input_token.symbol}</td>"
        f"<td>{record.amount_out:.4f} {record.output_token.symbol}</td>"
        f"<td>{_optional(record.gas_lamports, 'd')}</td>"
        f"<td>{_optional(record.price_impact_pct, '.4f')}</td>"
        "</tr>"
    )


def render_page(snapshot: AppSnapshot) -> str:
    if snapshot.latest_price is None:
        latest_price = "waiting…"
        publish_time = "unknown"
    else:
        latest_price = f"{snapshot.latest_price.value:.4f}"
        publish_time = publish_time_to_string(snapshot.latest_price.publish_time)

    strategy_cards = "".join(_strategy_card(strategy) for strategy in snapshot.strategies)
    history_rows = "".join(_history_row(record) for record in snapshot.history)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta http-equiv="refresh" content="5" />
    <title>SOL / USDC Simulation</title>
    <style>{PAGE_STYLE}</style>
</head>
<body>
    <div class="card">
        <h1>SOL / USDC Live Simulation</h1>
        <div class="chip">Last publish time: {escape(publish_time)}</div>
        <div class="grid">
            <div>
                <div class="metric">${escape(latest_price)}</div>
                <div class="metric-label">Latest SOL price (USD)</div>
            </div>
            {strategy_cards}
        </div>
    </div>
    <div class="card">
        <h2>Swap History</h2>
        <table>
            <thead>
                <tr>
                    <th>Timestamp</th>
                    <th>Strategy</th>
                    <th>Direction</th>
                    <th>Price (USD)</th>
                    <th>Amount In</th>
                    <th>Amount Out</th>
                    <th>Gas (lamports)</th>
                    <th>Price impact (%)</th>
                </tr>
            </thead>
            <tbody>
                {history_rows}
            </tbody>
        </table>
    </div>
</body>
</html>
"""


async def index(request: web.Request) -> web.Response:
    snapshot = await request.app[STATE_KEY].snapshot()
    return web.Response(text=render_page(snapshot), content_type="text/html")


async def state_json(request: web.Request) -> web.Response:
    snapshot = await request.app[STATE_KEY].snapshot()
    return web.json_response(snapshot.to_dict())


def create_app(state: ApplicationState) -> web.Application:
    app = web.Application()
    app[STATE_KEY] = state
    app.router.add_get("/", index)
    app.router.add_get("/api/state", state_json)
    return app
