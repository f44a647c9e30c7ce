from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from aiohttp import web
from dotenv import load_dotenv

from simulator.common import guarded_call, log_event
from simulator.runtime import AppSettings, HermesPriceStream, setup_logger
from simulator.trading import (
    ApplicationState,
    JupiterClient,
    QuoteResolver,
    SimulationEngine,
    default_strategies,
)
from simulator.web import create_app


def build_jupiter_client(*, logger: logging.Logger, app_settings: AppSettings) -> JupiterClient | None:
    if not app_settings.jupiter_enabled:
        log_event(
            logger,
            level="info",
            event="jupiter_disabled",
            message="Jupiter integration disabled; using local pricing for swaps",
        )
        return None

    log_event(
        logger,
        level="info",
        event="jupiter_enabled",
        message="Jupiter integration enabled; using live quotes",
        base_url=app_settings.jupiter_base_url,
        simulation_enabled=bool(app_settings.jupiter_user_pubkey),
    )
    return JupiterClient(
        logger=logger,
        base_url=app_settings.jupiter_base_url,
        api_key=app_settings.jupiter_api_key,
        user_public_key=app_settings.jupiter_user_pubkey,
        slippage_bps=app_settings.jupiter_slippage_bps,
        timeout_seconds=app_settings.jupiter_timeout_seconds,
    )


async def main() -> None:
    load_dotenv()
    app_settings = AppSettings.from_env()
    logger = setup_logger(app_settings.log_level)

    state = ApplicationState(
        logger=logger,
        strategies=default_strategies(
            sol=app_settings.initial_sol_balance,
            usdc=app_settings.initial_usdc_balance,
        ),
        max_history=app_settings.max_history_entries,
    )
    jupiter = build_jupiter_client(logger=logger, app_settings=app_settings)
    engine = SimulationEngine(
        logger=logger,
        state=state,
        resolver=QuoteResolver(logger=logger, client=jupiter),
        concurrent_execution=app_settings.concurrent_execution,
    )
    price_stream = HermesPriceStream(
        logger=logger,
        stream_url=app_settings.price_stream_url,
        on_price=engine.apply_price_update,
        reconnect_delay_seconds=app_settings.price_stream_reconnect_seconds,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def request_shutdown(sig: signal.Signals) -> None:
        log_event(
            logger,
            level="info",
            event="shutdown_signal_received",
            message="Shutdown signal received",
            signal=sig.name,
        )
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, request_shutdown, sig)

    if jupiter is not None:
        await jupiter.connect()

    runner = web.AppRunner(create_app(state))
    await runner.setup()
    site = web.TCPSite(runner, app_settings.web_host, app_settings.web_port)
    await site.start()
    log_event(
        logger,
        level="info",
        event="simulator_started",
        message="Simulator started",
        web_host=app_settings.web_host,
        web_port=app_settings.web_port,
        jupiter_enabled=jupiter is not None,
        strategies=[strategy.id.value for strategy in state.strategies],
    )

    stream_task = asyncio.create_task(price_stream.run(stop_event))
    try:
        await stop_event.wait()
    finally:
        stream_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await stream_task

        await guarded_call(
            runner.cleanup,
            logger=logger,
            event="web_shutdown_failed",
            message="Failed to stop web server",
        )
        if jupiter is not None:
            await guarded_call(
                jupiter.close,
                logger=logger,
                event="jupiter_close_failed",
                message="Failed to close Jupiter client",
            )

        log_event(logger, level="info", event="shutdown_completed", message="Shutdown completed")


if __name__ == "__main__":
    asyncio.run(main())
