"""Entry point for the funding carry rebalancer.

Wires all components together and runs the rebalance scheduler until a
shutdown signal arrives. SIGINT/SIGTERM let the in-flight cycle finish
before the loop stops; nothing is unwound on shutdown.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. ExchangeClient (HyperliquidClient, wrapped by PaperExchangeClient in paper mode)
4. SnapshotCache (last-known-good market data, TTL from settings)
5. MarketDataService (live -> cache -> sample rows)
6. StrategySelector (scoring + best-strategy policy)
7. RebalanceEngine (hedge diff and order placement)
8. Notifier (Telegram, or NullNotifier when disabled)
9. RebalanceScheduler (initial hedge + periodic rebalance loop)
"""

import asyncio
import signal
from typing import Any

from carry.config import AppSettings
from carry.exchange.client import ExchangeClient
from carry.exchange.hyperliquid_client import HyperliquidClient
from carry.exchange.paper_client import PaperExchangeClient
from carry.logging import get_logger, setup_logging
from carry.market_data.cache import SnapshotCache
from carry.market_data.service import MarketDataService
from carry.notification.notifier import Notifier, NullNotifier
from carry.notification.telegram import TelegramNotifier
from carry.position.rebalancer import RebalanceEngine
from carry.scheduler import RebalanceScheduler
from carry.strategy.selector import StrategySelector


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Note: Does NOT call exchange_client.connect() -- that happens in run().

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("carry.main")

    live_client = HyperliquidClient(settings.exchange)
    exchange_client: ExchangeClient
    if settings.trading.mode == "paper":
        if not settings.exchange.wallet_address:
            logger.warning(
                "no_credentials_configured",
                mode="paper",
                note="Public market data will work. Balances and orders are simulated.",
            )
        exchange_client = PaperExchangeClient(
            live_client,
            initial_quote=settings.trading.paper_virtual_equity,
            quote_asset=settings.exchange.quote_asset,
        )
    else:
        exchange_client = live_client

    cache = SnapshotCache(ttl_seconds=settings.market_data.cache_ttl_seconds)
    market_data = MarketDataService(exchange_client, cache)
    selector = StrategySelector(settings.selection)
    engine = RebalanceEngine(exchange_client)

    notifier: Notifier
    if settings.notifier.enabled:
        notifier = TelegramNotifier(settings.notifier)
    else:
        notifier = NullNotifier()

    scheduler = RebalanceScheduler(
        settings=settings,
        exchange=exchange_client,
        market_data=market_data,
        selector=selector,
        engine=engine,
        notifier=notifier,
    )

    return {
        "exchange_client": exchange_client,
        "snapshot_cache": cache,
        "market_data": market_data,
        "selector": selector,
        "engine": engine,
        "notifier": notifier,
        "scheduler": scheduler,
    }


def _setup_signal_handlers(scheduler: RebalanceScheduler) -> None:
    """Register SIGINT/SIGTERM to stop the scheduler after the current cycle.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("carry.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        asyncio.create_task(scheduler.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


async def run() -> None:
    """Run the rebalancer until a shutdown signal is received."""
    settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("carry.main")

    components = _build_components(settings)
    scheduler: RebalanceScheduler = components["scheduler"]
    _setup_signal_handlers(scheduler)

    logger.info(
        "carry_rebalancer_starting",
        mode=settings.trading.mode,
        symbol=settings.trading.symbol,
        leverage=str(settings.trading.leverage),
        interval_hours=settings.trading.rebalance_interval_hours,
    )

    try:
        await components["exchange_client"].connect()
        await scheduler.run()
    finally:
        await components["exchange_client"].close()
        await components["notifier"].close()
        logger.info("carry_rebalancer_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
