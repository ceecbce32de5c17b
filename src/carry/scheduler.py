"""Rebalance scheduler -- drives the initial hedge and the periodic rebalance loop.

Each cycle follows the same path:
  1. FETCH: market snapshots and account state (balances, positions,
     reference price) concurrently, joined before anything else runs
  2. SCORE & SELECT: rank snapshots and pick the best carry strategy
  3. SIZE & DIFF: target exposure for the budget vs current exposure
  4. PLACE: spot leg, then perp leg
  5. NOTIFY: best-effort message in the background

The first cycle runs immediately with zero current exposure; later cycles
fire every ``max(1, rebalance_interval_hours)`` hours. Cycles run under a
lock and never overlap. Any failure inside a cycle is caught at the cycle
boundary, logged and notified; the next tick still fires. Waiting for the
next tick is the only retry mechanism.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from carry.config import AppSettings
from carry.exceptions import PartialHedgeError
from carry.exchange.client import ExchangeClient
from carry.exchange.types import QUOTE_ASSETS, extract_reference_price, select_quote_balance
from carry.logging import bind_cycle_context, clear_cycle_context, get_logger
from carry.market_data.service import MarketDataService
from carry.models import Exposure, MarketDataResult, RebalanceResult, Strategy
from carry.notification.formatters import build_failure_message, build_strategy_message
from carry.notification.notifier import Notifier
from carry.position.exposure import summarize_exposure
from carry.position.rebalancer import RebalanceEngine
from carry.strategy.selector import StrategySelector

logger = get_logger(__name__)

_SECONDS_PER_HOUR = 3600.0
_MIN_INTERVAL_HOURS = 1.0


def rebalance_interval_seconds(hours: float) -> float:
    """Convert the configured interval to seconds, floored at one hour."""
    return max(_MIN_INTERVAL_HOURS, hours) * _SECONDS_PER_HOUR


def resolve_budget(
    configured: Decimal,
    available_quote: Decimal,
    current_spot: Decimal,
    price: Decimal,
) -> Decimal:
    """Quote budget for the hedge target.

    Deployable capital is the free quote balance plus the value of the spot
    leg already held. A positive configured budget caps it; zero means
    "use everything deployable". A negative quote balance (fees or slippage
    overdrawn) contributes nothing.
    """
    free_quote = available_quote if available_quote > 0 else Decimal("0")
    held_spot = current_spot if current_spot > 0 else Decimal("0")
    deployable = free_quote + held_spot * price
    if configured > 0:
        return min(configured, deployable)
    return deployable


async def _gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """Run ``aws`` concurrently; on the first failure cancel and join the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


@dataclass
class _AccountState:
    available_quote: Decimal
    exposure: Exposure
    price: Decimal


class RebalanceScheduler:
    """Owns timing, serialization and failure isolation of rebalance cycles.

    Args:
        settings: Application-wide settings.
        exchange: Exchange client (live or paper).
        market_data: Snapshot service (owns the TTL cache).
        selector: Best-strategy selector.
        engine: Rebalance diff and order engine.
        notifier: Best-effort status notifier.
        interval_seconds: Override of the configured interval (tests).
    """

    def __init__(
        self,
        settings: AppSettings,
        exchange: ExchangeClient,
        market_data: MarketDataService,
        selector: StrategySelector,
        engine: RebalanceEngine,
        notifier: Notifier,
        interval_seconds: float | None = None,
    ) -> None:
        self._settings = settings
        self._exchange = exchange
        self._market_data = market_data
        self._selector = selector
        self._engine = engine
        self._notifier = notifier
        self._interval = (
            interval_seconds
            if interval_seconds is not None
            else rebalance_interval_seconds(settings.trading.rebalance_interval_hours)
        )
        self._cycle_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._notification_tasks: set[asyncio.Task] = set()  # type: ignore[type-arg]
        self._running = False
        self._cycle_count = 0
        self._failed_cycles = 0
        self._last_result: RebalanceResult | None = None
        self._last_strategy: Strategy | None = None
        self._last_market_source: str | None = None

    @property
    def symbol(self) -> str:
        return self._settings.trading.symbol.upper()

    @property
    def leverage(self) -> Decimal:
        leverage = self._settings.trading.leverage
        if not leverage.is_finite() or leverage <= 0:
            return Decimal("1")
        return leverage

    @property
    def quote_to_deploy(self) -> Decimal:
        quote = self._settings.trading.quote_to_deploy
        if not quote.is_finite() or quote <= 0:
            return Decimal("0")
        return quote

    @property
    def quote_assets(self) -> tuple[str, ...]:
        """Configured quote asset first, then the common stablecoins."""
        configured = self._settings.exchange.quote_asset.upper()
        return (configured, *(a for a in QUOTE_ASSETS if a != configured))

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_busy(self) -> bool:
        return self._cycle_lock.locked()

    async def run(self) -> None:
        """Place the initial hedge, then rebalance on every interval until stopped."""
        self._running = True
        logger.info(
            "scheduler_starting",
            symbol=self.symbol,
            leverage=str(self.leverage),
            quote_to_deploy=str(self.quote_to_deploy),
            interval_seconds=self._interval,
            mode=self._settings.trading.mode,
        )

        try:
            if not self._stop_event.is_set():
                await self.run_cycle(initial=True)

            loop = asyncio.get_running_loop()
            next_tick = loop.time() + self._interval
            while not self._stop_event.is_set():
                delay = next_tick - loop.time()
                if delay > 0:
                    try:
                        await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                        break
                    except asyncio.TimeoutError:
                        pass
                else:
                    # previous cycle overran its slot: run now, never skip
                    logger.warning("rebalance_tick_delayed", late_seconds=round(-delay, 3))
                    next_tick = loop.time()

                await self.run_cycle(initial=False)
                next_tick += self._interval
        finally:
            await self._drain_notifications()
            self._running = False
            logger.info("scheduler_stopped", cycles=self._cycle_count)

    async def stop(self) -> None:
        """Request shutdown and wait for the in-flight cycle to finish."""
        logger.info("scheduler_stopping_gracefully")
        self._stop_event.set()
        async with self._cycle_lock:
            pass

    async def trigger_cycle(self) -> RebalanceResult | None:
        """Run an out-of-schedule rebalance unless a cycle is already running."""
        if self._cycle_lock.locked():
            logger.warning("rebalance_trigger_skipped_busy")
            return None
        return await self.run_cycle(initial=False)

    async def run_cycle(self, initial: bool = False) -> RebalanceResult | None:
        """Run one fully isolated cycle; never raises except on cancellation.

        Returns:
            The RebalanceResult, or None if the cycle failed.
        """
        kind = "initial" if initial else "rebalance"
        async with self._cycle_lock:
            self._cycle_count += 1
            bind_cycle_context(self._cycle_count, kind)
            try:
                result = await self._execute_cycle(initial)
            except PartialHedgeError as e:
                self._failed_cycles += 1
                logger.critical(
                    "partial_hedge_placed",
                    symbol=self.symbol,
                    failed_leg=e.failed_leg,
                    placed=[o.order_id for o in e.placed],
                    error=str(e),
                )
                self._notify(build_failure_message(kind, self.symbol, e))
                return None
            except Exception as e:
                self._failed_cycles += 1
                logger.error("rebalance_cycle_failed", error=str(e), exc_info=True)
                self._notify(build_failure_message(kind, self.symbol, e))
                return None
            finally:
                clear_cycle_context()

            self._last_result = result
            logger.info(
                "rebalance_cycle_complete",
                status=result.status.value,
                orders=len(result.orders),
            )
            return result

    async def _execute_cycle(self, initial: bool) -> RebalanceResult:
        symbol = self.symbol
        kind = "initial" if initial else "rebalance"

        market, account = await _gather_or_cancel(
            self._market_data.fetch_snapshots(),
            self._fetch_account_state(symbol, include_positions=not initial),
        )

        strategy = self._selector.select(market.snapshots)
        self._record_strategy(strategy, market)

        budget = resolve_budget(
            configured=self.quote_to_deploy,
            available_quote=account.available_quote,
            current_spot=account.exposure.spot_size,
            price=account.price,
        )
        logger.info(
            "rebalance_inputs",
            symbol=symbol,
            price=str(account.price),
            budget=str(budget),
            current_spot=str(account.exposure.spot_size),
            current_perp=str(account.exposure.perp_size),
        )

        result = await self._engine.rebalance(
            symbol=symbol,
            current=account.exposure,
            target_budget=budget,
            price=account.price,
            leverage=self.leverage,
        )

        self._notify(
            build_strategy_message(kind, symbol, self.leverage, result, strategy)
        )
        return result

    async def _fetch_account_state(self, symbol: str, include_positions: bool) -> _AccountState:
        """Fetch balances, positions and the reference price in parallel.

        The initial hedge treats current exposure as zero and skips the
        positions query.
        """
        if include_positions:
            balances, positions, trades = await _gather_or_cancel(
                self._exchange.get_balances(),
                self._exchange.get_positions(),
                self._exchange.get_recent_trades(symbol),
            )
            exposure = summarize_exposure(positions, symbol)
        else:
            balances, trades = await _gather_or_cancel(
                self._exchange.get_balances(),
                self._exchange.get_recent_trades(symbol),
            )
            exposure = Exposure()

        return _AccountState(
            available_quote=select_quote_balance(balances, self.quote_assets),
            exposure=exposure,
            price=extract_reference_price(trades, symbol),
        )

    def _record_strategy(self, strategy: Strategy | None, market: MarketDataResult) -> None:
        self._last_strategy = strategy
        self._last_market_source = market.source.value
        if strategy is None:
            logger.warning(
                "no_strategy_candidates",
                source=market.source.value,
                snapshots=len(market.snapshots),
            )
            return

        logger.info(
            "strategy_selected",
            pair=strategy.pair,
            direction=strategy.direction.value,
            apy=str(strategy.apy),
            score=str(strategy.score),
            leverage=str(strategy.leverage),
            source=market.source.value,
            scheduled_at=market.scheduled_at.isoformat(),
        )
        if strategy.base.upper() != self.symbol:
            logger.info(
                "selected_strategy_differs_from_target",
                selected=strategy.base,
                target=self.symbol,
            )

    def _notify(self, message: str) -> None:
        task = asyncio.create_task(self._send_notification(message))
        self._notification_tasks.add(task)
        task.add_done_callback(self._notification_tasks.discard)

    async def _send_notification(self, message: str) -> None:
        try:
            await self._notifier.send(message)
        except Exception as e:
            logger.warning("notification_failed", error=str(e), exc_info=True)

    async def _drain_notifications(self) -> None:
        if self._notification_tasks:
            await asyncio.gather(*self._notification_tasks, return_exceptions=True)

    def get_status(self) -> dict:
        """Return current scheduler status.

        Returns:
            Dict with: running, busy, symbol, mode, cycles, failed_cycles,
            last_status, last_strategy, market_source.
        """
        return {
            "running": self._running,
            "busy": self.is_busy,
            "symbol": self.symbol,
            "mode": self._settings.trading.mode,
            "cycles": self._cycle_count,
            "failed_cycles": self._failed_cycles,
            "last_status": self._last_result.status.value if self._last_result else None,
            "last_strategy": self._last_strategy.pair if self._last_strategy else None,
            "market_source": self._last_market_source,
        }
