"""Market snapshot service with two-tier fallback.

Each fetch tries the live venue first. On any failure it serves the
last-known-good snapshots from the injected SnapshotCache while they are
younger than the TTL, and only then reverts to the static sample rows.
The result records which tier answered and the strategy schedule boundary
it belongs to.
"""

from collections.abc import Callable
from datetime import datetime, timezone

from carry.exceptions import MarketDataError
from carry.exchange.client import ExchangeClient
from carry.logging import get_logger
from carry.market_data.cache import SnapshotCache
from carry.market_data.fallback import fallback_snapshots
from carry.market_data.parser import parse_market_contexts
from carry.models import MarketDataResult, MarketDataSource
from carry.strategy.schedule import align_to_strategy_schedule

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MarketDataService:
    """Fetches, parses and scores market snapshots for one cycle.

    Args:
        exchange: Client providing the raw market contexts.
        cache: Last-known-good snapshot cache.
        now: Wall-clock source for schedule labelling, injectable for tests.
    """

    def __init__(
        self,
        exchange: ExchangeClient,
        cache: SnapshotCache,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._exchange = exchange
        self._cache = cache
        self._now = now

    async def fetch_snapshots(self) -> MarketDataResult:
        """Return snapshots from the live venue, the cache, or the sample rows."""
        scheduled_at = align_to_strategy_schedule(self._now())

        try:
            raw = await self._exchange.fetch_market_contexts()
            snapshots = parse_market_contexts(raw)
            if not snapshots:
                raise MarketDataError("Market context response contained no instruments")
        except Exception as e:
            reason = str(e) or type(e).__name__
            cached = await self._cache.get_fresh()
            if cached is not None:
                logger.warning(
                    "market_data_served_from_cache",
                    error=reason,
                    age_seconds=await self._cache.get_age(),
                )
                return MarketDataResult(
                    snapshots=cached,
                    source=MarketDataSource.CACHE,
                    scheduled_at=scheduled_at,
                    error=reason,
                )

            logger.warning(
                "market_data_served_from_fallback",
                error=reason,
                note="Unable to load live funding data; using sample data instead.",
            )
            return MarketDataResult(
                snapshots=fallback_snapshots(),
                source=MarketDataSource.FALLBACK,
                scheduled_at=scheduled_at,
                error=reason,
            )

        await self._cache.store(snapshots)
        logger.debug("market_data_fetched", count=len(snapshots))
        return MarketDataResult(
            snapshots=snapshots,
            source=MarketDataSource.LIVE,
            scheduled_at=scheduled_at,
        )
