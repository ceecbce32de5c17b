"""Market data layer -- snapshot parsing, TTL cache and fallback serving."""

from carry.market_data.cache import SnapshotCache
from carry.market_data.parser import parse_market_contexts
from carry.market_data.service import MarketDataService

__all__ = ["MarketDataService", "SnapshotCache", "parse_market_contexts"]
