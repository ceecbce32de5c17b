"""Abstract exchange client interface.

Defines the contract for all exchange implementations.
Strategy and rebalance code depends only on this interface,
keeping Hyperliquid-specific details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from carry.models import Balance, OrderRequest, OrderResult, Position


class ExchangeClient(ABC):
    """Abstract base class for exchange API clients."""

    @abstractmethod
    async def connect(self) -> None:
        """Initialize connection and load markets."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources (CRITICAL for ccxt async)."""
        ...

    @abstractmethod
    async def get_balances(self) -> list[Balance]:
        """Return free/total balances per asset. Requires credentials."""
        ...

    @abstractmethod
    async def get_positions(self) -> list[Position]:
        """Return spot holdings and perp positions. Requires credentials.

        Perp sizes are signed: a short perp position has a negative size.
        """
        ...

    @abstractmethod
    async def get_recent_trades(self, symbol: str) -> list[dict]:
        """Return recent trade prints for a base symbol, newest first.

        Each record carries at least a ``price`` field.
        """
        ...

    @abstractmethod
    async def place_spot_order(self, request: OrderRequest) -> OrderResult:
        """Place a spot order for ``request.symbol`` (base symbol)."""
        ...

    @abstractmethod
    async def place_perp_order(self, request: OrderRequest) -> OrderResult:
        """Place a perpetual order, honouring ``request.reduce_only``."""
        ...

    @abstractmethod
    async def fetch_market_contexts(self) -> list:
        """Fetch the raw perp universe and per-asset context arrays.

        Returns a two-element list ``[meta, asset_contexts]`` where
        ``meta["universe"][i]`` describes the instrument whose live state
        is ``asset_contexts[i]``.
        """
        ...

    def normalize_order_size(self, symbol: str, category: str, size: Decimal) -> Decimal:
        """Round ``size`` down to the venue's lot size for a "spot" or "perp" order.

        Returns 0 when the rounded size is below the venue minimum. The
        default accepts any size unchanged.
        """
        return size
