"""Paper trading exchange client with simulated fills.

Delegates public market data (asset contexts, latest prints) to a real
client and simulates order placement against virtual balances and
positions. All fills are instant at the request price plus slippage, so a
paper run exercises the full rebalance diff across cycles.
"""

import time
from decimal import Decimal
from uuid import uuid4

from carry.exchange.client import ExchangeClient
from carry.logging import get_logger
from carry.models import Balance, OrderRequest, OrderResult, OrderSide, Position

logger = get_logger(__name__)

# Simulated slippage: 0.05% (5 basis points)
_SLIPPAGE = Decimal("0.0005")


class PaperExchangeClient(ExchangeClient):
    """Simulated exchange for paper trading.

    Args:
        market_data: Real client used for public reads only.
        initial_quote: Starting virtual quote balance.
        quote_asset: Name of the virtual quote asset.
    """

    def __init__(
        self,
        market_data: ExchangeClient,
        initial_quote: Decimal = Decimal("10000"),
        quote_asset: str = "USDC",
    ) -> None:
        self._market_data = market_data
        self._quote_asset = quote_asset
        self._quote_balance = initial_quote
        self._spot: dict[str, Decimal] = {}
        self._perp: dict[str, Decimal] = {}

    async def connect(self) -> None:
        await self._market_data.connect()
        logger.info(
            "paper_client_ready",
            quote_asset=self._quote_asset,
            quote_balance=str(self._quote_balance),
        )

    async def close(self) -> None:
        await self._market_data.close()

    async def get_balances(self) -> list[Balance]:
        balances = [
            Balance(
                asset=self._quote_asset,
                available=self._quote_balance,
                total=self._quote_balance,
            )
        ]
        balances.extend(
            Balance(asset=symbol, available=size, total=size)
            for symbol, size in self._spot.items()
        )
        return balances

    async def get_positions(self) -> list[Position]:
        positions = [
            Position(symbol=symbol, size=size, kind="spot")
            for symbol, size in self._spot.items()
        ]
        positions.extend(
            Position(symbol=symbol, size=size, kind="perp")
            for symbol, size in self._perp.items()
        )
        return positions

    async def get_recent_trades(self, symbol: str) -> list[dict]:
        return await self._market_data.get_recent_trades(symbol)

    async def fetch_market_contexts(self) -> list:
        return await self._market_data.fetch_market_contexts()

    def normalize_order_size(self, symbol: str, category: str, size: Decimal) -> Decimal:
        return self._market_data.normalize_order_size(symbol, category, size)

    async def place_spot_order(self, request: OrderRequest) -> OrderResult:
        """Fill a spot order and move the quote balance by its cost."""
        fill_price = self._fill_price(request)
        cost = request.size * fill_price
        signed = request.size if request.side == OrderSide.BUY else -request.size

        self._spot[request.symbol] = self._spot.get(request.symbol, Decimal("0")) + signed
        self._quote_balance -= cost if request.side == OrderSide.BUY else -cost

        return self._result(request, fill_price, "spot")

    async def place_perp_order(self, request: OrderRequest) -> OrderResult:
        """Fill a perp order; margin is not modelled, only signed size."""
        fill_price = self._fill_price(request)
        signed = request.size if request.side == OrderSide.BUY else -request.size
        self._perp[request.symbol] = self._perp.get(request.symbol, Decimal("0")) + signed
        return self._result(request, fill_price, "perp")

    @staticmethod
    def _fill_price(request: OrderRequest) -> Decimal:
        if request.side == OrderSide.BUY:
            return request.price * (Decimal("1") + _SLIPPAGE)
        return request.price * (Decimal("1") - _SLIPPAGE)

    def _result(self, request: OrderRequest, fill_price: Decimal, category: str) -> OrderResult:
        order_id = f"paper_{uuid4().hex[:12]}"
        logger.info(
            "paper_order_filled",
            order_id=order_id,
            category=category,
            symbol=request.symbol,
            side=request.side.value,
            size=str(request.size),
            fill_price=str(fill_price),
            reduce_only=request.reduce_only,
        )
        return OrderResult(
            order_id=order_id,
            symbol=request.symbol,
            side=request.side,
            size=request.size,
            price=fill_price,
            category=category,
            timestamp=time.time(),
            is_simulated=True,
        )
