"""Hyperliquid exchange client implementation via ccxt async.

Wraps ccxt.async_support.hyperliquid with credential checks, symbol
mapping from base symbols ("ETH") to ccxt spot/perp symbols, and
conversion of ccxt structures into carry models. Request signing is
handled by ccxt; every private call fails fast when credentials are
missing instead of letting ccxt raise an opaque auth error mid-cycle.
"""

import time
from decimal import Decimal

import ccxt.async_support as ccxt_async

from carry.config import ExchangeSettings
from carry.exceptions import CredentialsMissingError
from carry.exchange.client import ExchangeClient
from carry.exchange.types import round_to_step, to_decimal
from carry.logging import get_logger
from carry.models import Balance, OrderRequest, OrderResult, Position

logger = get_logger(__name__)

# Top-level keys of a ccxt balance structure that are not assets
_BALANCE_META_KEYS = frozenset({"info", "free", "used", "total", "timestamp", "datetime", "debt"})


class HyperliquidClient(ExchangeClient):
    """Concrete Hyperliquid exchange client using ccxt async."""

    def __init__(self, settings: ExchangeSettings) -> None:
        self._settings = settings

        config: dict = {
            "walletAddress": settings.wallet_address,
            "privateKey": settings.private_key.get_secret_value(),
            "enableRateLimit": True,
            "timeout": int(settings.timeout_seconds * 1000),
            "options": {
                "defaultType": "swap",
            },
        }

        self._exchange = ccxt_async.hyperliquid(config)
        if settings.testnet:
            self._exchange.set_sandbox_mode(True)
        self._markets: dict = {}

    @property
    def exchange(self) -> ccxt_async.hyperliquid:
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    def spot_symbol(self, base: str) -> str:
        return f"{base.upper()}/{self._settings.quote_asset}"

    def perp_symbol(self, base: str) -> str:
        quote = self._settings.quote_asset
        return f"{base.upper()}/{quote}:{quote}"

    def _require_credentials(self) -> None:
        if not self._settings.wallet_address or not self._settings.private_key.get_secret_value():
            raise CredentialsMissingError(
                "Hyperliquid credentials are missing. Set HYPERLIQUID_WALLET_ADDRESS "
                "and HYPERLIQUID_PRIVATE_KEY in env."
            )

    def _order_params(self, reduce_only: bool = False) -> dict:
        params: dict = {"timeInForce": "Gtc", "reduceOnly": reduce_only}
        if self._settings.vault_address:
            params["vaultAddress"] = self._settings.vault_address
        return params

    async def connect(self) -> None:
        """Initialize connection by loading markets."""
        logger.info("connecting_to_hyperliquid", testnet=self._settings.testnet)
        self._markets = await self._exchange.load_markets()
        logger.info(
            "hyperliquid_connected",
            market_count=len(self._markets),
            testnet=self._settings.testnet,
        )

    async def close(self) -> None:
        """Clean up ccxt async resources. CRITICAL: must be called to avoid resource leaks."""
        logger.info("closing_hyperliquid_connection")
        await self._exchange.close()
        logger.info("hyperliquid_connection_closed")

    async def get_balances(self) -> list[Balance]:
        """Fetch spot wallet balances (the spot leg is bought from these)."""
        self._require_credentials()
        raw = await self._exchange.fetch_balance(params={"type": "spot"})
        balances: list[Balance] = []
        for asset, entry in raw.items():
            if asset in _BALANCE_META_KEYS or not isinstance(entry, dict):
                continue
            balances.append(
                Balance(
                    asset=asset,
                    available=to_decimal(entry.get("free"), Decimal("0")),
                    total=to_decimal(entry.get("total"), Decimal("0")),
                )
            )
        return balances

    async def get_positions(self) -> list[Position]:
        """Return perp positions (signed) plus non-quote spot holdings."""
        self._require_credentials()
        positions: list[Position] = []

        for raw in await self._exchange.fetch_positions():
            symbol = raw.get("symbol") or ""
            contracts = to_decimal(raw.get("contracts"))
            if raw.get("side") == "short":
                contracts = -contracts
            positions.append(
                Position(symbol=symbol.split("/")[0], size=contracts, kind="perp")
            )

        for balance in await self.get_balances():
            if balance.asset.upper() == self._settings.quote_asset.upper():
                continue
            positions.append(Position(symbol=balance.asset, size=balance.total, kind="spot"))

        logger.debug("fetched_positions", count=len(positions))
        return positions

    async def get_recent_trades(self, symbol: str) -> list[dict]:
        """Return the latest print for ``symbol`` as a one-element trade list.

        Hyperliquid exposes public trades only over websocket, so the
        ticker's last price (taken from the asset context) stands in for
        the most recent trade.
        """
        ticker = await self._exchange.fetch_ticker(self.perp_symbol(symbol))
        price = ticker.get("last") or ticker.get("close")
        if price is None:
            return []
        return [{"price": price, "timestamp": ticker.get("timestamp")}]

    async def place_spot_order(self, request: OrderRequest) -> OrderResult:
        self._require_credentials()
        return await self._create_order(
            "spot", self.spot_symbol(request.symbol), request, self._order_params()
        )

    async def place_perp_order(self, request: OrderRequest) -> OrderResult:
        self._require_credentials()
        return await self._create_order(
            "perp",
            self.perp_symbol(request.symbol),
            request,
            self._order_params(reduce_only=request.reduce_only),
        )

    def normalize_order_size(self, symbol: str, category: str, size: Decimal) -> Decimal:
        """Round down to the market's amount step; 0 if below the minimum amount.

        Sizes pass through unchanged for markets that were not loaded.
        """
        market_symbol = self.spot_symbol(symbol) if category == "spot" else self.perp_symbol(symbol)
        market = self._markets.get(market_symbol)
        if not market:
            return size

        step = to_decimal((market.get("precision") or {}).get("amount"))
        min_amount = to_decimal(
            ((market.get("limits") or {}).get("amount") or {}).get("min"), Decimal("0")
        )
        rounded = round_to_step(size, step)
        if rounded <= 0 or rounded < min_amount:
            logger.debug(
                "order_size_below_minimum",
                symbol=market_symbol,
                size=str(size),
                step=str(step),
                min_amount=str(min_amount),
            )
            return Decimal("0")
        return rounded

    async def fetch_market_contexts(self) -> list:
        """Fetch ``[meta, assetCtxs]`` for the perp universe (public)."""
        return await self._exchange.public_post_info({"type": "metaAndAssetCtxs"})

    async def _create_order(
        self, category: str, market_symbol: str, request: OrderRequest, params: dict
    ) -> OrderResult:
        logger.info(
            "creating_order",
            category=category,
            symbol=market_symbol,
            side=request.side.value,
            amount=str(request.size),
            price=str(request.price),
        )
        result = await self._exchange.create_order(
            market_symbol,
            "limit",
            request.side.value,
            float(request.size),
            float(request.price),
            params=params,
        )

        timestamp = result.get("timestamp")
        average_price = result.get("average") or result.get("price")
        return OrderResult(
            order_id=str(result.get("id", "")),
            symbol=request.symbol,
            side=request.side,
            size=request.size,
            price=to_decimal(average_price, request.price),
            category=category,
            timestamp=float(timestamp) / 1000.0 if timestamp else time.time(),
        )
