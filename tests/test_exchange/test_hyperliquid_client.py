"""Tests for HyperliquidClient.

All tests replace the ccxt exchange class with a mock to avoid real API calls.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from carry.config import ExchangeSettings
from carry.exceptions import CredentialsMissingError
from carry.exchange.hyperliquid_client import HyperliquidClient
from carry.models import OrderRequest, OrderSide

MOCK_BALANCE = {
    "info": {"balances": []},
    "timestamp": None,
    "datetime": None,
    "free": {"USDC": 1500.5, "ETH": 1.25},
    "used": {"USDC": 0, "ETH": 0},
    "total": {"USDC": 1500.5, "ETH": 1.25},
    "USDC": {"free": 1500.5, "used": 0, "total": 1500.5},
    "ETH": {"free": 1.25, "used": 0, "total": 1.25},
}


@pytest.fixture
def exchange_settings() -> ExchangeSettings:
    """Exchange settings for testing."""
    return ExchangeSettings(
        wallet_address="0xabc",
        private_key="0xkey",  # type: ignore[arg-type]
        testnet=False,
    )


@pytest.fixture
def mock_ccxt():
    with patch("carry.exchange.hyperliquid_client.ccxt_async.hyperliquid") as cls:
        instance = MagicMock()
        instance.load_markets = AsyncMock(return_value={"ETH/USDC:USDC": {}})
        instance.close = AsyncMock()
        instance.fetch_balance = AsyncMock(return_value=MOCK_BALANCE)
        instance.fetch_positions = AsyncMock(return_value=[])
        instance.fetch_ticker = AsyncMock(return_value={"last": 3000.5, "timestamp": 1})
        instance.create_order = AsyncMock(
            return_value={"id": "123", "average": 3001.0, "timestamp": 1700000000000}
        )
        instance.public_post_info = AsyncMock(return_value=[{"universe": []}, []])
        cls.return_value = instance
        yield cls


@pytest.fixture
def client(exchange_settings: ExchangeSettings, mock_ccxt: MagicMock) -> HyperliquidClient:
    return HyperliquidClient(exchange_settings)


class TestHyperliquidClientInit:
    def test_config_passed_to_ccxt(
        self, exchange_settings: ExchangeSettings, mock_ccxt: MagicMock
    ) -> None:
        HyperliquidClient(exchange_settings)
        config = mock_ccxt.call_args.args[0]
        assert config["walletAddress"] == "0xabc"
        assert config["privateKey"] == "0xkey"
        assert config["enableRateLimit"] is True
        assert config["timeout"] == 15000
        assert config["options"]["defaultType"] == "swap"

    def test_testnet_enables_sandbox(self, mock_ccxt: MagicMock) -> None:
        HyperliquidClient(ExchangeSettings(testnet=True))
        mock_ccxt.return_value.set_sandbox_mode.assert_called_once_with(True)

    def test_mainnet_no_sandbox(self, client: HyperliquidClient, mock_ccxt: MagicMock) -> None:
        mock_ccxt.return_value.set_sandbox_mode.assert_not_called()

    def test_symbol_mapping(self, client: HyperliquidClient) -> None:
        assert client.spot_symbol("eth") == "ETH/USDC"
        assert client.perp_symbol("ETH") == "ETH/USDC:USDC"


class TestCredentials:
    @pytest.mark.asyncio
    async def test_private_calls_require_credentials(self, mock_ccxt: MagicMock) -> None:
        client = HyperliquidClient(ExchangeSettings(wallet_address="0xabc"))
        request = OrderRequest(
            symbol="ETH", side=OrderSide.BUY, size=Decimal("1"), price=Decimal("3000")
        )

        with pytest.raises(CredentialsMissingError):
            await client.get_balances()
        with pytest.raises(CredentialsMissingError):
            await client.get_positions()
        with pytest.raises(CredentialsMissingError):
            await client.place_spot_order(request)
        with pytest.raises(CredentialsMissingError):
            await client.place_perp_order(request)

        mock_ccxt.return_value.create_order.assert_not_called()

    @pytest.mark.asyncio
    async def test_public_calls_work_without_credentials(self, mock_ccxt: MagicMock) -> None:
        client = HyperliquidClient(ExchangeSettings())
        assert await client.get_recent_trades("ETH") == [{"price": 3000.5, "timestamp": 1}]
        assert await client.fetch_market_contexts() == [{"universe": []}, []]


class TestAccountReads:
    @pytest.mark.asyncio
    async def test_get_balances_skips_meta_keys(
        self, client: HyperliquidClient, mock_ccxt: MagicMock
    ) -> None:
        balances = await client.get_balances()

        by_asset = {b.asset: b for b in balances}
        assert set(by_asset) == {"USDC", "ETH"}
        assert by_asset["USDC"].available == Decimal("1500.5")
        assert by_asset["ETH"].total == Decimal("1.25")
        mock_ccxt.return_value.fetch_balance.assert_awaited_once_with(params={"type": "spot"})

    @pytest.mark.asyncio
    async def test_get_positions_signs_shorts_and_adds_spot(
        self, client: HyperliquidClient, mock_ccxt: MagicMock
    ) -> None:
        mock_ccxt.return_value.fetch_positions.return_value = [
            {"symbol": "ETH/USDC:USDC", "contracts": 2.5, "side": "short"},
            {"symbol": "BTC/USDC:USDC", "contracts": 0.1, "side": "long"},
        ]

        positions = await client.get_positions()

        perps = {p.symbol: p.size for p in positions if p.kind == "perp"}
        spots = {p.symbol: p.size for p in positions if p.kind == "spot"}
        assert perps == {"ETH": Decimal("-2.5"), "BTC": Decimal("0.1")}
        assert spots == {"ETH": Decimal("1.25")}


class TestMarketReads:
    @pytest.mark.asyncio
    async def test_recent_trades_from_ticker(
        self, client: HyperliquidClient, mock_ccxt: MagicMock
    ) -> None:
        trades = await client.get_recent_trades("ETH")
        assert trades[0]["price"] == 3000.5
        mock_ccxt.return_value.fetch_ticker.assert_awaited_once_with("ETH/USDC:USDC")

    @pytest.mark.asyncio
    async def test_recent_trades_empty_without_price(
        self, client: HyperliquidClient, mock_ccxt: MagicMock
    ) -> None:
        mock_ccxt.return_value.fetch_ticker.return_value = {"last": None, "close": None}
        assert await client.get_recent_trades("ETH") == []

    @pytest.mark.asyncio
    async def test_market_contexts_request(
        self, client: HyperliquidClient, mock_ccxt: MagicMock
    ) -> None:
        await client.fetch_market_contexts()
        mock_ccxt.return_value.public_post_info.assert_awaited_once_with(
            {"type": "metaAndAssetCtxs"}
        )

    @pytest.mark.asyncio
    async def test_connect_and_close(
        self, client: HyperliquidClient, mock_ccxt: MagicMock
    ) -> None:
        await client.connect()
        await client.close()
        mock_ccxt.return_value.load_markets.assert_awaited_once()
        mock_ccxt.return_value.close.assert_awaited_once()


class TestOrders:
    @pytest.mark.asyncio
    async def test_perp_order_passes_reduce_only(
        self, client: HyperliquidClient, mock_ccxt: MagicMock
    ) -> None:
        request = OrderRequest(
            symbol="ETH",
            side=OrderSide.SELL,
            size=Decimal("1.5"),
            price=Decimal("3000"),
            reduce_only=True,
        )

        result = await client.place_perp_order(request)

        mock_ccxt.return_value.create_order.assert_awaited_once_with(
            "ETH/USDC:USDC",
            "limit",
            "sell",
            1.5,
            3000.0,
            params={"timeInForce": "Gtc", "reduceOnly": True},
        )
        assert result.order_id == "123"
        assert result.category == "perp"
        assert result.price == Decimal("3001.0")
        assert result.timestamp == 1700000000.0
        assert result.is_simulated is False

    @pytest.mark.asyncio
    async def test_spot_order_uses_spot_symbol(
        self, client: HyperliquidClient, mock_ccxt: MagicMock
    ) -> None:
        request = OrderRequest(
            symbol="ETH", side=OrderSide.BUY, size=Decimal("2"), price=Decimal("3000")
        )

        result = await client.place_spot_order(request)

        args = mock_ccxt.return_value.create_order.call_args
        assert args.args[0] == "ETH/USDC"
        assert args.kwargs["params"]["reduceOnly"] is False
        assert result.category == "spot"

    @pytest.mark.asyncio
    async def test_vault_address_added_to_params(self, mock_ccxt: MagicMock) -> None:
        client = HyperliquidClient(
            ExchangeSettings(
                wallet_address="0xabc",
                private_key="0xkey",  # type: ignore[arg-type]
                vault_address="0xvault",
            )
        )
        request = OrderRequest(
            symbol="ETH", side=OrderSide.BUY, size=Decimal("1"), price=Decimal("3000")
        )

        await client.place_spot_order(request)

        params = mock_ccxt.return_value.create_order.call_args.kwargs["params"]
        assert params["vaultAddress"] == "0xvault"

    @pytest.mark.asyncio
    async def test_missing_fill_price_falls_back_to_request(
        self, client: HyperliquidClient, mock_ccxt: MagicMock
    ) -> None:
        mock_ccxt.return_value.create_order.return_value = {"id": "9"}
        request = OrderRequest(
            symbol="ETH", side=OrderSide.BUY, size=Decimal("1"), price=Decimal("2999.5")
        )

        result = await client.place_spot_order(request)

        assert result.price == Decimal("2999.5")


class TestLotSizing:
    @pytest.fixture
    def loaded(self, client: HyperliquidClient, mock_ccxt: MagicMock) -> HyperliquidClient:
        mock_ccxt.return_value.load_markets.return_value = {
            "ETH/USDC:USDC": {
                "precision": {"amount": 0.0001},
                "limits": {"amount": {"min": 0.001}},
            },
            "ETH/USDC": {"precision": {"amount": 0.01}, "limits": {"amount": {"min": None}}},
        }
        return client

    @pytest.mark.asyncio
    async def test_perp_size_rounded_down_to_step(self, loaded: HyperliquidClient) -> None:
        await loaded.connect()
        assert loaded.normalize_order_size("ETH", "perp", Decimal("1.23456")) == Decimal("1.2345")

    @pytest.mark.asyncio
    async def test_spot_uses_spot_market_step(self, loaded: HyperliquidClient) -> None:
        await loaded.connect()
        assert loaded.normalize_order_size("eth", "spot", Decimal("0.129")) == Decimal("0.12")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", ["0.0000000006", "0.00000125", "0.0009"])
    async def test_dust_below_minimum_is_zero(self, loaded: HyperliquidClient, size: str) -> None:
        await loaded.connect()
        assert loaded.normalize_order_size("ETH", "perp", Decimal(size)) == Decimal("0")

    def test_unknown_market_passes_through(self, client: HyperliquidClient) -> None:
        assert client.normalize_order_size("DOGE", "perp", Decimal("1.23456")) == Decimal("1.23456")
