"""Shared test fixtures for the funding carry rebalancer."""

from decimal import Decimal

import pytest

from carry.config import (
    AppSettings,
    ExchangeSettings,
    MarketDataSettings,
    NotifierSettings,
    SelectionSettings,
    TradingSettings,
)
from carry.models import MarketSnapshot


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (paper mode, dummy credentials)."""
    return AppSettings(
        log_level="DEBUG",
        exchange=ExchangeSettings(
            wallet_address="0xtest-wallet",
            private_key="test-private-key",  # type: ignore[arg-type]
            testnet=True,
        ),
        trading=TradingSettings(
            mode="paper",
            symbol="ETH",
            leverage=Decimal("1"),
            quote_to_deploy=Decimal("0"),
            rebalance_interval_hours=8,
        ),
        selection=SelectionSettings(),
        market_data=MarketDataSettings(),
        notifier=NotifierSettings(enabled=False),
    )


@pytest.fixture
def make_snapshot():
    """Factory for MarketSnapshot with liquid, low-risk defaults."""

    def _make(
        base: str = "ETH",
        funding_rate: str = "0.0001",
        mark_price: str = "3000",
        oracle_price: str = "3000",
        open_interest: str = "500000000",
        volume_24h: str = "1000000000",
        premium: str = "0.0001",
        max_leverage: str = "25",
        score: str | None = None,
    ) -> MarketSnapshot:
        return MarketSnapshot(
            pair=f"{base}-USD",
            base=base,
            mark_price=Decimal(mark_price),
            oracle_price=Decimal(oracle_price),
            funding_rate=Decimal(funding_rate),
            open_interest=Decimal(open_interest),
            volume_24h=Decimal(volume_24h),
            premium=Decimal(premium),
            max_leverage=Decimal(max_leverage),
            score=Decimal(score) if score is not None else None,
        )

    return _make
