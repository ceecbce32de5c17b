"""Tests for component wiring in carry.main."""

from unittest.mock import patch

import pytest

from carry.config import AppSettings
from carry.exchange.hyperliquid_client import HyperliquidClient
from carry.exchange.paper_client import PaperExchangeClient
from carry.main import _build_components
from carry.notification.notifier import NullNotifier
from carry.notification.telegram import TelegramNotifier
from carry.scheduler import RebalanceScheduler


@pytest.fixture(autouse=True)
def mock_ccxt():
    with patch("carry.exchange.hyperliquid_client.ccxt_async.hyperliquid") as cls:
        yield cls


def test_paper_mode_wraps_live_client(mock_settings: AppSettings) -> None:
    components = _build_components(mock_settings)

    assert isinstance(components["exchange_client"], PaperExchangeClient)
    assert isinstance(components["notifier"], NullNotifier)
    assert isinstance(components["scheduler"], RebalanceScheduler)
    assert components["scheduler"].interval_seconds == 8 * 3600
    assert components["snapshot_cache"].ttl_seconds == 600.0


def test_live_mode_uses_hyperliquid_and_telegram(mock_settings: AppSettings) -> None:
    mock_settings.trading.mode = "live"
    mock_settings.notifier.enabled = True

    components = _build_components(mock_settings)

    assert isinstance(components["exchange_client"], HyperliquidClient)
    assert isinstance(components["notifier"], TelegramNotifier)
