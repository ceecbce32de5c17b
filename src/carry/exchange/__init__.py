"""Exchange client layer -- Hyperliquid API integration via ccxt, plus paper mode."""

from carry.exchange.client import ExchangeClient
from carry.exchange.hyperliquid_client import HyperliquidClient
from carry.exchange.paper_client import PaperExchangeClient
from carry.exchange.types import (
    extract_reference_price,
    round_to_step,
    select_quote_balance,
    to_decimal,
)

__all__ = [
    "ExchangeClient",
    "HyperliquidClient",
    "PaperExchangeClient",
    "extract_reference_price",
    "round_to_step",
    "select_quote_balance",
    "to_decimal",
]
