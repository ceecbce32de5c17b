"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExchangeSettings(BaseSettings):
    """Hyperliquid connection settings."""

    model_config = SettingsConfigDict(env_prefix="HYPERLIQUID_")

    wallet_address: str = ""
    private_key: SecretStr = SecretStr("")
    vault_address: str = ""  # subaccount / vault trading on behalf of the wallet
    testnet: bool = False
    timeout_seconds: float = 15.0
    quote_asset: str = "USDC"


class TradingSettings(BaseSettings):
    """Hedge target for the rebalance loop."""

    model_config = SettingsConfigDict(env_prefix="TRADING_")

    mode: Literal["paper", "live"] = "paper"
    symbol: str = "ETH"
    leverage: Decimal = Decimal("1")
    quote_to_deploy: Decimal = Decimal("0")  # 0 = use full available balance
    rebalance_interval_hours: float = 8.0  # floored to 1h by the scheduler
    paper_virtual_equity: Decimal = Decimal("10000")  # starting quote balance in paper mode


class SelectionSettings(BaseSettings):
    """Strategy selection policy.

    The allow-list is curated by hand: only bases with both a liquid spot
    book and a perp market on the venue belong here.
    """

    model_config = SettingsConfigDict(env_prefix="SELECTION_")

    min_score: Decimal = Decimal("3.5")
    max_leverage: Decimal = Decimal("2")
    allowed_bases: list[str] = ["HYPE", "BTC", "ETH", "SOL", "PUMP", "XPL"]


class MarketDataSettings(BaseSettings):
    """Market data fetch and fallback configuration."""

    model_config = SettingsConfigDict(env_prefix="MARKET_DATA_")

    cache_ttl_seconds: float = 600.0  # last-known-good snapshots served for 10 min


class NotifierSettings(BaseSettings):
    """Telegram notification settings."""

    model_config = SettingsConfigDict(env_prefix="TELEGRAM_")

    enabled: bool = True
    bot_token: SecretStr = SecretStr("")
    chat_id: str = ""
    timeout_seconds: float = 10.0


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    exchange: ExchangeSettings = ExchangeSettings()
    trading: TradingSettings = TradingSettings()
    selection: SelectionSettings = SelectionSettings()
    market_data: MarketDataSettings = MarketDataSettings()
    notifier: NotifierSettings = NotifierSettings()
