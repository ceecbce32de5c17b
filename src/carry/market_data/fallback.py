"""Static sample snapshots served when live data and the cache both fail."""

from decimal import Decimal

from carry.models import MarketSnapshot
from carry.strategy.scoring import score_snapshot


def fallback_snapshots() -> list[MarketSnapshot]:
    """Return fresh, scored copies of the sample rows."""
    rows = [
        MarketSnapshot(
            pair="BTC-USD",
            base="BTC",
            mark_price=Decimal("67892.12"),
            oracle_price=Decimal("67840.15"),
            funding_rate=Decimal("0.00015"),
            open_interest=Decimal("1845329000"),
            volume_24h=Decimal("2465870000"),
            premium=Decimal("0.00042"),
            max_leverage=Decimal("50"),
        ),
        MarketSnapshot(
            pair="ETH-USD",
            base="ETH",
            mark_price=Decimal("3542.76"),
            oracle_price=Decimal("3529.44"),
            funding_rate=Decimal("-0.00009"),
            open_interest=Decimal("842511000"),
            volume_24h=Decimal("1265772000"),
            premium=Decimal("-0.00031"),
            max_leverage=Decimal("30"),
        ),
        MarketSnapshot(
            pair="SOL-USD",
            base="SOL",
            mark_price=Decimal("188.63"),
            oracle_price=Decimal("187.9"),
            funding_rate=Decimal("0.00021"),
            open_interest=Decimal("265194000"),
            volume_24h=Decimal("396452000"),
            premium=Decimal("0.00067"),
            max_leverage=Decimal("25"),
        ),
    ]
    for row in rows:
        row.score = score_snapshot(row)
    return rows
