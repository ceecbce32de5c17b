"""Aggregate exchange positions into net spot and perp exposure."""

from collections.abc import Iterable

from carry.models import Exposure, Position


def summarize_exposure(positions: Iterable[Position], symbol: str | None) -> Exposure:
    """Sum signed sizes for ``symbol`` into spot and perp buckets.

    Symbols match case-insensitively. A position whose kind contains
    "perp" (any case) counts as perp, anything else as spot. Split fills
    reported as separate records are summed; zero or non-finite sizes
    are skipped.

    Args:
        positions: Position records reported by the exchange.
        symbol: Instrument base symbol (e.g. "ETH"). Empty means no exposure.

    Returns:
        Exposure with signed spot and perp sizes.
    """
    exposure = Exposure()
    if not symbol:
        return exposure

    wanted = symbol.upper()
    for position in positions:
        if not position.symbol or position.symbol.upper() != wanted:
            continue
        if not position.size.is_finite() or position.size == 0:
            continue

        if "perp" in (position.kind or "").lower():
            exposure.perp_size += position.size
        else:
            exposure.spot_size += position.size

    return exposure
