"""Parse the venue's ``metaAndAssetCtxs`` response into MarketSnapshots.

HYPERLIQUID CONVENTION: funding is quoted per hour. Positive funding means
longs pay shorts, so long spot + short perp COLLECTS when rate > 0.
"""

from decimal import Decimal

from carry.exceptions import MarketDataError
from carry.exchange.types import to_decimal
from carry.logging import get_logger
from carry.models import MarketSnapshot
from carry.strategy.scoring import score_snapshot

logger = get_logger(__name__)

_ZERO = Decimal("0")
FUNDING_INTERVAL_HOURS = 1


def parse_market_contexts(raw: object) -> list[MarketSnapshot]:
    """Zip the perp universe with its asset contexts and score each row.

    Missing numeric fields default to 0, except max leverage which stays
    NaN so scoring can apply its own default.

    Raises:
        MarketDataError: If the response shape is not ``[meta, contexts]``.
    """
    if not isinstance(raw, list) or len(raw) < 2:
        raise MarketDataError("Malformed market context response: expected [meta, contexts]")

    meta, contexts = raw[0], raw[1]
    universe = meta.get("universe") if isinstance(meta, dict) else None
    if not isinstance(universe, list) or not isinstance(contexts, list):
        raise MarketDataError("Malformed market context response: missing universe")

    snapshots: list[MarketSnapshot] = []
    for index, instrument in enumerate(universe):
        if not isinstance(instrument, dict) or instrument.get("isDelisted"):
            continue
        name = str(instrument.get("name") or "").strip()
        if not name:
            continue

        ctx = contexts[index] if index < len(contexts) and isinstance(contexts[index], dict) else {}
        raw_leverage = str(instrument.get("maxLeverage", "")).lower().replace("x", "")

        snapshot = MarketSnapshot(
            pair=f"{name.upper()}-USD",
            base=name.upper(),
            mark_price=to_decimal(ctx.get("markPx"), _ZERO),
            oracle_price=to_decimal(ctx.get("oraclePx"), _ZERO),
            funding_rate=to_decimal(ctx.get("funding"), _ZERO),
            open_interest=to_decimal(ctx.get("openInterest"), _ZERO),
            volume_24h=to_decimal(ctx.get("dayNtlVlm"), _ZERO),
            premium=to_decimal(ctx.get("premium"), _ZERO),
            max_leverage=to_decimal(raw_leverage),
            funding_interval_hours=FUNDING_INTERVAL_HOURS,
        )
        snapshot.score = score_snapshot(snapshot)
        snapshots.append(snapshot)

    logger.debug("market_contexts_parsed", count=len(snapshots))
    return snapshots
