"""Hedge size calculation for the long-spot/short-perp carry trade.

All calculations use Decimal arithmetic exclusively -- no float conversions.

Sizing flow:
1. target_notional = quote_amount * hedge_ratio
2. spot_size = target_notional / price          (unlevered, 1:1)
3. perp_size = target_notional * leverage / price

Only the perp leg is scaled by leverage; the spot leg is always 1:1.
"""

from decimal import Decimal

from carry.exceptions import InvalidPriceError
from carry.models import HedgeTarget

_ZERO = Decimal("0")


def calculate_hedge_sizes(
    quote_amount: Decimal,
    price: Decimal,
    leverage: Decimal = Decimal("1"),
    hedge_ratio: Decimal = Decimal("1"),
) -> HedgeTarget:
    """Convert a quote budget into spot and perp sizes in base units.

    Args:
        quote_amount: Budget in quote currency. Non-finite or negative
            budgets are treated as nothing to deploy.
        price: Reference price in quote currency per base unit.
        leverage: Perp leverage multiplier.
        hedge_ratio: Fraction of the budget to hedge (1 = full hedge).

    Returns:
        HedgeTarget with non-negative spot and perp sizes.

    Raises:
        InvalidPriceError: If price is not finite and positive.
    """
    if not price.is_finite() or price <= 0:
        raise InvalidPriceError(
            f"A positive price is required to compute hedge sizes, got {price}"
        )

    safe_quote = quote_amount if quote_amount.is_finite() and quote_amount > 0 else _ZERO
    target_notional = safe_quote * hedge_ratio

    return HedgeTarget(
        spot_size=target_notional / price,
        perp_size=target_notional * leverage / price,
    )
