"""Exchange response helpers and utility functions.

Upstream payloads carry numbers as strings, floats or ints. Everything is
converted through Decimal(str(value)); anything unparsable becomes the
caller's default (NaN unless stated) so it can be rejected with
``is_finite()`` rather than crashing a parse loop.
"""

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation

from carry.exceptions import PriceUnavailableError
from carry.models import Balance

QUOTE_ASSETS: tuple[str, ...] = ("USD", "USDC", "USDT")


def to_decimal(value: object, default: Decimal = Decimal("NaN")) -> Decimal:
    """Parse a finite Decimal from an upstream value, else return default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    return result if result.is_finite() else default


def extract_reference_price(trades: object, symbol: str = "") -> Decimal:
    """Take the reference price from the first (most recent) trade record.

    Accepts dict records with ``price`` or ``px``, list records whose first
    element is the price, or bare numbers.

    Raises:
        PriceUnavailableError: If there are no trades or the price is not
            finite and positive.
    """
    if not isinstance(trades, list) or not trades:
        raise PriceUnavailableError(f"No trade data returned for {symbol}")

    first = trades[0]
    if isinstance(first, dict):
        raw = first.get("price") or first.get("px")
    elif isinstance(first, (list, tuple)):
        raw = first[0] if first else None
    else:
        raw = first

    price = to_decimal(raw)
    if not price.is_finite() or price <= 0:
        raise PriceUnavailableError(f"Invalid price for {symbol}: {raw}")
    return price


def select_quote_balance(
    balances: Iterable[Balance], quote_assets: Iterable[str] = QUOTE_ASSETS
) -> Decimal:
    """Return the available amount of the highest-priority quote asset held.

    ``quote_assets`` is in priority order; the first asset with a balance
    wins regardless of where it appears in ``balances``.
    """
    by_asset = {(b.asset or "").upper(): b for b in balances}
    for asset in quote_assets:
        balance = by_asset.get(asset.upper())
        if balance is not None:
            available = balance.available
            return available if available.is_finite() else Decimal("0")
    return Decimal("0")


def round_to_step(value: Decimal, step: Decimal) -> Decimal:
    """Round value down to the nearest step increment."""
    if not step.is_finite() or step <= 0:
        return value
    return (value // step) * step
