"""Multi-factor desirability score for funding carry candidates.

Maps one MarketSnapshot to a 0-10 score from four components, each
normalized to the 0-1 range:

  funding     35%  annualized funding, centred so 0% APY scores 0.5
  volume      25%  log-scaled 24h notional volume
  risk        20%  penalizes premium and mark/oracle drift
  efficiency  20%  log-scaled open interest and available leverage

The score is total: missing or non-finite inputs degrade to the worst-case
component value instead of raising. It is recomputed on every cycle and
never persisted.

CRITICAL: All computations use Decimal.
"""

from decimal import ROUND_HALF_UP, Decimal

from carry.models import MarketSnapshot

MAX_APY_CONSIDERED = Decimal("200")  # %
MAX_VOLUME = Decimal("5000000000")  # $5B reference
MAX_OPEN_INTEREST = Decimal("2000000000")  # $2B reference
MAX_PREMIUM_DEVIATION = Decimal("0.0025")  # 0.25%
MAX_BASIS_DRIFT = Decimal("0.01")  # 1%
MAX_LEVERAGE = Decimal("50")

WEIGHTS: dict[str, Decimal] = {
    "funding": Decimal("0.35"),
    "volume": Decimal("0.25"),
    "risk": Decimal("0.20"),
    "efficiency": Decimal("0.20"),
}

_ZERO = Decimal("0")
_ONE = Decimal("1")


def clamp(value: Decimal, low: Decimal = _ZERO, high: Decimal = _ONE) -> Decimal:
    return min(high, max(low, value))


def _finite_or(value: Decimal | None, default: Decimal) -> Decimal:
    if value is None or not value.is_finite():
        return default
    return value


def normalize_log(value: Decimal, reference: Decimal) -> Decimal:
    """log10(value) / log10(reference), clamped. Non-positive values score 0."""
    if not value.is_finite() or value <= 0:
        return _ZERO
    return clamp(value.log10() / reference.log10())


def funding_component(snapshot: MarketSnapshot) -> Decimal:
    apy = _finite_or(snapshot.annualized_funding_pct, _ZERO)
    return clamp((apy + MAX_APY_CONSIDERED) / (MAX_APY_CONSIDERED * 2))


def volume_component(snapshot: MarketSnapshot) -> Decimal:
    volume = _finite_or(snapshot.volume_24h, _ZERO)
    return normalize_log(volume + 1, MAX_VOLUME)


def risk_component(snapshot: MarketSnapshot) -> Decimal:
    """1 minus a blend of premium and basis-drift penalties.

    Basis price is the oracle price, falling back to the mark price, then
    to 1 when both are zero or missing.
    """
    premium = abs(_finite_or(snapshot.premium, _ZERO))
    premium_penalty = clamp(premium / MAX_PREMIUM_DEVIATION)

    mark = snapshot.mark_price if snapshot.mark_price.is_finite() else None
    oracle = snapshot.oracle_price if snapshot.oracle_price.is_finite() else mark
    basis = oracle or mark or _ONE
    reference = mark if mark is not None else (oracle if oracle is not None else _ZERO)
    drift = abs(reference - basis) / abs(basis)
    drift_penalty = clamp(drift / MAX_BASIS_DRIFT)

    return _ONE - clamp(premium_penalty * Decimal("0.6") + drift_penalty * Decimal("0.4"))


def efficiency_component(snapshot: MarketSnapshot) -> Decimal:
    open_interest = _finite_or(snapshot.open_interest, _ZERO)
    leverage = _finite_or(snapshot.max_leverage, _ONE)
    leverage_score = clamp(leverage / MAX_LEVERAGE)
    oi_score = normalize_log(open_interest + 1, MAX_OPEN_INTEREST)
    return clamp(oi_score * Decimal("0.6") + leverage_score * Decimal("0.4"))


def score_snapshot(snapshot: MarketSnapshot | None) -> Decimal:
    """Score a snapshot on the 0-10 scale, quantized to 2 decimal places.

    Args:
        snapshot: Market state for one instrument. None scores 0.

    Returns:
        Weighted composite score in [0, 10].
    """
    if snapshot is None:
        return Decimal("0.00")

    weighted = (
        WEIGHTS["funding"] * funding_component(snapshot)
        + WEIGHTS["volume"] * volume_component(snapshot)
        + WEIGHTS["risk"] * risk_component(snapshot)
        + WEIGHTS["efficiency"] * efficiency_component(snapshot)
    )
    return (clamp(weighted) * 10).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def ensure_score(snapshot: MarketSnapshot) -> Decimal:
    """Return the snapshot's score, computing and attaching it if absent."""
    if snapshot.score is None or not snapshot.score.is_finite():
        snapshot.score = score_snapshot(snapshot)
    return snapshot.score
