"""Best-strategy selection across scored market snapshots.

Candidates are ranked by a staged comparator rather than a single sort key,
so each stage of the policy can be tested on its own:

  1. score floor   candidates below the floor rank after all others
  2. near tie      APYs within 0.01pp are ordered by score
  3. large gap     score gaps above 0.1 nudge the APY ordering
  4. default       descending APY

The first candidate with positive APY at or above the floor wins; if none
qualifies the head of the ranking is returned so the cycle always has a pick.
"""

from collections.abc import Iterable
from decimal import Decimal
from functools import cmp_to_key

from carry.config import SelectionSettings
from carry.logging import get_logger
from carry.models import HedgeDirection, MarketSnapshot, Strategy
from carry.strategy.scoring import ensure_score

logger = get_logger(__name__)

APY_TIE_THRESHOLD = Decimal("0.01")  # percentage points
SCORE_GAP_THRESHOLD = Decimal("0.1")
SCORE_GAP_WEIGHT = Decimal("0.01")

_ZERO = Decimal("0")
_ONE = Decimal("1")


def _finite_or_zero(value: Decimal | None) -> Decimal:
    if value is None or not value.is_finite():
        return _ZERO
    return value


def _sign(value: Decimal) -> Decimal:
    if value > 0:
        return _ONE
    if value < 0:
        return -_ONE
    return _ZERO


def compare_candidates(
    a: MarketSnapshot, b: MarketSnapshot, min_score: Decimal = _ZERO
) -> Decimal:
    """Order two candidates; negative means ``a`` ranks first.

    Args:
        a: First candidate.
        b: Second candidate.
        min_score: Score floor. Below-floor candidates always rank last.

    Returns:
        A signed Decimal suitable for ``functools.cmp_to_key``.
    """
    apy_diff = _finite_or_zero(b.annualized_funding_pct) - _finite_or_zero(
        a.annualized_funding_pct
    )
    a_score = _finite_or_zero(a.score)
    b_score = _finite_or_zero(b.score)

    # 1. score floor partition
    a_below = a_score < min_score
    b_below = b_score < min_score
    if a_below and not b_below:
        return _ONE
    if b_below and not a_below:
        return -_ONE

    score_diff = b_score - a_score

    # 2. near-tie on APY: higher score first
    if abs(apy_diff) < APY_TIE_THRESHOLD:
        return score_diff

    # 3. large score gap: nudge, never invert a wide APY edge
    if abs(score_diff) > SCORE_GAP_THRESHOLD:
        return apy_diff - _sign(apy_diff) * SCORE_GAP_WEIGHT * score_diff

    # 4. plain APY order
    return apy_diff


def is_allowed_base(base: str | None, allowed_bases: Iterable[str]) -> bool:
    if not base:
        return False
    return str(base).upper() in {b.upper() for b in allowed_bases}


def pick_leverage(max_leverage: Decimal, cap: Decimal = Decimal("2")) -> Decimal:
    """Cap the venue's max leverage for the carry trade, never below 1x."""
    if not max_leverage.is_finite() or max_leverage <= 0:
        return _ONE
    return max(_ONE, min(cap, max_leverage))


_DIRECTION_BY_HEDGE = {
    "Short": HedgeDirection.SHORT_PERP_LONG_SPOT,
    "Long": HedgeDirection.LONG_PERP_SHORT_SPOT,
}


def direction_for(hedge: str) -> HedgeDirection:
    """Map a snapshot's funding-collecting perp side to a hedge direction."""
    return _DIRECTION_BY_HEDGE.get(hedge, HedgeDirection.NEUTRAL)


class StrategySelector:
    """Chooses the single best carry strategy from a set of snapshots.

    Args:
        settings: Selection policy (score floor, leverage cap, allow-list).
    """

    def __init__(self, settings: SelectionSettings) -> None:
        self._settings = settings

    @property
    def min_score(self) -> Decimal:
        return self._settings.min_score

    def rank(self, snapshots: Iterable[MarketSnapshot]) -> list[MarketSnapshot]:
        """Filter to eligible candidates, score them and sort by preference."""
        candidates = [
            s
            for s in snapshots
            if s.annualized_funding_pct.is_finite()
            and is_allowed_base(s.base, self._settings.allowed_bases)
        ]
        for candidate in candidates:
            ensure_score(candidate)

        min_score = self._settings.min_score
        return sorted(
            candidates,
            key=cmp_to_key(lambda a, b: compare_candidates(a, b, min_score)),
        )

    def select(self, snapshots: Iterable[MarketSnapshot]) -> Strategy | None:
        """Return the best strategy, or None when no candidate is eligible."""
        ranked = self.rank(snapshots)
        if not ranked:
            return None

        min_score = self._settings.min_score
        pick = next(
            (
                s
                for s in ranked
                if s.annualized_funding_pct > 0 and s.score >= min_score
            ),
            None,
        )
        if pick is None:
            pick = ranked[0]
            logger.info(
                "strategy_fallback_pick",
                base=pick.base,
                apy=str(pick.annualized_funding_pct),
                score=str(pick.score),
                min_score=str(min_score),
            )

        return self.build_strategy(pick)

    def build_strategy(self, snapshot: MarketSnapshot) -> Strategy:
        return Strategy(
            pair=snapshot.pair,
            base=snapshot.base,
            apy=snapshot.annualized_funding_pct,
            direction=direction_for(snapshot.hedge),
            leverage=pick_leverage(snapshot.max_leverage, self._settings.max_leverage),
            score=ensure_score(snapshot),
        )
