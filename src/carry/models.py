"""Shared data models for the funding carry rebalancer.

CRITICAL: All monetary values use Decimal. Never use float for prices, sizes, or rates.
Unparsable upstream numbers are carried as Decimal("NaN") and checked with
``is_finite()`` before any ordering comparison (NaN comparisons raise).
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

_HOURS_PER_YEAR = Decimal("8760")  # 365 * 24
_ZERO = Decimal("0")


class OrderSide(str, Enum):
    """Order direction."""

    BUY = "buy"
    SELL = "sell"


class HedgeDirection(str, Enum):
    """Which leg is short in the carry trade."""

    SHORT_PERP_LONG_SPOT = "Short perp / Long spot"
    LONG_PERP_SHORT_SPOT = "Long perp / Short spot"
    NEUTRAL = "Neutral"


class MarketDataSource(str, Enum):
    """Where a set of market snapshots came from."""

    LIVE = "live"
    CACHE = "cache"
    FALLBACK = "fallback"


class RebalanceStatus(str, Enum):
    """Outcome of a rebalance that did not raise."""

    PLACED = "placed"
    BALANCED = "balanced"  # every delta was exactly zero
    NO_DEPLOY = "no_deploy"  # nothing to deploy, no orders attempted


@dataclass
class MarketSnapshot:
    """Current market state of one perpetual instrument."""

    pair: str
    base: str
    mark_price: Decimal
    oracle_price: Decimal
    funding_rate: Decimal  # per funding period, sign-carrying
    open_interest: Decimal = _ZERO
    volume_24h: Decimal = _ZERO
    premium: Decimal = _ZERO  # (mark - oracle) / oracle
    max_leverage: Decimal = Decimal("NaN")
    funding_interval_hours: int = 1
    score: Decimal | None = None

    @property
    def periods_per_year(self) -> Decimal:
        interval = self.funding_interval_hours if self.funding_interval_hours > 0 else 1
        return _HOURS_PER_YEAR / Decimal(interval)

    @property
    def annualized_funding_pct(self) -> Decimal:
        """Funding rate annualized as a simple (non-compounding) percentage."""
        return self.funding_rate * self.periods_per_year * Decimal("100")

    @property
    def hedge(self) -> str:
        """Perp side that collects funding: "Short", "Long" or "-"."""
        if not self.funding_rate.is_finite() or self.funding_rate == 0:
            return "-"
        return "Short" if self.funding_rate > 0 else "Long"


@dataclass(frozen=True)
class Strategy:
    """The single trade selected for the current evaluation cycle."""

    pair: str
    base: str
    apy: Decimal
    direction: HedgeDirection
    leverage: Decimal
    score: Decimal


@dataclass
class Position:
    """Exposure held on the exchange for one instrument and product kind."""

    symbol: str
    size: Decimal  # signed, in base units
    kind: str  # "spot" or "perp"; matched by substring


@dataclass
class Balance:
    """Free and total holdings of one asset."""

    asset: str
    available: Decimal
    total: Decimal = _ZERO


@dataclass
class HedgeTarget:
    """Desired exposure. Both sizes are magnitudes; the perp leg is short."""

    spot_size: Decimal
    perp_size: Decimal


@dataclass
class Exposure:
    """Signed exposure currently held (short perp is negative)."""

    spot_size: Decimal = _ZERO
    perp_size: Decimal = _ZERO


@dataclass
class RebalancePlan:
    """Signed deltas needed to move from current to target exposure."""

    target: HedgeTarget
    current: Exposure
    spot_delta: Decimal
    perp_delta: Decimal

    @property
    def is_deployable(self) -> bool:
        return self.target.spot_size > 0 or self.target.perp_size > 0


@dataclass
class OrderRequest:
    """Request to place an order."""

    symbol: str
    side: OrderSide
    size: Decimal
    price: Decimal
    reduce_only: bool = False


@dataclass
class OrderResult:
    """Acknowledgement of a placed order."""

    order_id: str
    symbol: str
    side: OrderSide
    size: Decimal
    price: Decimal
    category: str  # "spot" or "perp"
    timestamp: float = field(default_factory=time.time)
    is_simulated: bool = False


@dataclass
class RebalanceResult:
    """What a rebalance run decided and which orders it placed."""

    status: RebalanceStatus
    plan: RebalancePlan
    price: Decimal
    orders: list[OrderResult] = field(default_factory=list)

    def order_for(self, category: str) -> OrderResult | None:
        return next((o for o in self.orders if o.category == category), None)


@dataclass
class MarketDataResult:
    """Snapshots for one cycle plus provenance."""

    snapshots: list[MarketSnapshot]
    source: MarketDataSource
    scheduled_at: datetime
    error: str | None = None
