"""Rebalance engine: diff current vs target exposure and place the gap.

The same diff serves both the first hedge (current exposure is zero) and
every later rebalance, so the two flows cannot drift apart.

  spot_delta = target_spot - current_spot
  perp_delta = -target_perp - current_perp   (target perp leg is short)

Each non-zero leg becomes one order at the reference price, spot first,
rounded down to the venue's lot size. A zero delta, or one that rounds
below the minimum order size, places nothing, so re-running against a
balanced book is a no-op. A failure after a leg was placed is surfaced as PartialHedgeError;
placed legs are never unwound automatically.
"""

from collections.abc import Awaitable, Callable
from decimal import Decimal

from carry.exceptions import OrderPlacementError, PartialHedgeError
from carry.exchange.client import ExchangeClient
from carry.logging import get_logger
from carry.models import (
    Exposure,
    OrderRequest,
    OrderResult,
    OrderSide,
    RebalancePlan,
    RebalanceResult,
    RebalanceStatus,
)
from carry.position.sizing import calculate_hedge_sizes

logger = get_logger(__name__)

_HEDGE_RATIO = Decimal("1")


def _is_reducing(delta: Decimal, current: Decimal) -> bool:
    """True when an order of ``delta`` only shrinks ``current`` toward zero."""
    if current == 0 or delta == 0:
        return False
    opposite = (delta > 0) != (current > 0)
    return opposite and abs(delta) <= abs(current)


class RebalanceEngine:
    """Computes hedge deltas and places the orders that close them.

    Args:
        exchange: Client used for spot and perp order placement.
    """

    def __init__(self, exchange: ExchangeClient) -> None:
        self._exchange = exchange

    def compute_plan(
        self,
        current: Exposure,
        target_budget: Decimal,
        price: Decimal,
        leverage: Decimal,
    ) -> RebalancePlan:
        """Diff the current exposure against the target for a quote budget.

        Raises:
            InvalidPriceError: If price is not finite and positive.
        """
        target = calculate_hedge_sizes(
            quote_amount=target_budget,
            price=price,
            leverage=leverage,
            hedge_ratio=_HEDGE_RATIO,
        )
        return RebalancePlan(
            target=target,
            current=current,
            spot_delta=target.spot_size - current.spot_size,
            perp_delta=-target.perp_size - current.perp_size,
        )

    async def execute(
        self, symbol: str, plan: RebalancePlan, price: Decimal
    ) -> RebalanceResult:
        """Place at most one spot and one perp order to realise ``plan``.

        Raises:
            OrderPlacementError: If the first attempted order fails.
            PartialHedgeError: If an order fails after another was placed.
        """
        if not plan.is_deployable:
            logger.info(
                "rebalance_no_deploy",
                symbol=symbol,
                target_spot=str(plan.target.spot_size),
                target_perp=str(plan.target.perp_size),
            )
            return RebalanceResult(status=RebalanceStatus.NO_DEPLOY, plan=plan, price=price)

        placed: list[OrderResult] = []

        spot_size = self._order_size(symbol, "spot", plan.spot_delta)
        if spot_size > 0:
            request = OrderRequest(
                symbol=symbol,
                side=OrderSide.BUY if plan.spot_delta > 0 else OrderSide.SELL,
                size=spot_size,
                price=price,
            )
            placed.append(
                await self._place("spot", self._exchange.place_spot_order, request, placed)
            )

        perp_size = self._order_size(symbol, "perp", plan.perp_delta)
        if perp_size > 0:
            request = OrderRequest(
                symbol=symbol,
                side=OrderSide.BUY if plan.perp_delta > 0 else OrderSide.SELL,
                size=perp_size,
                price=price,
                reduce_only=_is_reducing(plan.perp_delta, plan.current.perp_size),
            )
            placed.append(
                await self._place("perp", self._exchange.place_perp_order, request, placed)
            )

        status = RebalanceStatus.PLACED if placed else RebalanceStatus.BALANCED
        logger.info(
            "rebalance_executed",
            symbol=symbol,
            status=status.value,
            orders=len(placed),
            spot_delta=str(plan.spot_delta),
            perp_delta=str(plan.perp_delta),
            price=str(price),
        )
        return RebalanceResult(status=status, plan=plan, price=price, orders=placed)

    async def rebalance(
        self,
        symbol: str,
        current: Exposure,
        target_budget: Decimal,
        price: Decimal,
        leverage: Decimal,
    ) -> RebalanceResult:
        """Compute the plan for ``current`` and execute it."""
        plan = self.compute_plan(current, target_budget, price, leverage)
        return await self.execute(symbol, plan, price)

    def _order_size(self, symbol: str, leg: str, delta: Decimal) -> Decimal:
        """Lot-size the absolute delta; 0 means no order for this leg."""
        if delta == 0:
            return Decimal("0")
        size = self._exchange.normalize_order_size(symbol, leg, abs(delta))
        if size <= 0:
            logger.info("order_below_lot_size", leg=leg, symbol=symbol, delta=str(delta))
            return Decimal("0")
        return size

    async def _place(
        self,
        leg: str,
        place_fn: Callable[[OrderRequest], Awaitable[OrderResult]],
        request: OrderRequest,
        placed: list[OrderResult],
    ) -> OrderResult:
        logger.info(
            "placing_order",
            leg=leg,
            symbol=request.symbol,
            side=request.side.value,
            size=str(request.size),
            price=str(request.price),
            reduce_only=request.reduce_only,
        )
        try:
            return await place_fn(request)
        except Exception as e:
            if placed:
                raise PartialHedgeError(
                    f"{leg} order failed after {len(placed)} leg(s) placed: {e}",
                    placed=list(placed),
                    failed_leg=leg,
                ) from e
            raise OrderPlacementError(f"{leg} order failed: {e}") from e
