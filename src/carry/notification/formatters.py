"""Plain-text message builders for rebalance notifications."""

from decimal import ROUND_HALF_UP, Decimal

from carry.exceptions import PartialHedgeError
from carry.models import OrderResult, RebalanceResult, RebalanceStatus, Strategy


def format_number(value: Decimal, places: int = 4) -> str:
    if not value.is_finite():
        return "0"
    quantized = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    text = f"{quantized:,f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def format_usd(value: Decimal) -> str:
    if not value.is_finite():
        return "-"
    return f"${format_number(value, places=2)}"


def format_leverage(value: Decimal) -> str:
    if not value.is_finite():
        return "-"
    return f"{format_number(value, places=1)}x"


def _describe_order(order: OrderResult | None) -> str | None:
    if order is None:
        return None
    return f"{order.side.value} {format_number(order.size)} @ {format_usd(order.price)}"


def build_strategy_message(
    context: str,
    symbol: str,
    leverage: Decimal,
    result: RebalanceResult,
    strategy: Strategy | None = None,
) -> str:
    """Summarize a completed cycle.

    Args:
        context: "initial" for the first hedge, anything else for a rebalance.
        symbol: Traded base symbol.
        leverage: Perp leverage used for sizing.
        result: Outcome returned by the rebalance engine.
        strategy: Best strategy selected this cycle, if any.
    """
    headline = (
        "New carry hedge in place"
        if context == "initial"
        else "Carry hedge rebalanced"
    )
    target = result.plan.target
    lines = [
        headline,
        f"Pair: {symbol} ({format_leverage(leverage)})",
        f"Reference price: {format_usd(result.price)}",
        "",
        "Target exposure",
        f"- Spot: {format_number(target.spot_size)} {symbol}",
        f"- Perp: short {format_number(target.perp_size)} {symbol}",
    ]

    if result.status == RebalanceStatus.NO_DEPLOY:
        lines.extend(["", "No notional available to deploy; no orders placed."])
    elif result.status == RebalanceStatus.BALANCED:
        lines.extend(["", "Book already balanced; no orders placed."])
    else:
        actions = []
        spot_action = _describe_order(result.order_for("spot"))
        perp_action = _describe_order(result.order_for("perp"))
        if spot_action:
            actions.append(f"- Spot: {spot_action}")
        if perp_action:
            actions.append(f"- Perp: {perp_action}")
        lines.extend(["", "Actions", *actions])

    if strategy is not None:
        lines.extend(
            [
                "",
                f"Best strategy: {strategy.pair} {strategy.direction.value}",
                f"APY {format_number(strategy.apy, places=2)}% | score "
                f"{format_number(strategy.score, places=2)} | {format_leverage(strategy.leverage)}",
            ]
        )

    return "\n".join(lines)


def build_failure_message(context: str, symbol: str, error: Exception) -> str:
    """Describe a failed cycle, flagging partially placed hedges."""
    if isinstance(error, PartialHedgeError):
        placed = ", ".join(
            f"{o.category} {_describe_order(o)}" for o in error.placed
        )
        return "\n".join(
            [
                f"PARTIAL HEDGE on {symbol} ({context})",
                f"Placed: {placed}",
                f"Failed leg: {error.failed_leg}",
                f"Error: {error}",
                "The placed leg was NOT unwound; review exposure manually.",
            ]
        )
    return "\n".join(
        [
            f"Rebalance cycle failed for {symbol} ({context})",
            f"{type(error).__name__}: {error}",
            "Next attempt at the next scheduled tick.",
        ]
    )
