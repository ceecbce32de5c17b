"""Position layer -- hedge sizing, exposure summary and the rebalance engine."""

from carry.position.exposure import summarize_exposure
from carry.position.rebalancer import RebalanceEngine
from carry.position.sizing import calculate_hedge_sizes

__all__ = ["RebalanceEngine", "calculate_hedge_sizes", "summarize_exposure"]
