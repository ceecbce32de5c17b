"""Strategy layer -- snapshot scoring, best-strategy selection, update schedule."""

from carry.strategy.schedule import align_to_strategy_schedule
from carry.strategy.scoring import score_snapshot
from carry.strategy.selector import StrategySelector, compare_candidates

__all__ = [
    "StrategySelector",
    "align_to_strategy_schedule",
    "compare_candidates",
    "score_snapshot",
]
