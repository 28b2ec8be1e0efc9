from .budget_tracker import BudgetTracker
from .eviction_sweeper import EvictionReport, EvictionSweeper

__all__ = [
    "BudgetTracker",
    "EvictionReport",
    "EvictionSweeper",
]
