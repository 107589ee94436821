"""
Settlement Engine Package

Pure, deterministic functions: (participants, expenses) -> balances ->
settlements, plus display statistics. No I/O, no configuration, no state.
"""

from pagapues.engine.balances import calculate_balances
from pagapues.engine.settlement import calculate_settlements, round_cents
from pagapues.engine.stats import calculate_expense_stats

__all__ = [
    "calculate_balances",
    "calculate_expense_stats",
    "calculate_settlements",
    "round_cents",
]
