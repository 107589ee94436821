"""
Display formatting for amounts and expenses.

Amounts are shown rounded to whole currency units with no decimals
(`$ 1.234` for the default es-CO style). Only display rounds: the
engine keeps full floating point precision internally.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from pagapues.models.ledger import Expense, Participant


def format_currency(
    amount: float,
    symbol: str = "$",
    thousands_separator: str = ".",
) -> str:
    """
    Format an amount as whole currency units.

    Halves round away from zero. Negative amounts carry a leading minus:
    `-$ 1.500`.
    """
    units = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if units < 0 else ""
    digits = f"{abs(int(units)):,}".replace(",", thousands_separator)
    return f"{sign}{symbol} {digits}"


def format_signed_currency(
    amount: float,
    symbol: str = "$",
    thousands_separator: str = ".",
    epsilon: float = 0.01,
) -> str:
    """Like format_currency, with a '+' for amounts owed to the participant."""
    formatted = format_currency(amount, symbol, thousands_separator)
    return f"+{formatted}" if amount > epsilon else formatted


def describe_involvement(expense: Expense, participants: Sequence[Participant]) -> str:
    """Say who shares an expense: 'everyone' or 'N people'."""
    count = len(expense.involved_ids)
    if participants and count == len(participants):
        return "everyone"
    return f"{count} person" if count == 1 else f"{count} people"
