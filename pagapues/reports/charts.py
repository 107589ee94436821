"""
Chart data.

Read-only series for the UI's bar and doughnut charts. The UI decides
how to draw them; this module only shapes the numbers.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from pydantic import BaseModel, Field

from pagapues.engine import calculate_expense_stats
from pagapues.models.ledger import Balance, Expense, Participant


class ChartData(BaseModel):
    """Parallel lists of labels and values."""

    labels: list[str] = Field(default_factory=list)
    values: list[float] = Field(default_factory=list)
    percentages: list[int] = Field(
        default_factory=list,
        description="Whole-number share of the total for each value"
    )

    @property
    def is_empty(self) -> bool:
        return not any(self.values)

    def as_dict(self) -> dict[str, float]:
        return dict(zip(self.labels, self.values))


def _percentages(values: list[float]) -> list[int]:
    total = sum(values)
    if total <= 0:
        return [0 for _ in values]
    return [
        int((Decimal(str(v)) / Decimal(str(total)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        for v in values
    ]


def build_paid_chart(
    participants: Sequence[Participant],
    expenses: Sequence[Expense],
) -> ChartData:
    """How much each participant paid, in participant order."""
    stats = calculate_expense_stats(participants, expenses)
    values = [stats.paid_per_person.get(p.id, 0.0) for p in participants]
    return ChartData(
        labels=[p.name for p in participants],
        values=values,
        percentages=_percentages(values),
    )


def build_balance_chart(
    participants: Sequence[Participant],
    balances: Sequence[Balance],
) -> ChartData:
    """Net balance of each participant; percentages are left empty."""
    by_id = {b.participant_id: b.net_amount for b in balances}
    return ChartData(
        labels=[p.name for p in participants],
        values=[by_id.get(p.id, 0.0) for p in participants],
    )
