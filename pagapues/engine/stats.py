"""Group statistics: total spent, average per person, amount paid by each."""

from typing import Iterable, Sequence

from pagapues.models.ledger import Expense, ExpenseStats, Participant


def calculate_expense_stats(
    participants: Sequence[Participant],
    expenses: Iterable[Expense],
) -> ExpenseStats:
    """
    Summarize who paid what.

    The average is 0 for an empty group. Every participant appears in
    `paid_per_person`, with 0 if they never paid; payer ids that are not
    participants are counted too.
    """
    paid_per_person: dict[str, float] = {p.id: 0.0 for p in participants}
    total_group = 0.0

    for expense in expenses:
        total_group += expense.amount
        paid_per_person[expense.payer_id] = paid_per_person.get(expense.payer_id, 0.0) + expense.amount

    return ExpenseStats(
        total_group=total_group,
        average_per_person=total_group / len(participants) if participants else 0.0,
        paid_per_person=paid_per_person,
    )
