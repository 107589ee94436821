"""
Balance Calculator

Folds a list of expenses into one net balance per participant.

For every expense the payer is credited the full amount and every
involved participant is debited an equal share. A payer who is also
involved therefore nets `amount - share`.

The calculator is pure: it never mutates its inputs and recomputes
everything from scratch on each call. It does not validate either:
- an expense with no involved participants is skipped
- ids that are not participants get their own (orphan) balance entry,
  emitted after the participants in first-seen order
- negative amounts are accumulated like any other
"""

from typing import Iterable, Sequence

import structlog

from pagapues.models.ledger import Balance, Expense, Participant


logger = structlog.get_logger(__name__)


def calculate_balances(
    participants: Sequence[Participant],
    expenses: Iterable[Expense],
) -> list[Balance]:
    """
    Compute the net balance of every participant.

    Args:
        participants: Participants in display order
        expenses: Expenses to account for

    Returns:
        One Balance per participant, in participant order, followed by
        any orphan ids referenced by the expenses
    """
    accumulator: dict[str, float] = {p.id: 0.0 for p in participants}
    skipped = 0

    for expense in expenses:
        involved_count = len(expense.involved_ids)
        if involved_count == 0:
            skipped += 1
            continue

        share = expense.amount / involved_count

        accumulator[expense.payer_id] = accumulator.get(expense.payer_id, 0.0) + expense.amount
        for person_id in expense.involved_ids:
            accumulator[person_id] = accumulator.get(person_id, 0.0) - share

    if skipped:
        logger.debug("expenses_skipped_without_involved", count=skipped)

    return [
        Balance(participant_id=participant_id, net_amount=net_amount)
        for participant_id, net_amount in accumulator.items()
    ]
