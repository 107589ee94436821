"""
Settlement Planner

Reduces net balances to a short list of point-to-point transfers that
brings every balance to zero.

ALGORITHM: greedy largest-pair matching.
1. Split balances into debtors (below -epsilon) and creditors (above
   epsilon). Anything within epsilon of zero is already settled.
2. Sort debtors most-negative first and creditors largest first.
3. Walk both lists with one cursor each. Every step transfers
   min(|debtor|, creditor), rounded to cents, and advances the smaller
   side plus any side brought within epsilon of zero (both on an exact
   match). A step whose amount rounds to zero transfers nothing.

IMPORTANT: This is an approximation, not an exact minimum-transaction
solver. It produces `debtors + creditors - 1` transfers, which is optimal
only when the balances do not split into independent zero-sum groups.
Finding the true minimum is a subset-partition problem and is out of
scope.

The planner works on copies; the caller's Balance objects are never
mutated.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

import structlog

from pagapues.models.ledger import SETTLEMENT_EPSILON, Balance, Settlement


logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


def round_cents(value: float) -> float:
    """Round half away from zero to two decimals."""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def calculate_settlements(
    balances: Iterable[Balance],
    epsilon: float = SETTLEMENT_EPSILON,
) -> list[Settlement]:
    """
    Plan the transfers that settle the given balances.

    Args:
        balances: Net balances, e.g. from calculate_balances()
        epsilon: Amounts with an absolute value below this count as zero

    Returns:
        Transfers in greedy-match order (biggest debtor against biggest
        creditor first). Empty when everyone is already settled.
    """
    balances = list(balances)

    # Working copies: [participant_id, remaining_amount]
    debtors = [[b.participant_id, b.net_amount] for b in balances if b.net_amount < -epsilon]
    creditors = [[b.participant_id, b.net_amount] for b in balances if b.net_amount > epsilon]

    debtors.sort(key=lambda d: d[1])
    creditors.sort(key=lambda c: c[1], reverse=True)

    settlements = []
    i = 0
    j = 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        owed = abs(debtor[1])
        due = creditor[1]
        amount = round_cents(min(owed, due))

        if amount > 0:
            settlements.append(Settlement(
                from_id=debtor[0],
                to_id=creditor[0],
                amount=amount,
            ))
            debtor[1] += amount
            creditor[1] -= amount

        # The smaller side is within half a cent of zero after every step
        if owed <= due or abs(debtor[1]) < epsilon:
            i += 1
        if due <= owed or creditor[1] < epsilon:
            j += 1

    logger.debug(
        "settlements_planned",
        debtors=len(debtors),
        creditors=len(creditors),
        transfers=len(settlements),
    )

    return settlements
