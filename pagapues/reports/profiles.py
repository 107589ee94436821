"""
Participant profiles and badges.

Light-hearted labels derived from who paid what. They are computed from
the same statistics as the settlement screen and never affect balances.
"""

from enum import Enum
from typing import Sequence

from pydantic import BaseModel, Field

from pagapues.engine import calculate_expense_stats
from pagapues.models.ledger import Balance, Expense, Participant


# Badge thresholds
CARD_SWIPER_MIN_PAYMENTS = 5       # strictly more than this many payments
ALWAYS_IN_DEBT_BELOW = -1000.0     # balance below this
SPONSOR_SHARE_OF_TOTAL = 0.5       # paid strictly more than half the total


class Badge(str, Enum):
    """Badges a participant can earn."""
    TOP_PAYER = "top_payer"
    GHOST = "ghost"
    CARD_SWIPER = "card_swiper"
    ALWAYS_IN_DEBT = "always_in_debt"
    OFFICIAL_SPONSOR = "official_sponsor"

    @property
    def label(self) -> str:
        return BADGE_LABELS[self]


BADGE_LABELS = {
    Badge.TOP_PAYER: "Paid like royalty",
    Badge.GHOST: "The ghost of the group",
    Badge.CARD_SWIPER: "Card machine champion",
    Badge.ALWAYS_IN_DEBT: "Always in the red",
    Badge.OFFICIAL_SPONSOR: "Official sponsor",
}


class ParticipantProfile(BaseModel):
    """What one participant contributed, and the badges it earned."""

    participant_id: str
    name: str
    paid: float = 0.0
    balance: float = 0.0
    payment_count: int = 0
    badges: list[Badge] = Field(default_factory=list)


def build_profiles(
    participants: Sequence[Participant],
    expenses: Sequence[Expense],
    balances: Sequence[Balance],
) -> list[ParticipantProfile]:
    """One profile per participant, in participant order."""
    stats = calculate_expense_stats(participants, expenses)
    balance_by_id = {b.participant_id: b.net_amount for b in balances}

    max_paid = max(
        (stats.paid_per_person.get(p.id, 0.0) for p in participants),
        default=0.0,
    )

    profiles = []
    for p in participants:
        paid = stats.paid_per_person.get(p.id, 0.0)
        balance = balance_by_id.get(p.id, 0.0)
        payment_count = sum(1 for e in expenses if e.payer_id == p.id)

        badges = []
        if paid > 0 and paid == max_paid:
            badges.append(Badge.TOP_PAYER)
        if paid == 0 and expenses:
            badges.append(Badge.GHOST)
        if payment_count > CARD_SWIPER_MIN_PAYMENTS:
            badges.append(Badge.CARD_SWIPER)
        if balance < ALWAYS_IN_DEBT_BELOW:
            badges.append(Badge.ALWAYS_IN_DEBT)
        if stats.total_group > 0 and paid > stats.total_group * SPONSOR_SHARE_OF_TOTAL:
            badges.append(Badge.OFFICIAL_SPONSOR)

        profiles.append(ParticipantProfile(
            participant_id=p.id,
            name=p.name,
            paid=paid,
            balance=balance,
            payment_count=payment_count,
            badges=badges,
        ))

    return profiles
