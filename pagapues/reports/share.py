"""
Shareable settlement report.

Produces the plain-text summary people paste into a group chat, and a
WhatsApp link that pre-fills it. The text uses WhatsApp's *bold* markup.
"""

from typing import Callable, Sequence
from urllib.parse import quote

from pagapues.models.ledger import ExpenseStats, Participant, Settlement
from pagapues.reports.formatting import format_currency


WHATSAPP_SHARE_URL = "https://wa.me/?text="
UNKNOWN_PARTICIPANT = "Someone"


def generate_report_text(
    participants: Sequence[Participant],
    settlements: Sequence[Settlement],
    stats: ExpenseStats,
    title: str = "PagaPues",
    money: Callable[[float], str] = format_currency,
) -> str:
    """
    Build the shareable summary of a ledger.

    Args:
        participants: Used to turn ids into names
        settlements: Transfers to list, in the given order
        stats: Group total and average
        title: App name for the heading
        money: Amount formatter
    """
    names = {p.id: p.name for p in participants}

    def name(participant_id: str) -> str:
        return names.get(participant_id, UNKNOWN_PARTICIPANT)

    lines = [
        f"📊 *{title} results*",
        "",
        f"💰 Group total: {money(stats.total_group)}",
        f"👤 Average per person: {money(stats.average_per_person)}",
        "",
        "*Who owes whom:*",
    ]

    if not settlements:
        lines.append("✅ All settled! Nobody owes anything.")
    else:
        for s in settlements:
            lines.append(f"• {name(s.from_id)} owes {money(s.amount)} to {name(s.to_id)}")

    return "\n".join(lines) + "\n"


def whatsapp_share_url(text: str) -> str:
    """Link that opens WhatsApp with `text` ready to send."""
    return WHATSAPP_SHARE_URL + quote(text, safe="-_.!~*'()")
