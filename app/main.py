"""
Streamlit Frontend for PagaPues

This is the screen a group of friends looks at after a trip: who is in
the group, what was paid, and who owes whom.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every number on screen is recomputed from the saved ledger
3. Clear error messages in simple language
4. Destructive actions (reset) need an explicit confirmation

The UI never computes balances itself. It calls the ledger session,
which validates, saves and audits every change.
"""

from datetime import datetime, time, timezone

import streamlit as st

from pagapues.audit import create_correlation_id
from pagapues.orchestrator import LedgerSession, create_app_components
from pagapues.reports import (
    build_balance_chart,
    describe_involvement,
    format_signed_currency,
)
from pagapues.services.storage import NotFoundError, StorageError
from pagapues.validation import LedgerValidationError, ParticipantInUseError


# Page configuration
st.set_page_config(
    page_title="PagaPues",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .settlement-box {
        padding: 12px 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 6px 0;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_session() -> LedgerSession:
    """Get or create the ledger session (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to load saved data: {e}")
        return create_app_components(use_storage=False)


def main():
    """Main application entry point."""
    session = get_session()

    st.sidebar.title("💸 PagaPues")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["👥 Group", "🧾 Expenses", "🤝 Settle Up", "🏅 Profiles", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Add everyone in the group
        2. Record each expense and who shares it
        3. Share the settle-up plan
        """
    )

    if page == "👥 Group":
        render_group_page(session)
    elif page == "🧾 Expenses":
        render_expenses_page(session)
    elif page == "🤝 Settle Up":
        render_settle_page(session)
    elif page == "🏅 Profiles":
        render_profiles_page(session)
    elif page == "⚙️ Settings":
        render_settings_page(session)


def render_group_page(session: LedgerSession):
    """Render the participants page."""
    st.title("👥 Group")

    with st.form("add_participant", clear_on_submit=True):
        name = st.text_input("Name", placeholder="e.g. Camila")
        submitted = st.form_submit_button("➕ Add", type="primary")

    if submitted:
        try:
            participant = session.add_participant(name, correlation_id=create_correlation_id())
            st.success(f"✅ {participant.name} joined the group")
        except LedgerValidationError as e:
            st.error(str(e))
        except StorageError as e:
            st.error(f"Failed to save: {e}")

    participants = session.participants
    if not participants:
        st.info("Nobody here yet. Add at least two people to start sharing expenses.")
        return

    summary = session.summary()
    for participant in participants:
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            st.markdown(f"**{participant.name}**")
        with col2:
            st.markdown(format_signed_currency(
                summary.balance_for(participant.id),
                symbol=session.settings.currency_symbol,
                thousands_separator=session.settings.thousands_separator,
                epsilon=session.settings.settlement_epsilon,
            ))
        with col3:
            if st.button("🗑️", key=f"remove_{participant.id}"):
                try:
                    session.remove_participant(participant.id)
                    st.rerun()
                except ParticipantInUseError:
                    st.warning(f"{participant.name} is part of an expense. Delete those expenses first.")
                except (NotFoundError, StorageError) as e:
                    st.error(str(e))


def render_expenses_page(session: LedgerSession):
    """Render the expense form and history."""
    st.title("🧾 Expenses")

    participants = session.participants
    minimum = session.settings.min_participants_for_expense
    if len(participants) < minimum:
        st.info(f"Add at least {minimum} people to the group before recording expenses.")
    else:
        names = {p.id: p.name for p in participants}
        ids = list(names)

        with st.form("add_expense", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                description = st.text_input("What was it?", placeholder="e.g. Dinner")
                amount = st.number_input("Amount", min_value=0.0, step=1000.0)
            with col2:
                payer_id = st.selectbox("Who paid?", ids, format_func=names.get)
                spent_on = st.date_input("Date", value=datetime.now().date())

            involved_ids = st.multiselect(
                "Who shares it?", ids, default=ids, format_func=names.get,
            )
            submitted = st.form_submit_button("💾 Save Expense", type="primary")

        if submitted:
            try:
                expense = session.add_expense(
                    description=description,
                    amount=amount,
                    payer_id=payer_id,
                    involved_ids=involved_ids,
                    date=datetime.combine(spent_on, time(12, 0), tzinfo=timezone.utc),
                    correlation_id=create_correlation_id(),
                )
                st.success(f"✅ Saved: {expense.description} - {session.format_money(expense.amount)}")
            except LedgerValidationError as e:
                st.error(session.validator.get_user_friendly_summary(e.result))
            except StorageError as e:
                st.error(f"Failed to save: {e}")

    st.markdown("---")
    st.markdown("### History")

    expenses = session.recent_expenses()
    if not expenses:
        st.info("No expenses recorded yet.")
        return

    for expense in expenses:
        col1, col2, col3 = st.columns([4, 2, 1])
        with col1:
            st.markdown(
                f"**{expense.description}**  \n"
                f"{session.participant_name(expense.payer_id)} paid for "
                f"{describe_involvement(expense, participants)} · {expense.date:%Y-%m-%d}"
            )
        with col2:
            st.markdown(f"**{session.format_money(expense.amount)}**")
        with col3:
            if st.button("🗑️", key=f"delete_{expense.id}"):
                try:
                    session.delete_expense(expense.id)
                    st.rerun()
                except (NotFoundError, StorageError) as e:
                    st.error(str(e))


def render_settle_page(session: LedgerSession):
    """Render totals, the settle-up plan and the share buttons."""
    st.title("🤝 Settle Up")

    summary = session.summary()
    stats = summary.stats

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Group total", session.format_money(stats.total_group))
    with col2:
        st.metric("Average per person", session.format_money(stats.average_per_person))
    with col3:
        st.metric("Transfers needed", len(summary.settlements))

    st.markdown("### Who owes whom")
    if summary.is_settled:
        st.success("✅ All settled! Nobody owes anything.")
    else:
        for settlement in summary.settlements:
            st.markdown(
                f"""<div class="settlement-box">
                <b>{session.participant_name(settlement.from_id)}</b> owes
                <b>{session.format_money(settlement.amount)}</b> to
                <b>{session.participant_name(settlement.to_id)}</b>
                </div>""",
                unsafe_allow_html=True,
            )

    st.markdown("---")
    st.markdown("### Share")
    with st.expander("📋 Report text"):
        st.code(session.report_text(), language=None)
    st.link_button("📲 Send via WhatsApp", session.share_url())

    balance_chart = build_balance_chart(session.participants, summary.balances)
    if not balance_chart.is_empty:
        st.markdown("### Balances")
        st.bar_chart(balance_chart.as_dict())


def render_profiles_page(session: LedgerSession):
    """Render per-participant profiles, badges and the paid chart."""
    st.title("🏅 Profiles")

    profiles = session.profiles()
    if not profiles:
        st.info("Add people to the group to see their profiles.")
        return

    columns = st.columns(min(len(profiles), 3))
    for index, profile in enumerate(profiles):
        with columns[index % len(columns)]:
            st.markdown(f"#### {profile.name}")
            st.markdown(
                f"Paid {session.format_money(profile.paid)} in {profile.payment_count} payments"
            )
            for badge in profile.badges:
                st.markdown(f"🏅 {badge.label}")

    chart = session.paid_chart()
    if chart.is_empty:
        return

    st.markdown("---")
    st.markdown("### Who paid what")
    st.bar_chart(chart.as_dict())
    for label, value, percentage in zip(chart.labels, chart.values, chart.percentages):
        st.markdown(f"- {label}: {session.format_money(value)} ({percentage}%)")


def render_settings_page(session: LedgerSession):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from pagapues.config import validate_all_settings

    status = validate_all_settings()

    services = [
        ("App configuration", "app"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown(f"Storage backend: `{session.settings.storage_backend}`")

    st.markdown("---")
    st.markdown("### Danger Zone")
    confirm = st.checkbox("I understand this deletes every participant and expense")
    if st.button("🧨 Reset everything", disabled=not confirm):
        try:
            session.reset(correlation_id=create_correlation_id())
            st.success("Ledger cleared.")
        except StorageError as e:
            st.error(f"Failed to reset: {e}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
