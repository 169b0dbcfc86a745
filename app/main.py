"""
Streamlit Frontend for the Personal Ledger

This is the command layer: it collects input, turns it into ledger
commands, and shows the CommandResult. It holds no ledger state of its
own - everything lives in the cached LedgerSession.

DESIGN PRINCIPLES:
1. Every button maps to exactly one command
2. Failures are shown, never hidden, and the app keeps running
3. The ledger is written to disk only by "Save & Exit"
"""

from decimal import Decimal

import streamlit as st

from src.models.commands import (
    CommandResult,
    Exit,
    SwitchAccount,
    ViewActiveAccountDetails,
)
from src.models.errors import LedgerErrorKind
from src.models.ledger import DEFAULT_OPENING_BALANCE, MINIMUM_RESERVE, InvestmentKind
from src.orchestrator import LedgerSession, create_session
from src.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Personal Ledger",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_session() -> LedgerSession:
    """Load the ledger once per app process (cached)."""
    return create_session()


def show_result(result: CommandResult) -> None:
    """Report a command outcome to the user."""
    if result.success:
        st.success(result.message)
    elif result.error_kind == LedgerErrorKind.INSUFFICIENT_BALANCE:
        st.warning(result.message)
    else:
        st.error(result.message)


def main():
    """Main application entry point."""
    try:
        session = get_session()
    except StorageError as e:
        st.error(f"Could not read the ledger file: {e}")
        st.stop()

    if session.is_closed:
        render_closed_page()
        return

    # Sidebar navigation
    st.sidebar.title("💰 Personal Ledger")
    st.sidebar.markdown("---")

    active = session.ledger.active_account()
    if active:
        st.sidebar.metric(active.name, f"{active.balance:,.2f}")
    else:
        st.sidebar.info("No active account")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "🏦 Accounts",
            "💵 Income & Expenditure",
            "📈 Investments",
            "📋 Account Details",
            "🕑 Activity",
            "💾 Save & Exit",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        f"""
        **Rules:**
        - New accounts open with {DEFAULT_OPENING_BALANCE:,}
        - At least {MINIMUM_RESERVE:,} must remain after any
          expenditure or investment
        """
    )

    # Route to appropriate page
    if page == "🏦 Accounts":
        render_accounts_page(session)
    elif page == "💵 Income & Expenditure":
        render_transactions_page(session)
    elif page == "📈 Investments":
        render_investments_page(session)
    elif page == "📋 Account Details":
        render_details_page(session)
    elif page == "🕑 Activity":
        render_activity_page(session)
    elif page == "💾 Save & Exit":
        render_exit_page(session)


def render_accounts_page(session: LedgerSession):
    """Add accounts and switch between them."""
    st.title("🏦 Accounts")

    with st.form("add_account", clear_on_submit=True):
        name = st.text_input("New account name")
        if st.form_submit_button("➕ Add Account", type="primary"):
            show_result(session.execute_raw({"type": "add_account", "name": name}))

    accounts = session.ledger.accounts
    if not accounts:
        st.info("No accounts yet. Add one above to get started.")
        return

    st.markdown("### Available accounts")
    st.table([
        {"Index": i, "Name": a.name, "Balance": f"{a.balance:,.2f}"}
        for i, a in enumerate(accounts)
    ])

    index = st.number_input(
        "Account index to switch to (starting from 0)",
        min_value=0,
        step=1,
        value=session.ledger.active_index or 0,
    )
    if st.button("🔀 Switch Account"):
        show_result(session.execute(SwitchAccount(index=int(index))))


def render_transactions_page(session: LedgerSession):
    """Record income and expenditure on the active account."""
    st.title("💵 Income & Expenditure")

    with st.form("transaction", clear_on_submit=True):
        kind = st.radio("Type", ["Income", "Expenditure"], horizontal=True)
        amount = st.number_input("Amount", min_value=0.0, step=100.0, format="%.2f")
        description = st.text_input("Description")
        if st.form_submit_button("💾 Record", type="primary"):
            command_type = "record_income" if kind == "Income" else "record_expenditure"
            show_result(session.execute_raw({
                "type": command_type,
                "amount": str(Decimal(str(amount))),
                "description": description,
            }))


def render_investments_page(session: LedgerSession):
    """Make SIP or FD investments from the active account."""
    st.title("📈 Investments")
    st.markdown(
        "- **SIP**: 9.6% a year, compounded monthly, plus the monthly amount\n"
        "- **FD**: 7.1% a year, compounded annually"
    )

    kind = st.radio(
        "Investment type",
        options=list(InvestmentKind),
        format_func=lambda k: "SIP" if k == InvestmentKind.SYSTEMATIC_PLAN else "FD",
        horizontal=True,
    )

    with st.form("investment", clear_on_submit=True):
        amount = st.number_input("Amount", min_value=0.0, step=500.0, format="%.2f")
        term_years = st.number_input("Duration in years", min_value=1, step=1)
        monthly = None
        if kind == InvestmentKind.SYSTEMATIC_PLAN:
            monthly = st.number_input("Monthly amount", min_value=0.0, step=100.0, format="%.2f")

        if st.form_submit_button("📈 Invest", type="primary"):
            payload = {
                "type": "make_investment",
                "kind": kind.value,
                "amount": str(Decimal(str(amount))),
                "term_years": int(term_years),
            }
            if monthly is not None:
                payload["monthly_contribution"] = str(Decimal(str(monthly)))
            show_result(session.execute_raw(payload))


def render_details_page(session: LedgerSession):
    """Show the active account's balance, history and investments."""
    st.title("📋 Account Details")

    result = session.execute(ViewActiveAccountDetails())
    if not result.success:
        show_result(result)
        return

    snapshot = result.snapshot
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Balance", f"{snapshot.balance:,.2f}")
    col2.metric("Income", f"{snapshot.total_income:,.2f}")
    col3.metric("Expenditure", f"{snapshot.total_expenditure:,.2f}")
    col4.metric("Invested", f"{snapshot.total_invested:,.2f}")

    st.markdown("### Transactions")
    if snapshot.transactions:
        st.table([
            {
                "Type": t.kind.value,
                "Amount": f"{t.amount:,.2f}",
                "Description": t.description,
            }
            for t in snapshot.transactions
        ])
    else:
        st.info("No transactions recorded.")

    st.markdown("### Investments")
    if snapshot.investments:
        st.table([
            {
                "Type": i.kind.value,
                "Amount": f"{i.principal:,.2f}",
                "Duration": i.term_years,
                "Monthly Amt": "-" if i.monthly_contribution is None else f"{i.monthly_contribution:,.2f}",
                "Maturity Amount": f"{i.maturity_value:,.2f}",
            }
            for i in snapshot.investments
        ])
        st.caption(f"Projected maturity of all investments: {snapshot.projected_maturity:,.2f}")
    else:
        st.info("No investments made.")


def render_activity_page(session: LedgerSession):
    """Show the in-memory audit trail."""
    st.title("🕑 Activity")

    audit_logger = session.audit_logger
    storage = audit_logger.storage if audit_logger else None
    if storage is None:
        st.info("Activity tracking is not enabled.")
        return

    events = storage.get_recent_events(limit=50)
    if not events:
        st.info("Nothing has happened yet.")
        return

    st.dataframe(
        [
            dict(zip(
                ["Time", "Event", "Severity", "Account", "Description", "Details", "Error"],
                event.to_row(),
            ))
            for event in events
        ],
        use_container_width=True,
    )


def render_exit_page(session: LedgerSession):
    """Save the ledger and end the session."""
    st.title("💾 Save & Exit")
    st.markdown(
        "Saving writes every account to the data file and ends this session. "
        "Nothing is written before that."
    )

    if st.button("💾 Save & Exit", type="primary"):
        try:
            session.execute(Exit())
        except StorageError as e:
            st.error(f"Failed to save: {e}")
        else:
            st.rerun()


def render_closed_page():
    """Shown after the session has exited."""
    st.title("💾 Ledger saved")
    st.success("Your ledger has been saved. You can close this tab.")

    if st.button("🔄 Start a new session"):
        get_session.clear()
        st.rerun()


if __name__ == "__main__":
    main()
