"""
Streamlit Frontend for FinTrack

DESIGN PRINCIPLES:
1. Every page works on the profile the resolver says is active
2. Nothing is written until the form passes validation
3. Privacy mode masks every amount on screen
4. External services failing shows a fallback, never a stack trace

The PIN gate runs before any page: sign in once, choose a 4-digit PIN,
then unlock with it on every new session.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

import streamlit as st

from fintrack.ledger import TimeWindow, format_amount, option_index
from fintrack.models.exchange import SUPPORTED_CURRENCIES, exchange_currency_codes
from fintrack.models.ledger import (
    CategoryKind,
    DashboardScope,
    ExpenseTag,
    TransactionDraft,
    TransactionType,
    User,
)
from fintrack.orchestrator import AppComponents, create_app_components
from fintrack.profiles.seed import DEMO_USER_EMAIL, DEMO_USER_ID, DEMO_USER_NAME
from fintrack.services.exchange import ExchangeCardLimitError, InvalidCurrencyPairError
from fintrack.services.export import export_filename
from fintrack.services.storage import StorageError
from fintrack.stores import InvalidPinError


# Page configuration
st.set_page_config(
    page_title="FinTrack AI",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

TYPE_LABELS = {
    TransactionType.INCOME: "💵 Income",
    TransactionType.EXPENSE: "🧾 Expense",
    TransactionType.PARKED: "🅿️ Parked",
    TransactionType.TRANSFER: "🔁 Transfer",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(amount, symbol: str, masked: bool) -> str:
    return format_amount(amount, symbol, masked)


def main():
    """Main application entry point."""
    components = get_components()
    profile = run_async(components.profiles.current_profile())

    if not render_pin_gate(components, profile):
        return

    settings = run_async(components.transactions.settings(profile))

    # Sidebar navigation
    st.sidebar.title("💰 FinTrack AI")
    if profile.is_foreign:
        st.sidebar.caption("Foreign view")
    st.sidebar.markdown("---")

    pages = ["📊 Dashboard", "➕ Add Transaction", "📈 Analytics", "🎯 Goals"]
    if settings.enable_ai:
        pages.append("🤖 AI Advisor")
    pages += ["💱 Exchange", "⚙️ Settings"]

    if st.session_state.get("edit_transaction_id"):
        st.session_state.page = "➕ Add Transaction"
    elif st.session_state.get("page") not in pages:
        # Advisor page disappears when AI is switched off
        st.session_state.page = pages[0]
    page = st.sidebar.radio("Navigate to:", pages, key="page")

    st.sidebar.markdown("---")
    if st.sidebar.button("🔒 Lock"):
        st.session_state.unlocked = False
        st.rerun()

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(components, profile)
    elif page == "➕ Add Transaction":
        render_transaction_page(components, profile)
    elif page == "📈 Analytics":
        render_analytics_page(components, profile)
    elif page == "🎯 Goals":
        render_goals_page(components, profile)
    elif page == "🤖 AI Advisor":
        render_advisor_page(components, profile)
    elif page == "💱 Exchange":
        render_exchange_page(components, profile)
    elif page == "⚙️ Settings":
        render_settings_page(components, profile)


def render_pin_gate(components: AppComponents, profile) -> bool:
    """Sign-in, PIN setup and unlock. Returns True once the session is unlocked."""
    if st.session_state.get("unlocked"):
        return True

    flow = components.profiles
    user = run_async(flow.current_user(profile))
    if user is None:
        st.title("💰 FinTrack AI")
        st.markdown("Track income, expenses, goals and budgets in one place.")
        if st.button("Continue as Demo User", type="primary"):
            run_async(flow.login(
                profile,
                User(id=DEMO_USER_ID, name=DEMO_USER_NAME, email=DEMO_USER_EMAIL),
            ))
            st.rerun()
        return False

    if not run_async(flow.has_pin(profile)):
        st.title("🔐 Choose a PIN")
        pin = st.text_input("4-digit PIN", type="password", max_chars=4)
        if st.button("Save PIN", type="primary"):
            try:
                run_async(flow.set_pin(profile, pin))
                st.session_state.unlocked = True
                st.rerun()
            except InvalidPinError as e:
                st.error(str(e))
        return False

    st.title(f"👋 Welcome back, {user.name}")
    pin = st.text_input("Enter PIN", type="password", max_chars=4)
    if st.button("Unlock", type="primary"):
        if run_async(flow.verify_pin(profile, pin)):
            st.session_state.unlocked = True
            st.rerun()
        else:
            st.error("Incorrect PIN")
    return False


def render_dashboard_page(components: AppComponents, profile):
    st.title("📊 Dashboard")

    type_filter = st.selectbox(
        "Show",
        options=[None] + list(TransactionType),
        format_func=lambda t: "All transactions" if t is None else TYPE_LABELS[t],
    )
    view = run_async(components.transactions.dashboard(profile, type_filter))
    totals = view.totals
    fmt = lambda amount: money(amount, view.currency_symbol, view.privacy_mode)

    scope = "all accounts" if totals.scope == DashboardScope.ALL else totals.primary_account
    st.markdown(f'<div class="big-number">{fmt(totals.balance)}</div>', unsafe_allow_html=True)
    st.caption(f"Balance across {scope}")

    col1, col2, col3 = st.columns(3)
    col1.metric("Income", fmt(totals.total_income))
    col2.metric("Expenses", fmt(totals.total_expense))
    col3.metric("Parked", fmt(totals.total_parked))
    if totals.scope == DashboardScope.PRIMARY:
        st.caption(f"Transfers net: {fmt(totals.transfer_net)}")

    st.markdown("---")
    if not view.transactions:
        st.info("No transactions yet. Use 'Add Transaction' to record your first one.")
        return

    for t in view.transactions:
        col1, col2, col3 = st.columns([4, 2, 1])
        account = t.bank_account or ""
        if t.type == TransactionType.TRANSFER:
            account = f"{t.bank_account} → {t.to_account}"
        col1.markdown(f"**{t.category}** · {t.note}  \n{t.day.isoformat()} · {account}")
        col2.markdown(f"{TYPE_LABELS[t.type]}  \n{fmt(t.amount)}")
        if col3.button("Edit", key=f"edit_{t.id}"):
            st.session_state.edit_transaction_id = t.id
            st.rerun()


def render_transaction_page(components: AppComponents, profile):
    flow = components.transactions
    settings = run_async(flow.settings(profile))
    goals = run_async(flow.goals(profile))

    editing_id = st.session_state.get("edit_transaction_id")
    existing = run_async(flow.find_transaction(profile, editing_id)) if editing_id else None
    st.title("✏️ Edit Transaction" if existing else "➕ Add Transaction")

    types = list(TransactionType)
    tx_type = st.radio(
        "Type",
        types,
        index=types.index(existing.type) if existing else 1,
        format_func=lambda t: TYPE_LABELS[t],
        horizontal=True,
    )

    amount_text = st.text_input("Amount", value=str(existing.amount) if existing else "")
    tx_date = st.date_input("Date", value=existing.day if existing else date.today())
    note = st.text_input("Note", value=existing.note if existing else "")

    draft = {"type": tx_type, "date": tx_date, "note": note}

    if tx_type == TransactionType.EXPENSE:
        draft["category"] = st.selectbox("Category", settings.expense_categories)
        draft["tag"] = st.selectbox("Budget tag", [tag.value for tag in ExpenseTag])
        draft["bank_account"] = st.selectbox("Paid from", settings.bank_accounts)
    elif tx_type == TransactionType.INCOME:
        draft["category"] = st.selectbox("Category", settings.income_categories)
        draft["bank_account"] = st.selectbox("Deposited to", settings.bank_accounts)
    elif tx_type == TransactionType.PARKED:
        goal = st.selectbox(
            "Goal",
            options=[None] + goals,
            format_func=lambda g: "Select a goal" if g is None else g.name,
        )
        draft["goal_id"] = goal.id if goal else None
        draft["bank_account"] = st.selectbox("Park at (account)", settings.park_accounts)
    else:
        draft["bank_account"] = st.selectbox("From", settings.bank_accounts)
        draft["to_account"] = st.selectbox("To", settings.bank_accounts)

    try:
        draft["amount"] = Decimal(amount_text) if amount_text.strip() else None
    except InvalidOperation:
        draft["amount"] = None
    if draft["amount"] is not None and not draft["amount"].is_finite():
        draft["amount"] = None

    if st.button("💾 Save", type="primary"):
        payload = TransactionDraft(**draft)
        try:
            if existing:
                saved, result = run_async(flow.update_transaction(profile, existing.id, payload))
            else:
                saved, result = run_async(flow.add_transaction(profile, payload))
        except StorageError as e:
            st.error(f"Nothing was saved: {e}")
            return

        if result.has_errors:
            st.error(flow.describe(result))
        else:
            if result.warnings:
                st.warning("\n".join(result.warnings))
            st.success("Saved!" if saved else "That transaction no longer exists.")
            st.session_state.edit_transaction_id = None

    if existing and st.button("Cancel edit"):
        st.session_state.edit_transaction_id = None
        st.rerun()


def render_analytics_page(components: AppComponents, profile):
    st.title("📈 Analytics")

    choice = st.selectbox("Period", ["All time", "This month", "Last month", "Custom"])
    if choice == "This month":
        window = TimeWindow.this_month()
    elif choice == "Last month":
        window = TimeWindow.last_month()
    elif choice == "Custom":
        col1, col2 = st.columns(2)
        window = TimeWindow.custom(col1.date_input("From"), col2.date_input("To"))
    else:
        window = TimeWindow.all_time()

    view = run_async(components.transactions.analytics(profile, window))
    fmt = lambda amount: money(amount, view.currency_symbol, view.privacy_mode)

    st.markdown("### 🏦 Accounts")
    for balance in view.accounts:
        st.metric(balance.account, fmt(balance.balance))

    st.markdown("### 🏷️ Budget tags")
    for usage in view.tags:
        label = f"{usage.tag}: {usage.percentage:.0f}% (limit {usage.limit}%)"
        if usage.over_limit:
            st.error(f"⚠️ {label} · {fmt(usage.amount)}")
        else:
            st.progress(min(usage.percentage / 100, 1.0), text=f"{label} · {fmt(usage.amount)}")

    st.markdown("### 🧾 Spending by category")
    if not view.categories:
        st.info("No expenses in this period.")
    for row in view.categories:
        st.markdown(f"- **{row.category}**: {fmt(row.amount)} ({row.percentage:.0f}%)")


def render_goals_page(components: AppComponents, profile):
    st.title("🎯 Goals")
    flow = components.transactions
    settings = run_async(flow.settings(profile))
    fmt = lambda amount: money(amount, settings.currency_symbol, settings.privacy_mode_enabled)

    for progress in run_async(flow.goal_overview(profile)):
        st.markdown(f"#### {progress.name}")
        st.progress(progress.percent / 100, text=f"{fmt(progress.saved)} of {fmt(progress.target)}")
        for account, amount in progress.per_account.items():
            st.caption(f"{account}: {fmt(amount)}")
        if st.button("Delete goal", key=f"goal_{progress.goal_id}"):
            run_async(flow.remove_goal(profile, progress.goal_id))
            st.rerun()

    st.markdown("---")
    with st.form("new_goal"):
        name = st.text_input("Goal name")
        target = st.text_input("Target amount")
        deadline = st.date_input("Deadline (optional)", value=None)
        if st.form_submit_button("Create goal"):
            try:
                target_amount = Decimal(target) if target.strip() else None
            except InvalidOperation:
                target_amount = None
            try:
                goal, result = run_async(flow.add_goal(profile, name, target_amount, deadline))
            except StorageError as e:
                st.error(f"Nothing was saved: {e}")
            else:
                if goal is None:
                    st.error(result.first_error)
                else:
                    st.rerun()


def render_advisor_page(components: AppComponents, profile):
    st.title("🤖 AI Advisor")
    st.markdown("Get a short summary of your recent spending and a few tips.")

    if st.button("✨ Get advice", type="primary"):
        with st.spinner("Analyzing your transactions..."):
            advice = run_async(components.insights.advice(profile))
        st.markdown(advice.text)


def render_exchange_page(components: AppComponents, profile):
    st.title("💱 Exchange Rates")
    cache = components.exchange
    codes = exchange_currency_codes()

    for card in run_async(cache.list(profile)):
        col1, col2, col3, col4 = st.columns([3, 1, 1, 1])
        if card.rate is None:
            col1.markdown(f"**{card.from_currency} → {card.to_currency}**: rate unavailable")
        else:
            col1.markdown(
                f"**{card.amount} {card.from_currency}** = "
                f"{card.converted:.4f} {card.to_currency}"
            )
        if card.last_updated:
            col1.caption(f"Updated {card.last_updated:%Y-%m-%d %H:%M}")
        if col2.button("🔄", key=f"refresh_{card.id}"):
            run_async(cache.refresh(profile, card.id))
            st.rerun()
        if col3.button("⇄", key=f"swap_{card.id}"):
            run_async(cache.swap(profile, card.id))
            st.rerun()
        if col4.button("🗑️", key=f"delete_{card.id}"):
            run_async(cache.delete(profile, card.id))
            st.rerun()
        amount = col1.number_input(
            "Amount", min_value=0.0, value=float(card.amount), key=f"amount_{card.id}"
        )
        if Decimal(str(amount)) != card.amount:
            run_async(cache.update_amount(profile, card.id, amount))
            st.rerun()

    st.markdown("---")
    col1, col2 = st.columns(2)
    from_code = col1.selectbox("From", codes, index=codes.index("USD"))
    to_code = col2.selectbox("To", codes, index=codes.index("EUR"))
    if st.button("Add card"):
        try:
            run_async(cache.create(profile, from_code, to_code))
            st.rerun()
        except (ExchangeCardLimitError, InvalidCurrencyPairError, StorageError) as e:
            st.error(str(e))


def render_settings_page(components: AppComponents, profile):
    """Render the settings page."""
    st.title("⚙️ Settings")
    accounts = components.accounts
    settings = run_async(components.transactions.settings(profile))

    st.markdown("### Preferences")
    privacy = st.toggle("Privacy mode", value=settings.privacy_mode_enabled)
    if privacy != settings.privacy_mode_enabled:
        run_async(accounts.set_privacy_mode(profile, privacy))
        st.rerun()

    ai = st.toggle("AI insights", value=settings.enable_ai)
    if ai != settings.enable_ai:
        run_async(accounts.set_ai_enabled(profile, ai))
        st.rerun()

    foreign = st.toggle("Foreign view", value=profile.is_foreign)
    if foreign != profile.is_foreign:
        run_async(components.profiles.set_foreign(foreign))
        st.rerun()

    codes = [c.code for c in SUPPORTED_CURRENCIES]
    currency = st.selectbox("Currency", codes, index=option_index(codes, settings.currency_code))
    if currency != settings.currency_code:
        run_async(accounts.set_currency(profile, currency))
        st.rerun()

    scopes = list(DashboardScope)
    scope = st.radio(
        "Dashboard shows",
        scopes,
        index=scopes.index(settings.dashboard_scope),
        format_func=lambda s: "All accounts" if s == DashboardScope.ALL else "Primary account only",
        horizontal=True,
    )
    if scope != settings.dashboard_scope:
        run_async(accounts.set_dashboard_scope(profile, scope))
        st.rerun()

    primary = st.selectbox(
        "Primary account",
        settings.bank_accounts,
        index=option_index(settings.bank_accounts, settings.primary_account),
    )
    if primary is not None and primary != settings.primary_account:
        run_async(accounts.set_primary_account(profile, primary))
        st.rerun()

    st.markdown("### Accounts")
    for name in settings.bank_accounts:
        col1, col2, col3 = st.columns([3, 2, 1])
        col1.markdown(name)
        new_name = col2.text_input("Rename to", key=f"rename_{name}", label_visibility="collapsed")
        if new_name and col2.button("Rename", key=f"rename_btn_{name}"):
            try:
                renamed = run_async(accounts.rename_account(profile, name, new_name))
            except StorageError as e:
                st.error(f"Nothing was renamed: {e}")
            else:
                if renamed:
                    st.rerun()
                st.error(f"Can't rename {name} to {new_name}")
        if col3.button("🗑️", key=f"remove_bank_{name}"):
            if run_async(accounts.remove_bank_account(profile, name)):
                st.rerun()
            else:
                st.error(f"{name} can't be deleted")
    new_bank = st.text_input("New bank account")
    if st.button("Add bank account") and run_async(accounts.add_bank_account(profile, new_bank)):
        st.rerun()

    st.markdown("### Park accounts")
    for name in settings.park_accounts:
        col1, col2 = st.columns([5, 1])
        col1.markdown(name)
        if col2.button("🗑️", key=f"remove_park_{name}"):
            if run_async(accounts.remove_park_account(profile, name)):
                st.rerun()
            else:
                st.error(f"{name} can't be deleted")
    new_park = st.text_input("New park account")
    if st.button("Add park account") and run_async(accounts.add_park_account(profile, new_park)):
        st.rerun()

    st.markdown("### Categories")
    for kind in CategoryKind:
        st.markdown(f"**{kind.value.title()}**")
        for name in settings.categories_for(kind):
            col1, col2 = st.columns([5, 1])
            col1.markdown(name)
            if col2.button("🗑️", key=f"remove_{kind.value}_{name}"):
                run_async(accounts.remove_category(profile, kind, name))
                st.rerun()
        new_category = st.text_input(f"New {kind.value} category", key=f"new_{kind.value}")
        if st.button(f"Add {kind.value} category", key=f"add_{kind.value}"):
            if run_async(accounts.add_category(profile, kind, new_category)):
                st.rerun()

    st.markdown("### Budget limits")
    for tag in ExpenseTag:
        limit = st.slider(tag.value, 0, 100, settings.tag_limit(tag.value), key=f"limit_{tag.value}")
        if limit != settings.tag_limit(tag.value):
            run_async(accounts.set_tag_limit(profile, tag.value, limit))
            st.rerun()

    st.markdown("### Your data")
    if st.button("📦 Prepare export"):
        st.session_state.export_data = run_async(components.profiles.export(profile))
    if st.session_state.get("export_data"):
        st.download_button(
            "⬇️ Download export",
            data=st.session_state.export_data,
            file_name=export_filename(profile, datetime.now()),
            mime="application/json",
        )
    if st.button("🚪 Log out"):
        run_async(components.profiles.logout(profile))
        st.session_state.unlocked = False
        st.rerun()

    confirm = st.checkbox("I understand this deletes every record of this view")
    if st.button("🗑️ Wipe all data", disabled=not confirm):
        run_async(components.profiles.wipe(profile))
        st.session_state.unlocked = False
        st.rerun()


if __name__ == "__main__":
    main()
