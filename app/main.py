"""
Streamlit Frontend for Vittas

The personal finance dashboard: period summary, recent transactions,
budgets, and the subscription card with cancel and upgrade.

DESIGN PRINCIPLES:
1. Figures on screen are either fully refreshed or left as they were
2. Failures show a short toast, never a stack trace
3. Nothing is saved without an explicit submit

Without Supabase credentials the app runs against in-memory storage with
a demo user, so it can be tried locally.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import streamlit as st

from vittas.config import get_settings, validate_all_settings
from vittas.dashboard import DashboardState
from vittas.errors import VittasError
from vittas.models.finance import (
    BudgetDraft,
    TimePeriod,
    TransactionCategory,
    TransactionDraft,
    TransactionType,
)
from vittas.models.subscription import PLAN_PRICING, AuthenticatedUser
from vittas.orchestrator import AppComponents, create_app_components
from vittas.services.auth import SupabaseAuthService
from vittas.subscriptions import can_access
from vittas.utils import format_currency


DEMO_USER = AuthenticatedUser(
    id=UUID("00000000-0000-4000-8000-000000000001"),
    email="demo@vittas.local",
)

PERIOD_LABELS = {
    TimePeriod.DAY: "Today",
    TimePeriod.WEEK: "This Week",
    TimePeriod.MONTH: "This Month",
    TimePeriod.QUARTER: "This Quarter",
    TimePeriod.YEAR: "This Year",
}


# Page configuration
st.set_page_config(
    page_title="Vittas",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def supabase_configured() -> bool:
    return validate_all_settings().get("supabase", False)


@st.cache_resource
def get_components(access_token: Optional[str]) -> AppComponents:
    """Components for one signed-in session (cached per token)."""
    return create_app_components(
        use_storage=access_token is not None,
        access_token=access_token,
    )


def current_user() -> Optional[AuthenticatedUser]:
    return st.session_state.get("user")


def render_login() -> None:
    """Email/password sign-in, or the demo user when Supabase is absent."""
    st.title("💰 Vittas")

    if not supabase_configured():
        st.info("Supabase is not configured. Running in demo mode with local storage.")
        if st.button("Continue in demo mode", type="primary"):
            st.session_state.user = DEMO_USER
            st.session_state.access_token = None
            st.rerun()
        return

    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        try:
            user, token = run_async(SupabaseAuthService().sign_in(email, password))
        except VittasError as e:
            st.error(str(e))
            return
        st.session_state.user = user
        st.session_state.access_token = token
        st.rerun()


def get_dashboard_state(components: AppComponents) -> DashboardState:
    if "dashboard_state" not in st.session_state:
        st.session_state.dashboard_state = DashboardState(components.dashboard)
    return st.session_state.dashboard_state


def main():
    """Main application entry point."""
    user = current_user()
    if user is None:
        render_login()
        return

    components = get_components(st.session_state.get("access_token"))
    currency = get_settings().app.default_currency

    # Sidebar navigation
    st.sidebar.title("💰 Vittas")
    st.sidebar.caption(user.email or str(user.id))
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "➕ Add Transaction", "🎯 Budgets", "⭐ Subscription", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Sign out"):
        for key in ("user", "access_token", "dashboard_state"):
            st.session_state.pop(key, None)
        st.rerun()

    if page == "📊 Dashboard":
        render_dashboard_page(components, user, currency)
    elif page == "➕ Add Transaction":
        render_add_transaction_page(components, user)
    elif page == "🎯 Budgets":
        render_budgets_page(components, user, currency)
    elif page == "⭐ Subscription":
        render_subscription_page(components, user)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_dashboard_page(components: AppComponents, user: AuthenticatedUser, currency: str):
    """Render the period summary, recent transactions and budgets."""
    st.title("📊 Dashboard")
    state = get_dashboard_state(components)

    period = st.selectbox(
        "Period",
        options=list(TimePeriod),
        index=list(TimePeriod).index(state.period),
        format_func=lambda p: PERIOD_LABELS[p],
    )

    with st.spinner("Loading dashboard..."):
        run_async(state.refresh(user.id, period))

    for message in state.pop_notifications():
        st.toast(message, icon="⚠️")

    stats = state.stats
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", format_currency(stats.total_income, currency))
    col2.metric("Expenses", format_currency(stats.total_expense, currency))
    col3.metric("Balance", format_currency(stats.balance, currency))
    col4.metric("Transactions", stats.transaction_count)

    st.markdown("### Recent Transactions")
    if not state.recent_transactions:
        st.info("No transactions in this period yet.")
    for t in state.recent_transactions:
        sign = "+" if t.is_income else "-"
        st.markdown(
            f"**{t.title}** · {t.category} · {t.date.isoformat()} "
            f"&nbsp; `{sign}{format_currency(t.amount, currency)}`"
        )

    if len(state.all_transactions) > len(state.recent_transactions):
        with st.expander(f"View all ({len(state.all_transactions)})"):
            st.dataframe(
                [
                    {
                        "Date": t.date.isoformat(),
                        "Title": t.title,
                        "Category": t.category,
                        "Type": t.type.value,
                        "Amount": str(t.amount),
                    }
                    for t in state.all_transactions
                ],
                use_container_width=True,
            )

    st.markdown("### Budgets")
    if not state.budgets:
        st.info("No budgets yet.")
    for b in state.budgets:
        st.markdown(
            f"**{b.name}** · {b.category} · {format_currency(b.amount, currency)} "
            f"({b.start_date.isoformat()} to {b.end_date.isoformat()})"
        )


def render_add_transaction_page(components: AppComponents, user: AuthenticatedUser):
    st.title("➕ Add Transaction")

    with st.form("add_transaction", clear_on_submit=True):
        title = st.text_input("Title")
        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
            tx_type = st.selectbox(
                "Type",
                options=list(TransactionType),
                format_func=lambda t: t.value.title(),
            )
        with col2:
            category = st.selectbox(
                "Category",
                options=list(TransactionCategory),
                format_func=lambda c: c.value.title(),
            )
            tx_date = st.date_input("Date", value=date.today())
        description = st.text_area("Description (optional)")
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        try:
            draft = TransactionDraft(
                title=title,
                amount=Decimal(str(amount)).quantize(Decimal("0.01")),
                type=tx_type,
                category=category.value,
                date=tx_date,
                description=description,
            )
        except ValueError as e:
            st.error(f"Please check the form: {e}")
            return
        try:
            run_async(components.dashboard.create_transaction(user.id, draft))
        except VittasError as e:
            st.error(f"Could not save: {e}")
            return
        st.success("Transaction saved.")


def render_budgets_page(components: AppComponents, user: AuthenticatedUser, currency: str):
    st.title("🎯 Budgets")

    with st.form("create_budget", clear_on_submit=True):
        name = st.text_input("Budget name")
        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input("Amount", min_value=0.0, step=100.0, format="%.2f")
            category = st.selectbox(
                "Category",
                options=list(TransactionCategory),
                format_func=lambda c: c.value.title(),
            )
        with col2:
            start_date = st.date_input("Start date", value=date.today().replace(day=1))
            end_date = st.date_input("End date", value=date.today())
        submitted = st.form_submit_button("💾 Create Budget", type="primary")

    if submitted:
        try:
            draft = BudgetDraft(
                name=name,
                amount=Decimal(str(amount)).quantize(Decimal("0.01")),
                category=category.value,
                start_date=start_date,
                end_date=end_date,
            )
            budget = run_async(components.dashboard.create_budget(user.id, draft))
        except ValueError as e:
            st.error(f"Please check the form: {e}")
        except VittasError as e:
            st.error(f"Could not save: {e}")
        else:
            st.success(f"Budget '{budget.name}' created ({format_currency(budget.amount, currency)}).")


def render_subscription_page(components: AppComponents, user: AuthenticatedUser):
    """Subscription card: current plan, cancel, and upgrade."""
    st.title("⭐ Subscription")

    try:
        status = run_async(components.subscriptions.get_status(user))
    except VittasError as e:
        st.error(f"Could not load subscription: {e}")
        return

    st.metric("Current plan", status.subscription_tier)
    if status.subscription_end:
        st.caption(f"Renews or ends on {status.subscription_end.date().isoformat()}")

    if status.subscribed:
        if st.button("Cancel subscription"):
            try:
                result = run_async(components.subscriptions.cancel(user))
            except VittasError as e:
                st.error(str(e))
            else:
                st.success(result["message"])
                st.rerun()

    st.markdown("### Features")
    for feature in ("expense-sharing", "analytics", "export", "multi-user", "api-access"):
        unlocked = can_access(status.subscription_tier, feature)
        st.markdown(f"{'✅' if unlocked else '🔒'} {feature.replace('-', ' ').title()}")

    st.markdown("### Upgrade")
    cols = st.columns(len(PLAN_PRICING))
    for col, (plan, pricing) in zip(cols, PLAN_PRICING.items()):
        with col:
            st.markdown(f"**{pricing.plan_name}**")
            st.markdown(format_currency(Decimal(pricing.amount) / 100, pricing.currency) + " / month")
            if pricing.trial_days:
                st.caption(f"{pricing.trial_days}-day free trial")
            if st.button(f"Choose {plan}", key=f"upgrade_{plan}"):
                try:
                    order = run_async(components.checkout.create_order(user, plan))
                    qr = components.upi.generate(order.amount, plan, order.order_id)
                except VittasError as e:
                    st.error(str(e))
                else:
                    st.success(f"Order {order.order_id} created.")
                    st.image(qr.qr_code_url, caption=f"Pay {format_currency(qr.amount, 'INR')} via UPI")
                    st.code(qr.upi_url)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Supabase (Database & Auth)", "supabase"),
        ("Razorpay (Payments)", "razorpay"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Connected")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
