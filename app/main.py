"""
Streamlit Frontend for DzBudget

This is the user interface for day-to-day budget tracking.

DESIGN PRINCIPLES:
1. Simple, clear interface in French or Arabic
2. Every change goes through BudgetStore.mutate
3. The dashboard only renders a BudgetSnapshot, it computes nothing
4. Visual feedback for all operations
"""

import asyncio
from decimal import Decimal

import plotly.express as px
import streamlit as st

from dzbudget.agents import InsightInProgressError
from dzbudget.audit import create_correlation_id
from dzbudget.config import get_settings, validate_all_settings
from dzbudget.i18n import is_rtl, translate
from dzbudget.models.budget import (
    AccountType,
    AddTransaction,
    BudgetSnapshot,
    DeleteTransaction,
    Language,
    TransactionInput,
    TransactionType,
    UpdateCategoryLimit,
    UpdateSavingsGoal,
)
from dzbudget.orchestrator import BudgetStore, create_app_components
from dzbudget.services.storage import CorruptStateError, StorageError
from dzbudget.validation import ValidationError, get_user_friendly_summary


# Page configuration
st.set_page_config(
    page_title="DzBudget",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .rtl { direction: rtl; text-align: right; }
    .big-number { font-size: 2.2em; font-weight: bold; color: #2c3e50; }
    .over-limit { color: #EF4444; font-weight: bold; }
    .goal-reached { color: #10B981; font-weight: bold; }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def fmt_money(amount: Decimal, lang: Language) -> str:
    return f"{amount:,.2f} {translate('currency', lang)}"


def apply_command(store: BudgetStore, command, lang: Language) -> bool:
    """Run a store command, reporting a failed disk write to the user."""
    try:
        store.mutate(command, correlation_id=create_correlation_id())
        return True
    except StorageError:
        st.error(translate("storage_error", lang))
        return False


def main():
    """Main application entry point."""
    if "language" not in st.session_state:
        st.session_state.language = Language(get_settings().app.default_language)
    lang = st.session_state.language
    t = lambda key: translate(key, lang)  # noqa: E731

    try:
        store, insight_agent, audit_logger = get_components()
    except CorruptStateError as e:
        st.error(t("corrupt_state").format(key=e.key))
        st.stop()

    st.sidebar.title(f"💰 {t('app_title')}")
    if st.sidebar.button(t("switch_language")):
        st.session_state.language = Language.AR if lang == Language.FR else Language.FR
        st.rerun()
    st.sidebar.markdown("---")

    pages = {
        f"📊 {t('dashboard')}": lambda: render_dashboard(store, insight_agent, lang),
        f"💸 {t('transactions')}": lambda: render_transactions_page(store, lang),
        f"➕ {t('add_transaction')}": lambda: render_add_page(store, lang),
        f"⚙️ {t('settings')}": lambda: render_settings_page(store, audit_logger, lang),
    }
    page = st.sidebar.radio(t("app_title"), list(pages), label_visibility="collapsed")

    if is_rtl(lang):
        st.markdown('<div class="rtl">', unsafe_allow_html=True)
    pages[page]()
    if is_rtl(lang):
        st.markdown("</div>", unsafe_allow_html=True)


def render_dashboard(store: BudgetStore, insight_agent, lang: Language):
    """Balances, monthly spending, charts and AI insights."""
    t = lambda key: translate(key, lang)  # noqa: E731
    snapshot = store.snapshot()

    st.title(f"📊 {t('dashboard')}")

    col1, col2 = st.columns(2)
    with col1:
        st.metric(t("total_balance"), fmt_money(snapshot.total_balance, lang))
        c1, c2, c3 = st.columns(3)
        c1.metric(t("cash"), fmt_money(snapshot.cash_balance, lang))
        c2.metric(t("salary"), fmt_money(snapshot.salary_balance, lang))
        c3.metric(t("savings"), fmt_money(snapshot.savings_balance, lang))
    with col2:
        st.metric(t("monthly_spending"), fmt_money(snapshot.monthly_expense, lang))
        st.progress(
            min(100, int(snapshot.limit_usage_percent)),
            text=f"{snapshot.limit_usage_percent:.0f}% {t('limit_usage')}",
        )
        c1, c2 = st.columns(2)
        c1.metric(t("monthly_income"), fmt_money(snapshot.monthly_income, lang))
        c2.metric(t("health_score"), f"{snapshot.health_score:.0f} / 100")

    if snapshot.savings_goal > 0:
        st.progress(
            max(0, min(100, int(snapshot.savings_progress_percent))),
            text=(
                f"{t('savings_progress')}: {fmt_money(snapshot.savings_balance, lang)}"
                f" / {fmt_money(snapshot.savings_goal, lang)}"
            ),
        )

    render_insights(store, insight_agent, lang)

    col1, col2 = st.columns(2)
    with col1:
        st.subheader(t("spending_by_category"))
        render_pie_chart(snapshot, lang)
    with col2:
        st.subheader(t("budget_vs_actual"))
        render_budget_bars(snapshot, lang)


def render_insights(store: BudgetStore, insight_agent, lang: Language):
    t = lambda key: translate(key, lang)  # noqa: E731
    st.markdown(f"### ✨ {t('insights')}")

    if st.button(t("get_insights"), disabled=insight_agent.is_busy):
        with st.spinner(t("loading")):
            try:
                st.session_state.insight = run_async(
                    insight_agent.get_budget_insights(
                        transactions=store.log.list(),
                        categories=store.registry.to_list(),
                        language=lang,
                        correlation_id=create_correlation_id(),
                    )
                )
            except InsightInProgressError:
                st.info(t("insight_busy"))

    if st.session_state.get("insight"):
        st.info(st.session_state.insight)


def render_pie_chart(snapshot: BudgetSnapshot, lang: Language):
    breakdown = snapshot.spending_breakdown
    if not breakdown:
        st.caption(translate("no_spending", lang))
        return

    fig = px.pie(
        names=[m.display_name(lang) for m in breakdown],
        values=[float(m.spent) for m in breakdown],
        color=[m.category_id for m in breakdown],
        color_discrete_map={m.category_id: m.color for m in breakdown},
        hole=0.6,
    )
    fig.update_traces(textinfo="percent", hovertemplate="%{label}: %{value:,.0f}")
    fig.update_layout(showlegend=True, margin=dict(t=10, b=10, l=10, r=10))
    st.plotly_chart(fig, use_container_width=True)


def render_budget_bars(snapshot: BudgetSnapshot, lang: Language):
    t = lambda key: translate(key, lang)  # noqa: E731
    for metric in snapshot.category_metrics:
        label = f"{metric.icon} {metric.display_name(lang)}"
        if metric.is_savings_category:
            label += f" · {t('savings_goal')}"
        figures = f"{metric.spent:,.0f} / {metric.limit:,.0f}"
        if metric.is_over_limit:
            figures = f'<span class="over-limit">{figures} · {t("over_limit")}</span>'
        elif metric.goal_reached:
            figures = f'<span class="goal-reached">{figures} ✓</span>'
        st.markdown(f"**{label}** &nbsp; {figures}", unsafe_allow_html=True)
        # The engine keeps the true ratio, the bar is capped
        st.progress(min(100, int(metric.percent)))


def render_transactions_page(store: BudgetStore, lang: Language):
    """Newest-first list with delete buttons."""
    t = lambda key: translate(key, lang)  # noqa: E731
    transactions = store.log.list()

    st.title(f"💸 {t('recent_transactions')} ({len(transactions)})")

    if not transactions:
        st.info(t("no_transactions"))
        return

    for tx in transactions:
        category = store.registry.get(tx.category_id) if tx.category_id else None
        icon = (category.icon if category else "📦") if tx.is_expense else "💰"
        col1, col2, col3, col4 = st.columns([1, 5, 3, 2])
        col1.markdown(f"### {icon}")
        with col2:
            st.markdown(f"**{tx.description}**")
            caption = [tx.date.strftime("%d/%m/%Y %H:%M"), t(tx.account_type.value.lower())]
            if tx.is_expense and category:
                caption.append(category.display_name(lang))
            st.caption(" · ".join(caption))
        sign = "-" if tx.is_expense else "+"
        col3.markdown(f"**{sign}{fmt_money(tx.amount, lang)}**")
        if col4.button(t("delete"), key=f"delete-{tx.id}"):
            if apply_command(store, DeleteTransaction(transaction_id=tx.id), lang):
                st.rerun()


def render_add_page(store: BudgetStore, lang: Language):
    """Form for a new transaction."""
    t = lambda key: translate(key, lang)  # noqa: E731
    st.title(f"➕ {t('add_transaction')}")

    categories = store.registry.to_list()

    with st.form("add_transaction", clear_on_submit=True):
        tx_type = st.radio(
            t("type"),
            options=[TransactionType.EXPENSE, TransactionType.INCOME],
            format_func=lambda x: t(x.value.lower()),
            horizontal=True,
        )
        description = st.text_input(t("description"))
        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input(t("amount"), min_value=0.0, step=100.0, format="%.2f")
        with col2:
            account_type = st.selectbox(
                t("account"),
                options=list(AccountType),
                format_func=lambda x: t(x.value.lower()),
            )
        category = st.selectbox(
            t("category"),
            options=categories,
            format_func=lambda c: f"{c.icon} {c.display_name(lang)}",
        )
        submitted = st.form_submit_button(t("save"), type="primary")

    if submitted:
        tx_input = TransactionInput(
            description=description,
            amount=Decimal(str(amount)),
            category_id=category.id if category and tx_type == TransactionType.EXPENSE else None,
            account_type=account_type,
            type=tx_type,
        )
        try:
            if apply_command(store, AddTransaction(transaction=tx_input), lang):
                st.success(t("saved"))
        except ValidationError as e:
            st.error(get_user_friendly_summary(e.result, lang))


def render_settings_page(store: BudgetStore, audit_logger, lang: Language):
    """Savings goal, category limits and configuration status."""
    t = lambda key: translate(key, lang)  # noqa: E731
    st.title(f"⚙️ {t('settings')}")

    st.subheader(f"💰 {t('savings_account')}")
    goal = st.number_input(
        t("set_savings_goal"),
        min_value=0.0,
        value=float(store.savings_goal),
        step=1000.0,
    )
    if Decimal(str(goal)) != store.savings_goal:
        if apply_command(store, UpdateSavingsGoal(goal=Decimal(str(goal))), lang):
            st.rerun()

    st.subheader(t("category_limits"))
    cols = st.columns(2)
    for index, category in enumerate(store.registry.to_list()):
        with cols[index % 2]:
            new_limit = st.number_input(
                f"{category.icon} {category.display_name(lang)}",
                min_value=0.0,
                value=float(category.limit),
                step=500.0,
                key=f"limit-{category.id}",
            )
            if Decimal(str(new_limit)) != category.limit:
                command = UpdateCategoryLimit(
                    category_id=category.id,
                    limit=Decimal(str(new_limit)),
                )
                if apply_command(store, command, lang):
                    st.rerun()

    st.markdown("---")
    st.subheader(t("configuration"))
    status = validate_all_settings()
    for key in ("gemini", "storage", "app"):
        if status.get(key, False):
            st.success(f"✅ {key} - {t('service_ok')}")
        else:
            st.warning(f"⚠️ {key} - {t('service_missing')}")

    with st.expander(t("history")):
        for event in audit_logger.recent_events(limit=20):
            st.caption(f"{event['timestamp']} · {event['description']}")

    if st.button(t("reset_data"), type="secondary"):
        try:
            store.reset()
        except StorageError:
            st.error(t("storage_error"))
        else:
            st.session_state.pop("insight", None)
            # Limit inputs keep their own state and would write the old values back
            for key in [k for k in st.session_state if str(k).startswith("limit-")]:
                del st.session_state[key]
            st.rerun()


if __name__ == "__main__":
    main()
