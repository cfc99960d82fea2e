"""
Streamlit Frontend for the Expense Tracker

The presentation layer. It only talks to ExpenseTracker; filtering,
aggregation and persistence all happen in the expense_tracker package.

DESIGN PRINCIPLES:
1. One form to add an expense, rejected drafts explained in plain words
2. Filters in the sidebar, applied immediately
3. Clearing all data needs an explicit confirmation
4. The selected view survives a restart
"""

from datetime import date

import streamlit as st

from expense_tracker.config import get_settings
from expense_tracker.models.expense import (
    Category,
    DateRange,
    ExpenseDraft,
    FilterDimension,
    PaymentMode,
    View,
)
from expense_tracker.orchestrator import (
    ExpenseTracker,
    create_app_components,
    format_currency,
)


DATE_RANGE_LABELS = {
    DateRange.ALL: "All time",
    DateRange.THIS_MONTH: "This month",
    DateRange.LAST_30: "Last 30 days",
    DateRange.LAST_90: "Last 90 days",
}

VIEW_LABELS = {
    View.LIST: "📋 Expenses",
    View.ANALYTICS: "📊 Analytics",
}


st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize storage: {e}")
        return create_app_components(use_storage=False)


def main():
    """Main application entry point."""
    tracker, _ = get_components()

    st.sidebar.title("💸 Expense Tracker")
    st.sidebar.markdown("---")

    views = list(View)
    selected = st.sidebar.radio(
        "Navigate to:",
        views,
        index=views.index(tracker.view),
        format_func=VIEW_LABELS.get,
    )
    tracker.set_view(selected)

    st.sidebar.markdown("---")
    render_filters(tracker)
    st.sidebar.markdown("---")
    render_clear_all(tracker)

    if tracker.view == View.LIST:
        render_list_page(tracker)
    else:
        render_analytics_page(tracker)


def render_filters(tracker: ExpenseTracker):
    """Sidebar filters; every change is saved straight away."""
    st.sidebar.subheader("Filters")
    filters = tracker.filters

    ranges = list(DateRange)
    date_range = st.sidebar.selectbox(
        "Date range",
        ranges,
        index=ranges.index(filters.date_range),
        format_func=DATE_RANGE_LABELS.get,
    )
    if date_range != filters.date_range:
        tracker.set_date_range(date_range)

    st.sidebar.markdown("**Categories**")
    for category in Category:
        checked = st.sidebar.checkbox(
            category.value,
            value=category in filters.categories,
            key=f"category_{category.name}",
        )
        if checked != (category in filters.categories):
            tracker.toggle_filter(FilterDimension.CATEGORIES, category)

    st.sidebar.markdown("**Payment modes**")
    for mode in PaymentMode:
        checked = st.sidebar.checkbox(
            mode.value,
            value=mode in filters.payment_modes,
            key=f"payment_{mode.name}",
        )
        if checked != (mode in filters.payment_modes):
            tracker.toggle_filter(FilterDimension.PAYMENT_MODES, mode)


def render_clear_all(tracker: ExpenseTracker):
    """Destructive clear, gated behind a confirmation checkbox."""
    confirmed = st.sidebar.checkbox(
        "I understand this deletes every expense",
        key="confirm_clear",
    )
    if st.sidebar.button("🗑️ Clear All", disabled=not confirmed):
        removed = tracker.clear_all()
        for key in list(st.session_state.keys()):
            if key.startswith(("category_", "payment_", "confirm_")):
                del st.session_state[key]
        st.sidebar.success(f"Removed {removed} expenses.")
        st.rerun()


def render_add_form(tracker: ExpenseTracker):
    """Form for a new expense."""
    with st.expander("➕ Add Expense", expanded=not tracker.expenses):
        with st.form("add_expense", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                amount = st.text_input("Amount", placeholder="e.g. 250")
                category = st.selectbox(
                    "Category",
                    [""] + [c.value for c in Category],
                )
                expense_date = st.date_input("Date", value=date.today())
            with col2:
                payment_mode = st.selectbox(
                    "Payment mode",
                    [""] + [m.value for m in PaymentMode],
                )
                notes = st.text_area(
                    "Notes",
                    height=100,
                    max_chars=get_settings().app.max_notes_length,
                )

            if st.form_submit_button("Add Expense", type="primary"):
                expense = tracker.add_expense(ExpenseDraft(
                    amount=amount,
                    category=category,
                    payment_mode=payment_mode,
                    expense_date=expense_date,
                    notes=notes,
                ))
                if expense is None:
                    for issue in tracker.last_validation.issues:
                        st.error(issue.message)
                else:
                    for issue in tracker.last_validation.warnings:
                        st.warning(issue.message)
                    st.success(
                        f"Added {format_currency(expense.amount)} "
                        f"for {expense.category.value}"
                    )


def render_list_page(tracker: ExpenseTracker):
    """Render the filtered expense list."""
    st.title("📋 Expenses")
    render_add_form(tracker)

    visible = tracker.visible_expenses()
    summary = tracker.summary()

    col1, col2 = st.columns(2)
    col1.metric("Expenses", summary["count"])
    col2.metric("Total", format_currency(summary["total"]))

    st.markdown("---")

    if not visible:
        st.info("No expenses found matching your filters.")
        return

    for expense in visible:
        col1, col2, col3 = st.columns([2, 5, 1])
        col1.markdown(f"**{format_currency(expense.amount)}**")
        col2.markdown(
            f"{expense.category.value} · {expense.payment_mode.value} · "
            f"{expense.expense_date.strftime('%d %b %Y')}"
            + (f"  \n_{expense.notes}_" if expense.notes else "")
        )
        if col3.button("✖", key=f"delete_{expense.id}", help="Delete expense"):
            tracker.delete_expense(expense.id)
            st.rerun()


def render_analytics_page(tracker: ExpenseTracker):
    """Render monthly totals per category as a stacked bar chart."""
    st.title("📊 Monthly Expenses by Category")

    only_filtered = st.checkbox("Apply filters to chart", value=False)
    series = tracker.chart_series(filtered=only_filtered)

    if not series:
        st.info("No data available for chart. Add some expenses first.")
        return

    categories = [category.value for category in Category]
    data = {"month": [row.month for row in series]}
    for category in Category:
        data[category.value] = [float(row.totals[category]) for row in series]

    st.bar_chart(data, x="month", y=categories)

    with st.expander("🔍 Monthly totals"):
        for row in series:
            st.markdown(f"**{row.month}**: {format_currency(row.total)}")


if __name__ == "__main__":
    main()
