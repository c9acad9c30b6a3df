"""
Streamlit Frontend for Split Ledger

The screen two people share to keep track of household spending.

DESIGN PRINCIPLES:
1. The balance is front and centre, from the viewer's side
2. Every expense shows what it means for the viewer (+ owed, - owes)
3. Settling, deleting and adding are one click each
4. Nothing is cached across reruns except the components

The viewer is read once per render from the loaded snapshot and passed
to every display function explicitly.
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from splitledger.audit import create_correlation_id
from splitledger.models.ledger import ExpenseCreate, SplitType
from splitledger.orchestrator import LedgerFlow, LedgerSnapshot, create_app_components
from splitledger.queries import (
    ALL_CATEGORIES,
    ExpensePreset,
    filter_by_category,
    group_by_month,
    new_expense_draft,
    preset_draft,
)
from splitledger.settlement import (
    AmountTone,
    BalancePosition,
    amount_tone,
    category_color,
    category_icon,
    format_signed_amount,
    net_balance_text,
    viewer_position,
)


st.set_page_config(
    page_title="Split Ledger",
    page_icon="💶",
    layout="centered",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .amount-owed-to-me { color: #16a34a; font-weight: 600; }
    .amount-i-owe { color: #dc2626; font-weight: 600; }
    .amount-paid-settled { color: #94a3b8; text-decoration: line-through; }
    .amount-neutral { color: #334155; }
    .balance-box {
        padding: 20px;
        border-radius: 10px;
        margin: 10px 0;
        background-color: #f1f5f9;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
    }
</style>
""", unsafe_allow_html=True)


TONE_CLASSES = {
    AmountTone.OWED_TO_VIEWER: "amount-owed-to-me",
    AmountTone.VIEWER_OWES: "amount-i-owe",
    AmountTone.SETTLED: "amount-paid-settled",
    AmountTone.NEUTRAL: "amount-neutral",
}

SPLIT_LABELS = {
    SplitType.EVEN_SPLIT: "Split 50/50",
    SplitType.PAYER_COVERS_OTHER: "Paid for the other",
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
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def main():
    """Main application entry point."""
    flow, supabase_client = get_components()

    st.sidebar.title("💶 Split Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🧾 Expenses", "👥 People & Categories", "⚙️ Settings"],
        index=0,
    )

    try:
        snapshot = run_async(flow.load(correlation_id=create_correlation_id()))
    except Exception as e:
        st.error(f"Could not load the ledger: {e}")
        st.stop()

    if page == "🧾 Expenses":
        render_expenses_page(flow, snapshot)
    elif page == "👥 People & Categories":
        render_catalog_page(flow, snapshot)
    elif page == "⚙️ Settings":
        render_settings_page(flow, snapshot, supabase_client)


def render_balance(snapshot: LedgerSnapshot):
    """Balance card from the viewer's side."""
    viewer_id = snapshot.primary_viewer_id
    position = viewer_position(
        snapshot.balance, snapshot.user1_id, snapshot.user2_id, viewer_id
    )
    text = net_balance_text(
        snapshot.balance, snapshot.user1_id, snapshot.user2_id, viewer_id
    )
    colour = {
        BalancePosition.OWED: "#16a34a",
        BalancePosition.OWES: "#dc2626",
    }.get(position, "#334155")

    st.markdown(f"""
    <div class="balance-box">
        <p>Hi {snapshot.primary_viewer_name}</p>
        <p class="big-number" style="color: {colour}">{text}</p>
    </div>
    """, unsafe_allow_html=True)

    if snapshot.report.skipped:
        st.warning(
            f"{snapshot.report.skipped_count} expense(s) could not be read "
            "and are not included in the balance."
        )


def render_expense_form(flow: LedgerFlow, snapshot: LedgerSnapshot):
    """Add-expense form with quick presets."""
    if not snapshot.users or not snapshot.categories:
        st.info("Add two people and at least one category to start recording expenses.")
        return

    payer_default = snapshot.primary_viewer_id or snapshot.users[0].id

    if "draft" not in st.session_state:
        st.session_state.draft = new_expense_draft(snapshot.categories, payer_default)

    cols = st.columns(len(ExpensePreset))
    for col, preset in zip(cols, ExpensePreset):
        with col:
            if st.button(preset.value.title(), key=f"preset-{preset.value}"):
                st.session_state.draft = preset_draft(preset, snapshot.categories, payer_default)
                st.rerun()

    draft: ExpenseCreate = st.session_state.draft
    user_ids = [u.id for u in snapshot.users]
    category_ids = [c.id for c in snapshot.categories]

    with st.form("add-expense", clear_on_submit=False):
        payer_id = st.selectbox(
            "Paid by",
            options=user_ids,
            index=user_ids.index(draft.payer_id) if draft.payer_id in user_ids else 0,
            format_func=snapshot.user_name,
        )
        amount = st.number_input(
            "Amount",
            value=float(draft.amount),
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        category_id = st.selectbox(
            "Category",
            options=category_ids,
            index=category_ids.index(draft.category_id) if draft.category_id in category_ids else 0,
            format_func=lambda cid: next(
                f"{category_icon(c.name)} {c.name}" for c in snapshot.categories if c.id == cid
            ),
        )
        incurred_date = st.date_input("Date", value=draft.incurred_date)
        split_type = st.radio(
            "Split",
            options=list(SplitType),
            index=list(SplitType).index(draft.split_type),
            format_func=SPLIT_LABELS.get,
            horizontal=True,
        )
        description = st.text_input("Description", value=draft.description)

        if st.form_submit_button("Save expense", type="primary"):
            new_draft = ExpenseCreate(
                payer_id=payer_id,
                amount=Decimal(str(amount)),
                category_id=category_id,
                incurred_date=incurred_date or date.today(),
                split_type=split_type,
                description=description,
            )
            try:
                expense, result = run_async(flow.add_expense(new_draft))
            except Exception as e:
                st.error(f"Failed to save: {e}")
                return
            if expense is None:
                st.error(flow.validator.get_user_friendly_summary(result))
                return
            del st.session_state.draft
            st.rerun()


def render_expenses_page(flow: LedgerFlow, snapshot: LedgerSnapshot):
    """Balance, add form and the month-grouped expense list."""
    st.title("🧾 Expenses")
    render_balance(snapshot)

    with st.expander("➕ Add expense"):
        render_expense_form(flow, snapshot)

    category_options = [ALL_CATEGORIES] + [c.id for c in snapshot.categories]
    selected = st.selectbox(
        "Category",
        options=category_options,
        format_func=lambda x: "All categories" if x == ALL_CATEGORIES else next(
            c.name for c in snapshot.categories if c.id == x
        ),
    )

    viewer_id = snapshot.primary_viewer_id
    expenses = filter_by_category(snapshot.expenses, selected)

    if not expenses:
        st.info("No expenses yet.")
        return

    for group in group_by_month(expenses):
        st.subheader(group.label)
        for expense in group.expenses:
            tone = amount_tone(expense, viewer_id)
            col1, col2, col3, col4 = st.columns([5, 2, 1, 1])
            with col1:
                colour = category_color(expense.category_name)
                st.markdown(
                    f"<span style='color:{colour}'>{category_icon(expense.category_name)}</span> "
                    f"**{expense.description or expense.category_name or 'Expense'}**  \n"
                    f"{snapshot.user_name(expense.payer_id) or 'Unknown'} · "
                    f"{expense.incurred_date.strftime('%d %b')} · "
                    f"{SPLIT_LABELS.get(expense.split, expense.split_type)}",
                    unsafe_allow_html=True,
                )
            with col2:
                st.markdown(
                    f"<span class='{TONE_CLASSES[tone]}'>"
                    f"{format_signed_amount(expense, viewer_id)}</span>",
                    unsafe_allow_html=True,
                )
            with col3:
                label = "↩️" if expense.is_settled else "✅"
                if st.button(label, key=f"settle-{expense.id}", help="Toggle settled"):
                    run_async(flow.toggle_settled(expense))
                    st.rerun()
            with col4:
                if st.button("🗑️", key=f"delete-{expense.id}", help="Delete"):
                    st.session_state.confirm_delete = expense.id

            if st.session_state.get("confirm_delete") == expense.id:
                st.warning("Are you sure you want to delete this expense?")
                yes, no = st.columns(2)
                if yes.button("Delete", key=f"confirm-{expense.id}"):
                    run_async(flow.delete_expense(expense.id))
                    st.session_state.confirm_delete = None
                    st.rerun()
                if no.button("Cancel", key=f"cancel-{expense.id}"):
                    st.session_state.confirm_delete = None
                    st.rerun()


def render_catalog_page(flow: LedgerFlow, snapshot: LedgerSnapshot):
    """Manage people and categories."""
    st.title("👥 People & Categories")

    st.markdown("### People")
    st.caption("The first two people (by id) share the balance.")
    for user in snapshot.users:
        col1, col2 = st.columns([5, 1])
        col1.markdown(f"**{user.name}** {user.email or ''}")
        if col2.button("🗑️", key=f"user-{user.id}"):
            run_async(flow.delete_user(user.id))
            st.rerun()

    with st.form("add-user", clear_on_submit=True):
        name = st.text_input("Name")
        email = st.text_input("Email (optional)")
        if st.form_submit_button("Add person") and name:
            run_async(flow.add_user(name, email or None))
            st.rerun()

    st.markdown("---")
    st.markdown("### Categories")
    for category in snapshot.categories:
        col1, col2 = st.columns([5, 1])
        col1.markdown(f"{category_icon(category.name)} {category.name}")
        if col2.button("🗑️", key=f"category-{category.id}"):
            run_async(flow.delete_category(category.id))
            st.rerun()

    with st.form("add-category", clear_on_submit=True):
        name = st.text_input("Category name")
        if st.form_submit_button("Add category") and name:
            run_async(flow.add_category(name))
            st.rerun()


def render_settings_page(flow: LedgerFlow, snapshot: LedgerSnapshot, supabase_client=None):
    """Viewer choice and connection status."""
    st.title("⚙️ Settings")

    st.markdown("### Who is using this device?")
    if snapshot.users:
        user_ids = [u.id for u in snapshot.users]
        current = snapshot.primary_viewer_id
        viewer = st.selectbox(
            "Show balances for",
            options=user_ids,
            index=user_ids.index(current) if current in user_ids else 0,
            format_func=snapshot.user_name,
        )
        if viewer != current and st.button("Save", type="primary"):
            run_async(flow.set_primary_viewer(viewer))
            st.rerun()
    else:
        st.info("Add people first.")

    st.markdown("---")
    st.markdown("### Connection Status")

    from splitledger.config import validate_all_settings

    status = validate_all_settings()
    if status.get("supabase", False):
        st.success("✅ Supabase (Storage) - Configured")
        if supabase_client is not None and not supabase_client.check_connection():
            st.warning("⚠️ Configured, but the store could not be reached")
    else:
        error = status.get("supabase_error", "Not configured")
        st.error(f"❌ Supabase (Storage) - {error}")
        st.caption("Running on in-memory storage; nothing will be kept after a restart.")

    st.markdown(
        "To configure the application, create a `.env` file with "
        "`SUPABASE_URL` and `SUPABASE_KEY`."
    )


if __name__ == "__main__":
    main()
