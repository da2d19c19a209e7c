"""
app.py
Streamlit Membership Desk (staff sign-in, role-gated screens).
Run: streamlit run app.py
"""

from __future__ import annotations

import streamlit as st

import auth
import ledger
import membership
import reports
import store
from config import get_settings
from errors import MembershipDeskError
from logging_utils import configure_root_logger
from models import Capability, Duration, MembershipStatus, Role, TransactionType

st.set_page_config(page_title="Membership Desk", layout="wide")

PAGES = {
    "Maintenance": Capability.MANAGE_MEMBERSHIPS,
    "Reports": Capability.VIEW_REPORTS,
    "Transactions": Capability.VIEW_TRANSACTIONS,
}


def init_once():
    # One backend per browser session; the Supabase client carries the user's token
    if "backend" not in st.session_state:
        settings = get_settings()
        configure_root_logger(settings.log_level.upper())
        st.session_state.backend = store.open_backend(settings)
    if "session" not in st.session_state:
        st.session_state.session = None


def current_session() -> auth.Session | None:
    session = st.session_state.session
    if session is not None and not session.active:
        st.session_state.session = None
        return None
    return session


def logout(session: auth.Session):
    try:
        auth.sign_out(session)
    except MembershipDeskError as e:
        st.warning(f"Signed out locally; the server reported: {e}")
    st.session_state.session = None
    st.session_state.page = None
    st.session_state.pop("found_membership", None)


def duration_radio(label: str, key: str) -> Duration:
    return st.radio(
        label,
        options=list(Duration),
        format_func=lambda d: d.label,
        key=key,
    )


# ---------- Sign in / sign up ----------

def login_screen():
    st.title("🔐 Staff Sign In")

    col1, col2 = st.columns([1, 1])
    with col1:
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        if st.button("Sign in", type="primary"):
            try:
                session = auth.sign_in(st.session_state.backend, email, password)
            except MembershipDeskError as e:
                st.error(str(e))
                return
            if session is None:
                st.error("Invalid email or password.")
                return
            st.session_state.session = session
            st.rerun()

    with col2:
        settings = get_settings()
        if settings.backend == "sqlite":
            st.info(
                "First run creates a default admin:\n\n"
                f"- email: **{settings.default_admin_email}**\n"
                "- password: the configured default (**admin123** unless overridden)\n\n"
                "You will be forced to change it on first login."
            )
        if st.button("Need an account? Sign up"):
            st.session_state.auth_view = "signup"
            st.rerun()


def signup_screen():
    st.title("📝 Create Account")

    with st.form("signup"):
        full_name = st.text_input("Full name")
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign up", type="primary")

    if submitted:
        try:
            auth.sign_up(st.session_state.backend, email, password, full_name)
        except MembershipDeskError as e:
            st.error(str(e))
        else:
            st.success("Account created. You can sign in now.")

    if st.button("Already have an account? Sign in"):
        st.session_state.auth_view = "login"
        st.rerun()


def force_change_password_screen(session: auth.Session):
    st.title("⚠️ Change Password (Required)")

    st.warning("You must change the default password before using the app.")
    new1 = st.text_input("New password", type="password")
    new2 = st.text_input("Confirm new password", type="password")

    if st.button("Update password", type="primary"):
        try:
            auth.change_password(session, new1, new2)
        except MembershipDeskError as e:
            st.error(str(e))
            return
        st.success("Password updated. You can continue.")
        st.rerun()


# ---------- Maintenance ----------

def add_member_form(session: auth.Session):
    st.subheader("Add New Member")

    with st.form("add_member", clear_on_submit=True):
        full_name = st.text_input("Full Name *")
        email = st.text_input("Email *")
        phone = st.text_input("Phone *")
        duration = duration_radio("Membership Duration *", key="add_duration")
        submitted = st.form_submit_button("Add Member", type="primary")

    if submitted:
        try:
            m = membership.create_membership(session, full_name, email, phone, duration)
        except MembershipDeskError as e:
            st.error(str(e))
        else:
            st.success(f"Member added successfully! Membership Number: {m.membership_number}")


def member_details(m):
    st.markdown(
        f"**Name:** {m.full_name}  \n"
        f"**Email:** {m.email}  \n"
        f"**Phone:** {m.phone}  \n"
        f"**Duration:** {m.duration.label}  \n"
        f"**Start Date:** {m.start_date.isoformat()}  \n"
        f"**End Date:** {m.end_date.isoformat()}  \n"
        f"**Status:** {reports.status_badge(membership.effective_status(m))}"
    )


def update_member_form(session: auth.Session):
    st.subheader("Update Member")

    col1, col2 = st.columns([3, 1])
    with col1:
        number = st.text_input("Membership Number *", placeholder="Enter membership number")
    with col2:
        st.write("")
        search = st.button("Search")

    if search:
        st.session_state.found_membership = None
        try:
            found = membership.lookup_membership(session, number)
        except MembershipDeskError as e:
            st.error(str(e))
            return
        if found is None:
            st.error("Membership not found")
            return
        st.session_state.found_membership = found

    m = st.session_state.get("found_membership")
    if not m:
        return

    st.divider()
    member_details(m)

    action = st.radio(
        "Action *",
        options=["extend", "cancel"],
        format_func=lambda a: "Extend Membership" if a == "extend" else "Cancel Membership",
        horizontal=True,
    )
    if action == "extend":
        duration = duration_radio("Extension Duration *", key="extend_duration")
        st.caption(f"New end date: {membership.extended_end_date(m, duration).isoformat()}")
        label = "Extend Membership"
    else:
        label = "Cancel Membership"

    if st.button(label, type="primary"):
        try:
            if action == "extend":
                updated = membership.extend_membership(session, m, duration)
                st.success(f"Membership extended successfully until {updated.end_date.isoformat()}")
            else:
                membership.cancel_membership(session, m)
                st.success("Membership cancelled successfully")
        except MembershipDeskError as e:
            st.error(str(e))
            return
        st.session_state.found_membership = None


def maintenance_page(session: auth.Session):
    st.header("🛠️ Membership Maintenance")

    mode = st.radio("Mode", ["Add Member", "Update Member"], horizontal=True, label_visibility="collapsed")
    if mode == "Add Member":
        add_member_form(session)
    else:
        update_member_form(session)


# ---------- Reports ----------

def reports_page(session: auth.Session):
    st.header("📊 Membership Reports")

    try:
        memberships = store.list_memberships(session)
    except MembershipDeskError as e:
        st.error(str(e))
        return

    stats = reports.status_counts(memberships)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Members", stats["total"])
    c2.metric("Active", stats[MembershipStatus.ACTIVE.value])
    c3.metric("Cancelled", stats[MembershipStatus.CANCELLED.value])
    c4.metric("Expired", stats[MembershipStatus.EXPIRED.value])

    st.divider()

    st.subheader("All Memberships")
    if memberships:
        st.dataframe(reports.memberships_frame(memberships), use_container_width=True, hide_index=True)
        st.download_button(
            "Download memberships.csv",
            data=reports.memberships_csv(memberships),
            file_name="memberships.csv",
            mime="text/csv",
        )
    else:
        st.caption("No memberships found")


# ---------- Transactions ----------

def add_transaction_form(session: auth.Session):
    st.subheader("Add Transaction")

    col1, col2 = st.columns([3, 1])
    with col1:
        number = st.text_input(
            "Membership Number (Optional)",
            placeholder="Leave empty for general transactions",
            key="txn_membership_number",
        )
    with col2:
        st.write("")
        if st.button("Find"):
            try:
                found = membership.lookup_membership(session, number)
            except MembershipDeskError as e:
                st.error(str(e))
            else:
                if found:
                    st.success(f"Found: {found.full_name}")
                else:
                    st.caption("No membership with that number; the transaction will be unlinked.")

    with st.form("add_transaction", clear_on_submit=True):
        transaction_type = st.radio(
            "Transaction Type *",
            options=list(TransactionType),
            format_func=lambda t: t.value.capitalize(),
        )
        amount = st.text_input("Amount *")
        description = st.text_area("Description *", height=80)
        submitted = st.form_submit_button("Add Transaction", type="primary")

    if submitted:
        try:
            ledger.record_transaction(session, number, transaction_type, amount, description)
        except MembershipDeskError as e:
            st.error(str(e))
            return
        st.session_state.show_add_transaction = False
        st.rerun()


def transactions_page(session: auth.Session):
    st.header("💳 Transactions")

    if session.can(Capability.RECORD_TRANSACTIONS):
        if st.button("➕ Add Transaction"):
            st.session_state.show_add_transaction = not st.session_state.get("show_add_transaction", False)

    try:
        transactions = ledger.list_transactions(session)
    except MembershipDeskError as e:
        st.error(str(e))
        return

    st.metric("Total Balance", f"${ledger.compute_balance(transactions):,.2f}")

    if st.session_state.get("show_add_transaction") and session.can(Capability.RECORD_TRANSACTIONS):
        add_transaction_form(session)

    st.divider()

    st.subheader("Transaction History")
    if transactions:
        st.dataframe(
            reports.transactions_frame(transactions),
            use_container_width=True,
            hide_index=True,
            column_config={"Amount": st.column_config.NumberColumn(format="%+.2f")},
        )
        st.subheader("Revenue by month")
        st.dataframe(reports.revenue_by_month(transactions), use_container_width=True, hide_index=True)
        st.download_button(
            "Download transactions.csv",
            data=reports.transactions_csv(transactions),
            file_name="transactions.csv",
            mime="text/csv",
        )
    else:
        st.caption("No transactions found")


def main_app(session: auth.Session):
    st.sidebar.title("🪪 Membership Desk")
    st.sidebar.caption(f"Signed in as: {session.profile.full_name} ({session.role.value})")

    pages = [name for name, capability in PAGES.items() if session.can(capability)]
    if st.session_state.get("page") not in pages:
        st.session_state.page = "Maintenance" if session.role is Role.ADMIN else "Reports"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Logout"):
        logout(session)
        st.rerun()

    if st.session_state.page == "Maintenance":
        maintenance_page(session)
    elif st.session_state.page == "Reports":
        reports_page(session)
    elif st.session_state.page == "Transactions":
        transactions_page(session)


# --------- App entry ---------

def run():
    init_once()
    session = current_session()

    if session is None:
        if st.session_state.get("auth_view") == "signup":
            signup_screen()
        else:
            login_screen()
        return

    # Force password change on first login after DB creation
    try:
        must_change = auth.must_change_password(session)
    except MembershipDeskError as e:
        st.error(str(e))
        return
    if must_change:
        force_change_password_screen(session)
        return

    main_app(session)


if __name__ == "__main__":
    run()
