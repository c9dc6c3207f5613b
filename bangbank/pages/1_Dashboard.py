"""
Dashboard Page - Unified interface with role-based conditional rendering.
Customers see their products, advisors their schedule, admins the bank overview.
"""

import streamlit as st
import pandas as pd

from utils.auth_guard import require_login, get_current_user, is_admin, is_advisor, is_customer
from utils.sidebar import render_sidebar
from utils.formatters import format_currency, format_date, format_time, status_badge, role_label
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes

require_login()
render_sidebar()

sd = get_current_user()

# Header
st.title("Dashboard Overview")
st.caption(f"Welcome, **{sd.get('username', 'User')}** ({role_label(sd.get('role'))})")
show_flashes()
st.markdown("---")

# ===============================================================
# CUSTOMER DASHBOARD
# ===============================================================
if is_customer():
    from core.services.account_service import AccountService
    from core.services.credit_card_service import CreditCardService

    try:
        accounts = AccountService().get_customer_accounts(sd["user_id"])
        cards = CreditCardService().get_customer_cards(sd["user_id"])
    except BankingSystemException as e:
        st.error(f"Error loading banking data: {e.message}")
        st.stop()

    active = [a for a in accounts if a.status.value == "active"]
    c1, c2, c3 = st.columns(3)
    c1.metric("Active Accounts", len(active))
    c2.metric("Total Balance", format_currency(sum((a.balance for a in active), start=0)))
    c3.metric("Credit Cards", len([c for c in cards if c.status.value == "active"]))

    st.subheader("My Accounts")
    if not accounts:
        st.info("You have no accounts yet.")
        st.page_link("pages/5_Apply.py", label="Browse products and apply ->")
    else:
        st.dataframe(pd.DataFrame([{
            "Account #": a.account_number,
            "Product": a.product_name,
            "Type": role_label(a.product_type) if a.product_type else "",
            "Balance": format_currency(a.balance),
            "Status": status_badge(a.status),
            "Opened": format_date(a.opened_at),
        } for a in accounts]), use_container_width=True, hide_index=True)

    st.subheader("My Credit Cards")
    if not cards:
        st.info("You have no credit cards.")
    else:
        st.dataframe(pd.DataFrame([{
            "Card": f"**** {c.card_number[-4:]}",
            "Product": c.product_name,
            "Limit": format_currency(c.credit_limit),
            "Expiry": format_date(c.expiry_date),
            "Status": status_badge(c.status),
        } for c in cards]), use_container_width=True, hide_index=True)

# ===============================================================
# ADVISOR DASHBOARD
# ===============================================================
elif is_advisor():
    from core.services.consultation_service import ConsultationService

    if "calendar_oauth" in st.session_state:
        st.switch_page("pages/12_Advisor_Sessions.py")

    svc = ConsultationService()
    try:
        slots = svc.get_advisor_slots(sd["user_id"])
        consultations = svc.get_advisor_consultations(sd["user_id"])
        connected = svc.is_calendar_connected(sd["user_id"])
    except BankingSystemException as e:
        st.error(f"Error loading schedule: {e.message}")
        st.stop()

    c1, c2, c3 = st.columns(3)
    c1.metric("Open Slots", len([s for s in slots if not s["is_booked"]]))
    c2.metric("Booked Consultations", len([c for c in consultations if c["status"] == "booked"]))
    c3.metric("Google Calendar", "Connected" if connected else "Not connected")
    if not connected:
        st.warning("Connect Google Calendar so customers can book you with a Meet link.")
        st.page_link("pages/12_Advisor_Sessions.py", label="Manage sessions and calendar ->")

    st.subheader("My Slots")
    if slots:
        st.dataframe(pd.DataFrame([{
            "Date": format_date(s["session_date"]),
            "Start": format_time(s["session_time"]),
            "End": format_time(s["end_time"]),
            "Booked": "Yes" if s["is_booked"] else "No",
            "Bookings": s.get("booked_count", 0),
        } for s in slots]), use_container_width=True, hide_index=True)
    else:
        st.info("No slots created yet.")

    st.subheader("My Consultations")
    if consultations:
        st.dataframe(pd.DataFrame([{
            "Date": format_date(c["session_date"]),
            "Time": format_time(c["session_time"]),
            "Customer": c["customer_name"],
            "Email": c["customer_email"],
            "Status": status_badge(c["status"]),
            "Meet Link": c.get("meet_link") or "",
        } for c in consultations]), use_container_width=True, hide_index=True)
    else:
        st.info("No consultations booked yet.")

# ===============================================================
# ADMIN DASHBOARD
# ===============================================================
elif is_admin():
    from core.services.report_service import ReportService
    from core.services.user_service import UserService
    from core.services.audit_service import AuditService

    tab_overview, tab_users, tab_audit = st.tabs(["Overview", "Users", "Audit Logs"])

    with tab_overview:
        st.subheader("System Overview")
        try:
            summary = ReportService().get_summary()
        except BankingSystemException as e:
            st.error(e.message)
        else:
            c1, c2, c3, c4 = st.columns(4)
            c1.metric("Users", summary["total_users"])
            c2.metric("Active Accounts", summary["active_accounts"])
            c3.metric("Active Cards", summary["active_cards"])
            c4.metric("Total Balance", format_currency(summary["total_balance"]))

            c5, c6, c7, c8 = st.columns(4)
            c5.metric("Pending Accounts", summary["pending_accounts"])
            c6.metric("Pending Cards", summary["pending_cards"])
            c7.metric("Consultations", summary["total_consultations"])
            c8.metric("Transactions", summary["total_transactions"])

        qa1, qa2 = st.columns(2)
        qa1.page_link("pages/7_Reports.py", label="Detailed Reports", use_container_width=True)
        if qa2.button("Refresh Overview", use_container_width=True):
            st.rerun()

    with tab_users:
        st.subheader("All Users")
        users = UserService().list_users()
        st.dataframe(pd.DataFrame([{
            "ID": u.user_id,
            "Username": u.username,
            "Email": u.email,
            "Name": u.full_name,
            "Role": role_label(u.role),
            "Joined": format_date(u.created_at),
        } for u in users]), use_container_width=True, hide_index=True)
        st.page_link("pages/8_Admin_Users.py", label="Manage users ->")

    with tab_audit:
        st.subheader("Recent Activity")
        logs = AuditService().get_latest_activity()
        if logs:
            st.dataframe(pd.DataFrame(logs)[["created_at", "actor_id", "role", "action", "details"]],
                         use_container_width=True, hide_index=True)
        else:
            st.info("No audit entries yet.")
