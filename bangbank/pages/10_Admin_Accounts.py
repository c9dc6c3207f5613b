"""
Account Applications Page - review pending savings / fixed-deposit applications.
Roles: admin
"""

import os

import streamlit as st

from core.models.permissions import Capability
from core.services.account_service import AccountService
from utils.auth_guard import require_capability, get_current_user, get_user_role
from utils.sidebar import render_sidebar
from utils.formatters import format_currency, format_date, role_label, status_badge
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, flash
from utils.uploads import resolve_path

require_capability(Capability.REVIEW_APPLICATIONS)
render_sidebar()

sd = get_current_user()
actor_role = get_user_role()
svc = AccountService()

st.title("Account Applications")
show_flashes()
st.markdown("---")

pending = svc.list_pending_applications()
if not pending:
    st.success("No pending account applications.")

for app in pending:
    with st.container(border=True):
        c1, c2, c3 = st.columns([3, 3, 2])
        c1.markdown(f"**{app['username']}** ({app['email']})")
        c1.caption(f"Applied {format_date(app['opened_at'])}")
        c2.markdown(f"**{app['product_name']}** ({role_label(app['product_type'])})  \n"
                    f"`{app['account_number']}`  \nInitial deposit: {format_currency(app['balance'])}")

        if app.get("id_type"):
            c3.markdown(f"**{app['id_type'].upper()}:** {app['id_number']}  \n"
                        f"KYC: {status_badge(app['kyc_status'])}")
            document = resolve_path(app.get("document_path"))
            if document and os.path.exists(document):
                with open(document, "rb") as fh:
                    c3.download_button("KYC Document", fh.read(), file_name=os.path.basename(document),
                                       key=f"kyc_acc_{app['account_id']}")

        b1, b2, _ = st.columns([1, 1, 4])
        if b1.button("Approve", key=f"approve_acc_{app['account_id']}", type="primary"):
            try:
                svc.approve_account(sd["user_id"], actor_role, app["account_id"])
            except BankingSystemException as e:
                st.error(e.message)
            else:
                flash(f"Account {app['account_number']} approved.")
                st.rerun()
        if b2.button("Reject", key=f"reject_acc_{app['account_id']}"):
            try:
                svc.reject_account(sd["user_id"], actor_role, app["account_id"])
            except BankingSystemException as e:
                st.error(e.message)
            else:
                flash(f"Account {app['account_number']} rejected.", "warning")
                st.rerun()
