"""
Card Applications Page - review pending credit card applications.
Roles: admin
"""

import os

import streamlit as st

from core.models.permissions import Capability
from core.services.credit_card_service import CreditCardService
from utils.auth_guard import require_capability, get_current_user, get_user_role
from utils.sidebar import render_sidebar
from utils.formatters import format_currency, format_date, status_badge, to_decimal
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, flash
from utils.uploads import resolve_path

require_capability(Capability.REVIEW_APPLICATIONS)
render_sidebar()

sd = get_current_user()
actor_role = get_user_role()
svc = CreditCardService()

st.title("Credit Card Applications")
show_flashes()
st.markdown("---")

pending = svc.list_pending_applications()
if not pending:
    st.success("No pending card applications.")

for app in pending:
    with st.container(border=True):
        c1, c2, c3 = st.columns([3, 3, 2])
        c1.markdown(f"**{app['username']}** ({app['email']})")
        c2.markdown(f"**{app['product_name']}**  \n"
                    f"Requested limit: {format_currency(app['credit_limit'])}  \n"
                    f"Expiry: {format_date(app['expiry_date'])}")

        if app.get("id_type"):
            c3.markdown(f"**{app['id_type'].upper()}:** {app['id_number']}  \n"
                        f"KYC: {status_badge(app['kyc_status'])}")
            document = resolve_path(app.get("document_path"))
            if document and os.path.exists(document):
                with open(document, "rb") as fh:
                    c3.download_button("KYC Document", fh.read(), file_name=os.path.basename(document),
                                       key=f"kyc_card_{app['card_id']}")

        l1, b1, b2 = st.columns([2, 1, 1])
        limit = l1.number_input("Approved Limit", min_value=0.0, step=500.0, format="%.2f",
                                value=float(app["credit_limit"]), key=f"limit_{app['card_id']}")
        if b1.button("Approve", key=f"approve_card_{app['card_id']}", type="primary"):
            try:
                svc.approve_card(sd["user_id"], actor_role, app["card_id"], to_decimal(limit))
            except BankingSystemException as e:
                st.error(e.message)
            else:
                flash(f"Card for {app['username']} approved.")
                st.rerun()
        if b2.button("Reject", key=f"reject_card_{app['card_id']}"):
            try:
                svc.reject_card(sd["user_id"], actor_role, app["card_id"])
            except BankingSystemException as e:
                st.error(e.message)
            else:
                flash(f"Card for {app['username']} rejected.", "warning")
                st.rerun()
