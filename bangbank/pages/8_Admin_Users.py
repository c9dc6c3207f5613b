"""
User Management Page - create, view, edit and delete users.
Roles: admin (customers, advisors), super_admin (also admins)
"""

import streamlit as st
import pandas as pd

from core.models.permissions import Capability, can_manage, manageable_roles
from core.services.user_service import UserService
from utils.auth_guard import require_capability, get_current_user, get_user_role
from utils.sidebar import render_sidebar
from utils.formatters import format_currency, format_date, status_badge, role_label
from utils.forms import profile_fields, password_fields
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, flash

require_capability(Capability.MANAGE_USERS)
render_sidebar()

sd = get_current_user()
actor_role = get_user_role()
svc = UserService()
assignable = sorted(manageable_roles(actor_role), key=lambda r: r.value)

st.title("User Management")
show_flashes()
st.markdown("---")

users = svc.list_users()
manageable = [u for u in users if u.user_id != sd["user_id"] and can_manage(actor_role, u.role)]

tab_list, tab_create, tab_edit = st.tabs(["Users", "Create User", "View / Edit"])

with tab_list:
    st.dataframe(pd.DataFrame([{
        "ID": u.user_id,
        "Username": u.username,
        "Email": u.email,
        "Name": u.full_name,
        "Role": role_label(u.role),
        "Phone": u.phone,
        "Joined": format_date(u.created_at),
    } for u in users]), use_container_width=True, hide_index=True)

with tab_create:
    with st.form("create_user_form", clear_on_submit=False):
        role = st.selectbox("Role", assignable, format_func=role_label)
        data = profile_fields(key="new_user")
        data.update(password_fields(key="new_user"))
        create_submitted = st.form_submit_button("Create User", use_container_width=True, type="primary")

    if create_submitted:
        try:
            data["role"] = role
            user_id = svc.create_user(sd["user_id"], actor_role, data)
        except BankingSystemException as e:
            st.error(e.message)
        else:
            flash(f"User created (ID {user_id}).")
            st.rerun()

with tab_edit:
    if not manageable:
        st.info("There are no users you can manage.")
        st.stop()

    target = st.selectbox(
        "User", manageable,
        format_func=lambda u: f"{u.username} ({role_label(u.role)}) - {u.email}",
    )

    try:
        details = svc.get_user_details(sd["user_id"], actor_role, target.user_id)
    except BankingSystemException as e:
        st.error(e.message)
        st.stop()

    with st.expander("Accounts, cards and KYC", expanded=True):
        st.markdown("**Accounts**")
        if details["accounts"]:
            st.dataframe(pd.DataFrame([{
                "Account #": a.account_number, "Product": a.product_name,
                "Balance": format_currency(a.balance), "Status": status_badge(a.status),
            } for a in details["accounts"]]), use_container_width=True, hide_index=True)
        else:
            st.caption("None")

        st.markdown("**Credit Cards**")
        if details["cards"]:
            st.dataframe(pd.DataFrame([{
                "Card": f"**** {c.card_number[-4:]}", "Product": c.product_name,
                "Limit": format_currency(c.credit_limit), "Status": status_badge(c.status),
            } for c in details["cards"]]), use_container_width=True, hide_index=True)
        else:
            st.caption("None")

        st.markdown("**KYC Documents**")
        if details["kyc_documents"]:
            st.dataframe(pd.DataFrame(details["kyc_documents"]), use_container_width=True, hide_index=True)
        else:
            st.caption("None")

    with st.form("edit_user_form"):
        role = st.selectbox("Role", assignable, index=assignable.index(target.role), format_func=role_label)
        data = profile_fields(target, key=f"edit_{target.user_id}")
        st.caption("Leave the password blank to keep the current one.")
        data.update(password_fields(key=f"edit_{target.user_id}", required=False))
        edit_submitted = st.form_submit_button("Save Changes", use_container_width=True)

    if edit_submitted:
        try:
            data["role"] = role
            svc.update_user(sd["user_id"], actor_role, target.user_id, data)
        except BankingSystemException as e:
            st.error(e.message)
        else:
            flash(f"User {target.username} updated.")
            st.rerun()

    st.markdown("---")
    confirm = st.checkbox(f"I understand deleting {target.username} cannot be undone.")
    if st.button("Delete User", type="primary", disabled=not confirm):
        try:
            svc.delete_user(sd["user_id"], actor_role, target.user_id)
        except BankingSystemException as e:
            st.error(e.message)
        else:
            flash(f"User {target.username} deleted.")
            st.rerun()
