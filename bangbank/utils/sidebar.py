"""
Sidebar shown on every signed-in page: avatar, username, role and logout.
"""

import os

import streamlit as st
from utils.auth_guard import handle_logout, get_current_user, is_admin, is_advisor, is_customer
from utils.formatters import role_label
from utils.uploads import resolve_path


def render_sidebar():
    """Draw the sidebar for the current session user."""
    with st.sidebar:
        st.markdown("## 🏦 BangBank")
        st.markdown("---")

        sd = get_current_user()
        if sd:
            image_path = resolve_path(sd.get("image")) if sd.get("image") else None
            if image_path and os.path.exists(image_path):
                st.image(image_path, width=96)
            st.markdown(f"**{sd.get('username', 'User')}**")
            st.caption(f"Role: {role_label(sd.get('role', 'customer'))}")

            st.markdown("---")

            if is_customer():
                st.caption("Customer Portal")
            elif is_advisor():
                st.caption("Advisor Portal")
            elif is_admin():
                st.caption("Admin Dashboard")

            st.markdown("---")

            if st.button("Logout", use_container_width=True, key="sidebar_logout"):
                handle_logout()
