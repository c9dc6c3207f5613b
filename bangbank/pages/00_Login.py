"""
Login Page - email and password sign-in
"""

import streamlit as st

from core.services.authentication_service import AuthenticationService
from utils.auth_guard import start_session
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes

# Centered login card
col_left, col_center, col_right = st.columns([1, 2, 1])

with col_center:
    st.markdown("<br>", unsafe_allow_html=True)
    st.markdown(
        """
        <div style="text-align:center">
            <h1 style="color:#1B4F72">🏦 BangBank</h1>
            <p style="color:#5D6D7E; font-size:1.1rem">Banking, advice and more</p>
        </div>
        """,
        unsafe_allow_html=True,
    )
    st.markdown("---")
    show_flashes()

    # --- Login form ---
    with st.form("login_form", clear_on_submit=False):
        st.subheader("Login")
        email = st.text_input("Email", placeholder="you@example.com")
        password = st.text_input("Password", type="password", placeholder="Enter your password")
        submitted = st.form_submit_button("Login", use_container_width=True)

    if submitted:
        if not email or not password:
            st.error("Please enter both email and password.")
        else:
            with st.spinner("Authenticating..."):
                try:
                    result = AuthenticationService().login(email, password)
                    start_session(result)
                    st.rerun()
                except BankingSystemException as e:
                    st.error(e.message)

    link_col1, link_col2 = st.columns(2)
    link_col1.page_link("pages/0_Register.py", label="Create an account")
    link_col2.page_link("pages/14_Forgot_Password.py", label="Forgot password?")

    st.markdown("---")
    st.caption("(c) 2026 BangBank")
