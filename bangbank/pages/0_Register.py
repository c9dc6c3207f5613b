"""
Registration Page - BangBank
Self sign-up; new users are always customers
"""

import streamlit as st

from core.services.authentication_service import AuthenticationService
from utils.exceptions import BankingSystemException
from utils.forms import profile_fields, password_fields
from utils.flash import flash

# Header
st.markdown("""
<div style="text-align:center; padding:1.5rem 0 0.5rem;">
    <h1 style="margin:0;">BangBank</h1>
    <p style="color:#888; margin-top:.25rem;">Create Your Account</p>
</div>
""", unsafe_allow_html=True)

st.divider()

with st.form("registration_form", clear_on_submit=False):
    st.subheader("Personal Details")
    data = profile_fields(key="reg")

    st.subheader("Login Credentials")
    data.update(password_fields(key="reg"))

    submitted = st.form_submit_button("Create Account", use_container_width=True, type="primary")

if submitted:
    try:
        result = AuthenticationService().register_user(data)
        flash(f"Welcome {result['username']}! Your account is ready. Please log in.")
        st.switch_page("pages/00_Login.py")
    except BankingSystemException as e:
        st.error(e.message)
