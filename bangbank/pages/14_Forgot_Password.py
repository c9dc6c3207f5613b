"""
Forgot Password Page - choose a new password, confirmed by an emailed OTP
"""

import streamlit as st

from core.services.authentication_service import AuthenticationService
from core.models.entities import OTPPurpose
from utils.exceptions import BankingSystemException
from utils.flash import redirect_to_otp

st.title("Reset Password")
st.caption("We will email a one-time code to confirm the change.")

with st.form("forgot_password_form"):
    email = st.text_input("Registered Email")
    new_password = st.text_input("New Password", type="password")
    confirm_password = st.text_input("Confirm New Password", type="password")
    submitted = st.form_submit_button("Send Code", use_container_width=True, type="primary")

if submitted:
    try:
        user_id = AuthenticationService().request_password_reset(email, new_password, confirm_password)
    except BankingSystemException as e:
        st.error(e.message)
    else:
        redirect_to_otp(user_id, OTPPurpose.PASSWORD_RESET, "pages/00_Login.py")
