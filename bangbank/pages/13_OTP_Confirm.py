"""
OTP Confirmation Page - enter the emailed code to finish a guarded action.
Renders only while a live pending operation exists for the user and purpose.
"""

import streamlit as st

from core.services.confirmation_service import ConfirmationService
from core.models.entities import OTPPurpose
from core.services.otp_service import PURPOSE_LABELS
from utils.auth_guard import is_logged_in, get_current_user
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, redirect

ctx = st.session_state.get("otp_context")
fallback_page = "pages/1_Dashboard.py" if is_logged_in() else "pages/00_Login.py"

if not ctx:
    redirect(fallback_page, "There is nothing to confirm.", "warning")

purpose = OTPPurpose(ctx["purpose"])
return_page = ctx.get("return_page") or fallback_page

# A signed-in user confirms for themselves; only password resets run anonymously
if is_logged_in():
    user_id = get_current_user()["user_id"]
elif purpose == OTPPurpose.PASSWORD_RESET:
    user_id = ctx["user_id"]
else:
    st.session_state.pop("otp_context", None)
    redirect("pages/00_Login.py", "Please log in to continue.", "warning")

service = ConfirmationService()

if service.pending(user_id, purpose) is None:
    st.session_state.pop("otp_context", None)
    redirect(return_page, "Confirmation session expired. Please start again.", "error")

st.title("Confirm with OTP")
st.caption(f"Enter the 6-digit code we emailed you to confirm your {PURPOSE_LABELS[purpose]}.")
show_flashes()

with st.form("otp_form"):
    code = st.text_input("One-time code", max_chars=6, placeholder="123456")
    submitted = st.form_submit_button("Confirm", use_container_width=True, type="primary")

if submitted:
    try:
        message = service.confirm(user_id, purpose, code.strip())
    except BankingSystemException as e:
        st.error(e.message)
    else:
        st.session_state.pop("otp_context", None)
        if purpose == OTPPurpose.PROFILE_UPDATE and is_logged_in():
            profile = service.user_service.get_profile(user_id)
            st.session_state["session_data"].update(
                {"username": profile.username, "email": profile.email, "image": profile.image}
            )
        redirect(return_page, message)

col1, col2 = st.columns(2)
if col1.button("Resend code", use_container_width=True):
    try:
        service.resend(user_id, purpose)
        st.success("A new code has been sent. Earlier codes no longer work.")
    except BankingSystemException as e:
        st.error(e.message)

if col2.button("Cancel", use_container_width=True):
    service.cancel(user_id, purpose)
    st.session_state.pop("otp_context", None)
    redirect(return_page, "Action cancelled.", "info")
