"""
Profile Page - View user info; edits are applied after OTP confirmation.
"""

import os

import streamlit as st

from core.services.user_service import UserService
from core.models.entities import OTPPurpose
from utils.auth_guard import require_login, get_current_user
from utils.sidebar import render_sidebar
from utils.formatters import format_date, role_label
from utils.forms import profile_fields
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, redirect_to_otp
from utils.uploads import resolve_path

require_login()
render_sidebar()

sd = get_current_user()
svc = UserService()
user = svc.get_profile(sd["user_id"])

st.title("My Profile")
show_flashes()
st.markdown("---")

# ---- User information ----
col1, col2 = st.columns([1, 3])
with col1:
    image_path = resolve_path(user.image)
    if image_path and os.path.exists(image_path):
        st.image(image_path, width=140)
with col2:
    st.markdown("### Account Information")
    st.markdown(f"**Username:** {user.username}")
    st.markdown(f"**Email:** {user.email}")
    st.markdown(f"**Role:** {role_label(user.role)}")
    st.markdown(f"**Member Since:** {format_date(user.created_at)}")

st.markdown("---")
st.markdown("### Personal Details")
d1, d2 = st.columns(2)
d1.markdown(f"**Full Name:** {user.full_name}")
d1.markdown(f"**Alias:** {user.alias or 'N/A'}")
d1.markdown(f"**Date of Birth:** {format_date(user.date_of_birth)}")
d2.markdown(f"**Phone:** {user.phone}")
d2.markdown(f"**Address:** {user.address_line_1} {user.address_line_2 or ''}")
d2.markdown(f"**Country / Postcode:** {user.country} {user.postcode}")

st.markdown("---")

# ---- Edit profile ----
with st.expander("Edit Profile"):
    st.caption("Changes are saved after you confirm the one-time code sent to your email.")
    with st.form("edit_profile_form"):
        data = profile_fields(user, key="edit")
        submitted = st.form_submit_button("Save Changes", use_container_width=True)

    if submitted:
        try:
            svc.request_profile_update(sd["user_id"], data)
        except BankingSystemException as e:
            st.error(e.message)
        else:
            redirect_to_otp(sd["user_id"], OTPPurpose.PROFILE_UPDATE, "pages/2_Profile.py")
