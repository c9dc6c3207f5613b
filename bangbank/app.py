import streamlit as st

st.set_page_config(
    page_title="BangBank",
    page_icon="🏦",
    layout="wide",
    initial_sidebar_state="collapsed",
)

from core.config import setup_logging

setup_logging()

from utils.auth_guard import is_logged_in, is_admin, is_advisor

# Google redirects back here after calendar consent; keep the code until the
# advisor's session is available to attach it to.
if "code" in st.query_params and "state" in st.query_params:
    st.session_state["calendar_oauth"] = {
        "code": st.query_params["code"],
        "state": st.query_params["state"],
    }
    st.query_params.clear()


# --- NAVIGATION SETUP ---
otp_page = st.Page("pages/13_OTP_Confirm.py", title="Confirm OTP", url_path="otp")

if not is_logged_in():
    auth_pages = [
        st.Page("pages/00_Login.py", title="Login", default=True),
        st.Page("pages/0_Register.py", title="Register"),
        st.Page("pages/14_Forgot_Password.py", title="Forgot Password"),
        otp_page,
    ]

    pg = st.navigation(auth_pages)
    pg.run()

else:
    common_pages = [
        st.Page("pages/1_Dashboard.py", title="Dashboard", default=True),
        st.Page("pages/2_Profile.py", title="My Profile"),
        otp_page,
    ]

    if is_admin():
        pg = st.navigation({
            "Main": common_pages,
            "Administration": [
                st.Page("pages/8_Admin_Users.py", title="Users"),
                st.Page("pages/9_Admin_Products.py", title="Products"),
                st.Page("pages/10_Admin_Accounts.py", title="Account Applications"),
                st.Page("pages/11_Admin_Cards.py", title="Card Applications"),
                st.Page("pages/7_Reports.py", title="Reports"),
            ],
        })
    elif is_advisor():
        pg = st.navigation({
            "Main": common_pages,
            "Advisory": [
                st.Page("pages/12_Advisor_Sessions.py", title="Sessions & Consultations"),
            ],
        })
    else:
        pg = st.navigation({
            "Main": common_pages,
            "Banking": [
                st.Page("pages/5_Apply.py", title="Apply"),
                st.Page("pages/3_Accounts.py", title="My Accounts"),
                st.Page("pages/4_Transactions.py", title="Transactions"),
                st.Page("pages/6_Consultations.py", title="Consultations"),
            ],
        })

    pg.run()
