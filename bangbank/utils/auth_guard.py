"""
Authentication guard utilities for Streamlit pages.
Provides login-required and capability-based access control.
"""

import logging

import streamlit as st
from datetime import datetime, timedelta

from core import config
from core.models.entities import UserRole
from core.models.permissions import Capability, has_capability, to_role

logger = logging.getLogger(__name__)


def require_login():
    """Stop page execution if user is not logged in."""
    if "session_data" not in st.session_state:
        st.warning("Please log in to continue.")
        st.stop()
    _check_session_timeout()


def require_capability(capability: Capability):
    """Stop page execution unless the current role grants the capability."""
    require_login()
    if has_capability(get_user_role(), capability):
        return
    logger.warning(
        f"Access denied: user {get_current_user().get('user_id')} lacks {capability.value}"
    )
    st.error("You do not have permission to access this page.")
    st.stop()


def get_current_user() -> dict:
    """Return current session_data or empty dict."""
    return st.session_state.get("session_data", {})


def get_user_role() -> UserRole:
    """Return the current role; anonymous sessions fall back to customer."""
    return to_role(get_current_user().get("role", UserRole.CUSTOMER.value))


def is_logged_in() -> bool:
    """Check whether a user session exists."""
    return "session_data" in st.session_state


def start_session(login_result: dict):
    """Store the login result as the browser session."""
    st.session_state["session_data"] = {
        "user_id": login_result["user_id"],
        "username": login_result["username"],
        "email": login_result["email"],
        "role": login_result["role"],
        "image": login_result.get("image"),
        "session_token": login_result["session_token"],
        "login_time": login_result.get("login_time", datetime.now()),
        "last_activity": datetime.now(),
    }


def handle_logout():
    """Logout the current user and rerun."""
    from core.services.authentication_service import AuthenticationService

    user_id = get_current_user().get("user_id")
    if user_id:
        AuthenticationService().logout(user_id)

    # Ensure all auth-related state is cleared
    for key in list(st.session_state.keys()):
        del st.session_state[key]

    st.rerun()


def _check_session_timeout():
    """Auto-logout if session has been idle too long."""
    sd = st.session_state.get("session_data")
    if not sd:
        return
    last_activity = sd.get("last_activity")
    if last_activity and datetime.now() - last_activity > timedelta(minutes=config.SESSION_TIMEOUT_MINUTES):
        logger.info(f"Session timed out for user {sd.get('user_id')}")
        handle_logout()
    else:
        sd["last_activity"] = datetime.now()


def is_admin() -> bool:
    """Admins and super admins both hold the admin capabilities."""
    return has_capability(get_user_role(), Capability.MANAGE_USERS)


def is_customer() -> bool:
    return get_user_role() == UserRole.CUSTOMER


def is_advisor() -> bool:
    return get_user_role() == UserRole.ADVISOR
