"""
Flash messages that survive a page switch or rerun.
"""

import streamlit as st

_FLASH_KEY = "_flash_messages"
OTP_PAGE = "pages/13_OTP_Confirm.py"


def flash(message: str, category: str = "success"):
    """Queue a message for the next rendered page."""
    st.session_state.setdefault(_FLASH_KEY, []).append((category, message))


def show_flashes():
    """Render and clear queued messages."""
    renderers = {
        "success": st.success,
        "error": st.error,
        "warning": st.warning,
        "info": st.info,
    }
    for category, message in st.session_state.pop(_FLASH_KEY, []):
        renderers.get(category, st.info)(message)


def redirect(page: str, message: str = None, category: str = "success"):
    """Flash an optional message and switch to another page."""
    if message:
        flash(message, category)
    st.switch_page(page)


def redirect_to_otp(user_id: int, purpose, return_page: str, message: str = None):
    """Hand a pending OTP confirmation to the confirmation page."""
    st.session_state["otp_context"] = {
        "user_id": user_id,
        "purpose": getattr(purpose, "value", purpose),
        "return_page": return_page,
    }
    redirect(OTP_PAGE, message or "A one-time code has been sent to your email.", "info")
