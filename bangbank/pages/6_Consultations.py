"""
Consultations Page - book and cancel sessions with financial advisors.
Roles: customer
"""

import streamlit as st

from core.models.permissions import Capability
from core.services.consultation_service import ConsultationService
from utils.auth_guard import require_capability, get_current_user
from utils.sidebar import render_sidebar
from utils.formatters import format_date, format_time, status_badge
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, flash

require_capability(Capability.BOOK_CONSULTATIONS)
render_sidebar()

sd = get_current_user()
svc = ConsultationService()

st.title("Advisor Consultations")
show_flashes()
st.markdown("---")

tab_book, tab_mine = st.tabs(["Book a Session", "My Consultations"])

with tab_book:
    slots = svc.get_open_slots()
    if not slots:
        st.info("No open sessions at the moment. Please check back later.")

    for slot in slots:
        with st.container(border=True):
            c1, c2, c3 = st.columns([3, 2, 1])
            c1.markdown(f"**{slot['advisor_name']}**")
            c2.markdown(
                f"{format_date(slot['session_date'])}  \n"
                f"{format_time(slot['session_time'])} - {format_time(slot['end_time'])}"
            )
            if c3.button("Book", key=f"book_{slot['session_id']}"):
                try:
                    result = svc.book_slot(sd["user_id"], slot["session_id"])
                except BankingSystemException as e:
                    st.error(e.message)
                else:
                    if result["meet_link"]:
                        flash("Consultation booked. The Meet link has been emailed to you.")
                    else:
                        flash("Consultation booked. A meeting link could not be created; "
                              "your advisor will contact you.", "warning")
                    st.rerun()

with tab_mine:
    consultations = svc.get_customer_consultations(sd["user_id"])
    if not consultations:
        st.info("You have not booked any consultations.")

    for c in consultations:
        with st.container(border=True):
            c1, c2, c3 = st.columns([3, 2, 1])
            c1.markdown(f"**{c['advisor_name']}** ({c['advisor_email']})")
            if c.get("meet_link"):
                c1.markdown(f"[Join Google Meet]({c['meet_link']})")
            c2.markdown(
                f"{format_date(c['session_date'])} {format_time(c['session_time'])}  \n"
                f"**{status_badge(c['status'])}**"
            )
            if c["status"] == "booked" and c3.button("Cancel", key=f"cancel_{c['consultation_id']}"):
                try:
                    svc.cancel_consultation(sd["user_id"], c["consultation_id"])
                except BankingSystemException as e:
                    st.error(e.message)
                else:
                    flash("Consultation cancelled.")
                    st.rerun()
