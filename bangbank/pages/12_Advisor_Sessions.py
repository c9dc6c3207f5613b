"""
Advisor Sessions Page - availability slots, consultations and Google Calendar.
Roles: advisor
"""

from datetime import date, time

import streamlit as st

from core.models.permissions import Capability
from core.services.consultation_service import ConsultationService
from utils.auth_guard import require_capability, get_current_user
from utils.sidebar import render_sidebar
from utils.formatters import format_date, format_time, status_badge
from utils.helpers import DateUtils
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, flash

require_capability(Capability.MANAGE_SLOTS)
render_sidebar()

sd = get_current_user()
svc = ConsultationService()

st.title("Sessions & Consultations")
show_flashes()

# Finish the OAuth round trip captured by app.py
oauth = st.session_state.pop("calendar_oauth", None)
if oauth:
    if oauth["state"] != str(sd["user_id"]):
        st.error("Calendar authorization does not belong to this account.")
    else:
        try:
            svc.connect_calendar(sd["user_id"], oauth["code"])
            st.success("Google Calendar connected.")
        except BankingSystemException as e:
            st.error(e.message)

st.markdown("---")

START_HOURS = [time(hour, 0) for hour in range(9, 18)]

tab_slots, tab_consults, tab_calendar = st.tabs(["My Slots", "Consultations", "Google Calendar"])

# ===========================
# TAB 1 - Slots
# ===========================
with tab_slots:
    with st.form("new_slot_form", clear_on_submit=True):
        st.subheader("Open a Slot")
        c1, c2 = st.columns(2)
        slot_date = c1.date_input("Date", min_value=date.today())
        slot_time = c2.selectbox("Start Time", START_HOURS, format_func=lambda t: t.strftime("%H:%M"))
        st.caption("Sessions last one hour.")
        create_submitted = st.form_submit_button("Create Slot", use_container_width=True, type="primary")

    if create_submitted:
        try:
            svc.create_slot(sd["user_id"], slot_date, slot_time)
        except BankingSystemException as e:
            st.error(e.message)
        else:
            flash("Slot created.")
            st.rerun()

    st.subheader("Upcoming Slots")
    slots = svc.get_advisor_slots(sd["user_id"])
    if not slots:
        st.info("No slots yet.")

    for slot in slots:
        with st.container(border=True):
            c1, c2, c3 = st.columns([3, 2, 2])
            c1.markdown(
                f"**{format_date(slot['session_date'])}** "
                f"{format_time(slot['session_time'])} - {format_time(slot['end_time'])}"
            )
            c2.markdown("Booked" if slot["is_booked"] else "Open")
            if slot["is_booked"]:
                continue

            with c3.popover("Edit / Delete"):
                current = DateUtils.to_time(slot["session_time"])
                new_date = st.date_input("Date", value=slot["session_date"], min_value=date.today(),
                                         key=f"date_{slot['session_id']}")
                new_time = st.selectbox(
                    "Start Time", START_HOURS,
                    index=START_HOURS.index(current) if current in START_HOURS else 0,
                    format_func=lambda t: t.strftime("%H:%M"), key=f"time_{slot['session_id']}",
                )
                if st.button("Save", key=f"save_{slot['session_id']}"):
                    try:
                        svc.update_slot(sd["user_id"], slot["session_id"], new_date, new_time)
                    except BankingSystemException as e:
                        st.error(e.message)
                    else:
                        flash("Slot updated.")
                        st.rerun()
                if st.button("Delete", key=f"delete_{slot['session_id']}"):
                    try:
                        svc.delete_slot(sd["user_id"], slot["session_id"])
                    except BankingSystemException as e:
                        st.error(e.message)
                    else:
                        flash("Slot deleted.")
                        st.rerun()

# ===========================
# TAB 2 - Consultations
# ===========================
with tab_consults:
    consultations = svc.get_advisor_consultations(sd["user_id"])
    if not consultations:
        st.info("No consultations yet.")

    for c in consultations:
        with st.container(border=True):
            c1, c2 = st.columns([3, 2])
            c1.markdown(f"**{c['customer_name']}** ({c['customer_email']})")
            c1.markdown(f"{format_date(c['session_date'])} {format_time(c['session_time'])}")
            if c.get("meet_link"):
                c1.markdown(f"[Google Meet]({c['meet_link']})")
            c2.markdown(f"**{status_badge(c['status'])}**")

            notes = st.text_area("Notes", value=c.get("notes") or "", key=f"notes_{c['consultation_id']}")
            n1, n2, _ = st.columns([1, 1, 3])
            if n1.button("Save Notes", key=f"save_notes_{c['consultation_id']}"):
                try:
                    svc.update_notes(sd["user_id"], c["consultation_id"], notes)
                except BankingSystemException as e:
                    st.error(e.message)
                else:
                    flash("Notes saved.")
                    st.rerun()
            if c["status"] == "booked" and n2.button("Mark Completed", key=f"done_{c['consultation_id']}"):
                try:
                    svc.complete_consultation(sd["user_id"], c["consultation_id"])
                except BankingSystemException as e:
                    st.error(e.message)
                else:
                    flash("Consultation marked completed.")
                    st.rerun()

# ===========================
# TAB 3 - Calendar
# ===========================
with tab_calendar:
    if svc.is_calendar_connected(sd["user_id"]):
        st.success("Google Calendar is connected. New bookings get a Meet link automatically.")
        st.caption("Reconnect if Meet links stop being created.")
    else:
        st.warning("Customers cannot book you until Google Calendar is connected.")

    if svc.calendar.configured:
        st.link_button("Connect Google Calendar", svc.calendar_auth_url(sd["user_id"]))
    else:
        st.error("Google Calendar credentials are not configured on the server.")
