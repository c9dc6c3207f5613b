"""
Reports Page - bank-wide counts, the 7-day transaction trend and an xlsx export.
Roles: admin
"""

import streamlit as st
import pandas as pd

from core.models.permissions import Capability
from core.services.report_service import ReportService
from utils.auth_guard import require_capability
from utils.sidebar import render_sidebar
from utils.formatters import format_currency

require_capability(Capability.VIEW_REPORTS)
render_sidebar()

st.title("Reports & Analytics")
st.markdown("---")

svc = ReportService()
summary = svc.get_summary()

tab_summary, tab_trend = st.tabs(["Summary", "Transaction Trend"])

# ===========================
# TAB 1 - Summary
# ===========================
with tab_summary:
    st.subheader("Customers & Products")
    c1, c2, c3 = st.columns(3)
    c1.metric("Total Users", summary["total_users"])
    c2.metric("Active Accounts", summary["active_accounts"], f"{summary['pending_accounts']} pending",
              delta_color="off")
    c3.metric("Active Cards", summary["active_cards"], f"{summary['pending_cards']} pending",
              delta_color="off")

    st.subheader("Activity")
    c4, c5, c6 = st.columns(3)
    c4.metric("Consultations", summary["total_consultations"],
              f"{summary['completed_consultations']} completed", delta_color="off")
    c5.metric("Transactions", summary["total_transactions"])
    c6.metric("Balances Held", format_currency(summary["total_balance"]))

# ===========================
# TAB 2 - Trend
# ===========================
with tab_trend:
    st.subheader("Transactions per Day (last 7 days)")
    daily = pd.DataFrame(svc.get_daily_transactions())
    st.bar_chart(daily.set_index("date")["count"])
    st.dataframe(daily.rename(columns={"date": "Date", "count": "Transactions"}),
                 use_container_width=True, hide_index=True)

st.markdown("---")
st.download_button(
    "Download Report (Excel)",
    svc.export_excel(),
    file_name="bangbank_report.xlsx",
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)
