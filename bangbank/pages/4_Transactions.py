"""
Transactions Page - history across all of the customer's accounts.
Roles: customer
"""

import streamlit as st
import pandas as pd

from core.models.permissions import Capability
from core.services.transaction_service import TransactionService
from utils.auth_guard import require_capability, get_current_user
from utils.sidebar import render_sidebar
from utils.formatters import format_currency

require_capability(Capability.MOVE_FUNDS)
render_sidebar()

sd = get_current_user()

st.title("Transaction History")
st.markdown("---")

history = TransactionService().get_history(sd["user_id"])

if not history:
    st.info("No transactions yet.")
    st.stop()

df = pd.DataFrame(history)

accounts = sorted(df["account_number"].unique())
chosen = st.multiselect("Accounts", accounts, default=accounts)
kinds = st.multiselect("Type", ["deposit", "transfer"], default=["deposit", "transfer"])
df = df[df["account_number"].isin(chosen) & df["transaction_type"].isin(kinds)]

m1, m2 = st.columns(2)
m1.metric("Deposits", format_currency(df.loc[df["transaction_type"] == "deposit", "amount"].sum()))
m2.metric("Transfers Out", format_currency(df.loc[df["transaction_type"] == "transfer", "amount"].sum()))

view = pd.DataFrame({
    "Date": pd.to_datetime(df["transaction_date"]).dt.strftime("%Y-%m-%d %H:%M"),
    "Account": df["account_number"],
    "Product": df["account_name"],
    "Type": df["transaction_type"].str.title(),
    "Amount": df["amount"].apply(format_currency),
    "Balance After": df["balance_after"].apply(format_currency),
    "Description": df["description"],
})
st.dataframe(view, use_container_width=True, hide_index=True)

csv = view.to_csv(index=False)
st.download_button("Download (CSV)", csv, file_name="transactions.csv", mime="text/csv")
