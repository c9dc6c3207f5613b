"""
My Accounts Page - balances, top-ups, transfers and cancellations.
Roles: customer
"""

import streamlit as st

from core.models.entities import OTPPurpose
from core.models.permissions import Capability
from core.services.account_service import AccountService
from core.services.credit_card_service import CreditCardService
from core.services.transaction_service import TransactionService
from utils.auth_guard import require_capability, get_current_user
from utils.sidebar import render_sidebar
from utils.formatters import format_currency, format_date, status_badge, role_label, to_decimal
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, flash, redirect_to_otp

THIS_PAGE = "pages/3_Accounts.py"

require_capability(Capability.MOVE_FUNDS)
render_sidebar()

sd = get_current_user()
acct_svc = AccountService()
card_svc = CreditCardService()

st.title("My Accounts")
show_flashes()
st.markdown("---")

accounts = acct_svc.get_customer_accounts(sd["user_id"])
cards = card_svc.get_customer_cards(sd["user_id"])
active_accounts = acct_svc.get_active_accounts(sd["user_id"])


def account_label(account):
    return f"{account.account_number} - {account.product_name} ({format_currency(account.balance)})"


tab_accounts, tab_topup, tab_transfer, tab_cards = st.tabs(
    ["Accounts", "Top Up", "Transfer", "Credit Cards"]
)

# ===========================
# TAB 1 - Accounts
# ===========================
with tab_accounts:
    if not accounts:
        st.info("You have no accounts yet.")
        st.page_link("pages/5_Apply.py", label="Apply for an account ->")

    for account in accounts:
        with st.container(border=True):
            c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
            c1.markdown(f"**{account.product_name}**  \n`{account.account_number}`")
            c1.caption(f"{role_label(account.product_type)} | Opened {format_date(account.opened_at)}")
            c2.metric("Balance", format_currency(account.balance))
            c3.markdown(f"**Status:** {status_badge(account.status)}")

            label = "Withdraw" if account.status.value == "pending" else "Close"
            if c4.button(label, key=f"close_acc_{account.account_id}"):
                try:
                    result = acct_svc.request_account_deletion(sd["user_id"], account.account_id)
                except BankingSystemException as e:
                    st.error(e.message)
                else:
                    if result["otp_required"]:
                        redirect_to_otp(sd["user_id"], OTPPurpose.ACCOUNT_CANCEL, THIS_PAGE)
                    flash("Application withdrawn.")
                    st.rerun()

# ===========================
# TAB 2 - Top Up
# ===========================
with tab_topup:
    st.subheader("Top Up")
    if not active_accounts:
        st.info("You need an active account to top up.")
    else:
        with st.form("topup_form", clear_on_submit=True):
            target = st.selectbox("Account", active_accounts, format_func=account_label)
            amount = st.number_input("Amount", min_value=0.0, step=50.0, format="%.2f")
            note = st.text_input("Description", placeholder="Optional")
            topup_submitted = st.form_submit_button("Top Up", use_container_width=True, type="primary")

        if topup_submitted:
            try:
                result = TransactionService().top_up(
                    sd["user_id"], target.account_id, to_decimal(amount), note or None
                )
            except BankingSystemException as e:
                st.error(e.message)
            else:
                flash(f"Top-up successful. New balance: {format_currency(result['new_balance'])}")
                st.rerun()

# ===========================
# TAB 3 - Transfer
# ===========================
with tab_transfer:
    st.subheader("Transfer Funds")
    if not active_accounts:
        st.info("You need an active account to transfer funds.")
    else:
        with st.form("transfer_form", clear_on_submit=True):
            source = st.selectbox("From Account", active_accounts, format_func=account_label)
            to_number = st.text_input("To Account Number", placeholder="RP123456789")
            amount = st.number_input("Amount", min_value=0.0, step=50.0, format="%.2f", key="trf_amount")
            note = st.text_input("Description", placeholder="Optional", key="trf_note")
            transfer_submitted = st.form_submit_button("Transfer", use_container_width=True, type="primary")

        if transfer_submitted:
            try:
                result = TransactionService().transfer(
                    sd["user_id"], source.account_id, to_number, to_decimal(amount), note or None
                )
            except BankingSystemException as e:
                st.error(e.message)
            else:
                flash(
                    f"Transferred {format_currency(result['amount'])}. "
                    f"Remaining balance: {format_currency(result['from_balance'])}"
                )
                st.rerun()

# ===========================
# TAB 4 - Credit Cards
# ===========================
with tab_cards:
    if not cards:
        st.info("You have no credit cards.")

    for card in cards:
        with st.container(border=True):
            c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
            c1.markdown(f"**{card.product_name}**  \n`**** **** **** {card.card_number[-4:]}`")
            c1.caption(f"Expires {format_date(card.expiry_date)}")
            c2.metric("Credit Limit", format_currency(card.credit_limit))
            c3.markdown(f"**Status:** {status_badge(card.status)}")

            label = "Withdraw" if card.status.value == "pending" else "Cancel"
            if c4.button(label, key=f"close_card_{card.card_id}"):
                try:
                    result = card_svc.request_card_deletion(sd["user_id"], card.card_id)
                except BankingSystemException as e:
                    st.error(e.message)
                else:
                    if result["otp_required"]:
                        redirect_to_otp(sd["user_id"], OTPPurpose.CARD_CANCEL, THIS_PAGE)
                    flash("Card application withdrawn.")
                    st.rerun()
