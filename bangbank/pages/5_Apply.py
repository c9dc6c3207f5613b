"""
Apply Page - browse products and apply for an account or credit card.
Roles: customer
"""

import streamlit as st

from core.models.entities import ProductType
from core.models.permissions import Capability
from core.services.product_service import ProductService
from utils.auth_guard import require_capability, get_current_user
from utils.sidebar import render_sidebar
from utils.formatters import format_currency, format_rate, role_label, to_decimal
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, redirect

require_capability(Capability.APPLY_PRODUCTS)
render_sidebar()

sd = get_current_user()

st.title("Products")
show_flashes()
st.markdown("---")

products = ProductService().list_products()
if not products:
    st.info("No products are available right now.")
    st.stop()

# ---------- Catalog ----------
for product in products:
    with st.container(border=True):
        c1, c2 = st.columns([3, 1])
        c1.markdown(f"#### {product.product_name}")
        c1.caption(f"{role_label(product.product_type)} | Interest {format_rate(product.interest_rate)}")
        c1.write(product.description)
        if product.min_balance is not None:
            c2.metric("Min Balance", format_currency(product.min_balance))
        if product.tenure_months:
            c2.metric("Tenure", f"{product.tenure_months} months")
        if product.annual_fee is not None:
            c2.metric("Annual Fee", format_currency(product.annual_fee))

st.markdown("---")

# ---------- Application ----------
st.subheader("Apply")
selected = st.selectbox(
    "Product",
    products,
    format_func=lambda p: f"{p.product_name} ({role_label(p.product_type)})",
)

with st.form("apply_form"):
    if selected.product_type == ProductType.CREDIT_CARD:
        st.caption("An active savings account is required for credit card applications.")
        amount = st.number_input("Desired Credit Limit", min_value=0.0, step=500.0, format="%.2f")
    else:
        floor = float(selected.min_balance or 0)
        amount = st.number_input("Initial Deposit", min_value=0.0, value=floor, step=100.0, format="%.2f")

    st.markdown("##### Identity Verification (KYC)")
    k1, k2 = st.columns(2)
    id_type = k1.selectbox("ID Type", ["nric", "passport"], format_func=str.upper)
    id_number = k2.text_input("ID Number", placeholder="S1234567A")
    document = st.file_uploader("Identity Document", type=["pdf", "png", "jpg", "jpeg"])
    declaration = st.checkbox("I declare that the information provided is true and complete.")

    submitted = st.form_submit_button("Submit Application", use_container_width=True, type="primary")

if submitted:
    doc_name = document.name if document else None
    doc_content = document.getvalue() if document else None
    try:
        if selected.product_type == ProductType.CREDIT_CARD:
            from core.services.credit_card_service import CreditCardService
            result = CreditCardService().apply_for_card(
                sd["user_id"], selected.product_id, to_decimal(amount),
                id_type, id_number.strip().upper(), doc_name, doc_content, declaration
            )
            message = "Credit card application submitted for review."
        else:
            from core.services.account_service import AccountService
            result = AccountService().apply_for_account(
                sd["user_id"], selected.product_id, to_decimal(amount),
                id_type, id_number.strip().upper(), doc_name, doc_content, declaration
            )
            message = f"Application submitted. Account number {result['account_number']} is pending review."
    except BankingSystemException as e:
        st.error(e.message)
    else:
        redirect("pages/3_Accounts.py", message)
