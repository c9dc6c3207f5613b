"""
Products Page - maintain the product catalog.
Roles: admin
"""

import streamlit as st
import pandas as pd

from core.models.entities import ProductType
from core.models.permissions import Capability
from core.services.product_service import ProductService
from utils.auth_guard import require_capability, get_current_user, get_user_role
from utils.sidebar import render_sidebar
from utils.formatters import format_currency, format_rate, role_label
from utils.exceptions import BankingSystemException
from utils.flash import show_flashes, flash

require_capability(Capability.MANAGE_PRODUCTS)
render_sidebar()

sd = get_current_user()
actor_role = get_user_role()
svc = ProductService()

st.title("Product Catalog")
show_flashes()
st.markdown("---")


def product_form(key: str, product=None) -> dict:
    """Inputs for a product; fields that don't apply to the chosen type are ignored on save."""
    types = list(ProductType)
    product_type = st.selectbox(
        "Type", types, format_func=role_label, key=f"{key}_type",
        index=types.index(product.product_type) if product else 0,
    )
    name = st.text_input("Name *", value=product.product_name if product else "", key=f"{key}_name")
    description = st.text_area("Description *", value=product.description if product else "",
                               key=f"{key}_desc")
    c1, c2, c3, c4 = st.columns(4)
    rate = c1.number_input("Interest Rate (%) *", min_value=0.0, step=0.05, format="%.2f",
                           value=float(product.interest_rate) if product else 0.0, key=f"{key}_rate")
    min_balance = c2.number_input("Min Balance (savings / FD)", min_value=0.0, step=100.0, format="%.2f",
                                  value=float(product.min_balance or 0) if product else 0.0,
                                  key=f"{key}_min")
    tenure = c3.number_input("Tenure Months (FD)", min_value=0, step=1,
                             value=int(product.tenure_months or 0) if product else 0, key=f"{key}_tenure")
    annual_fee = c4.number_input("Annual Fee (credit card)", min_value=0.0, step=10.0, format="%.2f",
                                 value=float(product.annual_fee or 0) if product else 0.0, key=f"{key}_fee")
    return {
        "product_name": name,
        "product_type": product_type,
        "description": description,
        "interest_rate": str(rate),
        "min_balance": str(min_balance),
        "tenure_months": tenure,
        "annual_fee": str(annual_fee),
    }


products = svc.list_products()
tab_list, tab_create, tab_edit = st.tabs(["Catalog", "New Product", "Edit / Delete"])

with tab_list:
    if products:
        st.dataframe(pd.DataFrame([{
            "ID": p.product_id,
            "Name": p.product_name,
            "Type": role_label(p.product_type),
            "Interest": format_rate(p.interest_rate),
            "Min Balance": format_currency(p.min_balance),
            "Tenure": p.tenure_months or "",
            "Annual Fee": format_currency(p.annual_fee),
        } for p in products]), use_container_width=True, hide_index=True)
    else:
        st.info("No products yet.")

with tab_create:
    with st.form("create_product_form"):
        data = product_form("new")
        create_submitted = st.form_submit_button("Create Product", use_container_width=True, type="primary")
    if create_submitted:
        try:
            svc.create_product(sd["user_id"], actor_role, data)
        except BankingSystemException as e:
            st.error(e.message)
        else:
            flash(f"Product {data['product_name']} created.")
            st.rerun()

with tab_edit:
    if not products:
        st.info("No products to edit.")
        st.stop()

    product = st.selectbox("Product", products, format_func=lambda p: p.product_name)
    with st.form("edit_product_form"):
        data = product_form(f"edit_{product.product_id}", product)
        edit_submitted = st.form_submit_button("Save Changes", use_container_width=True)
    if edit_submitted:
        try:
            svc.update_product(sd["user_id"], actor_role, product.product_id, data)
        except BankingSystemException as e:
            st.error(e.message)
        else:
            flash(f"Product {data['product_name']} updated.")
            st.rerun()

    if st.button("Delete Product", type="primary"):
        try:
            svc.delete_product(sd["user_id"], actor_role, product.product_id)
        except BankingSystemException as e:
            st.error(e.message)
        else:
            flash(f"Product {product.product_name} deleted.")
            st.rerun()
