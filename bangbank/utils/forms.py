"""
Form widgets shared by registration, profile editing and admin user management.
Must be called inside an st.form block.
"""

from datetime import date

import streamlit as st

from core.models.entities import User

MIN_BIRTH_DATE = date(1920, 1, 1)


def profile_fields(user: User = None, key: str = "profile") -> dict:
    """Render the profile inputs, pre-filled from ``user`` when editing."""
    user = user or User()

    col1, col2 = st.columns(2)
    username = col1.text_input("Username *", value=user.username, max_chars=50, key=f"{key}_username")
    email = col2.text_input("Email *", value=user.email, key=f"{key}_email")

    col3, col4, col5 = st.columns(3)
    first_name = col3.text_input("First Name *", value=user.first_name, key=f"{key}_first")
    last_name = col4.text_input("Last Name *", value=user.last_name, key=f"{key}_last")
    alias = col5.text_input("Alias", value=user.alias or "", key=f"{key}_alias")

    col6, col7, col8 = st.columns(3)
    date_of_birth = col6.date_input(
        "Date of Birth",
        value=user.date_of_birth or date(2000, 1, 1),
        min_value=MIN_BIRTH_DATE,
        max_value=date.today(),
        key=f"{key}_dob",
    )
    phone = col7.text_input("Phone (8 digits) *", value=user.phone, max_chars=8, key=f"{key}_phone")
    country = col8.text_input("Country *", value=user.country, key=f"{key}_country")

    address_line_1 = st.text_input("Address Line 1 *", value=user.address_line_1, key=f"{key}_addr1")
    col9, col10 = st.columns([3, 1])
    address_line_2 = col9.text_input("Address Line 2", value=user.address_line_2 or "", key=f"{key}_addr2")
    postcode = col10.text_input("Postcode (6 digits) *", value=user.postcode, max_chars=6, key=f"{key}_postcode")

    image = st.file_uploader("Profile Image", type=["png", "jpg", "jpeg", "gif"], key=f"{key}_image")

    return {
        "username": username,
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "alias": alias,
        "date_of_birth": date_of_birth,
        "phone": phone.strip(),
        "country": country,
        "address_line_1": address_line_1,
        "address_line_2": address_line_2,
        "postcode": postcode.strip(),
        "image_name": image.name if image is not None else None,
        "image_content": image.getvalue() if image is not None else None,
    }


def password_fields(key: str = "pwd", required: bool = True) -> dict:
    suffix = " *" if required else ""
    col1, col2 = st.columns(2)
    password = col1.text_input(f"Password{suffix}", type="password", key=f"{key}_password")
    confirm = col2.text_input(f"Confirm Password{suffix}", type="password", key=f"{key}_confirm")
    return {"password": password, "confirm_password": confirm}
