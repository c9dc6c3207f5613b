"""
Formatting helpers shared across Streamlit pages.
Currency formatting, status badges, date helpers.
"""

from decimal import Decimal, InvalidOperation
from datetime import datetime, date, time, timedelta
from typing import Union, Optional

from utils.helpers import StringUtils, DateUtils


def format_currency(amount: Union[int, float, Decimal, str, None]) -> str:
    """Format amount as a dollar string."""
    if amount is None:
        return "N/A"
    try:
        return StringUtils.format_currency(to_decimal(amount))
    except InvalidOperation:
        return f"${amount}"


def format_date(dt: Union[datetime, date, None]) -> str:
    """Format date for display."""
    if dt is None:
        return "N/A"
    if isinstance(dt, datetime):
        return dt.strftime("%d %b %Y, %I:%M %p")
    return dt.strftime("%d %b %Y")


def format_time(value: Union[time, timedelta, None]) -> str:
    if value is None:
        return "N/A"
    return DateUtils.to_time(value).strftime("%H:%M")


def format_rate(rate: Optional[Decimal]) -> str:
    return "N/A" if rate is None else f"{Decimal(str(rate)):.2f}%"


def status_badge(status) -> str:
    """Return a readable label for application, KYC and consultation statuses."""
    value = getattr(status, "value", status) or ""
    badges = {
        "pending": "Pending Review",
        "active": "Active",
        "rejected": "Rejected",
        "verified": "Verified",
        "booked": "Booked",
        "completed": "Completed",
        "cancelled": "Cancelled",
    }
    return badges.get(value, str(value).replace("_", " ").title())


def role_label(role) -> str:
    return str(getattr(role, "value", role)).replace("_", " ").title()


def to_decimal(value: Union[float, int, str, Decimal]) -> Decimal:
    """Safely convert a Streamlit number_input value to Decimal."""
    return Decimal(str(value))
