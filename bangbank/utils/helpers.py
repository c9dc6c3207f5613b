"""
Shared helpers for money, dates, identifiers, hashing and structured logs
"""

import secrets
import uuid
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime, date, time, timedelta
from typing import Dict, Any
import logging

import bcrypt
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

class NumberUtils:
    """Money rounding and random digit strings"""

    @staticmethod
    def round_currency(amount: Decimal) -> Decimal:
        """Half-up to cents"""
        return Decimal(str(amount)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    @staticmethod
    def random_digits(length: int) -> str:
        """Cryptographically random digit string (no leading-zero guarantee)"""
        return ''.join(secrets.choice('0123456789') for _ in range(length))

class DateUtils:
    """Calendar arithmetic used by card expiry and advisor slots"""

    @staticmethod
    def add_years(start_date: date, years: int) -> date:
        """Same calendar day N years on (Feb 29 falls back to Feb 28)"""
        return start_date + relativedelta(years=years)

    @staticmethod
    def add_hours(start: time, hours: int = 1) -> time:
        """Shift a wall-clock time, wrapping at midnight"""
        shifted = datetime.combine(date.today(), start) + relativedelta(hours=hours)
        return shifted.time()

    @staticmethod
    def to_time(value) -> time:
        """MySQL returns TIME columns as timedelta; normalise to time"""
        if isinstance(value, time):
            return value
        if isinstance(value, timedelta):
            total = int(value.total_seconds()) % 86400
            return time(total // 3600, (total % 3600) // 60, total % 60)
        if isinstance(value, str):
            return datetime.strptime(value[:5], "%H:%M").time()
        raise ValueError(f"Unsupported time value: {value!r}")

class StringUtils:
    """Identifiers and display formatting"""

    @staticmethod
    def generate_reference_number(prefix: str = "TXN") -> str:
        """Prefix + timestamp + 8 hex chars, e.g. TXN20300107080000AB12CD34"""
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        unique_id = str(uuid.uuid4())[:8].upper()
        return f"{prefix}{timestamp}{unique_id}"

    @staticmethod
    def generate_account_number(prefix: str = "RP") -> str:
        """Generate account number: prefix + 9 digits"""
        return f"{prefix}{NumberUtils.random_digits(9)}"

    @staticmethod
    def generate_card_number() -> str:
        """Generate a 16-digit card number that never starts with 0"""
        return secrets.choice('123456789') + NumberUtils.random_digits(15)

    @staticmethod
    def format_currency(amount: Decimal, currency_symbol: str = "$") -> str:
        """$1,234.50 style"""
        return f"{currency_symbol}{Decimal(str(amount)):,.2f}"

    @staticmethod
    def clean_string(text: str) -> str:
        """Trim and collapse internal whitespace"""
        if not text:
            return ""

        return " ".join(text.strip().split())

class SecurityUtils:
    """Password hashing and random tokens"""

    @staticmethod
    def hash_password(password: str) -> str:
        """bcrypt hash with a fresh salt"""
        return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    @staticmethod
    def verify_password(password: str, hashed: str) -> bool:
        """Constant-time bcrypt check; empty input never matches"""
        if not password or not hashed:
            return False
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))

    @staticmethod
    def generate_session_token() -> str:
        """Opaque id stored in st.session_state"""
        return str(uuid.uuid4())

    @staticmethod
    def generate_file_token() -> str:
        """Random name for stored uploads"""
        return secrets.token_hex(8)

class LoggingUtils:
    """Structured logging helpers"""

    @staticmethod
    def log_transaction(transaction_type: str, account_id: int, amount: Decimal,
                        user_id: int = None, details: Dict[str, Any] = None):
        """Log ledger movements"""
        log_data = {
            'transaction_type': transaction_type,
            'account_id': account_id,
            'amount': str(amount),
            'user_id': user_id,
            'details': details or {}
        }

        logger.info(f"Transaction: {transaction_type} account={account_id} amount={amount}", extra=log_data)

    @staticmethod
    def log_security_event(event_type: str, user_id: int = None, details: Dict[str, Any] = None):
        """Log authentication, OTP and authorization events"""
        log_data = {
            'event_type': event_type,
            'user_id': user_id,
            'details': details or {}
        }

        logger.warning(f"Security Event: {event_type} user={user_id}", extra=log_data)

    @staticmethod
    def log_business_event(event_type: str, entity_type: str, entity_id: int,
                           user_id: int = None, details: Dict[str, Any] = None):
        """Log state changes on accounts, cards, KYC and bookings"""
        log_data = {
            'event_type': event_type,
            'entity_type': entity_type,
            'entity_id': entity_id,
            'user_id': user_id,
            'details': details or {}
        }

        logger.info(f"Business Event: {event_type} {entity_type}={entity_id}", extra=log_data)
