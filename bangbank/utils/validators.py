"""
Input Validation Utilities
Provides validation functions for banking system inputs
"""

import re
from decimal import Decimal, InvalidOperation
from datetime import date, datetime, time
from typing import Optional, Dict, Any
from utils.exceptions import ValidationException

ID_NUMBER_PATTERNS = {
    'nric': re.compile(r'^[STFG]\d{7}[A-Z]$'),
    'passport': re.compile(r'^[A-Z]{1,2}\d{6,8}$'),
}

KYC_FILE_EXTENSIONS = ('pdf', 'png', 'jpg', 'jpeg')

SLOT_FIRST_HOUR = 9
SLOT_LAST_HOUR = 17

class BankingValidator:
    """Validation utilities for banking operations"""

    @staticmethod
    def validate_amount(amount: Decimal, min_amount: Decimal = None) -> bool:
        """Validate monetary amount"""
        if not isinstance(amount, Decimal):
            raise ValidationException("Amount must be a Decimal")

        if amount <= 0:
            raise ValidationException("Amount must be greater than zero")

        if min_amount is not None and amount < min_amount:
            raise ValidationException(f"Amount must be at least {min_amount}")

        # Check decimal places (max 2 for currency)
        if amount.as_tuple().exponent < -2:
            raise ValidationException("Amount cannot have more than 2 decimal places")

        return True

    @staticmethod
    def validate_required(fields: Dict[str, Any]) -> bool:
        """Ensure every named field has a non-blank value"""
        missing = [name for name, value in fields.items()
                   if value is None or (isinstance(value, str) and not value.strip())]
        if missing:
            raise ValidationException(f"Missing required fields: {', '.join(missing)}")
        return True

    @staticmethod
    def validate_phone(phone: str) -> bool:
        """Validate phone number (8 digits)"""
        if not phone or not re.fullmatch(r'\d{8}', phone):
            raise ValidationException("Phone number must be exactly 8 digits")
        return True

    @staticmethod
    def validate_postcode(postcode: str) -> bool:
        """Validate postcode (6 digits)"""
        if not postcode or not re.fullmatch(r'\d{6}', postcode):
            raise ValidationException("Postcode must be exactly 6 digits")
        return True

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email address"""
        if not email:
            raise ValidationException("Email is required")

        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, email):
            raise ValidationException("Invalid email format")

        return True

    @staticmethod
    def validate_username(username: str) -> bool:
        if not username or not username.strip():
            raise ValidationException("Username is required")
        if len(username) > 50:
            raise ValidationException("Username cannot exceed 50 characters")
        return True

    @staticmethod
    def validate_password(password: str, confirm_password: Optional[str] = None) -> bool:
        """Validate password length and, when given, the confirmation"""
        if not password:
            raise ValidationException("Password is required")

        if len(password) < 6:
            raise ValidationException("Password must be at least 6 characters")

        if len(password) > 128:
            raise ValidationException("Password cannot exceed 128 characters")

        if confirm_password is not None and password != confirm_password:
            raise ValidationException("Passwords do not match")

        return True

    @staticmethod
    def validate_date_of_birth(dob: date) -> bool:
        """Validate date of birth"""
        if not dob:
            raise ValidationException("Date of birth is required")

        if not isinstance(dob, date):
            raise ValidationException("Date of birth must be a date object")

        if dob >= date.today():
            raise ValidationException("Date of birth must be in the past")

        return True

    @staticmethod
    def validate_profile(data: Dict[str, Any]) -> bool:
        """Fields shared by registration, admin user forms and profile edits"""
        BankingValidator.validate_required({
            'username': data.get('username'),
            'email': data.get('email'),
            'first_name': data.get('first_name'),
            'last_name': data.get('last_name'),
            'country': data.get('country'),
            'address_line_1': data.get('address_line_1'),
            'phone': data.get('phone'),
            'postcode': data.get('postcode'),
        })
        BankingValidator.validate_username(data['username'])
        BankingValidator.validate_email(data['email'])
        BankingValidator.validate_phone(data['phone'])
        BankingValidator.validate_postcode(data['postcode'])
        if data.get('date_of_birth') is not None:
            BankingValidator.validate_date_of_birth(data['date_of_birth'])
        return True

    @staticmethod
    def validate_id_document(id_type: str, id_number: str) -> bool:
        """Validate NRIC / passport number format"""
        pattern = ID_NUMBER_PATTERNS.get((id_type or '').lower())
        if pattern is None:
            raise ValidationException("ID type must be nric or passport")

        if not id_number or not pattern.match(id_number):
            if id_type.lower() == 'nric':
                raise ValidationException("Invalid NRIC format (e.g. S1234567A)")
            raise ValidationException("Invalid passport number format (e.g. E1234567)")

        return True

    @staticmethod
    def validate_kyc_filename(filename: str) -> bool:
        if not filename:
            raise ValidationException("KYC document is required")
        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        if extension not in KYC_FILE_EXTENSIONS:
            raise ValidationException(
                f"KYC document must be one of: {', '.join(KYC_FILE_EXTENSIONS)}"
            )
        return True

    @staticmethod
    def validate_otp(otp: str) -> bool:
        """Validate OTP format"""
        if not otp:
            raise ValidationException("OTP is required")

        if not isinstance(otp, str):
            raise ValidationException("OTP must be a string")

        if not re.match(r'^\d{6}$', otp):
            raise ValidationException("OTP must be exactly 6 digits")

        return True

class BusinessRuleValidator:
    """Business rule validation for banking operations"""

    @staticmethod
    def normalize_product(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate product fields and clear the ones that don't apply to its type.

        savings needs a minimum balance, fixed_deposit a minimum balance and
        tenure, credit_card an annual fee.
        """
        BankingValidator.validate_required({
            'product_name': data.get('product_name'),
            'product_type': data.get('product_type'),
            'description': data.get('description'),
            'interest_rate': data.get('interest_rate'),
        })

        product_type = data['product_type']
        product_type = getattr(product_type, 'value', product_type)
        interest_rate = _to_decimal(data['interest_rate'], "Interest rate")
        if interest_rate < 0:
            raise ValidationException("Interest rate cannot be negative")

        normalized = {
            'product_name': data['product_name'].strip(),
            'product_type': product_type,
            'description': data['description'].strip(),
            'interest_rate': interest_rate,
            'annual_fee': None,
            'min_balance': None,
            'tenure_months': None,
        }

        if product_type == 'savings':
            normalized['min_balance'] = _required_decimal(data.get('min_balance'), "Minimum balance")
        elif product_type == 'fixed_deposit':
            normalized['min_balance'] = _required_decimal(data.get('min_balance'), "Minimum balance")
            tenure = data.get('tenure_months')
            if tenure is None or int(tenure) <= 0:
                raise ValidationException("Tenure (months) is required for fixed deposits")
            normalized['tenure_months'] = int(tenure)
        elif product_type == 'credit_card':
            normalized['annual_fee'] = _required_decimal(data.get('annual_fee'), "Annual fee")
        else:
            raise ValidationException("Invalid product type")

        return normalized

    @staticmethod
    def validate_initial_deposit(amount: Decimal, min_balance: Optional[Decimal]) -> bool:
        if amount is None or amount < 0:
            raise ValidationException("Initial deposit cannot be negative")
        if min_balance is not None and amount < Decimal(str(min_balance)):
            raise ValidationException(f"Initial deposit must be at least {min_balance}")
        return True

    @staticmethod
    def validate_slot(session_date: date, session_time: time, now: datetime) -> bool:
        """Slots must be in the future and start between 09:00 and 17:00"""
        if not session_date or session_time is None:
            raise ValidationException("Date and time are required")

        if datetime.combine(session_date, session_time) < now:
            raise ValidationException("Cannot create a session in the past")

        if session_time.hour < SLOT_FIRST_HOUR or session_time.hour > SLOT_LAST_HOUR:
            raise ValidationException("Sessions must start between 09:00 and 17:00")

        return True


def _to_decimal(value: Any, label: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationException(f"{label} must be a number")


def _required_decimal(value: Any, label: str) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationException(f"{label} is required for this product type")
    amount = _to_decimal(value, label)
    if amount < 0:
        raise ValidationException(f"{label} cannot be negative")
    return amount
