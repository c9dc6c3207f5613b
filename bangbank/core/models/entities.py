"""
Data Models for BangBank
Dataclasses representing database entities
"""

from dataclasses import dataclass, field
from datetime import datetime, date, time
from decimal import Decimal
from typing import Optional, Dict, Any
from enum import Enum

# Enums for database constraints
class UserRole(Enum):
    CUSTOMER = 'customer'
    ADVISOR = 'advisor'
    ADMIN = 'admin'
    SUPER_ADMIN = 'super_admin'

class ProductType(Enum):
    SAVINGS = 'savings'
    FIXED_DEPOSIT = 'fixed_deposit'
    CREDIT_CARD = 'credit_card'

class ApplicationStatus(Enum):
    PENDING = 'pending'
    ACTIVE = 'active'
    REJECTED = 'rejected'

class KYCStatus(Enum):
    PENDING = 'pending'
    VERIFIED = 'verified'
    REJECTED = 'rejected'

class IDType(Enum):
    NRIC = 'nric'
    PASSPORT = 'passport'

class TransactionType(Enum):
    DEPOSIT = 'deposit'
    TRANSFER = 'transfer'

class ConsultationStatus(Enum):
    BOOKED = 'booked'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

class OTPPurpose(Enum):
    ACCOUNT_CANCEL = 'account_cancel'
    CARD_CANCEL = 'card_cancel'
    PROFILE_UPDATE = 'profile_update'
    PASSWORD_RESET = 'password_reset'

@dataclass
class User:
    """User entity for authentication and profile data"""
    user_id: Optional[int] = None
    username: str = ""
    email: str = ""
    password_hash: str = ""
    role: UserRole = UserRole.CUSTOMER
    first_name: str = ""
    last_name: str = ""
    alias: Optional[str] = None
    date_of_birth: Optional[date] = None
    phone: str = ""
    country: str = ""
    address_line_1: str = ""
    address_line_2: Optional[str] = None
    postcode: str = ""
    image: str = "default.png"
    google_tokens: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

@dataclass
class Product:
    """Financial product offered to customers"""
    product_id: Optional[int] = None
    product_name: str = ""
    product_type: ProductType = ProductType.SAVINGS
    description: str = ""
    interest_rate: Decimal = Decimal('0.00')
    annual_fee: Optional[Decimal] = None
    min_balance: Optional[Decimal] = None
    tenure_months: Optional[int] = None
    created_at: Optional[datetime] = None

@dataclass
class Account:
    """Savings or fixed-deposit account"""
    account_id: Optional[int] = None
    user_id: int = 0
    product_id: int = 0
    account_number: str = ""
    balance: Decimal = Decimal('0.00')
    status: ApplicationStatus = ApplicationStatus.PENDING
    opened_at: Optional[datetime] = None
    # Joined from products when available
    product_name: Optional[str] = None
    product_type: Optional[ProductType] = None

@dataclass
class CreditCard:
    """Credit card entity"""
    card_id: Optional[int] = None
    user_id: int = 0
    product_id: int = 0
    card_number: str = ""
    expiry_date: Optional[date] = None
    credit_limit: Decimal = Decimal('0.00')
    outstanding_balance: Decimal = Decimal('0.00')
    status: ApplicationStatus = ApplicationStatus.PENDING
    created_at: Optional[datetime] = None
    product_name: Optional[str] = None

@dataclass
class KYCDocument:
    """Identity document attached to exactly one account or card application"""
    kyc_id: Optional[int] = None
    user_id: int = 0
    account_id: Optional[int] = None
    card_id: Optional[int] = None
    id_type: IDType = IDType.NRIC
    id_number: str = ""
    document_path: str = ""
    status: KYCStatus = KYCStatus.PENDING
    uploaded_at: Optional[datetime] = None

@dataclass
class Transaction:
    """Append-only ledger row"""
    transaction_id: Optional[int] = None
    account_id: int = 0
    transaction_type: TransactionType = TransactionType.DEPOSIT
    amount: Decimal = Decimal('0.00')
    balance_after: Decimal = Decimal('0.00')
    description: Optional[str] = None
    transaction_date: Optional[datetime] = None

@dataclass
class AdvisorSession:
    """Advisor availability slot (one hour)"""
    session_id: Optional[int] = None
    advisor_id: int = 0
    session_date: Optional[date] = None
    session_time: Optional[time] = None
    end_time: Optional[time] = None
    is_booked: bool = False

@dataclass
class Consultation:
    """Customer booking of an advisor slot"""
    consultation_id: Optional[int] = None
    user_id: int = 0
    advisor_id: int = 0
    session_id: int = 0
    status: ConsultationStatus = ConsultationStatus.BOOKED
    meet_link: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

@dataclass
class OTPToken:
    """One-time passcode scoped to a user and purpose"""
    otp_id: Optional[int] = None
    user_id: int = 0
    otp_code: str = ""
    purpose: OTPPurpose = OTPPurpose.ACCOUNT_CANCEL
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_used: bool = False
    used_at: Optional[datetime] = None

@dataclass
class PendingOperation:
    """Action awaiting OTP confirmation, one per (user, purpose)"""
    operation_id: Optional[int] = None
    user_id: int = 0
    purpose: OTPPurpose = OTPPurpose.ACCOUNT_CANCEL
    target_id: int = 0
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is None or now >= self.expires_at
