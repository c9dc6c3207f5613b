"""
Shared fixtures: in-memory stand-ins for the MySQL-backed repositories.

Every fake reads and writes one FakeStore, and FakeDB.get_transaction restores
a snapshot of it when the block raises, mirroring a MySQL rollback.
"""

import copy
import itertools
import dataclasses
from contextlib import contextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from core.models.entities import (
    Account, AdvisorSession, ApplicationStatus, ConsultationStatus,
    OTPPurpose, Product, ProductType, User, UserRole
)
from core.services.otp_service import OTPService
from utils.helpers import NumberUtils


class FakeStore:
    def __init__(self):
        self.tables = {}
        self._ids = {}

    def table(self, name):
        return self.tables.setdefault(name, {})

    def next_id(self, name):
        self._ids[name] = self._ids.get(name, 0) + 1
        return self._ids[name]


class FakeDB:
    def __init__(self, store):
        self.store = store
        self.transactions = 0

    @contextmanager
    def get_transaction(self):
        snapshot = copy.deepcopy(self.store.tables)
        self.transactions += 1
        try:
            yield "conn"
        except Exception:
            self.store.tables = snapshot
            raise


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class _FakeRepo:
    table_name = None

    def __init__(self, store):
        self.store = store

    @property
    def rows(self):
        return self.store.table(self.table_name)

    def _insert(self, entity, id_field):
        new_id = self.store.next_id(self.table_name)
        setattr(entity, id_field, new_id)
        self.rows[new_id] = dataclasses.replace(entity)
        return new_id

    def _get(self, record_id):
        row = self.rows.get(record_id)
        return dataclasses.replace(row) if row else None

    def delete(self, record_id, conn=None):
        return self.rows.pop(record_id, None) is not None

    def count(self, where_clause=None, params=None):
        return len(self.rows)


class FakeUserRepository(_FakeRepo):
    table_name = 'users'

    def create_user(self, user):
        return self._insert(user, 'user_id')

    def find_user_by_id(self, user_id):
        return self._get(user_id)

    def find_by_email(self, email):
        return next((dataclasses.replace(u) for u in self.rows.values() if u.email == email), None)

    def find_by_username_or_email(self, username, email, exclude_user_id=None):
        for user in self.rows.values():
            if user.user_id == exclude_user_id:
                continue
            if user.username == username or user.email == email:
                return dataclasses.replace(user)
        return None

    def update_profile(self, user_id, fields):
        user = self.rows[user_id]
        for key, value in fields.items():
            setattr(user, key, value)
        return True

    def change_password_hash(self, user_id, password_hash):
        self.rows[user_id].password_hash = password_hash
        return True

    def save_google_tokens(self, user_id, tokens):
        self.rows[user_id].google_tokens = tokens
        return True

    def get_all(self):
        return [dataclasses.replace(u) for u in self.rows.values()]


class FakeProductRepository(_FakeRepo):
    table_name = 'products'

    def add(self, product):
        return self._insert(product, 'product_id')

    def find_product_by_id(self, product_id):
        return self._get(product_id)


class FakeAccountRepository(_FakeRepo):
    table_name = 'accounts'

    def __init__(self, store, products):
        super().__init__(store)
        self.products = products

    def create_account(self, account, conn=None):
        product = self.products.find_product_by_id(account.product_id)
        if product:
            account.product_name = product.product_name
            account.product_type = product.product_type
        return self._insert(account, 'account_id')

    def find_account_by_id(self, account_id, conn=None, for_update=False):
        return self._get(account_id)

    def find_by_account_number(self, account_number):
        return next((dataclasses.replace(a) for a in self.rows.values()
                     if a.account_number == account_number), None)

    def find_by_customer(self, user_id):
        return [dataclasses.replace(a) for a in self.rows.values() if a.user_id == user_id]

    def get_active_accounts_by_customer(self, user_id):
        return [a for a in self.find_by_customer(user_id) if a.status == ApplicationStatus.ACTIVE]

    def has_open_application(self, user_id, product_id):
        return any(a.user_id == user_id and a.product_id == product_id
                   and a.status in (ApplicationStatus.PENDING, ApplicationStatus.ACTIVE)
                   for a in self.rows.values())

    def has_active_savings(self, user_id):
        return any(a.user_id == user_id and a.status == ApplicationStatus.ACTIVE
                   and a.product_type == ProductType.SAVINGS for a in self.rows.values())

    def update_status(self, account_id, status, conn=None):
        self.rows[account_id].status = status
        return True

    def update_balance(self, account_id, new_balance, conn=None):
        self.rows[account_id].balance = new_balance
        return True

    def delete_account(self, account_id, conn=None):
        return self.delete(account_id)


class FakeCardRepository(_FakeRepo):
    table_name = 'credit_cards'

    def create_card(self, card, conn=None):
        return self._insert(card, 'card_id')

    def find_card_by_id(self, card_id):
        return self._get(card_id)

    def find_by_customer(self, user_id):
        return [dataclasses.replace(c) for c in self.rows.values() if c.user_id == user_id]

    def has_open_application(self, user_id, product_id):
        return any(c.user_id == user_id and c.product_id == product_id
                   and c.status in (ApplicationStatus.PENDING, ApplicationStatus.ACTIVE)
                   for c in self.rows.values())

    def approve(self, card_id, credit_limit, conn=None):
        self.rows[card_id].status = ApplicationStatus.ACTIVE
        self.rows[card_id].credit_limit = credit_limit
        return True

    def update_status(self, card_id, status, conn=None):
        self.rows[card_id].status = status
        return True

    def delete_card(self, card_id, conn=None):
        return self.delete(card_id)


class FakeKYCRepository(_FakeRepo):
    table_name = 'kyc_documents'

    def create_document(self, document, conn=None):
        if (document.account_id is None) == (document.card_id is None):
            raise ValueError("KYC document must reference exactly one account or card")
        return self._insert(document, 'kyc_id')

    def _for(self, field, value):
        return [d for d in self.rows.values() if getattr(d, field) == value]

    def set_status_for_account(self, account_id, status, conn=None):
        for doc in self._for('account_id', account_id):
            doc.status = status
        return True

    def set_status_for_card(self, card_id, status, conn=None):
        for doc in self._for('card_id', card_id):
            doc.status = status
        return True

    def delete_for_account(self, account_id, conn=None):
        for doc in self._for('account_id', account_id):
            del self.rows[doc.kyc_id]
        return True

    def delete_for_card(self, card_id, conn=None):
        for doc in self._for('card_id', card_id):
            del self.rows[doc.kyc_id]
        return True

    def find_by_user(self, user_id):
        return [dataclasses.asdict(d) for d in self._for('user_id', user_id)]


class FakeTransactionRepository(_FakeRepo):
    table_name = 'transactions'

    def create_transaction(self, transaction, conn=None):
        return self._insert(transaction, 'transaction_id')

    def find_by_customer(self, user_id):
        return [dataclasses.asdict(t) for t in self.rows.values()]

    def count_by_date(self, since):
        counts = {}
        for txn in self.rows.values():
            day = txn.transaction_date.date()
            if day >= since:
                counts[day] = counts.get(day, 0) + 1
        return [{'date': day, 'count': n} for day, n in sorted(counts.items())]


class FakeOTPRepository(_FakeRepo):
    table_name = 'otp_tokens'

    def create_token(self, token):
        return self._insert(token, 'otp_id')

    def invalidate_active(self, user_id, purpose, now):
        touched = 0
        for token in self.rows.values():
            if token.user_id == user_id and token.purpose == purpose and not token.is_used:
                token.is_used = True
                token.used_at = now
                touched += 1
        return touched

    def find_valid(self, user_id, otp_code, purpose, now):
        matches = [t for t in self.rows.values()
                   if t.user_id == user_id and t.otp_code == otp_code and t.purpose == purpose
                   and not t.is_used and t.expires_at > now]
        return dataclasses.replace(matches[-1]) if matches else None

    def mark_used(self, otp_id, now):
        token = self.rows[otp_id]
        if token.is_used:
            return False
        token.is_used = True
        token.used_at = now
        return True


class FakePendingOperationRepository(_FakeRepo):
    table_name = 'pending_operations'

    def replace(self, operation):
        self.rows[(operation.user_id, operation.purpose)] = copy.deepcopy(operation)
        return 1

    def find_for(self, user_id, purpose):
        operation = self.rows.get((user_id, purpose))
        return copy.deepcopy(operation) if operation else None

    def delete_for(self, user_id, purpose):
        return 1 if self.rows.pop((user_id, purpose), None) else 0


class FakeSessionRepository(_FakeRepo):
    table_name = 'sessions'

    def create_session(self, session):
        return self._insert(session, 'session_id')

    def update_slot(self, session_id, session_date, session_time, end_time):
        slot = self.rows[session_id]
        slot.session_date, slot.session_time, slot.end_time = session_date, session_time, end_time
        return True

    def find_session_by_id(self, session_id):
        return self._get(session_id)

    def slot_exists(self, advisor_id, session_date, session_time, exclude_session_id=None):
        return any(s.advisor_id == advisor_id and s.session_date == session_date
                   and s.session_time == session_time and s.session_id != exclude_session_id
                   for s in self.rows.values())

    def find_open_slots(self, from_date):
        return [dataclasses.asdict(s) for s in self.rows.values()
                if not s.is_booked and s.session_date >= from_date]

    def claim(self, session_id, conn=None):
        slot = self.rows[session_id]
        if slot.is_booked:
            return False
        slot.is_booked = True
        return True

    def mark_booked(self, session_id, booked, conn=None):
        self.rows[session_id].is_booked = booked
        return True


class FakeConsultationRepository(_FakeRepo):
    table_name = 'consultations'

    def __init__(self, store, sessions):
        super().__init__(store)
        self.sessions = sessions

    def create_consultation(self, consultation, conn=None):
        return self._insert(consultation, 'consultation_id')

    def find_consultation_by_id(self, consultation_id):
        return self._get(consultation_id)

    def customer_has_booking_at(self, user_id, session_date, session_time):
        for c in self.rows.values():
            slot = self.sessions.rows[c.session_id]
            if (c.user_id == user_id and c.status == ConsultationStatus.BOOKED
                    and slot.session_date == session_date and slot.session_time == session_time):
                return True
        return False

    def update_status(self, consultation_id, status, conn=None):
        self.rows[consultation_id].status = status
        return True

    def update_notes(self, consultation_id, notes):
        self.rows[consultation_id].notes = notes
        return True


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def db(store):
    return FakeDB(store)


@pytest.fixture
def clock():
    return FakeClock(datetime(2030, 1, 7, 8, 0))


@pytest.fixture
def users(store):
    return FakeUserRepository(store)


@pytest.fixture
def products(store):
    return FakeProductRepository(store)


@pytest.fixture
def accounts(store, products):
    return FakeAccountRepository(store, products)


@pytest.fixture
def cards(store):
    return FakeCardRepository(store)


@pytest.fixture
def kyc(store):
    return FakeKYCRepository(store)


@pytest.fixture
def transactions(store):
    return FakeTransactionRepository(store)


@pytest.fixture
def otp_tokens(store):
    return FakeOTPRepository(store)


@pytest.fixture
def pending_ops(store):
    return FakePendingOperationRepository(store)


@pytest.fixture
def sessions(store):
    return FakeSessionRepository(store)


@pytest.fixture
def consultations(store, sessions):
    return FakeConsultationRepository(store, sessions)


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def otp_service(otp_tokens, pending_ops, users, notifier, clock):
    return OTPService(otp_repo=otp_tokens, pending_repo=pending_ops, user_repo=users,
                      notifier=notifier, clock=clock, expiry_minutes=5)


def make_user(users, username, role=UserRole.CUSTOMER, **extra):
    return users.create_user(User(
        username=username,
        email=f"{username}@example.com",
        password_hash="$2b$12$placeholderhashplaceholderhashplaceholderhashpla",
        role=role,
        first_name=username.title(),
        last_name="Tan",
        phone="81234567",
        country="Singapore",
        address_line_1="1 Marina Blvd",
        postcode="018989",
        **extra
    ))


@pytest.fixture
def customer_id(users):
    return make_user(users, "alice")


@pytest.fixture
def other_customer_id(users):
    return make_user(users, "bob")


@pytest.fixture
def savings_product_id(products):
    return products.add(Product(
        product_name="Everyday Savings", product_type=ProductType.SAVINGS,
        description="Flexible savings", interest_rate=Decimal('0.50'), min_balance=Decimal('50.00')
    ))


@pytest.fixture
def fd_product_id(products):
    return products.add(Product(
        product_name="12M Fixed Deposit", product_type=ProductType.FIXED_DEPOSIT,
        description="Fixed deposit", interest_rate=Decimal('3.10'),
        min_balance=Decimal('1000.00'), tenure_months=12
    ))


@pytest.fixture
def card_product_id(products):
    return products.add(Product(
        product_name="Rewards Card", product_type=ProductType.CREDIT_CARD,
        description="Cashback card", interest_rate=Decimal('26.90'), annual_fee=Decimal('192.60')
    ))


def open_account(accounts, user_id, product_id, number, balance, status=ApplicationStatus.ACTIVE):
    return accounts.create_account(Account(
        user_id=user_id, product_id=product_id, account_number=number,
        balance=Decimal(balance), status=status
    ))


def add_slot(sessions, advisor_id, when, booked=False):
    return sessions.create_session(AdvisorSession(
        advisor_id=advisor_id,
        session_date=when.date(),
        session_time=when.time(),
        end_time=(when + timedelta(hours=1)).time(),
        is_booked=booked
    ))


def latest_code(otp_tokens, user_id, purpose=OTPPurpose.ACCOUNT_CANCEL):
    tokens = [t for t in otp_tokens.rows.values() if t.user_id == user_id and t.purpose == purpose]
    return tokens[-1].otp_code


@pytest.fixture(autouse=True)
def sequential_digits(monkeypatch):
    """Deterministic codes and account numbers: 100000, 100001, ..."""
    counter = itertools.count(100000)
    monkeypatch.setattr(NumberUtils, "random_digits",
                        lambda length: str(next(counter)).zfill(length)[-length:])
