from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from core.models.entities import ApplicationStatus, KYCStatus, OTPPurpose, UserRole
from core.services.account_service import AccountService
from core.services.credit_card_service import CreditCardService
from core.services.confirmation_service import ConfirmationService
from utils.exceptions import (
    AuthorizationException, DuplicateApplicationException, InvalidOTPException,
    ProductNotFoundException, ValidationException, AccountNotFoundException
)

from conftest import latest_code, open_account


@pytest.fixture
def audit():
    return MagicMock()


@pytest.fixture
def service(accounts, products, kyc, otp_service, audit, db):
    return AccountService(account_repo=accounts, product_repo=products, kyc_repo=kyc,
                          otp_service=otp_service, audit=audit, db=db,
                          document_store=lambda name, content: f"kyc/{name}")


@pytest.fixture
def confirmations(otp_service, service):
    return ConfirmationService(otp_service=otp_service, account_service=service,
                               card_service=MagicMock(), user_service=MagicMock(),
                               auth_service=MagicMock())


def apply(service, user_id, product_id, deposit="100.00", **overrides):
    kwargs = dict(id_type="nric", id_number="S1234567A", document_name="id.pdf",
                  document_content=b"%PDF", declaration=True)
    kwargs.update(overrides)
    return service.apply_for_account(user_id, product_id, Decimal(deposit), **kwargs)


class TestApply:
    def test_creates_pending_account_with_kyc(self, service, accounts, kyc, customer_id, savings_product_id):
        result = apply(service, customer_id, savings_product_id)

        account = accounts.rows[result['account_id']]
        assert result['status'] == 'pending'
        assert account.balance == Decimal("100.00")
        assert account.account_number.startswith("RP")
        (document,) = kyc.rows.values()
        assert document.account_id == account.account_id
        assert document.card_id is None
        assert document.document_path == "kyc/id.pdf"
        assert document.status == KYCStatus.PENDING

    def test_second_savings_rejected(self, service, customer_id, savings_product_id):
        apply(service, customer_id, savings_product_id)
        with pytest.raises(DuplicateApplicationException):
            apply(service, customer_id, savings_product_id)

    def test_fixed_deposit_can_repeat(self, service, accounts, customer_id, fd_product_id):
        apply(service, customer_id, fd_product_id, deposit="1000.00")
        apply(service, customer_id, fd_product_id, deposit="2000.00")
        assert len(accounts.find_by_customer(customer_id)) == 2

    def test_deposit_below_minimum(self, service, customer_id, savings_product_id):
        with pytest.raises(ValidationException, match="at least"):
            apply(service, customer_id, savings_product_id, deposit="10.00")

    def test_declaration_required(self, service, accounts, customer_id, savings_product_id):
        with pytest.raises(ValidationException, match="declaration"):
            apply(service, customer_id, savings_product_id, declaration=False)
        assert accounts.rows == {}

    @pytest.mark.parametrize("overrides", [
        {"document_name": None, "document_content": None},
        {"document_name": "id.exe"},
        {"id_number": "12345"},
        {"id_type": "driving_licence"},
    ])
    def test_bad_kyc(self, service, customer_id, savings_product_id, overrides):
        with pytest.raises(ValidationException):
            apply(service, customer_id, savings_product_id, **overrides)

    def test_card_product_rejected(self, service, customer_id, card_product_id):
        with pytest.raises(ValidationException, match="credit card application"):
            apply(service, customer_id, card_product_id)

    def test_unknown_product(self, service, customer_id):
        with pytest.raises(ProductNotFoundException):
            apply(service, customer_id, 404)


class TestReview:
    def test_admin_approves(self, service, accounts, kyc, audit, customer_id, savings_product_id):
        account_id = apply(service, customer_id, savings_product_id)['account_id']

        service.approve_account(1, UserRole.ADMIN, account_id)

        assert accounts.rows[account_id].status == ApplicationStatus.ACTIVE
        assert all(d.status == KYCStatus.VERIFIED for d in kyc.rows.values())
        audit.log.assert_called_once_with(1, UserRole.ADMIN, 'ACCOUNT_APPROVED', {'account_id': account_id})

    def test_admin_rejects(self, service, accounts, kyc, customer_id, savings_product_id):
        account_id = apply(service, customer_id, savings_product_id)['account_id']

        service.reject_account(1, UserRole.SUPER_ADMIN, account_id)

        assert accounts.rows[account_id].status == ApplicationStatus.REJECTED
        assert all(d.status == KYCStatus.REJECTED for d in kyc.rows.values())

    @pytest.mark.parametrize("role", [UserRole.CUSTOMER, UserRole.ADVISOR])
    def test_non_admin_cannot_review(self, service, accounts, customer_id, savings_product_id, role):
        account_id = apply(service, customer_id, savings_product_id)['account_id']

        with pytest.raises(AuthorizationException):
            service.approve_account(customer_id, role, account_id)
        assert accounts.rows[account_id].status == ApplicationStatus.PENDING

    def test_already_reviewed(self, service, customer_id, savings_product_id):
        account_id = apply(service, customer_id, savings_product_id)['account_id']
        service.approve_account(1, UserRole.ADMIN, account_id)

        with pytest.raises(ValidationException, match="already active"):
            service.reject_account(1, UserRole.ADMIN, account_id)


class TestDeletion:
    def test_pending_application_withdrawn_immediately(self, service, accounts, kyc, customer_id,
                                                       savings_product_id):
        account_id = apply(service, customer_id, savings_product_id)['account_id']

        result = service.request_account_deletion(customer_id, account_id)

        assert result == {'deleted': True, 'otp_required': False}
        assert accounts.rows == {}
        assert kyc.rows == {}

    def test_active_account_needs_otp(self, service, confirmations, accounts, otp_tokens, customer_id,
                                      savings_product_id):
        account_id = open_account(accounts, customer_id, savings_product_id, "RP000000001", "100.00")

        result = service.request_account_deletion(customer_id, account_id)

        assert result == {'deleted': False, 'otp_required': True}
        assert account_id in accounts.rows
        assert confirmations.pending(customer_id, OTPPurpose.ACCOUNT_CANCEL).target_id == account_id

        message = confirmations.confirm(customer_id, OTPPurpose.ACCOUNT_CANCEL,
                                        latest_code(otp_tokens, customer_id))

        assert message == "Account deleted successfully"
        assert account_id not in accounts.rows
        assert confirmations.pending(customer_id, OTPPurpose.ACCOUNT_CANCEL) is None

    def test_wrong_code_keeps_account(self, service, confirmations, accounts, customer_id,
                                      savings_product_id):
        account_id = open_account(accounts, customer_id, savings_product_id, "RP000000001", "100.00")
        service.request_account_deletion(customer_id, account_id)

        with pytest.raises(InvalidOTPException):
            confirmations.confirm(customer_id, OTPPurpose.ACCOUNT_CANCEL, "999999")

        assert account_id in accounts.rows

    def test_other_customers_account(self, service, accounts, customer_id, other_customer_id,
                                     savings_product_id):
        account_id = open_account(accounts, customer_id, savings_product_id, "RP000000001", "100.00")
        with pytest.raises(AccountNotFoundException):
            service.request_account_deletion(other_customer_id, account_id)


class TestCardApplication:
    @pytest.fixture
    def cards_service(self, cards, accounts, products, kyc, otp_service, audit, db):
        return CreditCardService(card_repo=cards, account_repo=accounts, product_repo=products,
                                 kyc_repo=kyc, otp_service=otp_service, audit=audit, db=db,
                                 document_store=lambda name, content: f"kyc/{name}",
                                 today=lambda: date(2030, 1, 7))

    def apply_card(self, cards_service, user_id, product_id):
        return cards_service.apply_for_card(user_id, product_id, Decimal("5000"), "passport", "E1234567",
                                            "passport.png", b"png", True)

    def test_requires_active_savings(self, cards_service, customer_id, card_product_id):
        with pytest.raises(ValidationException, match="active savings account"):
            self.apply_card(cards_service, customer_id, card_product_id)

    def test_apply_and_approve(self, cards_service, cards, accounts, kyc, customer_id,
                               savings_product_id, card_product_id):
        open_account(accounts, customer_id, savings_product_id, "RP000000001", "100.00")

        card_id = self.apply_card(cards_service, customer_id, card_product_id)['card_id']
        card = cards.rows[card_id]
        assert card.status == ApplicationStatus.PENDING
        assert len(card.card_number) == 16
        assert card.expiry_date == date(2033, 1, 7)

        cards_service.approve_card(1, UserRole.ADMIN, card_id, Decimal("3000"))

        assert cards.rows[card_id].status == ApplicationStatus.ACTIVE
        assert cards.rows[card_id].credit_limit == Decimal("3000.00")
        document = next(d for d in kyc.rows.values() if d.card_id == card_id)
        assert document.status == KYCStatus.VERIFIED

    def test_duplicate_card(self, cards_service, accounts, customer_id, savings_product_id, card_product_id):
        open_account(accounts, customer_id, savings_product_id, "RP000000001", "100.00")
        self.apply_card(cards_service, customer_id, card_product_id)

        with pytest.raises(DuplicateApplicationException):
            self.apply_card(cards_service, customer_id, card_product_id)

    def test_customer_cannot_approve(self, cards_service, accounts, customer_id, savings_product_id,
                                     card_product_id):
        open_account(accounts, customer_id, savings_product_id, "RP000000001", "100.00")
        card_id = self.apply_card(cards_service, customer_id, card_product_id)['card_id']

        with pytest.raises(AuthorizationException):
            cards_service.approve_card(customer_id, UserRole.CUSTOMER, card_id, Decimal("3000"))

    def test_admin_rejects_card(self, cards_service, cards, accounts, kyc, audit, customer_id,
                                savings_product_id, card_product_id):
        open_account(accounts, customer_id, savings_product_id, "RP000000001", "100.00")
        card_id = self.apply_card(cards_service, customer_id, card_product_id)['card_id']

        cards_service.reject_card(1, UserRole.ADMIN, card_id)

        assert cards.rows[card_id].status == ApplicationStatus.REJECTED
        document = next(d for d in kyc.rows.values() if d.card_id == card_id)
        assert document.status == KYCStatus.REJECTED
        audit.log.assert_called_once_with(1, UserRole.ADMIN, 'CARD_REJECTED', {'card_id': card_id})

    def test_rejected_card_cannot_be_approved(self, cards_service, accounts, customer_id,
                                              savings_product_id, card_product_id):
        open_account(accounts, customer_id, savings_product_id, "RP000000001", "100.00")
        card_id = self.apply_card(cards_service, customer_id, card_product_id)['card_id']
        cards_service.reject_card(1, UserRole.ADMIN, card_id)

        with pytest.raises(ValidationException, match="already rejected"):
            cards_service.approve_card(1, UserRole.ADMIN, card_id, Decimal("3000"))

    def test_active_card_cancel_needs_otp(self, cards_service, otp_service, cards, accounts, kyc,
                                          otp_tokens, customer_id, savings_product_id, card_product_id):
        confirmations = ConfirmationService(otp_service=otp_service, account_service=MagicMock(),
                                            card_service=cards_service, user_service=MagicMock(),
                                            auth_service=MagicMock())
        open_account(accounts, customer_id, savings_product_id, "RP000000001", "100.00")
        card_id = self.apply_card(cards_service, customer_id, card_product_id)['card_id']
        cards_service.approve_card(1, UserRole.ADMIN, card_id, Decimal("3000"))

        result = cards_service.request_card_deletion(customer_id, card_id)

        assert result == {'deleted': False, 'otp_required': True}
        assert card_id in cards.rows
        assert confirmations.pending(customer_id, OTPPurpose.CARD_CANCEL).target_id == card_id

        message = confirmations.confirm(customer_id, OTPPurpose.CARD_CANCEL,
                                        latest_code(otp_tokens, customer_id, OTPPurpose.CARD_CANCEL))

        assert message == "Credit card cancelled successfully"
        assert card_id not in cards.rows
        assert not any(d.card_id == card_id for d in kyc.rows.values())
        assert confirmations.pending(customer_id, OTPPurpose.CARD_CANCEL) is None
