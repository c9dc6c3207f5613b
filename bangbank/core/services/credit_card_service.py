"""
Credit Card Service
Card applications, admin review and customer cancellation
"""

from datetime import date
from decimal import Decimal
from typing import List, Dict, Any, Optional, Callable

from core.repositories.credit_card_repository import CreditCardRepository
from core.repositories.account_repository import AccountRepository
from core.repositories.product_repository import ProductRepository
from core.repositories.kyc_repository import KYCRepository
from core.services.otp_service import OTPService
from core.services.audit_service import AuditService
from core.models.entities import (
    CreditCard, KYCDocument, ProductType, ApplicationStatus, KYCStatus, IDType,
    OTPPurpose, PendingOperation, UserRole
)
from core.models.permissions import Capability, require_capability
from utils.exceptions import (
    ValidationException, DuplicateApplicationException,
    CardNotFoundException, ProductNotFoundException
)
from utils.validators import BankingValidator
from utils.helpers import StringUtils, DateUtils, NumberUtils, LoggingUtils
from utils.uploads import save_kyc_document
from db.database import db_manager

CARD_VALIDITY_YEARS = 3

class CreditCardService:
    """Service class for credit card applications and lifecycle"""

    def __init__(self, card_repo: CreditCardRepository = None, account_repo: AccountRepository = None,
                 product_repo: ProductRepository = None, kyc_repo: KYCRepository = None,
                 otp_service: OTPService = None, audit: AuditService = None, db=None,
                 document_store: Callable[[str, bytes], str] = None,
                 today: Callable[[], date] = date.today):
        self.card_repo = card_repo or CreditCardRepository()
        self.account_repo = account_repo or AccountRepository()
        self.product_repo = product_repo or ProductRepository()
        self.kyc_repo = kyc_repo or KYCRepository()
        self._otp_service = otp_service
        self._audit = audit
        self.db = db or db_manager
        self.document_store = document_store or save_kyc_document
        self.today = today

    @property
    def otp_service(self) -> OTPService:
        if self._otp_service is None:
            self._otp_service = OTPService()
        return self._otp_service

    @property
    def audit(self) -> AuditService:
        if self._audit is None:
            self._audit = AuditService()
        return self._audit

    def apply_for_card(self, user_id: int, product_id: int, desired_limit: Decimal,
                       id_type: str, id_number: str, document_name: Optional[str],
                       document_content: Optional[bytes], declaration: bool) -> Dict[str, Any]:
        """Submit a card application; requires an active savings account"""
        try:
            product = self.product_repo.find_product_by_id(product_id)
            if not product or product.product_type != ProductType.CREDIT_CARD:
                raise ProductNotFoundException("Credit card product not found")

            if not self.account_repo.has_active_savings(user_id):
                raise ValidationException("You need an active savings account to apply for a credit card")

            if self.card_repo.has_open_application(user_id, product_id):
                raise DuplicateApplicationException(
                    "You already have a pending or active card for this product"
                )

            if not declaration:
                raise ValidationException("You must accept the declaration")
            if not document_name or not document_content:
                raise ValidationException("KYC document is required")
            BankingValidator.validate_kyc_filename(document_name)
            BankingValidator.validate_id_document(id_type, id_number)

            if desired_limit is None:
                raise ValidationException("Desired credit limit is required")
            desired_limit = NumberUtils.round_currency(desired_limit)
            BankingValidator.validate_amount(desired_limit)

            document_path = self.document_store(document_name, document_content)
            card = CreditCard(
                user_id=user_id,
                product_id=product_id,
                card_number=StringUtils.generate_card_number(),
                expiry_date=DateUtils.add_years(self.today(), CARD_VALIDITY_YEARS),
                credit_limit=desired_limit,
                outstanding_balance=Decimal('0.00'),
                status=ApplicationStatus.PENDING
            )

            with self.db.get_transaction() as conn:
                card.card_id = self.card_repo.create_card(card, conn=conn)
                self.kyc_repo.create_document(KYCDocument(
                    user_id=user_id,
                    card_id=card.card_id,
                    id_type=IDType(id_type.lower()),
                    id_number=id_number,
                    document_path=document_path,
                    status=KYCStatus.PENDING
                ), conn=conn)

            LoggingUtils.log_business_event(
                "card_applied", "credit_card", card.card_id, user_id=user_id,
                details={'product_id': product_id, 'desired_limit': str(desired_limit)}
            )
            return {'card_id': card.card_id, 'status': card.status.value}

        except Exception as e:
            LoggingUtils.log_business_event(
                "card_application_failed", "credit_card", 0, user_id=user_id,
                details={'error': str(e), 'product_id': product_id}
            )
            raise

    def get_customer_cards(self, user_id: int) -> List[CreditCard]:
        return self.card_repo.find_by_customer(user_id)

    def list_pending_applications(self) -> List[Dict[str, Any]]:
        return self.card_repo.get_pending_applications()

    def approve_card(self, actor_id: int, actor_role: UserRole, card_id: int,
                     approved_limit: Decimal) -> bool:
        """Activate a pending card with the approved limit and verify its KYC"""
        require_capability(actor_role, Capability.REVIEW_APPLICATIONS)
        self._pending_card(card_id)
        if approved_limit is None:
            raise ValidationException("Approved limit is required")
        approved_limit = NumberUtils.round_currency(approved_limit)
        BankingValidator.validate_amount(approved_limit)

        with self.db.get_transaction() as conn:
            self.card_repo.approve(card_id, approved_limit, conn=conn)
            self.kyc_repo.set_status_for_card(card_id, KYCStatus.VERIFIED, conn=conn)

        self.audit.log(actor_id, actor_role, 'CARD_APPROVED',
                       {'card_id': card_id, 'approved_limit': str(approved_limit)})
        return True

    def reject_card(self, actor_id: int, actor_role: UserRole, card_id: int) -> bool:
        require_capability(actor_role, Capability.REVIEW_APPLICATIONS)
        self._pending_card(card_id)
        with self.db.get_transaction() as conn:
            self.card_repo.update_status(card_id, ApplicationStatus.REJECTED, conn=conn)
            self.kyc_repo.set_status_for_card(card_id, KYCStatus.REJECTED, conn=conn)

        self.audit.log(actor_id, actor_role, 'CARD_REJECTED', {'card_id': card_id})
        return True

    def request_card_deletion(self, user_id: int, card_id: int) -> Dict[str, Any]:
        """Pending applications are withdrawn at once; issued cards need OTP confirmation"""
        card = self._owned_card(user_id, card_id)
        if card.status == ApplicationStatus.PENDING:
            self._delete_card(card_id)
            LoggingUtils.log_business_event("card_withdrawn", "credit_card", card_id, user_id=user_id)
            return {'deleted': True, 'otp_required': False}

        self.otp_service.begin_confirmation(user_id, OTPPurpose.CARD_CANCEL, target_id=card_id)
        return {'deleted': False, 'otp_required': True}

    def delete_confirmed(self, user_id: int, operation: PendingOperation) -> bool:
        """Confirmed action for OTPPurpose.CARD_CANCEL"""
        self._owned_card(user_id, operation.target_id)
        self._delete_card(operation.target_id)
        LoggingUtils.log_business_event("card_deleted", "credit_card", operation.target_id, user_id=user_id)
        return True

    def _delete_card(self, card_id: int) -> None:
        with self.db.get_transaction() as conn:
            self.kyc_repo.delete_for_card(card_id, conn=conn)
            self.card_repo.delete_card(card_id, conn=conn)

    def _owned_card(self, user_id: int, card_id: int) -> CreditCard:
        card = self.card_repo.find_card_by_id(card_id)
        if not card or card.user_id != user_id:
            raise CardNotFoundException("Credit card not found")
        return card

    def _pending_card(self, card_id: int) -> CreditCard:
        card = self.card_repo.find_card_by_id(card_id)
        if not card:
            raise CardNotFoundException("Credit card not found")
        if card.status != ApplicationStatus.PENDING:
            raise ValidationException(f"Card application is already {card.status.value}")
        return card
