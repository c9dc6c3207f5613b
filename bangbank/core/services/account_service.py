"""
Account Service
Savings / fixed-deposit applications, admin review and customer deletion
"""

from decimal import Decimal
from typing import List, Dict, Any, Optional, Callable

from core.repositories.account_repository import AccountRepository
from core.repositories.product_repository import ProductRepository
from core.repositories.kyc_repository import KYCRepository
from core.services.otp_service import OTPService
from core.services.audit_service import AuditService
from core.models.entities import (
    Account, KYCDocument, ProductType, ApplicationStatus, KYCStatus, IDType,
    OTPPurpose, PendingOperation, UserRole
)
from core.models.permissions import Capability, require_capability
from utils.exceptions import (
    ValidationException, DuplicateApplicationException,
    AccountNotFoundException, ProductNotFoundException
)
from utils.validators import BankingValidator, BusinessRuleValidator
from utils.helpers import StringUtils, NumberUtils, LoggingUtils
from utils.uploads import save_kyc_document
from db.database import db_manager

class AccountService:
    """Service class for account applications and lifecycle"""

    def __init__(self, account_repo: AccountRepository = None, product_repo: ProductRepository = None,
                 kyc_repo: KYCRepository = None, otp_service: OTPService = None,
                 audit: AuditService = None, db=None,
                 document_store: Callable[[str, bytes], str] = None):
        self.account_repo = account_repo or AccountRepository()
        self.product_repo = product_repo or ProductRepository()
        self.kyc_repo = kyc_repo or KYCRepository()
        self._otp_service = otp_service
        self._audit = audit
        self.db = db or db_manager
        self.document_store = document_store or save_kyc_document

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

    def apply_for_account(self, user_id: int, product_id: int, initial_deposit: Decimal,
                          id_type: str, id_number: str, document_name: Optional[str],
                          document_content: Optional[bytes], declaration: bool) -> Dict[str, Any]:
        """
        Submit an account application.

        Savings products allow a single pending or active application per
        customer; fixed deposits may be opened repeatedly. The account and
        its KYC row are written together as ``pending``.
        """
        try:
            product = self.product_repo.find_product_by_id(product_id)
            if not product:
                raise ProductNotFoundException("Product not found")
            if product.product_type == ProductType.CREDIT_CARD:
                raise ValidationException("Credit card products use the credit card application")

            if not declaration:
                raise ValidationException("You must accept the declaration")
            if not document_name or not document_content:
                raise ValidationException("KYC document is required")
            BankingValidator.validate_kyc_filename(document_name)
            BankingValidator.validate_id_document(id_type, id_number)

            if (product.product_type == ProductType.SAVINGS
                    and self.account_repo.has_open_application(user_id, product_id)):
                raise DuplicateApplicationException(
                    "You already have a pending or active account for this product"
                )

            if initial_deposit is None:
                raise ValidationException("Initial deposit is required")
            initial_deposit = NumberUtils.round_currency(initial_deposit)
            BusinessRuleValidator.validate_initial_deposit(initial_deposit, product.min_balance)

            document_path = self.document_store(document_name, document_content)
            account = Account(
                user_id=user_id,
                product_id=product_id,
                account_number=StringUtils.generate_account_number(),
                balance=initial_deposit,
                status=ApplicationStatus.PENDING
            )

            with self.db.get_transaction() as conn:
                account.account_id = self.account_repo.create_account(account, conn=conn)
                self.kyc_repo.create_document(KYCDocument(
                    user_id=user_id,
                    account_id=account.account_id,
                    id_type=IDType(id_type.lower()),
                    id_number=id_number,
                    document_path=document_path,
                    status=KYCStatus.PENDING
                ), conn=conn)

            LoggingUtils.log_business_event(
                "account_applied", "account", account.account_id, user_id=user_id,
                details={'product_id': product_id, 'initial_deposit': str(initial_deposit)}
            )

            return {
                'account_id': account.account_id,
                'account_number': account.account_number,
                'status': account.status.value
            }

        except Exception as e:
            LoggingUtils.log_business_event(
                "account_application_failed", "account", 0, user_id=user_id,
                details={'error': str(e), 'product_id': product_id}
            )
            raise

    def get_customer_accounts(self, user_id: int) -> List[Account]:
        return self.account_repo.find_by_customer(user_id)

    def get_active_accounts(self, user_id: int) -> List[Account]:
        return self.account_repo.get_active_accounts_by_customer(user_id)

    def list_pending_applications(self) -> List[Dict[str, Any]]:
        return self.account_repo.get_pending_applications()

    def approve_account(self, actor_id: int, actor_role: UserRole, account_id: int) -> bool:
        """Activate a pending account and verify its KYC document"""
        require_capability(actor_role, Capability.REVIEW_APPLICATIONS)
        self._pending_account(account_id)
        with self.db.get_transaction() as conn:
            self.account_repo.update_status(account_id, ApplicationStatus.ACTIVE, conn=conn)
            self.kyc_repo.set_status_for_account(account_id, KYCStatus.VERIFIED, conn=conn)

        self.audit.log(actor_id, actor_role, 'ACCOUNT_APPROVED', {'account_id': account_id})
        LoggingUtils.log_business_event("account_approved", "account", account_id, user_id=actor_id)
        return True

    def reject_account(self, actor_id: int, actor_role: UserRole, account_id: int) -> bool:
        """Mark a pending account and its KYC document rejected"""
        require_capability(actor_role, Capability.REVIEW_APPLICATIONS)
        self._pending_account(account_id)
        with self.db.get_transaction() as conn:
            self.account_repo.update_status(account_id, ApplicationStatus.REJECTED, conn=conn)
            self.kyc_repo.set_status_for_account(account_id, KYCStatus.REJECTED, conn=conn)

        self.audit.log(actor_id, actor_role, 'ACCOUNT_REJECTED', {'account_id': account_id})
        LoggingUtils.log_business_event("account_rejected", "account", account_id, user_id=actor_id)
        return True

    def request_account_deletion(self, user_id: int, account_id: int) -> Dict[str, Any]:
        """Pending applications are withdrawn at once; anything else needs OTP confirmation"""
        account = self._owned_account(user_id, account_id)
        if account.status == ApplicationStatus.PENDING:
            self._delete_account(account_id)
            LoggingUtils.log_business_event("account_withdrawn", "account", account_id, user_id=user_id)
            return {'deleted': True, 'otp_required': False}

        self.otp_service.begin_confirmation(user_id, OTPPurpose.ACCOUNT_CANCEL, target_id=account_id)
        return {'deleted': False, 'otp_required': True}

    def delete_confirmed(self, user_id: int, operation: PendingOperation) -> bool:
        """Confirmed action for OTPPurpose.ACCOUNT_CANCEL"""
        self._owned_account(user_id, operation.target_id)
        self._delete_account(operation.target_id)
        LoggingUtils.log_business_event("account_deleted", "account", operation.target_id, user_id=user_id)
        return True

    def _delete_account(self, account_id: int) -> None:
        with self.db.get_transaction() as conn:
            self.kyc_repo.delete_for_account(account_id, conn=conn)
            self.account_repo.delete_account(account_id, conn=conn)

    def _owned_account(self, user_id: int, account_id: int) -> Account:
        account = self.account_repo.find_account_by_id(account_id)
        if not account or account.user_id != user_id:
            raise AccountNotFoundException("Account not found")
        return account

    def _pending_account(self, account_id: int) -> Account:
        account = self.account_repo.find_account_by_id(account_id)
        if not account:
            raise AccountNotFoundException("Account not found")
        if account.status != ApplicationStatus.PENDING:
            raise ValidationException(f"Account is already {account.status.value}")
        return account
