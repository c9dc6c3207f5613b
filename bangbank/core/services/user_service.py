"""
User Service
Admin user management and OTP-confirmed profile edits
"""

from datetime import date
from typing import Dict, Any, List, Callable, Optional

from core.repositories.user_repository import UserRepository
from core.repositories.account_repository import AccountRepository
from core.repositories.credit_card_repository import CreditCardRepository
from core.repositories.kyc_repository import KYCRepository
from core.services.otp_service import OTPService
from core.services.audit_service import AuditService
from core.models.entities import User, UserRole, OTPPurpose, PendingOperation
from core.models.permissions import can_manage, to_role
from utils.exceptions import (
    ValidationException, AuthorizationException, UserNotFoundException
)
from utils.validators import BankingValidator
from utils.helpers import SecurityUtils, StringUtils, LoggingUtils
from utils.uploads import save_profile_image

EDITABLE_PROFILE_FIELDS = (
    'username', 'email', 'first_name', 'last_name', 'alias', 'date_of_birth',
    'phone', 'country', 'address_line_1', 'address_line_2', 'postcode', 'image',
)

class UserService:
    """Service class for user administration and self-service profile changes"""

    def __init__(self, user_repo: UserRepository = None, account_repo: AccountRepository = None,
                 card_repo: CreditCardRepository = None, kyc_repo: KYCRepository = None,
                 otp_service: OTPService = None, audit: AuditService = None,
                 image_store: Callable[[str, bytes], str] = None):
        self.user_repo = user_repo or UserRepository()
        self.account_repo = account_repo or AccountRepository()
        self.card_repo = card_repo or CreditCardRepository()
        self.kyc_repo = kyc_repo or KYCRepository()
        self._otp_service = otp_service
        self._audit = audit
        self.image_store = image_store or save_profile_image

    @property
    def otp_service(self) -> OTPService:
        if self._otp_service is None:
            self._otp_service = OTPService(user_repo=self.user_repo)
        return self._otp_service

    @property
    def audit(self) -> AuditService:
        if self._audit is None:
            self._audit = AuditService()
        return self._audit

    # ------------------------------------------------------------------
    # Admin user management
    # ------------------------------------------------------------------

    def list_users(self) -> List[User]:
        return self.user_repo.get_all()

    def create_user(self, actor_id: int, actor_role: UserRole, data: Dict[str, Any]) -> int:
        """Admin-created user; super_admin can never be created"""
        role = to_role(data.get('role') or UserRole.CUSTOMER)
        if role == UserRole.SUPER_ADMIN:
            raise AuthorizationException("Super admin accounts cannot be created")
        if not can_manage(actor_role, role):
            raise AuthorizationException(f"You are not allowed to create {role.value} users")

        BankingValidator.validate_profile(data)
        BankingValidator.validate_password(data.get('password'), data.get('confirm_password'))

        profile = self._clean_profile(data)
        if self.user_repo.find_by_username_or_email(profile['username'], profile['email']):
            raise ValidationException("Username or email already exists")

        profile['image'] = self._store_image(data) or 'default.png'
        user = User(
            password_hash=SecurityUtils.hash_password(data['password']),
            role=role,
            **profile
        )
        user_id = self.user_repo.create_user(user)

        self.audit.log(actor_id, actor_role, 'USER_CREATED',
                       {'user_id': user_id, 'username': user.username, 'role': role.value})
        return user_id

    def get_user_details(self, actor_id: int, actor_role: UserRole, user_id: int) -> Dict[str, Any]:
        """User record plus their accounts, cards and KYC documents"""
        target = self._managed_target(actor_id, actor_role, user_id)
        return {
            'user': target,
            'accounts': self.account_repo.find_by_customer(user_id),
            'cards': self.card_repo.find_by_customer(user_id),
            'kyc_documents': self.kyc_repo.find_by_user(user_id),
        }

    def update_user(self, actor_id: int, actor_role: UserRole, user_id: int,
                    data: Dict[str, Any]) -> bool:
        """Edit a user; the password changes only when a new one is supplied"""
        target = self._managed_target(actor_id, actor_role, user_id)

        new_role = to_role(data.get('role') or target.role)
        if new_role == UserRole.SUPER_ADMIN or not can_manage(actor_role, new_role):
            raise AuthorizationException(f"You are not allowed to assign the {new_role.value} role")

        BankingValidator.validate_profile(data)
        if data.get('password'):
            BankingValidator.validate_password(data['password'], data.get('confirm_password'))
        profile = self._clean_profile(data)
        if self.user_repo.find_by_username_or_email(profile['username'], profile['email'],
                                                    exclude_user_id=user_id):
            raise ValidationException("Username or email already exists")

        profile['image'] = self._store_image(data) or target.image
        profile['role'] = new_role
        self.user_repo.update_profile(user_id, profile)

        if data.get('password'):
            self.user_repo.change_password_hash(user_id, SecurityUtils.hash_password(data['password']))

        self.audit.log(actor_id, actor_role, 'USER_UPDATED',
                       {'user_id': user_id, 'role': new_role.value,
                        'password_changed': bool(data.get('password'))})
        return True

    def delete_user(self, actor_id: int, actor_role: UserRole, user_id: int) -> bool:
        target = self._managed_target(actor_id, actor_role, user_id)
        self.user_repo.delete(user_id)
        self.audit.log(actor_id, actor_role, 'USER_DELETED',
                       {'user_id': user_id, 'username': target.username})
        return True

    def _managed_target(self, actor_id: int, actor_role: UserRole, user_id: int) -> User:
        if actor_id == user_id:
            raise AuthorizationException("You cannot perform this action on your own account")

        target = self.user_repo.find_user_by_id(user_id)
        if not target:
            raise UserNotFoundException("User not found")

        if not can_manage(actor_role, target.role):
            LoggingUtils.log_security_event(
                "user_management_denied", user_id=actor_id,
                details={'target_user_id': user_id, 'target_role': target.role.value}
            )
            raise AuthorizationException("You are not allowed to manage this user")
        return target

    # ------------------------------------------------------------------
    # Self-service profile
    # ------------------------------------------------------------------

    def get_profile(self, user_id: int) -> User:
        user = self.user_repo.find_user_by_id(user_id)
        if not user:
            raise UserNotFoundException("User not found")
        return user

    def request_profile_update(self, user_id: int, data: Dict[str, Any]) -> PendingOperation:
        """Validate a profile draft and hold it until the emailed OTP is confirmed"""
        current = self.get_profile(user_id)
        BankingValidator.validate_profile(data)
        profile = self._clean_profile(data)

        if self.user_repo.find_by_username_or_email(profile['username'], profile['email'],
                                                    exclude_user_id=user_id):
            raise ValidationException("Username or email already exists")

        profile['image'] = self._store_image(data) or current.image
        if isinstance(profile.get('date_of_birth'), date):
            profile['date_of_birth'] = profile['date_of_birth'].isoformat()

        return self.otp_service.begin_confirmation(
            user_id, OTPPurpose.PROFILE_UPDATE, target_id=user_id, payload=profile
        )

    def apply_profile_update(self, user_id: int, operation: PendingOperation) -> User:
        """Confirmed action for OTPPurpose.PROFILE_UPDATE"""
        draft = {k: v for k, v in operation.payload.items() if k in EDITABLE_PROFILE_FIELDS}
        if draft.get('date_of_birth'):
            draft['date_of_birth'] = date.fromisoformat(draft['date_of_birth'])

        # Re-check uniqueness: another user may have taken the name meanwhile
        if self.user_repo.find_by_username_or_email(draft.get('username'), draft.get('email'),
                                                    exclude_user_id=user_id):
            raise ValidationException("Username or email already exists")

        self.user_repo.update_profile(user_id, draft)
        LoggingUtils.log_business_event("profile_updated", "user", user_id, user_id=user_id)
        return self.get_profile(user_id)

    def _store_image(self, data: Dict[str, Any]) -> Optional[str]:
        """Write the uploaded image, if any; callers run this only after validation"""
        if not data.get('image_content'):
            return None
        return self.image_store(data.get('image_name') or '', data['image_content'])

    @staticmethod
    def _clean_profile(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'username': StringUtils.clean_string(data['username']),
            'email': data['email'].strip().lower(),
            'first_name': data['first_name'].strip(),
            'last_name': data['last_name'].strip(),
            'alias': (data.get('alias') or '').strip() or None,
            'date_of_birth': data.get('date_of_birth'),
            'phone': data['phone'],
            'country': data['country'].strip(),
            'address_line_1': data['address_line_1'].strip(),
            'address_line_2': (data.get('address_line_2') or '').strip() or None,
            'postcode': data['postcode'],
        }
