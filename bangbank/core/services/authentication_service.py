"""
Authentication Service
Registration, login and OTP-confirmed password reset
"""

from datetime import datetime
from typing import Dict, Any, Callable, Optional

from core.repositories.user_repository import UserRepository
from core.services.otp_service import OTPService
from core.models.entities import User, UserRole, OTPPurpose, PendingOperation
from utils.exceptions import AuthenticationException, ValidationException, UserNotFoundException
from utils.validators import BankingValidator
from utils.helpers import SecurityUtils, StringUtils, LoggingUtils
from utils.uploads import save_profile_image

class AuthenticationService:
    """Service class for authentication and security operations"""

    def __init__(self, user_repo: UserRepository = None, otp_service: OTPService = None,
                 image_store: Callable[[str, bytes], str] = None):
        self.user_repo = user_repo or UserRepository()
        self._otp_service = otp_service
        self.image_store = image_store or save_profile_image

    @property
    def otp_service(self) -> OTPService:
        if self._otp_service is None:
            self._otp_service = OTPService(user_repo=self.user_repo)
        return self._otp_service

    def register_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Self-registration; new users are always customers"""
        try:
            BankingValidator.validate_profile(data)
            BankingValidator.validate_password(data.get('password'), data.get('confirm_password'))

            username = StringUtils.clean_string(data['username'])
            email = data['email'].strip().lower()

            if self.user_repo.find_by_username_or_email(username, email):
                raise ValidationException("Username or email already exists")

            image = self._store_image(data)
            user = User(
                username=username,
                email=email,
                password_hash=SecurityUtils.hash_password(data['password']),
                role=UserRole.CUSTOMER,
                first_name=data['first_name'].strip(),
                last_name=data['last_name'].strip(),
                alias=(data.get('alias') or '').strip() or None,
                date_of_birth=data.get('date_of_birth'),
                phone=data['phone'],
                country=data['country'].strip(),
                address_line_1=data['address_line_1'].strip(),
                address_line_2=(data.get('address_line_2') or '').strip() or None,
                postcode=data['postcode'],
                image=image or 'default.png'
            )
            user_id = self.user_repo.create_user(user)

            LoggingUtils.log_security_event(
                "user_registered", user_id=user_id, details={'username': username}
            )

            return {'success': True, 'user_id': user_id, 'username': username}

        except ValidationException as e:
            LoggingUtils.log_security_event(
                "registration_failed", details={'email': data.get('email'), 'error': str(e)}
            )
            raise

    def _store_image(self, data: Dict[str, Any]) -> Optional[str]:
        if not data.get('image_content'):
            return None
        return self.image_store(data.get('image_name') or '', data['image_content'])

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Authenticate by email and return the data kept in the browser session"""
        if not email or not password:
            raise ValidationException("Email and password are required")

        try:
            user = self.user_repo.authenticate(email.strip().lower(), password)
        except AuthenticationException as e:
            LoggingUtils.log_security_event(
                "login_failed", details={'email': email, 'error': str(e)}
            )
            raise

        LoggingUtils.log_security_event(
            "login_success", user_id=user.user_id, details={'role': user.role.value}
        )

        return {
            'success': True,
            'session_token': SecurityUtils.generate_session_token(),
            'user_id': user.user_id,
            'username': user.username,
            'email': user.email,
            'role': user.role.value,
            'image': user.image,
            'login_time': datetime.now()
        }

    def logout(self, user_id: int) -> bool:
        LoggingUtils.log_security_event("logout", user_id=user_id)
        return True

    def request_password_reset(self, email: str, new_password: str, confirm_password: str) -> int:
        """
        Start a password reset: the new bcrypt hash waits in the pending
        operation until the emailed OTP is confirmed. Returns the user id the
        confirmation page needs.
        """
        BankingValidator.validate_password(new_password, confirm_password)

        user = self.user_repo.find_by_email((email or '').strip().lower())
        if not user:
            raise UserNotFoundException("No account is registered with that email")

        self.otp_service.begin_confirmation(
            user.user_id,
            OTPPurpose.PASSWORD_RESET,
            target_id=user.user_id,
            payload={'password_hash': SecurityUtils.hash_password(new_password)}
        )
        LoggingUtils.log_security_event("password_reset_requested", user_id=user.user_id)
        return user.user_id

    def apply_password_reset(self, user_id: int, operation: PendingOperation) -> bool:
        """Confirmed action for OTPPurpose.PASSWORD_RESET"""
        password_hash = operation.payload.get('password_hash')
        if not password_hash:
            raise ValidationException("Password reset request is incomplete")
        self.user_repo.change_password_hash(user_id, password_hash)
        LoggingUtils.log_security_event("password_reset", user_id=user_id)
        return True
