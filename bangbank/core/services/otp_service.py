"""
OTP Service
Issues and verifies one-time passcodes that gate irreversible actions.

Flow: begin_confirmation() stores a pending operation for (user, purpose) and
emails a code; the confirmation page renders only while check_confirmation()
finds that operation; confirm_and_execute() verifies the code, runs the
guarded action and clears the operation.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Callable

from core import config
from core.repositories.otp_repository import OTPRepository
from core.repositories.pending_operation_repository import PendingOperationRepository
from core.repositories.user_repository import UserRepository
from core.services.notification_service import NotificationService
from core.models.entities import OTPToken, OTPPurpose, PendingOperation
from utils.exceptions import InvalidOTPException, UserNotFoundException, ValidationException
from utils.validators import BankingValidator
from utils.helpers import NumberUtils, LoggingUtils

OTP_LENGTH = 6

PURPOSE_LABELS = {
    OTPPurpose.ACCOUNT_CANCEL: "account cancellation",
    OTPPurpose.CARD_CANCEL: "credit card cancellation",
    OTPPurpose.PROFILE_UPDATE: "profile update",
    OTPPurpose.PASSWORD_RESET: "password reset",
}

class OTPService:
    """Service class for OTP issuance and confirmation"""

    def __init__(self, otp_repo: OTPRepository = None,
                 pending_repo: PendingOperationRepository = None,
                 user_repo: UserRepository = None,
                 notifier: NotificationService = None,
                 clock: Callable[[], datetime] = datetime.now,
                 expiry_minutes: int = None):
        self.otp_repo = otp_repo or OTPRepository()
        self.pending_repo = pending_repo or PendingOperationRepository()
        self.user_repo = user_repo or UserRepository()
        self.notifier = notifier or NotificationService()
        self.clock = clock
        self.expiry = timedelta(minutes=expiry_minutes or config.OTP_EXPIRY_MINUTES)

    def issue(self, user_id: int, purpose: OTPPurpose) -> OTPToken:
        """Invalidate outstanding codes for (user, purpose), store a new one and email it"""
        user = self.user_repo.find_user_by_id(user_id)
        if not user:
            raise UserNotFoundException("User not found")

        now = self.clock()
        self.otp_repo.invalidate_active(user_id, purpose, now)

        token = OTPToken(
            user_id=user_id,
            otp_code=NumberUtils.random_digits(OTP_LENGTH),
            purpose=purpose,
            created_at=now,
            expires_at=now + self.expiry
        )
        token.otp_id = self.otp_repo.create_token(token)

        minutes = int(self.expiry.total_seconds() // 60)
        self.notifier.send_email(
            user.email,
            "Your OTP Code",
            f"Your OTP for {PURPOSE_LABELS[purpose]} is {token.otp_code}. "
            f"It will expire in {minutes} minutes."
        )

        LoggingUtils.log_security_event(
            "otp_issued", user_id=user_id, details={'purpose': purpose.value}
        )
        return token

    def begin_confirmation(self, user_id: int, purpose: OTPPurpose, target_id: int,
                           payload: Optional[Dict[str, Any]] = None) -> PendingOperation:
        """Record the action awaiting confirmation (replacing any earlier one) and send a code"""
        now = self.clock()
        operation = PendingOperation(
            user_id=user_id,
            purpose=purpose,
            target_id=target_id,
            payload=payload or {},
            created_at=now,
            expires_at=now + self.expiry
        )
        self.pending_repo.replace(operation)
        self.issue(user_id, purpose)
        return operation

    def check_confirmation(self, user_id: int, purpose: OTPPurpose,
                           target_id: Optional[int] = None) -> Optional[PendingOperation]:
        """The live pending operation for (user, purpose), or None if absent, expired or for another target"""
        operation = self.pending_repo.find_for(user_id, purpose)
        if operation is None or operation.is_expired(self.clock()):
            return None
        if target_id is not None and operation.target_id != target_id:
            return None
        return operation

    def resend(self, user_id: int, purpose: OTPPurpose) -> OTPToken:
        """Send a fresh code for a live pending operation"""
        if self.check_confirmation(user_id, purpose) is None:
            raise InvalidOTPException("Confirmation session expired. Please start again.")
        return self.issue(user_id, purpose)

    def validate(self, user_id: int, otp_code: str, purpose: OTPPurpose) -> bool:
        """Consume a matching, unexpired code; raises InvalidOTPException otherwise"""
        try:
            BankingValidator.validate_otp(otp_code)
        except ValidationException:
            raise InvalidOTPException("Invalid or expired OTP")

        now = self.clock()
        token = self.otp_repo.find_valid(user_id, otp_code, purpose, now)
        if token is None or not self.otp_repo.mark_used(token.otp_id, now):
            LoggingUtils.log_security_event(
                "otp_rejected", user_id=user_id, details={'purpose': purpose.value}
            )
            raise InvalidOTPException("Invalid or expired OTP")

        LoggingUtils.log_security_event(
            "otp_verified", user_id=user_id, details={'purpose': purpose.value}
        )
        return True

    def confirm_and_execute(self, user_id: int, otp_code: str, purpose: OTPPurpose,
                            action: Callable[[int, PendingOperation], Any],
                            target_id: Optional[int] = None) -> Any:
        """
        Verify the code for a live pending operation and run ``action(user_id, operation)``.

        A wrong or expired code leaves the pending operation in place so the
        user can retry or ask for a new code. The operation is cleared only
        after the action completes.
        """
        operation = self.check_confirmation(user_id, purpose, target_id)
        if operation is None:
            raise InvalidOTPException("Confirmation session expired. Please start again.")

        self.validate(user_id, otp_code, purpose)
        result = action(user_id, operation)
        self.pending_repo.delete_for(user_id, purpose)
        return result

    def cancel(self, user_id: int, purpose: OTPPurpose) -> None:
        """Abandon a pending operation"""
        self.pending_repo.delete_for(user_id, purpose)
