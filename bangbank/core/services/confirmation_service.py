"""
Confirmation Service
Routes a confirmed OTP to the action its purpose guards
"""

from typing import Any, Callable, Dict, Optional

from core.services.otp_service import OTPService
from core.services.account_service import AccountService
from core.services.credit_card_service import CreditCardService
from core.services.user_service import UserService
from core.services.authentication_service import AuthenticationService
from core.models.entities import OTPPurpose, PendingOperation

Action = Callable[[int, PendingOperation], Any]

# Flash text shown once each purpose is confirmed
OUTCOMES = {
    OTPPurpose.ACCOUNT_CANCEL: "Account deleted successfully",
    OTPPurpose.CARD_CANCEL: "Credit card cancelled successfully",
    OTPPurpose.PROFILE_UPDATE: "Profile updated successfully",
    OTPPurpose.PASSWORD_RESET: "Password reset successfully. Please log in.",
}

class ConfirmationService:
    """Service class tying OTP purposes to their confirmed actions"""

    def __init__(self, otp_service: OTPService = None,
                 account_service: AccountService = None,
                 card_service: CreditCardService = None,
                 user_service: UserService = None,
                 auth_service: AuthenticationService = None):
        self.otp_service = otp_service or OTPService()
        self.account_service = account_service or AccountService(otp_service=self.otp_service)
        self.card_service = card_service or CreditCardService(otp_service=self.otp_service)
        self.user_service = user_service or UserService(otp_service=self.otp_service)
        self.auth_service = auth_service or AuthenticationService(otp_service=self.otp_service)

    def actions(self) -> Dict[OTPPurpose, Action]:
        return {
            OTPPurpose.ACCOUNT_CANCEL: self.account_service.delete_confirmed,
            OTPPurpose.CARD_CANCEL: self.card_service.delete_confirmed,
            OTPPurpose.PROFILE_UPDATE: self.user_service.apply_profile_update,
            OTPPurpose.PASSWORD_RESET: self.auth_service.apply_password_reset,
        }

    def pending(self, user_id: int, purpose: OTPPurpose) -> Optional[PendingOperation]:
        """Live pending operation, or None when there is nothing to confirm"""
        return self.otp_service.check_confirmation(user_id, purpose)

    def confirm(self, user_id: int, purpose: OTPPurpose, otp_code: str) -> str:
        """Verify the code, run the guarded action and return the success message"""
        self.otp_service.confirm_and_execute(user_id, otp_code, purpose, self.actions()[purpose])
        return OUTCOMES[purpose]

    def resend(self, user_id: int, purpose: OTPPurpose) -> None:
        self.otp_service.resend(user_id, purpose)

    def cancel(self, user_id: int, purpose: OTPPurpose) -> None:
        self.otp_service.cancel(user_id, purpose)
