from unittest.mock import MagicMock

import pytest

from core.models.entities import OTPPurpose
from utils.exceptions import InvalidOTPException, UserNotFoundException

from conftest import latest_code

PURPOSE = OTPPurpose.ACCOUNT_CANCEL


class TestIssue:
    def test_code_is_six_digits_and_emailed(self, otp_service, notifier, customer_id):
        token = otp_service.issue(customer_id, PURPOSE)

        assert len(token.otp_code) == 6 and token.otp_code.isdigit()
        recipient, subject, body = notifier.send_email.call_args[0]
        assert recipient == "alice@example.com"
        assert subject == "Your OTP Code"
        assert token.otp_code in body
        assert "5 minutes" in body

    def test_new_code_invalidates_previous(self, otp_service, otp_tokens, customer_id):
        first = otp_service.issue(customer_id, PURPOSE)
        second = otp_service.issue(customer_id, PURPOSE)

        assert otp_tokens.rows[first.otp_id].is_used
        assert not otp_tokens.rows[second.otp_id].is_used

    def test_other_purposes_untouched(self, otp_service, otp_tokens, customer_id):
        card = otp_service.issue(customer_id, OTPPurpose.CARD_CANCEL)
        otp_service.issue(customer_id, PURPOSE)

        assert not otp_tokens.rows[card.otp_id].is_used

    def test_expiry_window(self, otp_service, clock, customer_id):
        token = otp_service.issue(customer_id, PURPOSE)
        assert (token.expires_at - token.created_at).total_seconds() == 300

    def test_unknown_user(self, otp_service):
        with pytest.raises(UserNotFoundException):
            otp_service.issue(999, PURPOSE)


class TestValidate:
    def test_code_is_single_use(self, otp_service, customer_id):
        token = otp_service.issue(customer_id, PURPOSE)

        assert otp_service.validate(customer_id, token.otp_code, PURPOSE)
        with pytest.raises(InvalidOTPException):
            otp_service.validate(customer_id, token.otp_code, PURPOSE)

    def test_expired_code_rejected(self, otp_service, clock, customer_id):
        token = otp_service.issue(customer_id, PURPOSE)
        clock.advance(minutes=5)

        with pytest.raises(InvalidOTPException, match="Invalid or expired OTP"):
            otp_service.validate(customer_id, token.otp_code, PURPOSE)

    def test_code_bound_to_purpose(self, otp_service, customer_id):
        token = otp_service.issue(customer_id, PURPOSE)
        with pytest.raises(InvalidOTPException):
            otp_service.validate(customer_id, token.otp_code, OTPPurpose.CARD_CANCEL)

    def test_code_bound_to_user(self, otp_service, customer_id, other_customer_id):
        token = otp_service.issue(customer_id, PURPOSE)
        with pytest.raises(InvalidOTPException):
            otp_service.validate(other_customer_id, token.otp_code, PURPOSE)

    @pytest.mark.parametrize("code", ["", "12345", "abcdef", "1234567"])
    def test_malformed_code(self, otp_service, customer_id, code):
        otp_service.issue(customer_id, PURPOSE)
        with pytest.raises(InvalidOTPException):
            otp_service.validate(customer_id, code, PURPOSE)


class TestConfirmation:
    def test_confirm_runs_action_and_clears_operation(self, otp_service, otp_tokens, customer_id):
        otp_service.begin_confirmation(customer_id, PURPOSE, target_id=42)
        action = MagicMock(return_value="done")

        result = otp_service.confirm_and_execute(
            customer_id, latest_code(otp_tokens, customer_id), PURPOSE, action
        )

        assert result == "done"
        user_id, operation = action.call_args[0]
        assert user_id == customer_id
        assert operation.target_id == 42
        assert otp_service.check_confirmation(customer_id, PURPOSE) is None

    def test_wrong_code_keeps_operation(self, otp_service, otp_tokens, customer_id):
        otp_service.begin_confirmation(customer_id, PURPOSE, target_id=42)
        action = MagicMock()

        with pytest.raises(InvalidOTPException):
            otp_service.confirm_and_execute(customer_id, "999999", PURPOSE, action)

        action.assert_not_called()
        assert otp_service.check_confirmation(customer_id, PURPOSE) is not None

        otp_service.confirm_and_execute(customer_id, latest_code(otp_tokens, customer_id), PURPOSE, action)
        action.assert_called_once()

    def test_failed_action_keeps_operation(self, otp_service, otp_tokens, customer_id):
        otp_service.begin_confirmation(customer_id, PURPOSE, target_id=42)
        action = MagicMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            otp_service.confirm_and_execute(customer_id, latest_code(otp_tokens, customer_id), PURPOSE, action)

        assert otp_service.check_confirmation(customer_id, PURPOSE) is not None

    def test_expired_operation(self, otp_service, otp_tokens, clock, customer_id):
        otp_service.begin_confirmation(customer_id, PURPOSE, target_id=42)
        code = latest_code(otp_tokens, customer_id)
        clock.advance(minutes=6)

        assert otp_service.check_confirmation(customer_id, PURPOSE) is None
        with pytest.raises(InvalidOTPException, match="Confirmation session expired"):
            otp_service.confirm_and_execute(customer_id, code, PURPOSE, MagicMock())

    def test_target_mismatch(self, otp_service, customer_id):
        otp_service.begin_confirmation(customer_id, PURPOSE, target_id=42)

        assert otp_service.check_confirmation(customer_id, PURPOSE, target_id=7) is None
        assert otp_service.check_confirmation(customer_id, PURPOSE, target_id=42) is not None

    def test_new_request_replaces_previous(self, otp_service, customer_id):
        otp_service.begin_confirmation(customer_id, PURPOSE, target_id=1)
        otp_service.begin_confirmation(customer_id, PURPOSE, target_id=2)

        assert otp_service.check_confirmation(customer_id, PURPOSE).target_id == 2

    def test_cancel(self, otp_service, customer_id):
        otp_service.begin_confirmation(customer_id, PURPOSE, target_id=42)
        otp_service.cancel(customer_id, PURPOSE)

        assert otp_service.check_confirmation(customer_id, PURPOSE) is None


class TestResend:
    def test_resend_replaces_code(self, otp_service, otp_tokens, customer_id):
        otp_service.begin_confirmation(customer_id, PURPOSE, target_id=42)
        old_code = latest_code(otp_tokens, customer_id)

        otp_service.resend(customer_id, PURPOSE)
        new_code = latest_code(otp_tokens, customer_id)

        assert new_code != old_code
        with pytest.raises(InvalidOTPException):
            otp_service.validate(customer_id, old_code, PURPOSE)
        assert otp_service.validate(customer_id, new_code, PURPOSE)

    def test_resend_without_operation(self, otp_service, customer_id):
        with pytest.raises(InvalidOTPException):
            otp_service.resend(customer_id, PURPOSE)
