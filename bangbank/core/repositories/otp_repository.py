"""
OTP Repository
Handles database operations for otp_tokens table
"""

from typing import Optional
from datetime import datetime

from core.repositories.base_repository import BaseRepository
from core.models.entities import OTPToken, OTPPurpose
from utils.exceptions import ValidationException

class OTPRepository(BaseRepository):
    """Repository for otp_tokens table operations"""

    def __init__(self, db=None):
        super().__init__('otp_tokens', 'otp_id', db=db)

    def create_token(self, token: OTPToken) -> int:
        """Store a freshly issued code"""
        if not token.user_id or not token.otp_code:
            raise ValidationException("User ID and OTP code are required")

        return self.create({
            'user_id': token.user_id,
            'otp_code': token.otp_code,
            'purpose': token.purpose.value,
            'created_at': token.created_at,
            'expires_at': token.expires_at,
            'is_used': 0,
        })

    def invalidate_active(self, user_id: int, purpose: OTPPurpose, now: datetime) -> int:
        """Consume every outstanding code for (user, purpose); returns rows touched"""
        return self._execute(f"""
            UPDATE {self.table_name}
            SET is_used = 1, used_at = %s
            WHERE user_id = %s AND purpose = %s AND is_used = 0
        """, (now, user_id, purpose.value))

    def find_valid(self, user_id: int, otp_code: str, purpose: OTPPurpose,
                   now: datetime) -> Optional[OTPToken]:
        """Newest unused, unexpired token matching user, code and purpose"""
        result = self._query_one(f"""
            SELECT * FROM {self.table_name}
            WHERE user_id = %s AND otp_code = %s AND purpose = %s
              AND is_used = 0 AND expires_at > %s
            ORDER BY created_at DESC, otp_id DESC
            LIMIT 1
        """, (user_id, otp_code, purpose.value, now))
        return self._dict_to_token(result) if result else None

    def mark_used(self, otp_id: int, now: datetime) -> bool:
        """Consume a token; False if another request consumed it first"""
        affected = self._execute(
            f"UPDATE {self.table_name} SET is_used = 1, used_at = %s WHERE otp_id = %s AND is_used = 0",
            (now, otp_id)
        )
        return affected == 1

    def _dict_to_token(self, data: dict) -> OTPToken:
        """Convert dictionary to OTPToken object"""
        return OTPToken(
            otp_id=data['otp_id'],
            user_id=data['user_id'],
            otp_code=data['otp_code'],
            purpose=OTPPurpose(data['purpose']),
            created_at=data.get('created_at'),
            expires_at=data.get('expires_at'),
            is_used=bool(data['is_used']),
            used_at=data.get('used_at')
        )
