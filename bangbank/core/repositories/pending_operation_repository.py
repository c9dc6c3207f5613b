"""
Pending Operation Repository
Handles database operations for pending_operations table
"""

import json
from typing import Optional

from core.repositories.base_repository import BaseRepository
from core.models.entities import PendingOperation, OTPPurpose

class PendingOperationRepository(BaseRepository):
    """One row per (user, purpose): the action waiting for OTP confirmation"""

    def __init__(self, db=None):
        super().__init__('pending_operations', 'operation_id', db=db)

    def replace(self, operation: PendingOperation) -> int:
        """Insert the operation, overwriting any previous one for the same purpose"""
        return self._execute(f"""
            INSERT INTO {self.table_name}
                (user_id, purpose, target_id, payload, created_at, expires_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
                target_id = VALUES(target_id),
                payload = VALUES(payload),
                created_at = VALUES(created_at),
                expires_at = VALUES(expires_at)
        """, (
            operation.user_id,
            operation.purpose.value,
            operation.target_id,
            json.dumps(operation.payload or {}, default=str),
            operation.created_at,
            operation.expires_at,
        ))

    def find_for(self, user_id: int, purpose: OTPPurpose) -> Optional[PendingOperation]:
        result = self._query_one(
            f"SELECT * FROM {self.table_name} WHERE user_id = %s AND purpose = %s",
            (user_id, purpose.value)
        )
        return self._dict_to_operation(result) if result else None

    def delete_for(self, user_id: int, purpose: OTPPurpose) -> int:
        return self._execute(
            f"DELETE FROM {self.table_name} WHERE user_id = %s AND purpose = %s",
            (user_id, purpose.value)
        )

    def _dict_to_operation(self, data: dict) -> PendingOperation:
        payload = data.get('payload')
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        return PendingOperation(
            operation_id=data['operation_id'],
            user_id=data['user_id'],
            purpose=OTPPurpose(data['purpose']),
            target_id=data['target_id'],
            payload=payload or {},
            created_at=data.get('created_at'),
            expires_at=data.get('expires_at')
        )
