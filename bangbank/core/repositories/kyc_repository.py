"""
KYC Repository
Handles database operations for kyc_documents table
"""

from typing import List

from core.repositories.base_repository import BaseRepository
from core.models.entities import KYCDocument, KYCStatus

class KYCRepository(BaseRepository):
    """Repository for kyc_documents table operations"""

    def __init__(self, db=None):
        super().__init__('kyc_documents', 'kyc_id', db=db)

    def create_document(self, document: KYCDocument, conn=None) -> int:
        if (document.account_id is None) == (document.card_id is None):
            raise ValueError("KYC document must reference exactly one of account_id or card_id")
        return self.create({
            'user_id': document.user_id,
            'account_id': document.account_id,
            'card_id': document.card_id,
            'id_type': document.id_type.value,
            'id_number': document.id_number,
            'document_path': document.document_path,
            'status': document.status.value,
        }, conn=conn)

    def set_status_for_account(self, account_id: int, status: KYCStatus, conn=None) -> int:
        return self._execute(
            f"UPDATE {self.table_name} SET status = %s WHERE account_id = %s",
            (status.value, account_id), conn=conn
        )

    def set_status_for_card(self, card_id: int, status: KYCStatus, conn=None) -> int:
        return self._execute(
            f"UPDATE {self.table_name} SET status = %s WHERE card_id = %s",
            (status.value, card_id), conn=conn
        )

    def delete_for_account(self, account_id: int, conn=None) -> int:
        return self._execute(f"DELETE FROM {self.table_name} WHERE account_id = %s", (account_id,), conn=conn)

    def delete_for_card(self, card_id: int, conn=None) -> int:
        return self._execute(f"DELETE FROM {self.table_name} WHERE card_id = %s", (card_id,), conn=conn)

    def find_by_user(self, user_id: int) -> List[dict]:
        """KYC rows for a user with the account number they belong to"""
        return self._query_all(
            "SELECT k.*, a.account_number, c.card_number FROM kyc_documents k "
            "LEFT JOIN accounts a ON k.account_id = a.account_id "
            "LEFT JOIN credit_cards c ON k.card_id = c.card_id "
            "WHERE k.user_id = %s ORDER BY k.uploaded_at DESC",
            (user_id,)
        )
