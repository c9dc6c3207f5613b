"""
Credit Card Repository
Handles database operations for credit_cards table
"""

from typing import Optional, List, Dict, Any
from decimal import Decimal

from core.repositories.base_repository import BaseRepository
from core.models.entities import CreditCard, ApplicationStatus

class CreditCardRepository(BaseRepository):
    """Repository for credit_cards table operations"""

    def __init__(self, db=None):
        super().__init__('credit_cards', 'card_id', db=db)

    def create_card(self, card: CreditCard, conn=None) -> int:
        card_data = {
            'user_id': card.user_id,
            'product_id': card.product_id,
            'card_number': card.card_number,
            'expiry_date': card.expiry_date,
            'credit_limit': card.credit_limit,
            'outstanding_balance': card.outstanding_balance,
            'status': card.status.value,
        }
        return self.create(card_data, conn=conn)

    def find_card_by_id(self, card_id: int) -> Optional[CreditCard]:
        result = self._query_one(
            "SELECT c.*, p.product_name FROM credit_cards c "
            "JOIN products p ON c.product_id = p.product_id WHERE c.card_id = %s",
            (card_id,)
        )
        return self._dict_to_card(result) if result else None

    def find_by_customer(self, user_id: int) -> List[CreditCard]:
        rows = self._query_all(
            "SELECT c.*, p.product_name FROM credit_cards c "
            "JOIN products p ON c.product_id = p.product_id "
            "WHERE c.user_id = %s ORDER BY c.card_id DESC",
            (user_id,)
        )
        return [self._dict_to_card(r) for r in rows]

    def has_open_application(self, user_id: int, product_id: int) -> bool:
        result = self._query_one(
            f"SELECT 1 FROM {self.table_name} "
            "WHERE user_id = %s AND product_id = %s AND status IN ('pending', 'active') LIMIT 1",
            (user_id, product_id)
        )
        return result is not None

    def get_pending_applications(self) -> List[Dict[str, Any]]:
        return self._query_all("""
            SELECT c.card_id, c.status, c.card_number, c.expiry_date, c.credit_limit,
                   u.user_id, u.username, u.email,
                   p.product_name,
                   k.id_type, k.id_number, k.document_path, k.status AS kyc_status
            FROM credit_cards c
            JOIN users u ON c.user_id = u.user_id
            JOIN products p ON c.product_id = p.product_id
            LEFT JOIN kyc_documents k ON k.card_id = c.card_id
            WHERE c.status = 'pending'
            ORDER BY c.created_at
        """)

    def approve(self, card_id: int, credit_limit: Decimal, conn=None) -> bool:
        return self.update(card_id, {
            'credit_limit': credit_limit,
            'status': ApplicationStatus.ACTIVE.value
        }, conn=conn)

    def update_status(self, card_id: int, status: ApplicationStatus, conn=None) -> bool:
        return self.update(card_id, {'status': status.value}, conn=conn)

    def delete_card(self, card_id: int, conn=None) -> bool:
        return self.delete(card_id, conn=conn)

    def count_by_status(self, status: ApplicationStatus) -> int:
        return self.count("status = %s", (status.value,))

    def _dict_to_card(self, data: dict) -> CreditCard:
        return CreditCard(
            card_id=data['card_id'],
            user_id=data['user_id'],
            product_id=data['product_id'],
            card_number=data['card_number'],
            expiry_date=data.get('expiry_date'),
            credit_limit=Decimal(str(data['credit_limit'])),
            outstanding_balance=Decimal(str(data.get('outstanding_balance') or '0')),
            status=ApplicationStatus(data['status']),
            created_at=data.get('created_at'),
            product_name=data.get('product_name')
        )
