"""
Transaction Repository
Handles database operations for transactions table
"""

from typing import List, Dict, Any
from datetime import datetime, date

from core.repositories.base_repository import BaseRepository
from core.models.entities import Transaction
from utils.exceptions import ValidationException

class TransactionRepository(BaseRepository):
    """Repository for transactions table operations"""

    def __init__(self, db=None):
        super().__init__('transactions', 'transaction_id', db=db)

    def create_transaction(self, transaction: Transaction, conn=None) -> int:
        """Append a ledger row"""
        if not transaction.account_id or transaction.amount <= 0:
            raise ValidationException("Account ID and positive amount are required")

        transaction_data = {
            'account_id': transaction.account_id,
            'transaction_type': transaction.transaction_type.value,
            'amount': transaction.amount,
            'balance_after': transaction.balance_after,
            'description': transaction.description,
            'transaction_date': transaction.transaction_date or datetime.now(),
        }

        return self.create(transaction_data, conn=conn)

    def find_by_customer(self, user_id: int) -> List[Dict[str, Any]]:
        """All rows across a customer's accounts, newest first"""
        return self._query_all("""
            SELECT t.transaction_id, t.transaction_type, t.amount, t.description,
                   t.transaction_date, t.balance_after,
                   a.account_id, a.account_number,
                   p.product_name AS account_name,
                   u.username AS owner_name
            FROM transactions t
            JOIN accounts a ON t.account_id = a.account_id
            JOIN products p ON a.product_id = p.product_id
            JOIN users u ON a.user_id = u.user_id
            WHERE a.user_id = %s
            ORDER BY t.transaction_date DESC, t.transaction_id DESC
        """, (user_id,))

    def count_by_date(self, since: date) -> List[Dict[str, Any]]:
        """Transaction counts per calendar day from ``since`` onward"""
        return self._query_all(f"""
            SELECT DATE(transaction_date) AS date, COUNT(*) AS count
            FROM {self.table_name}
            WHERE transaction_date >= %s
            GROUP BY DATE(transaction_date)
            ORDER BY DATE(transaction_date)
        """, (since,))
