"""
Account Repository
Handles database operations for accounts table
"""

from typing import Optional, List, Dict, Any
from decimal import Decimal

from mysql.connector import Error

from core.repositories.base_repository import BaseRepository
from core.models.entities import Account, ApplicationStatus, ProductType
from utils.exceptions import ValidationException, DatabaseException

_SELECT_WITH_PRODUCT = """
    SELECT a.*, p.product_name, p.product_type
    FROM accounts a
    JOIN products p ON a.product_id = p.product_id
"""

class AccountRepository(BaseRepository):
    """Repository for accounts table operations"""

    def __init__(self, db=None):
        super().__init__('accounts', 'account_id', db=db)

    def create_account(self, account: Account, conn=None) -> int:
        """Create a new account"""
        if not account.user_id or not account.account_number:
            raise ValidationException("User ID and account number are required")

        account_data = {
            'user_id': account.user_id,
            'product_id': account.product_id,
            'account_number': account.account_number,
            'balance': account.balance,
            'status': account.status.value,
        }

        return self.create(account_data, conn=conn)

    def find_account_by_id(self, account_id: int, conn=None, for_update: bool = False) -> Optional[Account]:
        """Find account by ID; with for_update the row stays locked until the transaction ends"""
        query = _SELECT_WITH_PRODUCT + " WHERE a.account_id = %s"
        if for_update:
            query += " FOR UPDATE"
        try:
            result = self.db.execute_query(query, (account_id,), fetch_one=True, conn=conn)
        except Error as e:
            raise DatabaseException(f"Failed to load account: {str(e)}")
        return self._dict_to_account(result) if result else None

    def find_by_account_number(self, account_number: str) -> Optional[Account]:
        """Find account by account number"""
        if not account_number:
            return None
        result = self._query_one(_SELECT_WITH_PRODUCT + " WHERE a.account_number = %s", (account_number,))
        return self._dict_to_account(result) if result else None

    def find_by_customer(self, user_id: int) -> List[Account]:
        """Find all accounts for a customer"""
        rows = self._query_all(_SELECT_WITH_PRODUCT + " WHERE a.user_id = %s ORDER BY a.opened_at DESC", (user_id,))
        return [self._dict_to_account(r) for r in rows]

    def get_active_accounts_by_customer(self, user_id: int) -> List[Account]:
        rows = self._query_all(
            _SELECT_WITH_PRODUCT + " WHERE a.user_id = %s AND a.status = 'active' ORDER BY a.account_id",
            (user_id,)
        )
        return [self._dict_to_account(r) for r in rows]

    def has_open_application(self, user_id: int, product_id: int) -> bool:
        """True when the user holds a pending or active account for the product"""
        result = self._query_one(
            f"SELECT 1 FROM {self.table_name} "
            "WHERE user_id = %s AND product_id = %s AND status IN ('pending', 'active') LIMIT 1",
            (user_id, product_id)
        )
        return result is not None

    def has_active_savings(self, user_id: int) -> bool:
        result = self._query_one(
            "SELECT 1 FROM accounts a JOIN products p ON a.product_id = p.product_id "
            "WHERE a.user_id = %s AND a.status = 'active' AND p.product_type = 'savings' LIMIT 1",
            (user_id,)
        )
        return result is not None

    def get_pending_applications(self) -> List[Dict[str, Any]]:
        """Pending applications with applicant and KYC details for admin review"""
        return self._query_all("""
            SELECT a.account_id, a.account_number, a.balance, a.status, a.opened_at,
                   u.user_id, u.username, u.email,
                   p.product_name, p.product_type,
                   k.id_type, k.id_number, k.document_path, k.status AS kyc_status
            FROM accounts a
            JOIN users u ON a.user_id = u.user_id
            JOIN products p ON a.product_id = p.product_id
            LEFT JOIN kyc_documents k ON k.account_id = a.account_id
            WHERE a.status = 'pending'
            ORDER BY a.opened_at
        """)

    def update_status(self, account_id: int, status: ApplicationStatus, conn=None) -> bool:
        return self.update(account_id, {'status': status.value}, conn=conn)

    def update_balance(self, account_id: int, new_balance: Decimal, conn=None) -> bool:
        """Update account balance"""
        return self.update(account_id, {'balance': new_balance}, conn=conn)

    def delete_account(self, account_id: int, conn=None) -> bool:
        return self.delete(account_id, conn=conn)

    def count_by_status(self, status: ApplicationStatus) -> int:
        return self.count("status = %s", (status.value,))

    def sum_active_balances(self) -> Decimal:
        result = self._query_one(f"SELECT SUM(balance) AS total FROM {self.table_name} WHERE status = 'active'")
        total = result['total'] if result else None
        return Decimal(str(total)) if total is not None else Decimal('0.00')

    def _dict_to_account(self, data: dict) -> Account:
        """Convert dictionary to Account object"""
        product_type = data.get('product_type')
        return Account(
            account_id=data['account_id'],
            user_id=data['user_id'],
            product_id=data['product_id'],
            account_number=data['account_number'],
            balance=Decimal(str(data['balance'])),
            status=ApplicationStatus(data['status']),
            opened_at=data.get('opened_at'),
            product_name=data.get('product_name'),
            product_type=ProductType(product_type) if product_type else None
        )
