"""
Transaction Service
Business logic for top-ups, transfers and transaction history
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Dict, Any

from core.repositories.transaction_repository import TransactionRepository
from core.repositories.account_repository import AccountRepository
from core.models.entities import Account, Transaction, TransactionType, ApplicationStatus
from utils.exceptions import (
    AccountNotFoundException, InsufficientFundsException, InvalidTransactionException
)
from utils.validators import BankingValidator
from utils.helpers import StringUtils, LoggingUtils
from db.database import db_manager

class TransactionService:
    """Service class for ledger operations"""

    def __init__(self, transaction_repo: TransactionRepository = None,
                 account_repo: AccountRepository = None, db=None):
        self.transaction_repo = transaction_repo or TransactionRepository()
        self.account_repo = account_repo or AccountRepository()
        self.db = db or db_manager

    def top_up(self, user_id: int, account_id: int, amount: Decimal,
               description: str = None) -> Dict[str, Any]:
        """Credit one of the customer's active accounts"""
        try:
            BankingValidator.validate_amount(amount)
            account = self._owned_active_account(user_id, account_id)

            with self.db.get_transaction() as conn:
                locked = self.account_repo.find_account_by_id(account.account_id, conn=conn, for_update=True)
                new_balance = locked.balance + amount
                self.account_repo.update_balance(account.account_id, new_balance, conn=conn)
                txn_id = self.transaction_repo.create_transaction(Transaction(
                    account_id=account.account_id,
                    transaction_type=TransactionType.DEPOSIT,
                    amount=amount,
                    balance_after=new_balance,
                    description=description or "Top-up",
                    transaction_date=datetime.now()
                ), conn=conn)

            LoggingUtils.log_transaction(
                "deposit", account.account_id, amount, user_id=user_id,
                details={'new_balance': str(new_balance)}
            )

            return {
                'transaction_id': txn_id,
                'account_id': account.account_id,
                'amount': amount,
                'old_balance': locked.balance,
                'new_balance': new_balance,
                'status': 'SUCCESS'
            }

        except Exception as e:
            LoggingUtils.log_business_event(
                "top_up_failed", "transaction", 0, user_id=user_id,
                details={'error': str(e), 'account_id': account_id, 'amount': str(amount)}
            )
            raise

    def transfer(self, user_id: int, from_account_id: int, to_account_number: str,
                 amount: Decimal, description: str = None) -> Dict[str, Any]:
        """
        Move funds from one of the customer's accounts to any active account.

        Both balance updates and both ledger rows are written in one database
        transaction: a ``transfer`` row carrying the source's new balance and
        a ``deposit`` row carrying the destination's new balance.
        """
        try:
            BankingValidator.validate_amount(amount)

            source = self._owned_active_account(user_id, from_account_id)
            destination = self.account_repo.find_by_account_number((to_account_number or '').strip())
            if not destination:
                raise AccountNotFoundException("Destination account not found")
            if destination.account_id == source.account_id:
                raise InvalidTransactionException("Cannot transfer to the same account")
            if destination.status != ApplicationStatus.ACTIVE:
                raise InvalidTransactionException("Destination account is not active")

            reference = StringUtils.generate_reference_number("TRF")
            narration = description or f"Transfer {reference}"

            with self.db.get_transaction() as conn:
                src = self.account_repo.find_account_by_id(source.account_id, conn=conn, for_update=True)
                dst = self.account_repo.find_account_by_id(destination.account_id, conn=conn, for_update=True)

                if src.balance < amount:
                    raise InsufficientFundsException(
                        f"Insufficient funds. Available: {StringUtils.format_currency(src.balance)}, "
                        f"Requested: {StringUtils.format_currency(amount)}"
                    )

                src_balance = src.balance - amount
                dst_balance = dst.balance + amount
                now = datetime.now()

                self.account_repo.update_balance(src.account_id, src_balance, conn=conn)
                self.account_repo.update_balance(dst.account_id, dst_balance, conn=conn)

                debit_id = self.transaction_repo.create_transaction(Transaction(
                    account_id=src.account_id,
                    transaction_type=TransactionType.TRANSFER,
                    amount=amount,
                    balance_after=src_balance,
                    description=f"{narration} to {dst.account_number}",
                    transaction_date=now
                ), conn=conn)
                credit_id = self.transaction_repo.create_transaction(Transaction(
                    account_id=dst.account_id,
                    transaction_type=TransactionType.DEPOSIT,
                    amount=amount,
                    balance_after=dst_balance,
                    description=f"{narration} from {src.account_number}",
                    transaction_date=now
                ), conn=conn)

            LoggingUtils.log_transaction(
                "transfer", src.account_id, amount, user_id=user_id,
                details={'reference': reference, 'to_account_id': dst.account_id}
            )

            return {
                'reference': reference,
                'debit_transaction_id': debit_id,
                'credit_transaction_id': credit_id,
                'from_account_id': src.account_id,
                'to_account_id': dst.account_id,
                'amount': amount,
                'from_balance': src_balance,
                'to_balance': dst_balance,
                'status': 'SUCCESS'
            }

        except Exception as e:
            LoggingUtils.log_business_event(
                "transfer_failed", "transaction", 0, user_id=user_id,
                details={'error': str(e), 'from_account_id': from_account_id, 'amount': str(amount)}
            )
            raise

    def get_history(self, user_id: int) -> List[Dict[str, Any]]:
        """All transactions across the customer's accounts, newest first"""
        return self.transaction_repo.find_by_customer(user_id)

    def _owned_active_account(self, user_id: int, account_id: int) -> Account:
        account = self.account_repo.find_account_by_id(account_id)
        if not account or account.user_id != user_id:
            raise AccountNotFoundException("Account not found")
        if account.status != ApplicationStatus.ACTIVE:
            raise InvalidTransactionException(f"Account is {account.status.value}")
        return account
