"""
Report Service
Read-only aggregates for the admin dashboard and the spreadsheet export
"""

import io
import logging
from datetime import date, timedelta
from typing import Dict, Any, List, Callable

import pandas as pd

from core.repositories.user_repository import UserRepository
from core.repositories.account_repository import AccountRepository
from core.repositories.credit_card_repository import CreditCardRepository
from core.repositories.consultation_repository import ConsultationRepository
from core.repositories.transaction_repository import TransactionRepository
from core.models.entities import ApplicationStatus, ConsultationStatus

logger = logging.getLogger(__name__)

TREND_DAYS = 7

class ReportService:
    """Service class for admin reporting"""

    def __init__(self, user_repo: UserRepository = None,
                 account_repo: AccountRepository = None,
                 card_repo: CreditCardRepository = None,
                 consultation_repo: ConsultationRepository = None,
                 transaction_repo: TransactionRepository = None,
                 today: Callable[[], date] = date.today):
        self.user_repo = user_repo or UserRepository()
        self.account_repo = account_repo or AccountRepository()
        self.card_repo = card_repo or CreditCardRepository()
        self.consultation_repo = consultation_repo or ConsultationRepository()
        self.transaction_repo = transaction_repo or TransactionRepository()
        self.today = today

    def get_summary(self) -> Dict[str, Any]:
        return {
            'total_users': self.user_repo.count(),
            'active_accounts': self.account_repo.count_by_status(ApplicationStatus.ACTIVE),
            'pending_accounts': self.account_repo.count_by_status(ApplicationStatus.PENDING),
            'active_cards': self.card_repo.count_by_status(ApplicationStatus.ACTIVE),
            'pending_cards': self.card_repo.count_by_status(ApplicationStatus.PENDING),
            'total_consultations': self.consultation_repo.count_by_status(),
            'completed_consultations': self.consultation_repo.count_by_status(ConsultationStatus.COMPLETED),
            'total_transactions': self.transaction_repo.count(),
            'total_balance': self.account_repo.sum_active_balances(),
        }

    def get_daily_transactions(self, days: int = TREND_DAYS) -> List[Dict[str, Any]]:
        """One row per day for the last ``days`` days, zero-filled"""
        start = self.today() - timedelta(days=days - 1)
        counts = {}
        for row in self.transaction_repo.count_by_date(start):
            day = row['date']
            counts[day.isoformat() if hasattr(day, 'isoformat') else str(day)] = int(row['count'])

        series = []
        for offset in range(days):
            day = (start + timedelta(days=offset)).isoformat()
            series.append({'date': day, 'count': counts.get(day, 0)})
        return series

    def export_excel(self) -> bytes:
        """Summary and daily series as a two-sheet xlsx workbook"""
        summary = self.get_summary()
        summary_df = pd.DataFrame(
            [{'Metric': key.replace('_', ' ').title(), 'Value': str(value) if key == 'total_balance' else value}
             for key, value in summary.items()]
        )
        daily_df = pd.DataFrame(self.get_daily_transactions())
        daily_df.columns = ['Date', 'Transactions']

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            summary_df.to_excel(writer, sheet_name='Summary', index=False)
            daily_df.to_excel(writer, sheet_name='Daily Transactions', index=False)

        logger.info("Report workbook exported")
        return buffer.getvalue()
