"""
Consultation Repository
Handles database operations for consultations table
"""

from typing import Optional, List, Dict, Any
from datetime import date, time

from core.repositories.base_repository import BaseRepository
from core.models.entities import Consultation, ConsultationStatus

_SELECT_DETAILS = """
    SELECT c.*, s.session_date, s.session_time, s.end_time,
           cu.username AS customer_name, cu.email AS customer_email,
           ad.username AS advisor_name, ad.email AS advisor_email
    FROM consultations c
    JOIN sessions s ON c.session_id = s.session_id
    JOIN users cu ON c.user_id = cu.user_id
    JOIN users ad ON c.advisor_id = ad.user_id
"""

class ConsultationRepository(BaseRepository):
    """Repository for consultations table operations"""

    def __init__(self, db=None):
        super().__init__('consultations', 'consultation_id', db=db)

    def create_consultation(self, consultation: Consultation, conn=None) -> int:
        return self.create({
            'user_id': consultation.user_id,
            'advisor_id': consultation.advisor_id,
            'session_id': consultation.session_id,
            'status': consultation.status.value,
            'meet_link': consultation.meet_link,
        }, conn=conn)

    def find_consultation_by_id(self, consultation_id: int) -> Optional[Consultation]:
        data = self.find_by_id(consultation_id)
        return self._dict_to_consultation(data) if data else None

    def customer_has_booking_at(self, user_id: int, session_date: date, session_time: time) -> bool:
        """True if the customer already holds a booked consultation at that date and time"""
        result = self._query_one("""
            SELECT 1 FROM consultations c
            JOIN sessions s ON c.session_id = s.session_id
            WHERE c.user_id = %s AND c.status = 'booked'
              AND s.session_date = %s AND s.session_time = %s
            LIMIT 1
        """, (user_id, session_date, session_time))
        return result is not None

    def find_by_customer(self, user_id: int) -> List[Dict[str, Any]]:
        return self._query_all(
            _SELECT_DETAILS + " WHERE c.user_id = %s ORDER BY s.session_date DESC, s.session_time DESC",
            (user_id,)
        )

    def find_by_advisor(self, advisor_id: int) -> List[Dict[str, Any]]:
        return self._query_all(
            _SELECT_DETAILS + " WHERE c.advisor_id = %s ORDER BY s.session_date, s.session_time",
            (advisor_id,)
        )

    def update_status(self, consultation_id: int, status: ConsultationStatus, conn=None) -> bool:
        return self.update(consultation_id, {'status': status.value}, conn=conn)

    def update_notes(self, consultation_id: int, notes: str) -> bool:
        return self.update(consultation_id, {'notes': notes}, allow_null=True)

    def count_by_status(self, status: ConsultationStatus = None) -> int:
        if status is None:
            return self.count()
        return self.count("status = %s", (status.value,))

    def _dict_to_consultation(self, data: dict) -> Consultation:
        return Consultation(
            consultation_id=data['consultation_id'],
            user_id=data['user_id'],
            advisor_id=data['advisor_id'],
            session_id=data['session_id'],
            status=ConsultationStatus(data['status']),
            meet_link=data.get('meet_link'),
            notes=data.get('notes'),
            created_at=data.get('created_at')
        )
