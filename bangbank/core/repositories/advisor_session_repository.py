"""
Advisor Session Repository
Handles database operations for the sessions table (advisor slots)
"""

from typing import Optional, List, Dict, Any
from datetime import date, time

from core.repositories.base_repository import BaseRepository
from core.models.entities import AdvisorSession
from utils.helpers import DateUtils

class AdvisorSessionRepository(BaseRepository):
    """Repository for sessions table operations"""

    def __init__(self, db=None):
        super().__init__('sessions', 'session_id', db=db)

    def create_session(self, session: AdvisorSession) -> int:
        return self.create({
            'advisor_id': session.advisor_id,
            'session_date': session.session_date,
            'session_time': session.session_time,
            'end_time': session.end_time,
            'is_booked': int(session.is_booked),
        })

    def update_slot(self, session_id: int, session_date: date, session_time: time, end_time: time) -> bool:
        return self.update(session_id, {
            'session_date': session_date,
            'session_time': session_time,
            'end_time': end_time,
        })

    def find_session_by_id(self, session_id: int) -> Optional[AdvisorSession]:
        data = self.find_by_id(session_id)
        return self._dict_to_session(data) if data else None

    def slot_exists(self, advisor_id: int, session_date: date, session_time: time,
                    exclude_session_id: int = None) -> bool:
        query = (f"SELECT 1 FROM {self.table_name} "
                 "WHERE advisor_id = %s AND session_date = %s AND session_time = %s")
        params = [advisor_id, session_date, session_time]
        if exclude_session_id is not None:
            query += " AND session_id != %s"
            params.append(exclude_session_id)
        return self._query_one(query + " LIMIT 1", tuple(params)) is not None

    def find_by_advisor(self, advisor_id: int) -> List[Dict[str, Any]]:
        """Advisor's slots with the number of live bookings on each"""
        return self._query_all("""
            SELECT s.*,
                   (SELECT COUNT(*) FROM consultations c
                    WHERE c.session_id = s.session_id AND c.status = 'booked') AS booked_count
            FROM sessions s
            WHERE s.advisor_id = %s
            ORDER BY s.session_date, s.session_time
        """, (advisor_id,))

    def find_open_slots(self, from_date: date) -> List[Dict[str, Any]]:
        """Unbooked slots on or after from_date with advisor names"""
        return self._query_all("""
            SELECT s.*, u.username AS advisor_name, u.email AS advisor_email
            FROM sessions s
            JOIN users u ON s.advisor_id = u.user_id
            WHERE s.is_booked = 0 AND s.session_date >= %s
            ORDER BY s.session_date, s.session_time
        """, (from_date,))

    def claim(self, session_id: int, conn=None) -> bool:
        """Flip is_booked 0 -> 1; False when the slot was already taken"""
        affected = self._execute(
            f"UPDATE {self.table_name} SET is_booked = 1 WHERE session_id = %s AND is_booked = 0",
            (session_id,), conn=conn
        )
        return affected == 1

    def mark_booked(self, session_id: int, booked: bool, conn=None) -> bool:
        return self.update(session_id, {'is_booked': int(booked)}, conn=conn)

    def _dict_to_session(self, data: dict) -> AdvisorSession:
        return AdvisorSession(
            session_id=data['session_id'],
            advisor_id=data['advisor_id'],
            session_date=data['session_date'],
            session_time=DateUtils.to_time(data['session_time']),
            end_time=DateUtils.to_time(data['end_time']),
            is_booked=bool(data['is_booked'])
        )
