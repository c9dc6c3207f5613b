"""
Consultation Service
Advisor availability slots, customer bookings and Google Meet links
"""

import logging
from datetime import date, datetime, time
from typing import List, Dict, Any, Callable, Optional

from core.repositories.advisor_session_repository import AdvisorSessionRepository
from core.repositories.consultation_repository import ConsultationRepository
from core.repositories.user_repository import UserRepository
from core.services.notification_service import NotificationService
from core.models.entities import AdvisorSession, Consultation, ConsultationStatus, User
from utils.exceptions import (
    ValidationException, SessionNotFoundException, ConsultationNotFoundException,
    UserNotFoundException, ExternalServiceException
)
from utils.validators import BusinessRuleValidator
from utils.helpers import DateUtils, LoggingUtils
from utils.google_calendar import GoogleCalendarClient
from db.database import db_manager

logger = logging.getLogger(__name__)

class ConsultationService:
    """Service class for advisor scheduling and customer bookings"""

    def __init__(self, session_repo: AdvisorSessionRepository = None,
                 consultation_repo: ConsultationRepository = None,
                 user_repo: UserRepository = None,
                 calendar: GoogleCalendarClient = None,
                 notifier: NotificationService = None,
                 db=None, clock: Callable[[], datetime] = datetime.now):
        self.session_repo = session_repo or AdvisorSessionRepository()
        self.consultation_repo = consultation_repo or ConsultationRepository()
        self.user_repo = user_repo or UserRepository()
        self.calendar = calendar or GoogleCalendarClient()
        self.notifier = notifier or NotificationService()
        self.db = db or db_manager
        self.clock = clock

    # ------------------------------------------------------------------
    # Advisor slots
    # ------------------------------------------------------------------

    def create_slot(self, advisor_id: int, session_date: date, session_time: time) -> int:
        """Open a one-hour slot"""
        session_time = session_time.replace(second=0, microsecond=0)
        BusinessRuleValidator.validate_slot(session_date, session_time, self.clock())
        if self.session_repo.slot_exists(advisor_id, session_date, session_time):
            raise ValidationException("You already have a session at this date and time")

        session_id = self.session_repo.create_session(AdvisorSession(
            advisor_id=advisor_id,
            session_date=session_date,
            session_time=session_time,
            end_time=DateUtils.add_hours(session_time, 1),
            is_booked=False
        ))
        LoggingUtils.log_business_event("slot_created", "session", session_id, user_id=advisor_id)
        return session_id

    def update_slot(self, advisor_id: int, session_id: int, session_date: date, session_time: time) -> bool:
        self._owned_slot(advisor_id, session_id)
        session_time = session_time.replace(second=0, microsecond=0)
        BusinessRuleValidator.validate_slot(session_date, session_time, self.clock())
        if self.session_repo.slot_exists(advisor_id, session_date, session_time,
                                         exclude_session_id=session_id):
            raise ValidationException("You already have a session at this date and time")

        self.session_repo.update_slot(session_id, session_date, session_time,
                                      DateUtils.add_hours(session_time, 1))
        LoggingUtils.log_business_event("slot_updated", "session", session_id, user_id=advisor_id)
        return True

    def delete_slot(self, advisor_id: int, session_id: int) -> bool:
        slot = self._owned_slot(advisor_id, session_id)
        if slot.is_booked:
            raise ValidationException("Cannot delete a session that is booked")
        self.session_repo.delete(session_id)
        LoggingUtils.log_business_event("slot_deleted", "session", session_id, user_id=advisor_id)
        return True

    def get_advisor_slots(self, advisor_id: int) -> List[Dict[str, Any]]:
        return self.session_repo.find_by_advisor(advisor_id)

    def get_advisor_consultations(self, advisor_id: int) -> List[Dict[str, Any]]:
        return self.consultation_repo.find_by_advisor(advisor_id)

    def complete_consultation(self, advisor_id: int, consultation_id: int) -> bool:
        consultation = self._advisor_consultation(advisor_id, consultation_id)
        if consultation.status != ConsultationStatus.BOOKED:
            raise ValidationException(f"Consultation is already {consultation.status.value}")
        self.consultation_repo.update_status(consultation_id, ConsultationStatus.COMPLETED)
        LoggingUtils.log_business_event("consultation_completed", "consultation", consultation_id,
                                        user_id=advisor_id)
        return True

    def update_notes(self, advisor_id: int, consultation_id: int, notes: str) -> bool:
        self._advisor_consultation(advisor_id, consultation_id)
        self.consultation_repo.update_notes(consultation_id, (notes or '').strip() or None)
        return True

    # ------------------------------------------------------------------
    # Calendar connection
    # ------------------------------------------------------------------

    def calendar_auth_url(self, advisor_id: int) -> str:
        return self.calendar.get_auth_url(state=str(advisor_id))

    def connect_calendar(self, advisor_id: int, code: str) -> bool:
        if not code:
            raise ValidationException("Authorization code is required")
        tokens = self.calendar.exchange_code(code)
        self.user_repo.save_google_tokens(advisor_id, tokens)
        LoggingUtils.log_security_event("calendar_connected", user_id=advisor_id)
        return True

    def is_calendar_connected(self, advisor_id: int) -> bool:
        advisor = self.user_repo.find_user_by_id(advisor_id)
        return bool(advisor and advisor.google_tokens)

    # ------------------------------------------------------------------
    # Customer bookings
    # ------------------------------------------------------------------

    def get_open_slots(self) -> List[Dict[str, Any]]:
        """Unbooked slots that have not started yet"""
        now = self.clock()
        slots = self.session_repo.find_open_slots(now.date())
        return [
            s for s in slots
            if datetime.combine(s['session_date'], DateUtils.to_time(s['session_time'])) > now
        ]

    def get_customer_consultations(self, user_id: int) -> List[Dict[str, Any]]:
        return self.consultation_repo.find_by_customer(user_id)

    def book_slot(self, user_id: int, session_id: int) -> Dict[str, Any]:
        """
        Book an open slot.

        The Meet link is best effort: if the calendar call fails the booking
        still goes through without a link.
        """
        slot = self.session_repo.find_session_by_id(session_id)
        if not slot:
            raise SessionNotFoundException("Session not found")
        if slot.is_booked:
            raise ValidationException("This session is already booked")

        start = datetime.combine(slot.session_date, slot.session_time)
        if start <= self.clock():
            raise ValidationException("This session has already started")

        if self.consultation_repo.customer_has_booking_at(user_id, slot.session_date, slot.session_time):
            raise ValidationException("You already have a consultation booked at this time")

        advisor = self.user_repo.find_user_by_id(slot.advisor_id)
        customer = self.user_repo.find_user_by_id(user_id)
        if not advisor or not customer:
            raise UserNotFoundException("User not found")
        if not advisor.google_tokens:
            raise ValidationException("This advisor has not connected their calendar yet")

        meet_link = self._create_meet_link(advisor, customer, slot, start)

        with self.db.get_transaction() as conn:
            if not self.session_repo.claim(session_id, conn=conn):
                raise ValidationException("This session is already booked")
            consultation_id = self.consultation_repo.create_consultation(Consultation(
                user_id=user_id,
                advisor_id=advisor.user_id,
                session_id=session_id,
                status=ConsultationStatus.BOOKED,
                meet_link=meet_link
            ), conn=conn)

        LoggingUtils.log_business_event(
            "consultation_booked", "consultation", consultation_id, user_id=user_id,
            details={'session_id': session_id, 'meet_link': bool(meet_link)}
        )

        if meet_link:
            self._send_confirmation(advisor, customer, slot, meet_link)

        return {'consultation_id': consultation_id, 'meet_link': meet_link}

    def cancel_consultation(self, user_id: int, consultation_id: int) -> bool:
        """Cancel a booked consultation and reopen its slot"""
        consultation = self.consultation_repo.find_consultation_by_id(consultation_id)
        if not consultation or consultation.user_id != user_id:
            raise ConsultationNotFoundException("Consultation not found")
        if consultation.status != ConsultationStatus.BOOKED:
            raise ValidationException(f"Consultation is already {consultation.status.value}")

        with self.db.get_transaction() as conn:
            self.consultation_repo.update_status(consultation_id, ConsultationStatus.CANCELLED, conn=conn)
            self.session_repo.mark_booked(consultation.session_id, False, conn=conn)

        LoggingUtils.log_business_event("consultation_cancelled", "consultation", consultation_id,
                                        user_id=user_id)
        return True

    def _create_meet_link(self, advisor: User, customer: User, slot: AdvisorSession,
                          start: datetime) -> Optional[str]:
        try:
            result = self.calendar.create_meet_event(
                advisor.google_tokens,
                summary=f"BangBank consultation with {customer.username}",
                description=f"Financial consultation between {advisor.username} and {customer.username}",
                start=start,
                end=datetime.combine(slot.session_date, slot.end_time),
                attendees=[advisor.email, customer.email]
            )
        except ExternalServiceException as e:
            logger.warning(f"Meet link not created for session {slot.session_id}: {e}")
            return None

        if result.get('tokens_refreshed'):
            self.user_repo.save_google_tokens(advisor.user_id, result['tokens'])
        return result.get('meet_link')

    def _send_confirmation(self, advisor: User, customer: User, slot: AdvisorSession, meet_link: str):
        when = f"{slot.session_date:%d %b %Y} at {slot.session_time:%H:%M}"
        messages = (
            (customer.email, f"Your consultation with {advisor.username} is confirmed for {when}."),
            (advisor.email, f"{customer.username} booked a consultation with you for {when}."),
        )
        for recipient, intro in messages:
            try:
                self.notifier.send_email(
                    recipient,
                    "Consultation Confirmed",
                    f"{intro}\n\nJoin via Google Meet: {meet_link}"
                )
            except ExternalServiceException as e:
                logger.warning(f"Consultation confirmation to {recipient} failed: {e}")

    def _owned_slot(self, advisor_id: int, session_id: int) -> AdvisorSession:
        slot = self.session_repo.find_session_by_id(session_id)
        if not slot or slot.advisor_id != advisor_id:
            raise SessionNotFoundException("Session not found")
        return slot

    def _advisor_consultation(self, advisor_id: int, consultation_id: int) -> Consultation:
        consultation = self.consultation_repo.find_consultation_by_id(consultation_id)
        if not consultation or consultation.advisor_id != advisor_id:
            raise ConsultationNotFoundException("Consultation not found")
        return consultation
