from datetime import date, datetime, time
from unittest.mock import MagicMock

import pytest

from core.models.entities import ConsultationStatus, UserRole
from core.services.consultation_service import ConsultationService
from utils.exceptions import (
    ConsultationNotFoundException, ExternalServiceException, SessionNotFoundException,
    ValidationException
)

from conftest import add_slot, make_user

MEET = "https://meet.google.com/abc-defg-hij"
TOKENS = {'access_token': 'ya29', 'refresh_token': 'r1', 'expires_at': 4102444800}


@pytest.fixture
def calendar():
    client = MagicMock()
    client.create_meet_event.return_value = {
        'meet_link': MEET, 'event_id': 'evt1', 'tokens': TOKENS, 'tokens_refreshed': False
    }
    return client


@pytest.fixture
def advisor_id(users):
    return make_user(users, "carol", role=UserRole.ADVISOR, google_tokens=dict(TOKENS))


@pytest.fixture
def service(sessions, consultations, users, calendar, notifier, db, clock):
    return ConsultationService(session_repo=sessions, consultation_repo=consultations, user_repo=users,
                               calendar=calendar, notifier=notifier, db=db, clock=clock)


@pytest.fixture
def slot_id(sessions, advisor_id):
    return add_slot(sessions, advisor_id, datetime(2030, 1, 8, 10, 0))


class TestSlots:
    def test_create_slot_is_one_hour(self, service, sessions, advisor_id):
        session_id = service.create_slot(advisor_id, date(2030, 1, 8), time(14, 0, 37))

        slot = sessions.rows[session_id]
        assert slot.session_time == time(14, 0)
        assert slot.end_time == time(15, 0)
        assert not slot.is_booked

    def test_duplicate_slot(self, service, advisor_id):
        service.create_slot(advisor_id, date(2030, 1, 8), time(9, 0))
        with pytest.raises(ValidationException, match="already have a session"):
            service.create_slot(advisor_id, date(2030, 1, 8), time(9, 0))

    def test_past_slot(self, service, advisor_id):
        with pytest.raises(ValidationException, match="past"):
            service.create_slot(advisor_id, date(2030, 1, 6), time(10, 0))

    @pytest.mark.parametrize("start", [time(8, 0), time(18, 0)])
    def test_outside_business_hours(self, service, advisor_id, start):
        with pytest.raises(ValidationException, match="between 09:00 and 17:00"):
            service.create_slot(advisor_id, date(2030, 1, 8), start)

    def test_last_start_hour_allowed(self, service, sessions, advisor_id):
        session_id = service.create_slot(advisor_id, date(2030, 1, 8), time(17, 0))
        assert sessions.rows[session_id].end_time == time(18, 0)

    def test_update_slot(self, service, sessions, advisor_id, slot_id):
        service.update_slot(advisor_id, slot_id, date(2030, 1, 9), time(11, 0))

        slot = sessions.rows[slot_id]
        assert (slot.session_date, slot.session_time, slot.end_time) == (date(2030, 1, 9), time(11, 0), time(12, 0))

    def test_update_to_same_time_is_not_a_clash(self, service, advisor_id, slot_id):
        assert service.update_slot(advisor_id, slot_id, date(2030, 1, 8), time(10, 0))

    def test_other_advisors_slot(self, service, users, slot_id):
        other = make_user(users, "dave", role=UserRole.ADVISOR)
        with pytest.raises(SessionNotFoundException):
            service.delete_slot(other, slot_id)

    def test_booked_slot_cannot_be_deleted(self, service, sessions, advisor_id, slot_id, customer_id):
        service.book_slot(customer_id, slot_id)
        with pytest.raises(ValidationException, match="booked"):
            service.delete_slot(advisor_id, slot_id)
        assert slot_id in sessions.rows

    def test_open_slots_hide_started_sessions(self, service, sessions, advisor_id, clock, slot_id):
        add_slot(sessions, advisor_id, datetime(2030, 1, 7, 7, 0))
        add_slot(sessions, advisor_id, datetime(2030, 1, 8, 11, 0), booked=True)

        open_ids = [s['session_id'] for s in service.get_open_slots()]

        assert open_ids == [slot_id]


class TestBooking:
    def test_book_creates_consultation_with_meet_link(self, service, sessions, consultations, calendar,
                                                      notifier, customer_id, advisor_id, slot_id):
        result = service.book_slot(customer_id, slot_id)

        assert result['meet_link'] == MEET
        consultation = consultations.rows[result['consultation_id']]
        assert consultation.status == ConsultationStatus.BOOKED
        assert consultation.advisor_id == advisor_id
        assert sessions.rows[slot_id].is_booked

        kwargs = calendar.create_meet_event.call_args.kwargs
        assert kwargs['start'] == datetime(2030, 1, 8, 10, 0)
        assert kwargs['end'] == datetime(2030, 1, 8, 11, 0)
        assert set(kwargs['attendees']) == {"alice@example.com", "carol@example.com"}

        recipients = {c.args[0] for c in notifier.send_email.call_args_list}
        assert recipients == {"alice@example.com", "carol@example.com"}
        assert all(c.args[1] == "Consultation Confirmed" for c in notifier.send_email.call_args_list)

    def test_double_booking_rejected(self, service, consultations, customer_id, other_customer_id, slot_id):
        service.book_slot(customer_id, slot_id)

        with pytest.raises(ValidationException, match="already booked"):
            service.book_slot(other_customer_id, slot_id)
        assert len(consultations.rows) == 1

    def test_concurrent_claim_loses(self, service, sessions, consultations, customer_id, slot_id, monkeypatch):
        # Another request claims the slot between the read and the write
        monkeypatch.setattr(sessions, "claim", lambda session_id, conn=None: False)

        with pytest.raises(ValidationException, match="already booked"):
            service.book_slot(customer_id, slot_id)
        assert consultations.rows == {}

    def test_cancel_then_rebook(self, service, sessions, consultations, customer_id, other_customer_id, slot_id):
        first = service.book_slot(customer_id, slot_id)['consultation_id']

        service.cancel_consultation(customer_id, first)

        assert consultations.rows[first].status == ConsultationStatus.CANCELLED
        assert not sessions.rows[slot_id].is_booked

        second = service.book_slot(other_customer_id, slot_id)['consultation_id']
        assert consultations.rows[second].status == ConsultationStatus.BOOKED
        assert sessions.rows[slot_id].is_booked

    def test_cancel_twice(self, service, customer_id, slot_id):
        consultation_id = service.book_slot(customer_id, slot_id)['consultation_id']
        service.cancel_consultation(customer_id, consultation_id)

        with pytest.raises(ValidationException, match="already cancelled"):
            service.cancel_consultation(customer_id, consultation_id)

    def test_cancel_someone_elses(self, service, customer_id, other_customer_id, slot_id):
        consultation_id = service.book_slot(customer_id, slot_id)['consultation_id']
        with pytest.raises(ConsultationNotFoundException):
            service.cancel_consultation(other_customer_id, consultation_id)

    def test_calendar_failure_still_books(self, service, calendar, notifier, consultations, customer_id, slot_id):
        calendar.create_meet_event.side_effect = ExternalServiceException("Failed to create calendar event")

        result = service.book_slot(customer_id, slot_id)

        assert result['meet_link'] is None
        assert consultations.rows[result['consultation_id']].meet_link is None
        notifier.send_email.assert_not_called()

    def test_email_failure_does_not_undo_booking(self, service, notifier, consultations, customer_id, slot_id):
        notifier.send_email.side_effect = ExternalServiceException("Failed to send email")

        result = service.book_slot(customer_id, slot_id)

        assert result['consultation_id'] in consultations.rows
        assert notifier.send_email.call_count == 2

    def test_refreshed_tokens_saved(self, service, calendar, users, customer_id, advisor_id, slot_id):
        fresh = dict(TOKENS, access_token='ya29-new')
        calendar.create_meet_event.return_value = {
            'meet_link': MEET, 'event_id': 'evt1', 'tokens': fresh, 'tokens_refreshed': True
        }

        service.book_slot(customer_id, slot_id)

        assert users.rows[advisor_id].google_tokens['access_token'] == 'ya29-new'

    def test_advisor_without_calendar(self, service, users, sessions, customer_id):
        advisor = make_user(users, "erin", role=UserRole.ADVISOR)
        session_id = add_slot(sessions, advisor, datetime(2030, 1, 8, 10, 0))

        with pytest.raises(ValidationException, match="not connected their calendar"):
            service.book_slot(customer_id, session_id)
        assert not sessions.rows[session_id].is_booked

    def test_customer_clash(self, service, users, sessions, customer_id, slot_id):
        other_advisor = make_user(users, "frank", role=UserRole.ADVISOR, google_tokens=dict(TOKENS))
        same_time = add_slot(sessions, other_advisor, datetime(2030, 1, 8, 10, 0))
        service.book_slot(customer_id, slot_id)

        with pytest.raises(ValidationException, match="already have a consultation"):
            service.book_slot(customer_id, same_time)

    def test_started_session(self, service, sessions, advisor_id, customer_id):
        session_id = add_slot(sessions, advisor_id, datetime(2030, 1, 7, 8, 0))
        with pytest.raises(ValidationException, match="already started"):
            service.book_slot(customer_id, session_id)

    def test_missing_session(self, service, customer_id):
        with pytest.raises(SessionNotFoundException):
            service.book_slot(customer_id, 404)


class TestAdvisorActions:
    def test_complete_and_notes(self, service, consultations, customer_id, advisor_id, slot_id):
        consultation_id = service.book_slot(customer_id, slot_id)['consultation_id']

        service.update_notes(advisor_id, consultation_id, "  Discussed FD ladder  ")
        service.complete_consultation(advisor_id, consultation_id)

        assert consultations.rows[consultation_id].notes == "Discussed FD ladder"
        assert consultations.rows[consultation_id].status == ConsultationStatus.COMPLETED
        with pytest.raises(ValidationException, match="already completed"):
            service.complete_consultation(advisor_id, consultation_id)

    def test_other_advisor_cannot_touch(self, service, users, customer_id, slot_id):
        other = make_user(users, "gina", role=UserRole.ADVISOR)
        consultation_id = service.book_slot(customer_id, slot_id)['consultation_id']

        with pytest.raises(ConsultationNotFoundException):
            service.complete_consultation(other, consultation_id)

    def test_connect_calendar(self, service, calendar, users, advisor_id):
        calendar.exchange_code.return_value = {'access_token': 'new', 'refresh_token': 'r2'}

        service.connect_calendar(advisor_id, "auth-code")

        calendar.exchange_code.assert_called_once_with("auth-code")
        assert users.rows[advisor_id].google_tokens == {'access_token': 'new', 'refresh_token': 'r2'}
        assert service.is_calendar_connected(advisor_id)

    def test_auth_url_carries_advisor_state(self, service, calendar, advisor_id):
        service.calendar_auth_url(advisor_id)
        calendar.get_auth_url.assert_called_once_with(state=str(advisor_id))
