"""
Google Calendar client (OAuth2 + events with a Meet link) over the REST API
"""

import time as time_module
import uuid
import logging
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple
from urllib.parse import urlencode

import requests

from core import config
from utils.exceptions import ExternalServiceException

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
SCOPES = ["https://www.googleapis.com/auth/calendar"]

# Refresh a little before the access token actually lapses
EXPIRY_MARGIN_SECONDS = 60

class GoogleCalendarClient:
    """Thin wrapper around the OAuth token endpoint and Calendar events API"""

    def __init__(self, client_id: str = None, client_secret: str = None,
                 redirect_uri: str = None, http: requests.Session = None, timeout: int = 15):
        self.client_id = client_id or config.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or config.GOOGLE_CLIENT_SECRET
        self.redirect_uri = redirect_uri or config.GOOGLE_REDIRECT_URI
        self.http = http or requests.Session()
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def get_auth_url(self, state: Optional[str] = None) -> str:
        """Consent screen URL; offline access so a refresh token is issued"""
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'scope': ' '.join(SCOPES),
            'access_type': 'offline',
            'prompt': 'consent',
        }
        if state:
            params['state'] = state
        return f"{AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """Trade an authorization code for tokens"""
        tokens = self._token_request({
            'code': code,
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'redirect_uri': self.redirect_uri,
            'grant_type': 'authorization_code',
        })
        return self._stamp_expiry(tokens)

    def refresh(self, tokens: Dict[str, Any]) -> Dict[str, Any]:
        refresh_token = tokens.get('refresh_token')
        if not refresh_token:
            raise ExternalServiceException("Calendar access expired. Please reconnect Google Calendar.")
        fresh = self._token_request({
            'refresh_token': refresh_token,
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'grant_type': 'refresh_token',
        })
        # Google omits the refresh token on refresh responses
        fresh.setdefault('refresh_token', refresh_token)
        return self._stamp_expiry(fresh)

    def ensure_fresh(self, tokens: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """Return usable tokens and whether they were refreshed"""
        expires_at = tokens.get('expires_at')
        if expires_at and expires_at - EXPIRY_MARGIN_SECONDS > time_module.time():
            return tokens, False
        if not expires_at and tokens.get('access_token') and not tokens.get('refresh_token'):
            return tokens, False
        return self.refresh(tokens), True

    def create_meet_event(self, tokens: Dict[str, Any], summary: str, description: str,
                          start: datetime, end: datetime, attendees: List[str]) -> Dict[str, Any]:
        """
        Create an event with a Google Meet conference on the token owner's
        primary calendar. Returns ``{'meet_link', 'event_id', 'tokens', 'tokens_refreshed'}``.
        """
        tokens, refreshed = self.ensure_fresh(tokens)
        body = {
            'summary': summary,
            'description': description,
            'start': {'dateTime': self._format(start), 'timeZone': config.CALENDAR_TIMEZONE},
            'end': {'dateTime': self._format(end), 'timeZone': config.CALENDAR_TIMEZONE},
            'attendees': [{'email': email} for email in attendees if email],
            'conferenceData': {
                'createRequest': {
                    'requestId': uuid.uuid4().hex,
                    'conferenceSolutionKey': {'type': 'hangoutsMeet'},
                }
            },
        }

        try:
            response = self.http.post(
                EVENTS_URL,
                params={'conferenceDataVersion': 1, 'sendUpdates': 'all'},
                headers={'Authorization': f"Bearer {tokens['access_token']}"},
                json=body,
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Google Calendar event creation failed: {e}")
            raise ExternalServiceException("Failed to create calendar event", error_code="CALENDAR_FAILED")

        event = response.json()
        meet_link = event.get('hangoutLink')
        if not meet_link:
            for entry in event.get('conferenceData', {}).get('entryPoints', []):
                if entry.get('entryPointType') == 'video':
                    meet_link = entry.get('uri')
                    break

        logger.info(f"Calendar event {event.get('id')} created")
        return {
            'meet_link': meet_link,
            'event_id': event.get('id'),
            'tokens': tokens,
            'tokens_refreshed': refreshed,
        }

    def _token_request(self, data: Dict[str, str]) -> Dict[str, Any]:
        if not self.configured:
            raise ExternalServiceException("Google Calendar is not configured")
        try:
            response = self.http.post(TOKEN_URL, data=data, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Google OAuth token request failed: {e}")
            raise ExternalServiceException("Google authorization failed", error_code="OAUTH_FAILED")
        return response.json()

    @staticmethod
    def _stamp_expiry(tokens: Dict[str, Any]) -> Dict[str, Any]:
        if 'expires_in' in tokens:
            tokens['expires_at'] = int(time_module.time()) + int(tokens['expires_in'])
        return tokens

    @staticmethod
    def _format(moment: datetime) -> str:
        return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}{config.CALENDAR_UTC_OFFSET}"
