"""Service functions for interacting with the Google Calendar API."""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build, Resource
from googleapiclient.errors import HttpError

from schedule_engine.core.config import Settings
from schedule_engine.core.errors import (
    ConfigurationError,
    ExternalServiceUnavailable,
    NotFoundError,
    PermissionDeniedError,
)
from schedule_engine.features.calendar_format import calendar_time_block, parse_calendar_datetime
from schedule_engine.features.intent_models import CandidateEvent
from schedule_engine.features.service_models import CreatedCalendarEvent

logger = logging.getLogger(__name__)


def build_credentials(settings: Settings) -> Credentials:
    """Builds OAuth2 credentials from the refresh token in settings.

    Raises:
        ConfigurationError: Client id, secret or refresh token is missing.
    """
    if not settings.google_configured:
        raise ConfigurationError(
            "Google Calendar credentials not configured",
            details="Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN.",
        )
    return Credentials(
        token=None,
        refresh_token=settings.GOOGLE_REFRESH_TOKEN,
        token_uri=settings.GOOGLE_TOKEN_URI,
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        scopes=settings.GOOGLE_CALENDAR_API_SCOPES,
    )


def translate_http_error(error: HttpError, action: str) -> Exception:
    """Maps a Google API HttpError onto the engine's error taxonomy."""
    status = getattr(error.resp, "status", None)
    reason = error._get_reason() if hasattr(error, "_get_reason") else str(error)
    if status == 404:
        return NotFoundError("Event not found", details=reason)
    if status == 403:
        return PermissionDeniedError("Permission denied", details=reason)
    return ExternalServiceUnavailable(f"Failed to {action} event", details=reason)


def _event_time(block: Optional[Dict[str, Any]]) -> Optional[datetime]:
    if not block:
        return None
    return parse_calendar_datetime(block.get("dateTime") or block.get("date"), block.get("timeZone"))


def to_candidate_event(item: Dict[str, Any]) -> CandidateEvent:
    """Projects a Calendar API event resource onto a CandidateEvent."""
    return CandidateEvent(
        id=item["id"],
        title=item.get("summary"),
        description=item.get("description"),
        start=_event_time(item.get("start")),
        end=_event_time(item.get("end")),
        html_link=item.get("htmlLink"),
        all_day="date" in (item.get("start") or {}),
    )


def to_created_event(item: Dict[str, Any]) -> CreatedCalendarEvent:
    return CreatedCalendarEvent(
        id=item["id"],
        html_link=item.get("htmlLink"),
        summary=item.get("summary"),
        description=item.get("description"),
        start=item.get("start"),
        end=item.get("end"),
    )


class GoogleCalendarService:
    """Reads and writes events on a single Google calendar.

    Each call is one attempt; errors are translated, never retried.
    """

    def __init__(self, credentials: Credentials, calendar_id: str = "primary"):
        self.credentials = credentials
        self.calendar_id = calendar_id
        self._service: Optional[Resource] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleCalendarService":
        return cls(build_credentials(settings), calendar_id=settings.GOOGLE_CALENDAR_ID)

    @property
    def service(self) -> Resource:
        if self._service is None:
            self._service = build('calendar', 'v3', credentials=self.credentials, cache_discovery=False)
        return self._service

    def list_upcoming(self, limit: int = 10, time_min: Optional[datetime] = None) -> List[CandidateEvent]:
        """Lists upcoming single events ordered by start time."""
        time_min = time_min or datetime.now(timezone.utc)
        try:
            response = self.service.events().list(
                calendarId=self.calendar_id,
                timeMin=time_min.isoformat(),
                maxResults=limit,
                singleEvents=True,
                orderBy='startTime',
            ).execute()
        except HttpError as error:
            logger.error(f"An HTTP error occurred while listing Google Calendar events: {error}")
            raise translate_http_error(error, "list") from error

        events = [to_candidate_event(item) for item in response.get('items', [])]
        logger.info(f"Fetched {len(events)} upcoming events from calendar '{self.calendar_id}'")
        return events

    def insert(
        self,
        title: str,
        description: str,
        start: datetime,
        end: datetime,
        tz_name: str,
        attendees: Optional[List[str]] = None,
    ) -> CreatedCalendarEvent:
        """Creates an event and returns its id, link and title."""
        event_body = {
            'summary': title,
            'description': description,
            'start': calendar_time_block(start, tz_name),
            'end': calendar_time_block(end, tz_name),
            'attendees': [{'email': email} for email in attendees or [] if email],
        }
        if not event_body['attendees']:
            del event_body['attendees']

        logger.debug(f"Attempting to create Google Calendar event: {event_body}")
        try:
            created_event = self.service.events().insert(calendarId=self.calendar_id, body=event_body).execute()
        except HttpError as error:
            logger.error(f"An HTTP error occurred while creating Google Calendar event: {error}")
            raise translate_http_error(error, "create") from error

        logger.info(f"Successfully created Google Calendar event. ID: {created_event['id']}, Link: {created_event.get('htmlLink')}")
        return to_created_event(created_event)

    def update(self, event_id: str, patch: Dict[str, Any]) -> CreatedCalendarEvent:
        """Applies a partial update (events.patch)."""
        logger.debug(f"Patching Google Calendar event {event_id}: {patch}")
        try:
            updated = self.service.events().patch(calendarId=self.calendar_id, eventId=event_id, body=patch).execute()
        except HttpError as error:
            logger.error(f"An HTTP error occurred while updating Google Calendar event {event_id}: {error}")
            raise translate_http_error(error, "update") from error
        logger.info(f"Updated Google Calendar event {event_id}")
        return to_created_event(updated)

    def replace(
        self,
        event_id: str,
        title: str,
        description: Optional[str],
        start: datetime,
        end: datetime,
        tz_name: str,
    ) -> CreatedCalendarEvent:
        """Overwrites title, description and times (events.update)."""
        event_body = {
            'summary': title,
            'description': description or '',
            'start': calendar_time_block(start, tz_name),
            'end': calendar_time_block(end, tz_name),
        }
        try:
            updated = self.service.events().update(calendarId=self.calendar_id, eventId=event_id, body=event_body).execute()
        except HttpError as error:
            logger.error(f"An HTTP error occurred while replacing Google Calendar event {event_id}: {error}")
            raise translate_http_error(error, "update") from error
        logger.info(f"Replaced Google Calendar event {event_id}")
        return to_created_event(updated)

    def delete(self, event_id: str) -> None:
        try:
            self.service.events().delete(calendarId=self.calendar_id, eventId=event_id).execute()
        except HttpError as error:
            logger.error(f"An HTTP error occurred while deleting Google Calendar event {event_id}: {error}")
            raise translate_http_error(error, "delete") from error
        logger.info(f"Deleted Google Calendar event {event_id}")
