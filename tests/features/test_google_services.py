"""Unit tests for the Google Calendar adapter."""

import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime
from zoneinfo import ZoneInfo

from google.oauth2.credentials import Credentials
from googleapiclient.errors import HttpError

from schedule_engine.core.config import Settings
from schedule_engine.core.errors import (
    ConfigurationError,
    ExternalServiceUnavailable,
    NotFoundError,
    PermissionDeniedError,
)
from schedule_engine.features.google_services import (
    GoogleCalendarService,
    build_credentials,
    to_candidate_event,
)

CHICAGO = ZoneInfo("America/Chicago")


@pytest.fixture
def mock_google_credentials():
    """Fixture for mocked Google Credentials."""
    return MagicMock(spec=Credentials)


@pytest.fixture
def mock_google_build_service():
    """Fixture to mock googleapiclient.discovery.build."""
    with patch('schedule_engine.features.google_services.build') as mock_build:
        yield mock_build


@pytest.fixture
def mock_events_resource(mock_google_build_service):
    mock_service_instance = MagicMock()
    mock_events_resource = MagicMock()
    mock_google_build_service.return_value = mock_service_instance
    mock_service_instance.events.return_value = mock_events_resource
    return mock_events_resource


@pytest.fixture
def calendar_service(mock_google_credentials):
    return GoogleCalendarService(mock_google_credentials)


def make_http_error(status):
    mock_resp = MagicMock()
    mock_resp.status = status
    mock_resp.reason = "Error"
    return HttpError(resp=mock_resp, content=b'{"error": {"message": "Something went wrong"}}')


# --- Credentials ---

def test_build_credentials_requires_all_google_settings():
    settings = Settings(_env_file=None, GOOGLE_CLIENT_ID="id", GOOGLE_CLIENT_SECRET="secret", GOOGLE_REFRESH_TOKEN=None)
    with pytest.raises(ConfigurationError):
        build_credentials(settings)


def test_build_credentials_from_refresh_token():
    settings = Settings(_env_file=None, GOOGLE_CLIENT_ID="id", GOOGLE_CLIENT_SECRET="secret", GOOGLE_REFRESH_TOKEN="refresh")

    credentials = build_credentials(settings)

    assert credentials.refresh_token == "refresh"
    assert credentials.client_id == "id"
    assert credentials.token is None


# --- Reading events ---

def test_list_upcoming(calendar_service, mock_events_resource, mock_google_build_service, mock_google_credentials):
    mock_events_resource.list.return_value.execute.return_value = {
        'items': [
            {
                'id': 'evt-1',
                'summary': 'Dentist appointment',
                'start': {'dateTime': '2025-01-02T14:00:00-06:00', 'timeZone': 'America/Chicago'},
                'end': {'dateTime': '2025-01-02T15:00:00-06:00', 'timeZone': 'America/Chicago'},
                'htmlLink': 'https://calendar.google.com/event?eid=1',
            },
            {'id': 'evt-2', 'summary': 'Holiday', 'start': {'date': '2025-01-03'}, 'end': {'date': '2025-01-04'}},
        ]
    }
    time_min = datetime(2025, 1, 1, 9, 0, tzinfo=CHICAGO)

    events = calendar_service.list_upcoming(limit=5, time_min=time_min)

    assert [e.id for e in events] == ['evt-1', 'evt-2']
    assert events[0].start == datetime(2025, 1, 2, 14, 0, tzinfo=CHICAGO)
    assert events[0].description == ""
    assert events[1].all_day is True
    mock_google_build_service.assert_called_once_with('calendar', 'v3', credentials=mock_google_credentials, cache_discovery=False)
    mock_events_resource.list.assert_called_once_with(
        calendarId='primary',
        timeMin=time_min.isoformat(),
        maxResults=5,
        singleEvents=True,
        orderBy='startTime',
    )


def test_list_upcoming_http_error(calendar_service, mock_events_resource):
    mock_events_resource.list.return_value.execute.side_effect = make_http_error(500)

    with pytest.raises(ExternalServiceUnavailable):
        calendar_service.list_upcoming()


def test_to_candidate_event_handles_missing_fields():
    event = to_candidate_event({'id': 'bare'})

    assert event.title == ""
    assert event.start is None
    assert event.all_day is False


# --- Writing events ---

def test_insert_event(calendar_service, mock_events_resource):
    mock_events_resource.insert.return_value.execute.return_value = {
        'id': 'calendar_event_id_123',
        'htmlLink': 'http://calendar.google.com/event_link',
        'summary': 'Dentist appointment',
    }

    created = calendar_service.insert(
        title="Dentist appointment",
        description="Created from: Dentist appointment tomorrow at 2pm",
        start=datetime(2025, 1, 2, 14, 0, tzinfo=CHICAGO),
        end=datetime(2025, 1, 2, 15, 0, tzinfo=CHICAGO),
        tz_name="America/Chicago",
        attendees=["me@example.com"],
    )

    assert created.id == 'calendar_event_id_123'
    assert created.html_link == 'http://calendar.google.com/event_link'
    expected_body = {
        'summary': 'Dentist appointment',
        'description': 'Created from: Dentist appointment tomorrow at 2pm',
        'start': {'dateTime': '2025-01-02T14:00:00', 'timeZone': 'America/Chicago'},
        'end': {'dateTime': '2025-01-02T15:00:00', 'timeZone': 'America/Chicago'},
        'attendees': [{'email': 'me@example.com'}],
    }
    mock_events_resource.insert.assert_called_once_with(calendarId='primary', body=expected_body)


def test_insert_event_without_attendees(calendar_service, mock_events_resource):
    mock_events_resource.insert.return_value.execute.return_value = {'id': 'evt'}

    calendar_service.insert(
        "Gym", "", datetime(2025, 1, 2, 7, 0, tzinfo=CHICAGO), datetime(2025, 1, 2, 8, 0, tzinfo=CHICAGO),
        "America/Chicago", attendees=[None, ""],
    )

    body = mock_events_resource.insert.call_args.kwargs['body']
    assert 'attendees' not in body


def test_update_sends_patch(calendar_service, mock_events_resource):
    mock_events_resource.patch.return_value.execute.return_value = {'id': 'evt-1', 'summary': 'Orthodontist'}

    updated = calendar_service.update('evt-1', {'summary': 'Orthodontist'})

    assert updated.summary == 'Orthodontist'
    mock_events_resource.patch.assert_called_once_with(calendarId='primary', eventId='evt-1', body={'summary': 'Orthodontist'})


def test_replace_overwrites_event(calendar_service, mock_events_resource):
    mock_events_resource.update.return_value.execute.return_value = {'id': 'evt-1', 'summary': 'Lunch'}

    calendar_service.replace(
        'evt-1', 'Lunch', None,
        datetime(2025, 1, 2, 12, 0, tzinfo=CHICAGO), datetime(2025, 1, 2, 13, 0, tzinfo=CHICAGO),
        'America/Chicago',
    )

    mock_events_resource.update.assert_called_once_with(
        calendarId='primary',
        eventId='evt-1',
        body={
            'summary': 'Lunch',
            'description': '',
            'start': {'dateTime': '2025-01-02T12:00:00', 'timeZone': 'America/Chicago'},
            'end': {'dateTime': '2025-01-02T13:00:00', 'timeZone': 'America/Chicago'},
        },
    )


@pytest.mark.parametrize("status, expected", [
    (404, NotFoundError),
    (403, PermissionDeniedError),
    (500, ExternalServiceUnavailable),
])
def test_delete_http_errors_are_translated(calendar_service, mock_events_resource, status, expected):
    mock_events_resource.delete.return_value.execute.side_effect = make_http_error(status)

    with pytest.raises(expected) as exc_info:
        calendar_service.delete('evt-1')
    assert exc_info.value.details


def test_delete_event(calendar_service, mock_events_resource):
    mock_events_resource.delete.return_value.execute.return_value = ''

    calendar_service.delete('evt-1')

    mock_events_resource.delete.assert_called_once_with(calendarId='primary', eventId='evt-1')
