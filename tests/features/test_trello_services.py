"""Unit tests for the Trello board adapter, using httpx.MockTransport."""

import json
import pytest

import httpx

from schedule_engine.core.config import Settings
from schedule_engine.core.errors import (
    ConfigurationError,
    ExternalServiceQuotaExceeded,
    ExternalServiceUnavailable,
    NotFoundError,
    PermissionDeniedError,
)
from schedule_engine.features.trello_services import TrelloBoardService

BOARD_LISTS = {"Personal": "list-personal", "Work": "list-work", "Empty": ""}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler):
        self.requests = []

        def recording_handler(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


def make_service(handler, default_board="personal"):
    transport = RecordingTransport(handler)
    service = TrelloBoardService("key-123", "token-456", BOARD_LISTS, default_board, transport=transport)
    return service, transport


def test_missing_credentials_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        TrelloBoardService(None, "token", BOARD_LISTS)


def test_from_settings():
    settings = Settings(
        _env_file=None,
        TRELLO_API_KEY="k",
        TRELLO_TOKEN="t",
        TRELLO_BOARD_LISTS={"Personal": "list-personal"},
        DEFAULT_TRELLO_BOARD="Personal",
    )

    service = TrelloBoardService.from_settings(settings, transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    assert service.resolve_list_id() == "list-personal"
    service.close()


def test_resolve_list_id_is_case_insensitive():
    service, _ = make_service(lambda r: httpx.Response(200))

    assert service.resolve_list_id("WORK") == "list-work"
    assert service.resolve_list_id(None) == "list-personal"


@pytest.mark.parametrize("board, default_board", [("Unknown", "personal"), ("empty", "personal"), (None, None)])
def test_resolve_list_id_unconfigured(board, default_board):
    service, _ = make_service(lambda r: httpx.Response(200), default_board=default_board)

    with pytest.raises(ConfigurationError):
        service.resolve_list_id(board)


def test_add_card():
    def handler(request):
        return httpx.Response(200, json={
            "id": "card-1",
            "name": "Dentist appointment",
            "desc": "Scheduled for: Thu, Jan 02 at 02:00 PM",
            "url": "https://trello.com/c/abc",
            "idBoard": "ignored",
        })

    service, transport = make_service(handler)

    card = service.add_card("Dentist appointment", "Scheduled for: Thu, Jan 02 at 02:00 PM", "list-personal")

    assert card.id == "card-1"
    assert card.url == "https://trello.com/c/abc"
    request = transport.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/1/cards"
    assert request.url.params["idList"] == "list-personal"
    assert request.url.params["name"] == "Dentist appointment"
    assert request.url.params["key"] == "key-123"
    assert request.url.params["token"] == "token-456"


def test_list_cards_sets_board_and_list_name():
    raw_cards = [
        {"id": "c1", "name": "Buy milk", "dateLastActivity": "2025-01-01T10:00:00.000Z", "list": {"name": "To Do"}},
        {"id": "c2", "name": "Pay rent"},
        {"id": "c3", "name": "Over the limit"},
    ]
    service, transport = make_service(lambda r: httpx.Response(200, content=json.dumps(raw_cards)))

    cards = service.list_cards("list-personal", limit=2, board="personal")

    assert [c.id for c in cards] == ["c1", "c2"]
    assert cards[0].list_name == "To Do"
    assert cards[1].list_name == "Unknown List"
    assert all(c.board == "personal" for c in cards)
    assert cards[0].date_last_activity.year == 2025
    assert transport.requests[0].url.path == "/1/lists/list-personal/cards"


def test_delete_card_with_empty_body():
    service, transport = make_service(lambda r: httpx.Response(200))

    service.delete_card("card-9")

    assert transport.requests[0].method == "DELETE"
    assert transport.requests[0].url.path == "/1/cards/card-9"


def test_list_boards():
    boards = [{"id": "b1", "name": "Personal", "lists": [{"id": "l1", "name": "To Do"}, {"id": "l2", "name": "Done"}]}]
    service, transport = make_service(lambda r: httpx.Response(200, json=boards))

    summaries = service.list_boards()

    assert summaries[0].name == "Personal"
    assert summaries[0].lists == [{"id": "l1", "name": "To Do"}, {"id": "l2", "name": "Done"}]
    assert transport.requests[0].url.params["filter"] == "open"


@pytest.mark.parametrize("status, expected", [
    (404, NotFoundError),
    (401, PermissionDeniedError),
    (403, PermissionDeniedError),
    (429, ExternalServiceQuotaExceeded),
    (500, ExternalServiceUnavailable),
])
def test_http_errors_are_translated(status, expected):
    service, _ = make_service(lambda r: httpx.Response(status, text="nope"))

    with pytest.raises(expected) as exc_info:
        service.delete_card("card-1")
    assert exc_info.value.details == "nope"


def test_connection_error_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service, _ = make_service(handler)

    with pytest.raises(ExternalServiceUnavailable):
        service.list_cards("list-personal")
