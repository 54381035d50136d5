"""Client for the Trello REST API, used as the task board."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from schedule_engine.core.config import Settings
from schedule_engine.core.errors import (
    ConfigurationError,
    ExternalServiceQuotaExceeded,
    ExternalServiceUnavailable,
    NotFoundError,
    PermissionDeniedError,
)
from schedule_engine.features.service_models import BoardCard, BoardSummary

logger = logging.getLogger(__name__)


class TrelloBoardService:
    """Adds, lists and deletes cards on the lists configured per board name."""

    BASE_URL = "https://api.trello.com/1"
    REQUEST_TIMEOUT = 30.0
    DEFAULT_CARD_LIMIT = 20

    def __init__(
        self,
        api_key: Optional[str],
        token: Optional[str],
        board_lists: Optional[Dict[str, str]] = None,
        default_board: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not api_key or not token:
            logger.error("Trello API key or token not configured.")
            raise ConfigurationError(
                "Trello API credentials not configured",
                details="Set TRELLO_API_KEY and TRELLO_TOKEN.",
            )
        self.auth_params = {"key": api_key, "token": token}
        self.board_lists = {name.lower(): list_id for name, list_id in (board_lists or {}).items() if list_id}
        self.default_board = default_board
        self.http_client = httpx.Client(base_url=self.BASE_URL, timeout=self.REQUEST_TIMEOUT, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> "TrelloBoardService":
        return cls(
            api_key=settings.TRELLO_API_KEY,
            token=settings.TRELLO_TOKEN,
            board_lists=settings.TRELLO_BOARD_LISTS,
            default_board=settings.DEFAULT_TRELLO_BOARD,
            transport=transport,
        )

    def close(self) -> None:
        self.http_client.close()

    def resolve_list_id(self, board: Optional[str] = None) -> str:
        """Returns the list id configured for a board name.

        A missing name means the default board.

        Raises:
            ConfigurationError: The board (or the default, when none is given) has no list id.
        """
        board_name = board or self.default_board
        if not board_name:
            raise ConfigurationError("No board given and DEFAULT_TRELLO_BOARD is not set")
        list_id = self.board_lists.get(board_name.lower())
        if not list_id:
            raise ConfigurationError(
                f"Board '{board_name}' not configured",
                details="Add it to TRELLO_BOARD_LISTS.",
            )
        return list_id

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        query = {**self.auth_params, **(params or {})}
        try:
            response = self.http_client.request(method, path, params=query)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body = e.response.text[:200]
            logger.error(f"Trello API returned {status} for {method} {path}: {body}")
            if status == 404:
                raise NotFoundError("Trello resource not found", details=body) from e
            if status in (401, 403):
                raise PermissionDeniedError("Trello rejected the credentials", details=body) from e
            if status == 429:
                raise ExternalServiceQuotaExceeded("Trello rate limit exceeded", details=body) from e
            raise ExternalServiceUnavailable("Trello request failed", details=body) from e
        except httpx.HTTPError as e:
            logger.error(f"Error calling Trello API ({method} {path}): {e}")
            raise ExternalServiceUnavailable("Trello is not reachable", details=str(e)) from e
        if not response.content:
            return None
        return response.json()

    def add_card(self, title: str, description: str, list_id: str) -> BoardCard:
        card = self._request("POST", "/cards", {"idList": list_id, "name": title, "desc": description})
        logger.info(f"Created Trello card {card.get('id')} on list {list_id}")
        return BoardCard.model_validate(card)

    def delete_card(self, card_id: str) -> None:
        self._request("DELETE", f"/cards/{card_id}")
        logger.info(f"Deleted Trello card {card_id}")

    def list_cards(self, list_id: str, limit: int = DEFAULT_CARD_LIMIT, board: Optional[str] = None) -> List[BoardCard]:
        """Cards on a list, newest activity first as Trello returns them, cut to limit."""
        raw_cards = self._request("GET", f"/lists/{list_id}/cards", {"list": "true"}) or []
        cards = []
        for raw in raw_cards[:limit]:
            card = BoardCard.model_validate(raw)
            list_name = (raw.get("list") or {}).get("name")
            cards.append(card.model_copy(update={"board": board, "list_name": list_name or "Unknown List"}))
        logger.info(f"Found {len(cards)} cards on list {list_id}")
        return cards

    def list_boards(self) -> List[BoardSummary]:
        """Open boards of the token's owner together with their open lists."""
        raw_boards = self._request(
            "GET",
            "/members/me/boards",
            {"filter": "open", "fields": "name", "lists": "open", "list_fields": "name"},
        ) or []
        return [
            BoardSummary(
                id=board["id"],
                name=board.get("name", ""),
                lists=[{"id": lst["id"], "name": lst.get("name", "")} for lst in board.get("lists", [])],
            )
            for board in raw_boards
        ]
