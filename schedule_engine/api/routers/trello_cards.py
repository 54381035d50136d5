"""API Router for the cards on the configured Trello lists."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from schedule_engine.api.models import DeleteCardResponse, TrelloCardsResponse
from schedule_engine.core.config import Settings, get_settings
from schedule_engine.core.dependencies import get_board_service
from schedule_engine.core.errors import InvalidRequestError
from schedule_engine.features.trello_services import TrelloBoardService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/trello-cards", response_model=TrelloCardsResponse)
async def list_cards_endpoint(
    board: Optional[str] = Query(None),
    limit: int = Query(20, gt=0),
    settings: Settings = Depends(get_settings),
    board_service: TrelloBoardService = Depends(get_board_service),
):
    board_name = board or settings.DEFAULT_TRELLO_BOARD
    list_id = board_service.resolve_list_id(board_name)
    logger.info(f"Fetching Trello cards from list {list_id} for board {board_name}")
    cards = await run_in_threadpool(board_service.list_cards, list_id, limit, board_name)
    return TrelloCardsResponse(cards=cards, board=board_name, count=len(cards))


@router.delete("/trello-cards", response_model=DeleteCardResponse)
async def delete_card_endpoint(
    card_id: Optional[str] = Query(None, alias="cardId"),
    board_service: TrelloBoardService = Depends(get_board_service),
):
    if not card_id:
        raise InvalidRequestError("Card ID is required for deletion")
    logger.info(f"Deleting Trello card: {card_id}")
    await run_in_threadpool(board_service.delete_card, card_id)
    return DeleteCardResponse(card_id=card_id)
