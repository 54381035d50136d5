"""API Router for natural-language commands."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from schedule_engine.api.models import CreateTaskRequest, ProcessCommandRequest
from schedule_engine.core.config import Settings, get_settings
from schedule_engine.core.dependencies import (
    get_llm_service,
    get_optional_board_service,
    get_optional_calendar_service,
)
from schedule_engine.core.errors import InvalidRequestError, ScheduleEngineError
from schedule_engine.features.action_executor import execute_intent
from schedule_engine.features.google_services import GoogleCalendarService
from schedule_engine.features.intent_models import CandidateEvent
from schedule_engine.features.intent_service import classify, create_intent_from_text
from schedule_engine.features.service_models import CommandResult
from schedule_engine.features.trello_services import TrelloBoardService
from schedule_engine.interfaces.llm_interface import LLMInterface

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/create-task", response_model=CommandResult)
async def create_task_endpoint(
    request: CreateTaskRequest,
    settings: Settings = Depends(get_settings),
    calendar: Optional[GoogleCalendarService] = Depends(get_optional_calendar_service),
    board: Optional[TrelloBoardService] = Depends(get_optional_board_service),
):
    """Creates a calendar event and/or board card from text, without calling a model."""
    if not request.task or not request.task.strip():
        raise InvalidRequestError("Task description is required")
    logger.info(f"Received create-task request: '{request.task[:60]}'")

    try:
        intent = create_intent_from_text(
            request.task.strip(),
            request.timezone,
            default_timezone=settings.default_timezone,
        )
        return await run_in_threadpool(
            execute_intent,
            intent,
            calendar=calendar,
            board=board,
            board_name=request.board,
            calendar_email=request.calendar_email,
            user_timezone=intent.timezone,
        )
    except ScheduleEngineError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error creating task: {e}", exc_info=True)
        raise ScheduleEngineError("Failed to create task", details=str(e))


@router.post("/process-command", response_model=CommandResult)
async def process_command_endpoint(
    request: ProcessCommandRequest,
    settings: Settings = Depends(get_settings),
    llm_service: Optional[LLMInterface] = Depends(get_llm_service),
    calendar: Optional[GoogleCalendarService] = Depends(get_optional_calendar_service),
    board: Optional[TrelloBoardService] = Depends(get_optional_board_service),
):
    """Classifies a command (create, edit, delete, list or chat) and carries it out."""
    text = request.text
    if not text:
        raise InvalidRequestError("User input is required")
    logger.info(f"Received command: '{text[:60]}'")
    user_timezone = request.timezone or settings.default_timezone

    try:
        events: List[CandidateEvent] = []
        if calendar is not None:
            events = await run_in_threadpool(calendar.list_upcoming, settings.upcoming_events_limit)

        intent = await run_in_threadpool(
            classify,
            text,
            events,
            user_timezone,
            llm_service=llm_service,
            default_timezone=settings.default_timezone,
            context_event_limit=settings.context_event_limit,
        )
        return await run_in_threadpool(
            execute_intent,
            intent,
            calendar=calendar,
            board=board,
            board_name=request.board,
            calendar_email=request.calendar_email,
            events=events,
            user_timezone=user_timezone,
        )
    except ScheduleEngineError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error processing command '{text[:60]}': {e}", exc_info=True)
        raise ScheduleEngineError("Failed to process command", details=str(e))
