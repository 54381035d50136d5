"""Dependencies module for the Schedule Command Engine.

This module defines FastAPI dependencies used throughout the application.
"""

import logging
from typing import Optional

from fastapi import Depends

from schedule_engine.core.config import Settings, get_settings
from schedule_engine.core.errors import ConfigurationError
from schedule_engine.features.google_services import GoogleCalendarService
from schedule_engine.features.trello_services import TrelloBoardService
from schedule_engine.interfaces.llm_interface import LLMInterface
from schedule_engine.llms.ollama_client import OllamaClient
from schedule_engine.llms.openai_client import OpenAIClient

logger = logging.getLogger(__name__)

# --- Singleton instances for adapters (cached per application lifecycle) ---
_llm_service: LLMInterface | None = None
_calendar_service: GoogleCalendarService | None = None
_board_service: TrelloBoardService | None = None
# ---------------------------------------------------------------------------


def build_llm_service(settings: Settings) -> Optional[LLMInterface]:
    """Builds the LLM client named by llm_provider, or None when it cannot be used."""
    provider = settings.llm_provider.lower()
    if provider == "ollama":
        return OllamaClient(settings=settings)
    if provider == "openai":
        if not settings.OPENAI_API_KEY:
            logger.warning("llm_provider is 'openai' but OPENAI_API_KEY is missing. Commands use deterministic classification.")
            return None
        return OpenAIClient(settings=settings)
    logger.warning(f"Unknown llm_provider '{settings.llm_provider}'. Commands use deterministic classification.")
    return None


def get_llm_service(settings: Settings = Depends(get_settings)) -> Optional[LLMInterface]:
    """Provides the singleton LLMInterface instance, or None when no model is configured."""
    global _llm_service
    if _llm_service is None:
        logger.info(f"Creating LLM singleton instance for provider: {settings.llm_provider}")
        _llm_service = build_llm_service(settings)
    return _llm_service


def get_calendar_service(settings: Settings = Depends(get_settings)) -> GoogleCalendarService:
    """Provides the singleton GoogleCalendarService.

    Raises:
        ConfigurationError: Google credentials are missing.
    """
    global _calendar_service
    if _calendar_service is None:
        logger.info(f"Creating GoogleCalendarService singleton for calendar '{settings.GOOGLE_CALENDAR_ID}'")
        _calendar_service = GoogleCalendarService.from_settings(settings)
    return _calendar_service


def get_optional_calendar_service(settings: Settings = Depends(get_settings)) -> Optional[GoogleCalendarService]:
    """Like get_calendar_service, but returns None when Google is not configured."""
    if not settings.google_configured:
        logger.warning("Google Calendar credentials not configured; calendar events will be skipped.")
        return None
    return get_calendar_service(settings)


def get_optional_board_service(settings: Settings = Depends(get_settings)) -> Optional[TrelloBoardService]:
    """Provides the singleton TrelloBoardService, or None when Trello is not configured."""
    global _board_service
    if _board_service is None:
        if not settings.trello_configured:
            logger.warning("Trello credentials not configured; board cards will be skipped.")
            return None
        logger.info("Creating TrelloBoardService singleton instance.")
        _board_service = TrelloBoardService.from_settings(settings)
    return _board_service


def get_board_service(board: Optional[TrelloBoardService] = Depends(get_optional_board_service)) -> TrelloBoardService:
    """Like get_optional_board_service, but Trello is required.

    Raises:
        ConfigurationError: Trello credentials are missing.
    """
    if board is None:
        raise ConfigurationError("Trello API credentials not configured", details="Set TRELLO_API_KEY and TRELLO_TOKEN.")
    return board


def reset_singletons():
    """Drops cached adapters so the next request rebuilds them from fresh settings."""
    global _llm_service, _calendar_service, _board_service
    if _board_service is not None:
        _board_service.close()
    _llm_service = None
    _calendar_service = None
    _board_service = None
    logger.info("Adapter singletons reset.")
