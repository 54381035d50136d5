"""Pydantic models for what the calendar and board adapters return, and for
the result of executing a command."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Reads and writes camelCase keys, as the JSON clients expect."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CalendarEventView(CamelModel):
    id: str
    title: str = ""
    description: str = ""
    start: Optional[str] = None
    end: Optional[str] = None
    html_link: Optional[str] = None


class CreatedCalendarEvent(CamelModel):
    id: str
    html_link: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    start: Optional[Dict[str, Any]] = None
    end: Optional[Dict[str, Any]] = None


class BoardCard(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    desc: str = ""
    url: Optional[str] = None
    date_last_activity: Optional[datetime] = None
    due: Optional[datetime] = None
    labels: List[Dict[str, Any]] = Field(default_factory=list)
    board: Optional[str] = None
    list_name: Optional[str] = None


class BoardSummary(CamelModel):
    """A board and its open lists, used to fill in the board-to-list mapping."""
    id: str
    name: str
    lists: List[Dict[str, str]] = Field(default_factory=list)


class CommandResult(CamelModel):
    """Everything the caller needs to show the outcome of one command."""

    success: bool = True
    response: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    intent: Optional[str] = None
    calendar_event: Optional[CreatedCalendarEvent] = None
    board_card: Optional[BoardCard] = Field(default=None, alias="trelloCard")
    updated_event: Optional[CreatedCalendarEvent] = None
    deleted_event_id: Optional[str] = None
    events: Optional[List[CalendarEventView]] = None
    ambiguous_candidates: List[CalendarEventView] = Field(default_factory=list)
    matching_cards: List[BoardCard] = Field(default_factory=list)
    partial_success: bool = False
    errors: List[str] = Field(default_factory=list)
    quota_error: bool = False
    parse_error: bool = False
    ai_error: bool = False
    conflicts: List[str] = Field(default_factory=list)
    has_conflicts: bool = False
