"""Pydantic models for API request and response bodies.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schedule_engine.features.service_models import BoardCard, CalendarEventView, CamelModel, CreatedCalendarEvent


class CreateTaskRequest(CamelModel):
    """Request model for creating a task without AI classification.
    """
    task: Optional[str] = Field(None, description="Natural-language task, e.g. 'Dentist tomorrow at 2pm'.")
    calendar_email: Optional[str] = Field(None, description="Attendee added to calendar events.")
    board: Optional[str] = Field(None, description="Board name; defaults to DEFAULT_TRELLO_BOARD.")
    timezone: Optional[str] = Field(None, description="IANA zone of the caller.")


class ProcessCommandRequest(CamelModel):
    """Request model for a free-form command (create, edit, delete or list).
    """
    user_input: Optional[str] = Field(None, description="The command text.")
    command: Optional[str] = Field(None, description="Alternative name for user_input.")
    calendar_email: Optional[str] = None
    board: Optional[str] = None
    timezone: Optional[str] = None

    @property
    def text(self) -> str:
        return (self.user_input or self.command or "").strip()


class UpdateEventRequest(CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    timezone: Optional[str] = None


class EventsResponse(CamelModel):
    events: List[CalendarEventView]


class UpdateEventResponse(CamelModel):
    success: bool = True
    event: CreatedCalendarEvent


class DeleteEventResponse(CamelModel):
    success: bool = True
    message: str = "Event deleted successfully"
    event_id: str


class TrelloCardsResponse(CamelModel):
    success: bool = True
    cards: List[BoardCard]
    board: Optional[str] = None
    count: int = 0


class DeleteCardResponse(CamelModel):
    success: bool = True
    message: str = "Trello card deleted successfully"
    card_id: str
