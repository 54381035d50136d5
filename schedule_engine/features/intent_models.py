"""Pydantic models for temporal resolution, matching and intent classification."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_DURATION = timedelta(minutes=60)


class DateKeyword(str, Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    NAMED_WEEKDAY = "named-weekday"
    NEXT_WEEKDAY = "next-weekday"
    NEXT_PERIOD = "next-period"
    EXPLICIT_MONTH_DAY = "explicit-month-day"
    NONE = "none"


class TimeOfDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(0, ge=0, le=59)


class TemporalReference(BaseModel):
    """The date/time facts found in a piece of text, before any arithmetic."""
    model_config = ConfigDict(frozen=True)

    has_explicit_date: bool = False
    has_explicit_time: bool = False
    date_keyword: DateKeyword = DateKeyword.NONE
    time_of_day: Optional[TimeOfDay] = None
    timezone_hint: Optional[str] = None


class ResolvedInterval(BaseModel):
    """An absolute start/end pair. End is always strictly after start."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    timezone: str

    @model_validator(mode="before")
    @classmethod
    def _force_positive_duration(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        start, end = data.get("start"), data.get("end")
        if not isinstance(start, datetime):
            return data
        try:
            broken = not isinstance(end, datetime) or end <= start
        except TypeError:
            # naive/aware mix, treat like a missing end
            broken = True
        if broken:
            data = {**data, "end": start + DEFAULT_DURATION}
        return data

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class TemporalResolution(ResolvedInterval):
    """Output of the temporal resolver: the interval plus title and event flag."""

    cleaned_title: str
    is_scheduled_event: bool = False
    reference: TemporalReference = Field(default_factory=TemporalReference)

    def to_interval(self) -> ResolvedInterval:
        return ResolvedInterval(start=self.start, end=self.end, timezone=self.timezone)


class CandidateEvent(BaseModel):
    """Read-only projection of a calendar event used for keyword matching."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    html_link: Optional[str] = None
    all_day: bool = False

    @field_validator("title", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class MatchResult(BaseModel):
    matched: Optional[CandidateEvent] = None
    ambiguous_candidates: List[CandidateEvent] = Field(default_factory=list)
    top_score: int = 0

    @model_validator(mode="after")
    def _exclusive(self) -> "MatchResult":
        if self.matched is not None and self.ambiguous_candidates:
            raise ValueError("A match result cannot be both matched and ambiguous")
        return self

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.ambiguous_candidates)


# --- Action intents ---

class _IntentBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    # What the model said alongside the action, when a model was involved
    response: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    conflicts: List[str] = Field(default_factory=list)
    has_conflicts: bool = False
    confidence: Optional[float] = None


class CreateIntent(_IntentBase):
    kind: Literal["CREATE"] = "CREATE"
    title: str
    interval: ResolvedInterval
    timezone: str
    is_scheduled_event: bool
    raw_text: str


class EditIntent(_IntentBase):
    kind: Literal["EDIT"] = "EDIT"
    search_terms: List[str] = Field(default_factory=list)
    title_change: Optional[str] = None
    interval_change: Optional[ResolvedInterval] = None
    raw_text: str = ""
    changes: Dict[str, Any] = Field(default_factory=dict)


class DeleteIntent(_IntentBase):
    kind: Literal["DELETE"] = "DELETE"
    search_terms: List[str] = Field(default_factory=list)
    raw_text: str = ""


class ListIntent(_IntentBase):
    kind: Literal["LIST"] = "LIST"
    search_terms: Optional[List[str]] = None


class ConversationalIntent(_IntentBase):
    kind: Literal["CONVERSATION"] = "CONVERSATION"
    reply_text: str


class UnresolvedIntent(_IntentBase):
    kind: Literal["ERROR"] = "ERROR"
    reason: str
    quota_error: bool = False
    parse_error: bool = False
    ai_error: bool = False


ActionIntent = Annotated[
    Union[CreateIntent, EditIntent, DeleteIntent, ListIntent, ConversationalIntent, UnresolvedIntent],
    Field(discriminator="kind"),
]


# --- Structured payload returned by the language model ---

class ModelActionData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    is_event: Optional[bool] = Field(default=None, alias="isEvent")
    description: Optional[str] = None
    search_keywords: List[str] = Field(default_factory=list, alias="searchKeywords")
    timezone: Optional[str] = None
    changes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("search_keywords", mode="before")
    @classmethod
    def _coerce_keywords(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        if not isinstance(v, (list, tuple)):
            raise ValueError(f"expected a list, got {type(v).__name__}")
        return [str(k) for k in v if k is not None]

    @field_validator("changes", mode="before")
    @classmethod
    def _coerce_changes(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @field_validator("start_date", "end_date", "title", "timezone", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ModelActionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    intent: str
    confidence: Optional[float] = None
    data: ModelActionData = Field(default_factory=ModelActionData)
    response: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    conflicts: List[str] = Field(default_factory=list)
    has_conflicts: bool = Field(default=False, alias="hasConflicts")

    @field_validator("intent", mode="before")
    @classmethod
    def _normalize_intent(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("data", mode="before")
    @classmethod
    def _none_data(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("suggestions", "conflicts", mode="before")
    @classmethod
    def _stringify_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        if not isinstance(v, (list, tuple)):
            raise ValueError(f"expected a list, got {type(v).__name__}")
        return [item if isinstance(item, str) else str(item) for item in v]
