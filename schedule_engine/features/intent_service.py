"""Service layer for turning a user command into an ActionIntent.

LIST-style questions are answered deterministically. Everything else goes to
the language model, whose JSON payload is validated and mapped to an intent.
When the model is missing, fails, or returns garbage, the service degrades to
the temporal resolver instead of guessing an edit or delete.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from schedule_engine.core.errors import ExternalServiceQuotaExceeded, ParseFailure, is_quota_error
from schedule_engine.features import temporal_resolver, vocabulary
from schedule_engine.features.calendar_format import parse_calendar_datetime
from schedule_engine.features.intent_models import (
    ActionIntent,
    CandidateEvent,
    ConversationalIntent,
    CreateIntent,
    DeleteIntent,
    EditIntent,
    ListIntent,
    ModelActionPayload,
    ResolvedInterval,
    UnresolvedIntent,
)
from schedule_engine.interfaces.llm_interface import LLMInterface

logger = logging.getLogger(__name__)

EDIT_FALLBACK_REASON = "edit requires working classification"
QUOTA_REASON = "AI quota limit reached"

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_QUERY_TOKEN = re.compile(r"[a-z0-9']+")

CONVERSATION_INTENTS = ("CONVERSATION", "CHAT")

SYSTEM_PROMPT_TEMPLATE = """You are a smart task management assistant that helps users with calendar events and task-board cards. Analyze the user's message and determine their intent.

<current_datetime>
{now} ({timezone})
</current_datetime>

<capabilities>
CREATE: Make new events/tasks
EDIT: Modify existing events
DELETE: Remove events
LIST: Show/filter events
CONVERSATION: Answer without taking any action
</capabilities>

<current_events>
{events}
</current_events>

<instructions>
1. INTENT DETECTION:
   - CREATE: "schedule", "add", "create", "new", "book", "plan"
   - EDIT: "edit", "change", "move", "reschedule", "update", "modify", "shift"
   - DELETE: "delete", "remove", "cancel", "drop"
   - LIST: "show", "list", "what's", "schedule for", "events"
2. For EDIT/DELETE: extract keywords from existing event titles into searchKeywords.
3. For CREATE: compute dates relative to the current date and time above, in {timezone}. Set isEvent to true only for timed events.
4. Check for scheduling conflicts with the current events.
5. Offer short, helpful suggestions.
</instructions>

<response_format>
Respond with ONLY valid JSON in this exact format:

{{
  "intent": "CREATE|EDIT|DELETE|LIST|CONVERSATION",
  "confidence": 0.9,
  "data": {{
    "title": "Event title",
    "startDate": "2025-09-26T17:00:00",
    "endDate": "2025-09-26T18:00:00",
    "isEvent": true,
    "description": "Original user input",
    "searchKeywords": ["pickleball", "dentist"],
    "timezone": "{timezone}",
    "changes": {{}}
  }},
  "response": "I'll help you with that!",
  "suggestions": ["Consider adding travel time"],
  "conflicts": [],
  "hasConflicts": false
}}
</response_format>

IMPORTANT: Return ONLY the JSON response, no other text."""


# --- Deterministic LIST path ---

def is_list_query(text: str) -> bool:
    """True when the text reads as a question about the calendar."""
    text = (text or "").strip()
    if not text:
        return False
    if vocabulary.LIST_QUERY_PATTERN.match(text):
        return True
    return text.endswith("?") and vocabulary.LIST_QUESTION_PATTERN.search(text) is not None


def list_search_terms(text: str) -> Optional[List[str]]:
    """Content words of a LIST query, or None when it asks for everything."""
    terms = []
    for token in _QUERY_TOKEN.findall((text or "").lower()):
        token = token.strip("'")
        if len(token) < 3 or token in vocabulary.QUERY_STOP_WORDS or token in terms:
            continue
        terms.append(token)
    return terms or None


# --- Prompt and payload handling ---

def _event_context(event: CandidateEvent) -> Dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "start": event.start.isoformat() if event.start else None,
        "end": event.end.isoformat() if event.end else None,
    }


def build_system_prompt(
    existing_events: Sequence[CandidateEvent],
    tz_name: str,
    reference_instant: datetime,
    context_event_limit: int = 10,
) -> str:
    """Builds the classification prompt with the current time and the first events."""
    zone = temporal_resolver.get_zone(tz_name)
    now_local = reference_instant.astimezone(zone) if reference_instant.tzinfo else reference_instant.replace(tzinfo=zone)
    events_json = json.dumps([_event_context(e) for e in list(existing_events)[:context_event_limit]], indent=2)
    return SYSTEM_PROMPT_TEMPLATE.format(
        now=now_local.strftime("%A, %B %d, %Y %H:%M"),
        timezone=tz_name,
        events=events_json,
    )


def parse_model_payload(raw_response: str) -> ModelActionPayload:
    """Parses the model reply into a ModelActionPayload.

    Accepts plain JSON, a fenced ```json block, or the first {...} object in
    surrounding prose.

    Raises:
        ParseFailure: No JSON object could be read, or it failed validation.
    """
    if not raw_response or not raw_response.strip():
        raise ParseFailure("Empty model response")

    text = raw_response.strip()
    fenced = _FENCED_JSON.search(text)
    if fenced:
        text = fenced.group(1)

    data: Any = None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        if start != -1:
            try:
                data, _ = json.JSONDecoder().raw_decode(text[start:])
            except json.JSONDecodeError:
                data = None

    if not isinstance(data, dict):
        raise ParseFailure("Model response is not a JSON object", details=raw_response[:200])
    try:
        return ModelActionPayload.model_validate(data)
    except (ValidationError, TypeError) as e:
        raise ParseFailure("Model response failed validation", details=str(e)) from e


def _model_interval(payload: ModelActionPayload, tz_name: str) -> Optional[ResolvedInterval]:
    start = parse_calendar_datetime(payload.data.start_date, tz_name) if payload.data.start_date else None
    if start is None:
        return None
    end = parse_calendar_datetime(payload.data.end_date, tz_name) if payload.data.end_date else None
    return ResolvedInterval(start=start, end=end, timezone=tz_name)


def _model_timezone(payload: ModelActionPayload, text_hint: Optional[str], user_timezone: str) -> str:
    if text_hint:
        return text_hint
    if payload.data.timezone and temporal_resolver.is_valid_timezone(payload.data.timezone):
        return payload.data.timezone
    return user_timezone


def _shared_fields(payload: ModelActionPayload) -> Dict[str, Any]:
    return {
        "response": payload.response,
        "suggestions": payload.suggestions,
        "conflicts": payload.conflicts,
        "has_conflicts": payload.has_conflicts,
        "confidence": payload.confidence,
    }


def _build_intent(
    payload: ModelActionPayload,
    text: str,
    user_timezone: str,
    reference_instant: datetime,
    default_timezone: Optional[str] = None,
) -> ActionIntent:
    shared = _shared_fields(payload)
    intent = payload.intent
    resolution = temporal_resolver.resolve(text, reference_instant, user_timezone, default_timezone)
    tz_name = _model_timezone(payload, resolution.reference.timezone_hint, resolution.timezone)

    if intent == "CREATE":
        interval = _model_interval(payload, tz_name) or resolution.to_interval()
        is_scheduled_event = resolution.is_scheduled_event or bool(payload.data.is_event)
        return CreateIntent(
            title=payload.data.title or resolution.cleaned_title,
            interval=interval,
            timezone=interval.timezone,
            is_scheduled_event=is_scheduled_event,
            raw_text=text,
            **shared,
        )

    if intent == "EDIT":
        interval_change = _model_interval(payload, tz_name)
        if interval_change is None and resolution.reference.has_explicit_time:
            interval_change = resolution.to_interval()
        title_change = payload.data.changes.get("title") or payload.data.title
        return EditIntent(
            search_terms=payload.data.search_keywords,
            title_change=title_change,
            interval_change=interval_change,
            raw_text=text,
            changes={k: v for k, v in payload.data.changes.items() if k not in ("title", "startDate", "endDate")},
            **shared,
        )

    if intent == "DELETE":
        return DeleteIntent(search_terms=payload.data.search_keywords, raw_text=text, **shared)

    if intent == "LIST":
        return ListIntent(search_terms=payload.data.search_keywords or None, **shared)

    if intent in CONVERSATION_INTENTS:
        return ConversationalIntent(reply_text=payload.response or "", **shared)

    if intent == "ERROR":
        return UnresolvedIntent(reason=payload.response or "The assistant could not handle this request", **shared)

    raise ParseFailure(f"Unknown intent '{intent}' in model response")


def payload_to_intent(
    payload: ModelActionPayload,
    text: str,
    user_timezone: str,
    reference_instant: datetime,
    default_timezone: Optional[str] = None,
) -> ActionIntent:
    """Maps a validated model payload onto an ActionIntent variant.

    Raises:
        ParseFailure: The payload names an unknown intent, or its fields do not
            fit the intent it names.
    """
    try:
        return _build_intent(payload, text, user_timezone, reference_instant, default_timezone)
    except (ValidationError, TypeError, ValueError) as e:
        raise ParseFailure(f"Model response does not fit intent '{payload.intent}'", details=str(e)) from e


# --- Fallbacks ---

def create_intent_from_text(
    text: str,
    user_timezone: Optional[str],
    reference_instant: Optional[datetime] = None,
    default_timezone: Optional[str] = None,
    confidence: Optional[float] = None,
) -> CreateIntent:
    """Builds a Create intent from the temporal resolver alone, without a model."""
    resolution = temporal_resolver.resolve(text, reference_instant, user_timezone, default_timezone)
    return CreateIntent(
        title=resolution.cleaned_title,
        interval=resolution.to_interval(),
        timezone=resolution.timezone,
        is_scheduled_event=resolution.is_scheduled_event,
        raw_text=text,
        confidence=confidence,
    )


def quota_exceeded_intent() -> UnresolvedIntent:
    return UnresolvedIntent(
        reason=QUOTA_REASON,
        quota_error=True,
        confidence=0.0,
        response="AI quota limit reached. Please wait a bit or check your AI provider's billing. "
                 "Simple task creation still works without AI.",
        suggestions=[
            "Wait a few minutes and try again",
            "Check your AI provider billing or upgrade your plan",
            "Create the task without AI enhancement",
        ],
    )


def fallback_intent(
    text: str,
    user_timezone: str,
    reference_instant: datetime,
    default_timezone: Optional[str] = None,
    *,
    parse_error: bool = False,
    ai_error: bool = False,
) -> ActionIntent:
    """Deterministic classification used when the model cannot be relied on.

    Text with edit vocabulary is never turned into a new event.
    """
    if vocabulary.EDIT_PATTERN.search(text or ""):
        logger.info("Edit vocabulary found but classification failed. Refusing to guess.")
        return UnresolvedIntent(
            reason=EDIT_FALLBACK_REASON,
            parse_error=parse_error,
            ai_error=ai_error,
            confidence=0.0,
            response="I detected you want to edit an event, but AI processing failed. "
                     "Editing needs working AI classification.",
            suggestions=["Try again in a few seconds", "Create a new event instead"],
        )

    return create_intent_from_text(text, user_timezone, reference_instant, default_timezone, confidence=0.5)


def classify(
    text: str,
    existing_events: Sequence[CandidateEvent],
    user_timezone: Optional[str],
    *,
    llm_service: Optional[LLMInterface] = None,
    reference_instant: Optional[datetime] = None,
    default_timezone: str = "UTC",
    context_event_limit: int = 10,
) -> ActionIntent:
    """Determines what the user wants done.

    Args:
        text: The raw command.
        existing_events: Snapshot of upcoming events, used as model context.
        user_timezone: The caller's zone for this request, if any.
        llm_service: Model used for non-LIST commands. None forces the fallback path.
        reference_instant: "Now"; defaults to the current UTC time.
        default_timezone: Zone used when neither the text nor the caller names one.
        context_event_limit: How many events are shown to the model.

    Returns:
        An ActionIntent. This function does not raise for model failures.
    """
    text = (text or "").strip()
    if reference_instant is None:
        reference_instant = datetime.now(timezone.utc)
    tz_name = temporal_resolver.pick_timezone(None, user_timezone, default_timezone)

    if is_list_query(text):
        terms = list_search_terms(text)
        logger.info(f"Classified as LIST without model call (terms={terms})")
        return ListIntent(search_terms=terms)

    if llm_service is None:
        logger.warning("No language model configured, using deterministic classification.")
        return fallback_intent(text, tz_name, reference_instant, default_timezone, ai_error=True)

    system_prompt = build_system_prompt(existing_events, tz_name, reference_instant, context_event_limit)
    logger.debug(f"Sending classification prompt to LLM ({len(system_prompt)} chars)")

    try:
        raw_response = llm_service.complete(system_prompt, text)
        logger.debug(f"Raw LLM response:\n{raw_response}")
    except ExternalServiceQuotaExceeded as e:
        logger.warning(f"LLM quota exceeded: {e}")
        return quota_exceeded_intent()
    except Exception as e:
        if is_quota_error(e):
            logger.warning(f"LLM call failed with a quota/billing error: {e}")
            return quota_exceeded_intent()
        logger.error(f"Error calling LLM service: {e}", exc_info=True)
        return fallback_intent(text, tz_name, reference_instant, default_timezone, ai_error=True)

    try:
        payload = parse_model_payload(raw_response)
        intent = payload_to_intent(payload, text, tz_name, reference_instant, default_timezone)
    except ParseFailure as e:
        logger.warning(f"Could not use model response ({e.message}). Falling back to deterministic classification.")
        return fallback_intent(text, tz_name, reference_instant, default_timezone, parse_error=True)

    logger.info(f"Classified command as {intent.kind} (confidence={payload.confidence})")
    return intent
