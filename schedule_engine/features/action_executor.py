"""Carries out an ActionIntent against the calendar and board adapters.

Calendar and board writes for a new task are two independent attempts. When
only one of them lands, the result says so instead of pretending the command
was atomic.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from schedule_engine.core.errors import AmbiguousTarget, ConfigurationError, ScheduleEngineError
from schedule_engine.features import disambiguator
from schedule_engine.features.calendar_format import calendar_time_block
from schedule_engine.features.google_services import GoogleCalendarService
from schedule_engine.features.intent_models import (
    ActionIntent,
    CandidateEvent,
    ConversationalIntent,
    CreateIntent,
    DeleteIntent,
    EditIntent,
    ListIntent,
    MatchResult,
    UnresolvedIntent,
)
from schedule_engine.features.service_models import BoardCard, CalendarEventView, CommandResult
from schedule_engine.features.temporal_resolver import get_zone
from schedule_engine.features.trello_services import TrelloBoardService

logger = logging.getLogger(__name__)

NOT_FOUND_SUGGESTIONS = ["Try using more specific keywords", "Check your calendar for the exact event name"]


def describe_time(instant: Optional[datetime], tz_name: str, all_day: bool = False) -> str:
    """Human-readable time in the user's zone, e.g. 'Thu, Jan 02 at 02:00 PM'."""
    if instant is None:
        return "unscheduled"
    if all_day:
        return instant.strftime("%a, %b %d (all day)")
    local = instant.astimezone(get_zone(tz_name)) if instant.tzinfo else instant
    return local.strftime("%a, %b %d at %I:%M %p")


def to_event_view(event: CandidateEvent) -> CalendarEventView:
    return CalendarEventView(
        id=event.id,
        title=event.title,
        description=event.description,
        start=event.start.isoformat() if event.start else None,
        end=event.end.isoformat() if event.end else None,
        html_link=event.html_link,
    )


def _base_result(intent: ActionIntent, **fields) -> CommandResult:
    values = {
        "intent": intent.kind,
        "response": intent.response,
        "suggestions": list(intent.suggestions),
        "conflicts": list(intent.conflicts),
        "has_conflicts": intent.has_conflicts,
    }
    values.update(fields)
    return CommandResult(**values)


def _require_calendar(calendar: Optional[GoogleCalendarService]) -> GoogleCalendarService:
    if calendar is None:
        raise ConfigurationError("Google Calendar is not configured")
    return calendar


def require_single_match(result: MatchResult, action: str) -> Optional[CandidateEvent]:
    """Returns the matched event, None when nothing matched.

    Raises:
        AmbiguousTarget: Several events tie for the best score.
    """
    if result.is_ambiguous:
        titles = ", ".join(f'"{c.title}"' for c in result.ambiguous_candidates)
        raise AmbiguousTarget(f"Which event do you want to {action}? I found: {titles}", result.ambiguous_candidates)
    return result.matched


def _clarification_result(intent: ActionIntent, error: AmbiguousTarget, tz_name: str) -> CommandResult:
    lines = [error.message]
    for candidate in error.candidates:
        lines.append(f"- {candidate.title} ({describe_time(candidate.start, tz_name, candidate.all_day)})")
    return _base_result(
        intent,
        success=False,
        response="\n".join(lines),
        suggestions=["Repeat the command with a more specific event name"],
        ambiguous_candidates=[to_event_view(c) for c in error.candidates],
    )


def card_description(intent: CreateIntent, board_name: Optional[str], event_link: Optional[str]) -> str:
    if intent.is_scheduled_event:
        header = f"Scheduled for: {describe_time(intent.interval.start, intent.timezone)} ({intent.timezone})"
    else:
        header = "Task created from command"
    parts = [header]
    if event_link:
        parts.append(f"Calendar Event: {event_link}")
    if board_name:
        parts.append(f"Board: {board_name}")
    return "\n\n".join(parts)


def create_task(
    intent: CreateIntent,
    calendar: Optional[GoogleCalendarService],
    board: Optional[TrelloBoardService],
    board_name: Optional[str],
    calendar_email: Optional[str],
) -> CommandResult:
    errors: List[str] = []
    attempted = 0
    calendar_event = None
    board_card = None

    if intent.is_scheduled_event:
        attempted += 1
        try:
            calendar_event = _require_calendar(calendar).insert(
                title=intent.title,
                description=f"Created from: {intent.raw_text}",
                start=intent.interval.start,
                end=intent.interval.end,
                tz_name=intent.timezone,
                attendees=[calendar_email] if calendar_email else None,
            )
        except ScheduleEngineError as e:
            logger.error(f"Calendar side of create failed: {e.message}")
            errors.append(f"Calendar event was not created: {e.message}")

    attempted += 1
    try:
        if board is None:
            raise ConfigurationError("Trello is not configured")
        list_id = board.resolve_list_id(board_name)
        description = card_description(intent, board_name or board.default_board, calendar_event.html_link if calendar_event else None)
        board_card = board.add_card(intent.title, description, list_id)
    except ScheduleEngineError as e:
        logger.error(f"Board side of create failed: {e.message}")
        errors.append(f"Board card was not created: {e.message}")

    succeeded = attempted - len(errors)
    if succeeded == 0:
        response = f'I couldn\'t create "{intent.title}".'
    elif errors:
        response = f'"{intent.title}" was only partly created.'
    elif intent.is_scheduled_event:
        response = intent.response or f'Scheduled "{intent.title}" for {describe_time(intent.interval.start, intent.timezone)}.'
    else:
        response = intent.response or f'Added "{intent.title}" to your board.'

    logger.info(f"Create '{intent.title}': {succeeded}/{attempted} side effects succeeded")
    return _base_result(
        intent,
        success=succeeded > 0,
        response=response,
        calendar_event=calendar_event,
        board_card=board_card,
        partial_success=0 < succeeded < attempted,
        errors=errors,
    )


def edit_event(
    intent: EditIntent,
    calendar: Optional[GoogleCalendarService],
    events: Sequence[CandidateEvent],
    user_timezone: str,
) -> CommandResult:
    target = require_single_match(disambiguator.match(events, intent.search_terms, intent.raw_text), "edit")
    if target is None:
        return _base_result(
            intent,
            success=False,
            response="I couldn't find the event you want to edit. Please be more specific or check if the event exists.",
            suggestions=NOT_FOUND_SUGGESTIONS,
        )

    patch = {}
    if intent.title_change and intent.title_change != target.title:
        patch["summary"] = intent.title_change
    if intent.interval_change is not None:
        patch["start"] = calendar_time_block(intent.interval_change.start, intent.interval_change.timezone)
        patch["end"] = calendar_time_block(intent.interval_change.end, intent.interval_change.timezone)
    patch.update(intent.changes)

    if not patch:
        return _base_result(
            intent,
            success=False,
            response=f'I found "{target.title}" but couldn\'t tell what to change.',
            suggestions=["Say the new time or title, e.g. 'move it to 3pm'"],
        )

    updated = _require_calendar(calendar).update(target.id, patch)
    when = ""
    if intent.interval_change is not None:
        when = f" to {describe_time(intent.interval_change.start, intent.interval_change.timezone or user_timezone)}"
    return _base_result(
        intent,
        response=intent.response or f'Updated "{target.title}"{when}.',
        updated_event=updated,
    )


def _matching_cards(board: Optional[TrelloBoardService], board_name: Optional[str], terms: List[str]) -> List[BoardCard]:
    if board is None or not terms:
        return []
    try:
        cards = board.list_cards(board.resolve_list_id(board_name), board=board_name)
    except ScheduleEngineError as e:
        logger.warning(f"Could not look up related board cards: {e.message}")
        return []
    return [card for card in cards if any(term in card.name.lower() for term in terms)]


def delete_event(
    intent: DeleteIntent,
    calendar: Optional[GoogleCalendarService],
    board: Optional[TrelloBoardService],
    board_name: Optional[str],
    events: Sequence[CandidateEvent],
) -> CommandResult:
    target = require_single_match(disambiguator.match(events, intent.search_terms, intent.raw_text), "delete")
    if target is None:
        return _base_result(
            intent,
            success=False,
            response="I couldn't find the event you want to delete. Please be more specific or check if the event exists.",
            suggestions=NOT_FOUND_SUGGESTIONS,
        )

    _require_calendar(calendar).delete(target.id)

    terms = [t.lower() for t in intent.search_terms] or disambiguator.fallback_keywords(target.title)
    cards = _matching_cards(board, board_name, terms)
    response = intent.response or f'Deleted "{target.title}".'
    suggestions = list(intent.suggestions)
    if cards:
        response += f" {len(cards)} related board card(s) were left in place."
        suggestions.append("Delete the related board cards separately if they are done")
    return _base_result(
        intent,
        response=response,
        suggestions=suggestions,
        deleted_event_id=target.id,
        matching_cards=cards,
    )


def list_events(intent: ListIntent, events: Sequence[CandidateEvent], user_timezone: str) -> CommandResult:
    terms = intent.search_terms or []
    selected = [e for e in events if disambiguator.score_candidate(e, terms) > 0] if terms else list(events)

    if not selected:
        what = f" matching {', '.join(terms)}" if terms else ""
        response = f"I couldn't find any upcoming events{what}."
    else:
        lines = [f"You have {len(selected)} upcoming event(s):"]
        for event in selected:
            lines.append(f"- {event.title or '(untitled)'}: {describe_time(event.start, user_timezone, event.all_day)}")
        response = "\n".join(lines)

    return _base_result(intent, response=response, events=[to_event_view(e) for e in selected])


def execute_intent(
    intent: ActionIntent,
    *,
    calendar: Optional[GoogleCalendarService],
    board: Optional[TrelloBoardService],
    board_name: Optional[str] = None,
    calendar_email: Optional[str] = None,
    events: Sequence[CandidateEvent] = (),
    user_timezone: str = "UTC",
) -> CommandResult:
    """Runs the side effects an intent asks for and describes the outcome.

    Raises:
        ScheduleEngineError: Edit, delete and the calendar lookups propagate
            adapter errors (NotFound, PermissionDenied, ...) unchanged.
    """
    logger.info(f"Executing {intent.kind} intent")
    try:
        if isinstance(intent, CreateIntent):
            return create_task(intent, calendar, board, board_name, calendar_email)
        if isinstance(intent, EditIntent):
            return edit_event(intent, calendar, events, user_timezone)
        if isinstance(intent, DeleteIntent):
            return delete_event(intent, calendar, board, board_name, events)
    except AmbiguousTarget as e:
        logger.info(f"Asking the user to disambiguate between {len(e.candidates)} events")
        return _clarification_result(intent, e, user_timezone)

    if isinstance(intent, ListIntent):
        return list_events(intent, events, user_timezone)
    if isinstance(intent, ConversationalIntent):
        return _base_result(intent, response=intent.reply_text or intent.response)
    if isinstance(intent, UnresolvedIntent):
        return _base_result(
            intent,
            success=False,
            response=intent.response or intent.reason,
            quota_error=intent.quota_error,
            parse_error=intent.parse_error,
            ai_error=intent.ai_error,
        )
    raise TypeError(f"Unsupported intent: {type(intent).__name__}")
