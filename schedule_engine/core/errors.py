"""Error taxonomy for the Schedule Command Engine.

Every error carries an HTTP status so the API layer can map it to a JSON
response with a single exception handler.
"""

from typing import List, Optional, Any


class ScheduleEngineError(Exception):
    """Base class for all errors raised by the engine and its adapters."""

    status_code: int = 500
    error_label: str = "Internal error"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict:
        return {
            "error": self.message or self.error_label,
            "details": self.details,
        }


class InvalidRequestError(ScheduleEngineError):
    """The request is missing something the endpoint needs."""

    status_code = 400
    error_label = "Invalid request"


class ConfigurationError(ScheduleEngineError):
    """Missing credentials or board mapping. The user must fix the setup."""

    status_code = 500
    error_label = "Configuration error"


class ExternalServiceQuotaExceeded(ScheduleEngineError):
    """Model or API billing/quota exhausted. Retrying will not help."""

    status_code = 429
    error_label = "Quota exceeded"


class ExternalServiceUnavailable(ScheduleEngineError):
    """Transient failure of a calendar, board or model call."""

    status_code = 502
    error_label = "External service unavailable"


class ParseFailure(ScheduleEngineError):
    """The model returned a payload that could not be parsed."""

    status_code = 502
    error_label = "Unparseable model response"


class AmbiguousTarget(ScheduleEngineError):
    """Several events matched equally well; the user has to pick one."""

    status_code = 409
    error_label = "Ambiguous target"

    def __init__(self, message: str, candidates: Optional[List[Any]] = None):
        super().__init__(message)
        self.candidates = candidates or []


class NotFoundError(ScheduleEngineError):
    status_code = 404
    error_label = "Not found"


class PermissionDeniedError(ScheduleEngineError):
    status_code = 403
    error_label = "Permission denied"


QUOTA_MARKERS = ("quota", "billing", "exceeded")


def is_quota_error(error: BaseException) -> bool:
    """True for quota/billing failures, whatever client raised them."""
    if isinstance(error, ExternalServiceQuotaExceeded):
        return True
    text = f"{error} {getattr(error, 'details', '') or ''}".lower()
    return any(marker in text for marker in QUOTA_MARKERS)
