"""AdSight — Error Kinds.

Every failure raised by the analytics and alerting core derives from
AnalyticsError and carries the HTTP status the API layer maps it to.
"Nothing to report" is not an error: it is the Outcome.INSUFFICIENT_DATA
value carried on result models.
"""

from enum import Enum


class AnalyticsError(Exception):
    """Base class for analytics and alerting failures."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AnalyticsError):
    """Missing or invalid input (rule name, condition, status, role...)."""

    status_code = 400


class AuthorizationDenied(AnalyticsError):
    """The principal lacks the privilege for the requested operation."""

    status_code = 403


class NotFound(AnalyticsError):
    """No row matches both the id and the caller's tenant scope."""

    status_code = 404


class StoreUnavailable(AnalyticsError):
    """The storage collaborator failed. Never retried internally."""

    status_code = 503


class Outcome(str, Enum):
    """Typed result of an analysis that may legitimately find nothing."""

    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"
