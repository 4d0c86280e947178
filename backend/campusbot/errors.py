# backend/campusbot/errors.py
"""
Exceptions raised by the campus assistant core.

The HTTP layer maps them to status codes; nothing below the routers knows
about HTTP.
"""


class CampusAssistantError(Exception):
    """Base class for all assistant errors"""

    status_code = 500


class ValidationError(CampusAssistantError):
    """Bad input from the caller: empty query, unknown category or field, missing required field"""

    status_code = 400


class NotFoundError(CampusAssistantError):
    status_code = 404


class DataStoreUnavailable(CampusAssistantError):
    """The data store was not configured or cannot be reached"""

    status_code = 503


class AIGenerationFailure(CampusAssistantError):
    """Every model attempt failed (timeout, transport error, empty payload)"""


class PersistenceWriteFailure(CampusAssistantError):
    """Appending to the conversation log failed"""
