"""
Exception hierarchy for WeekWise.

Every error carries a human-readable message that the dashboard shows as-is,
plus the HTTP status the JSON API answers with.
"""


class WeekWiseError(Exception):
    """Base error for everything the flows raise."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message}


class ConfigurationError(WeekWiseError):
    """A required setting is missing or rejected by the upstream API."""


class AuthenticationError(WeekWiseError):
    """Upstream API rejected the credentials (401/403)."""

    status_code = 502


class NotFoundError(WeekWiseError):
    """Upstream resource does not exist or is not shared (404)."""

    status_code = 502


class UpstreamError(WeekWiseError):
    """Any other failed or malformed upstream response."""

    status_code = 502


class LLMResponseError(WeekWiseError):
    """The LLM call failed or its reply did not match the expected shape."""

    status_code = 502


class InvalidInputError(WeekWiseError):
    """Request data failed validation."""

    status_code = 400
