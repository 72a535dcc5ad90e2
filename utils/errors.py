"""
Error types for the ratings pipeline.
Each stage raises exactly one of these; the orchestrator decides which are fatal.
"""


class RatingsAssistantError(Exception):
    """Base class for pipeline errors."""


class FetchError(RatingsAssistantError):
    """Raised when the spreadsheet cannot be reached, authenticated, or returns no rows."""


class SchemaError(RatingsAssistantError):
    """Raised when the sheet header lacks required columns."""


class CompletionError(RatingsAssistantError):
    """Raised when the completion service fails or returns an unusable response."""


class FallbackError(RatingsAssistantError):
    """Raised inside local analysis when a record cannot be read."""
