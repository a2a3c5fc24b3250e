"""Error types and failure categorization for simroom.

Join-time failures are raised to the caller. Failures of the language model are
absorbed where the reply is generated and only logged, using the category
computed here.
"""

from __future__ import annotations

from enum import Enum


class SimRoomError(Exception):
    """Base class for all simroom errors."""


class NameTakenError(SimRoomError):
    """A connected participant already uses this display name."""

    def __init__(self, name: str) -> None:
        super().__init__("Username is already taken.")
        self.name = name


class InvalidNameError(SimRoomError, ValueError):
    """The requested display name is blank."""


class UnknownParticipantError(SimRoomError, KeyError):
    """No connected participant has the given id."""

    def __init__(self, participant_id: str) -> None:
        super().__init__(participant_id)
        self.participant_id = participant_id

    def __str__(self) -> str:
        return f"Unknown participant: {self.participant_id}"


class GenerationError(SimRoomError):
    """The language model failed to produce a reply."""


class ErrorCategory(Enum):
    """Categories of language-model failures, used as a log field."""

    API_KEY = "api_key"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


def categorize_error(error: BaseException) -> ErrorCategory:
    """Categorize an exception raised while generating a reply.

    A `GenerationError` is categorized by its cause when it has one.
    """
    if isinstance(error, GenerationError) and error.__cause__ is not None:
        return categorize_error(error.__cause__)

    error_str = str(error).lower()
    error_type = type(error).__name__.lower()

    if isinstance(error, TimeoutError) or "timeout" in error_str or "timeout" in error_type:
        return ErrorCategory.TIMEOUT

    if any(
        keyword in error_str
        for keyword in ["api key", "api_key", "unauthorized", "401", "invalid key", "authentication"]
    ):
        return ErrorCategory.API_KEY

    if any(keyword in error_str for keyword in ["rate limit", "429", "too many requests", "quota"]):
        return ErrorCategory.RATE_LIMIT

    if isinstance(error, ConnectionError) or any(
        keyword in error_str for keyword in ["connection", "network", "unreachable", "dns", "ssl"]
    ):
        return ErrorCategory.NETWORK

    return ErrorCategory.UNKNOWN
